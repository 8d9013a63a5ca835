from collections.abc import Iterable

from ..domain.entities import Role
from ..domain.errors import Forbidden
from .dto import Identity


def require_role(identity: Identity, allowed: Iterable[Role]) -> Identity:
    """Raise ``Forbidden`` unless the caller holds one of ``allowed``."""
    if identity.role not in set(allowed):
        raise Forbidden("Access denied")
    return identity
