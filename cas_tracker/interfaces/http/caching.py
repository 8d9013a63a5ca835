from ...application.dto import Identity
from ...application.use_cases.sections import ListSections
from ...domain.entities import Role
from ...infrastructure.cache import delete_cache_pattern, get_cache, set_cache
from ...infrastructure.repositories import SqlAlchemyUnitOfWork
from .schemas import SectionResp


def sections_key(identity: Identity) -> str:
    if identity.role is Role.ADMIN:
        return "sections:all"
    return f"sections:teacher:{identity.id}"


def cached_sections(identity: Identity, uow: SqlAlchemyUnitOfWork) -> list[dict]:
    """Section listing for an already authorised caller, served from Redis when possible."""
    key = sections_key(identity)
    cached = get_cache(key)
    if cached is not None:
        return cached
    result = [SectionResp.model_validate(s).model_dump() for s in ListSections(uow).execute(identity)]
    set_cache(key, result)
    return result


def invalidate_sections() -> None:
    delete_cache_pattern("sections:*")
