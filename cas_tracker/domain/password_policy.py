"""Password strength rules and a generator that always satisfies them."""
import secrets
import string

from .errors import WeakPassword

MIN_LENGTH = 8
SYMBOLS = '!@#$%^&*(),.?":{}|<>'

LENGTH = f"at least {MIN_LENGTH} characters"
UPPERCASE = "an uppercase letter"
LOWERCASE = "a lowercase letter"
DIGIT = "a number"
SYMBOL = "a special character"

_CLASSES = (
    (UPPERCASE, string.ascii_uppercase),
    (LOWERCASE, string.ascii_lowercase),
    (DIGIT, string.digits),
    (SYMBOL, SYMBOLS),
)
_ALPHABET = "".join(chars for _, chars in _CLASSES)
_rng = secrets.SystemRandom()


def validate(password: str) -> list[str]:
    """Return the requirements ``password`` misses; empty means it is strong."""
    missing = []
    if len(password) < MIN_LENGTH:
        missing.append(LENGTH)
    for requirement, chars in _CLASSES:
        if not any(c in chars for c in password):
            missing.append(requirement)
    return missing


def ensure_strong(password: str) -> None:
    missing = validate(password)
    if missing:
        raise WeakPassword(missing)


def generate(length: int = 12) -> str:
    length = max(length, MIN_LENGTH, len(_CLASSES))
    chars = [_rng.choice(pool) for _, pool in _CLASSES]
    chars += [_rng.choice(_ALPHABET) for _ in range(length - len(chars))]
    _rng.shuffle(chars)
    return "".join(chars)
