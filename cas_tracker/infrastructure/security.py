from passlib.context import CryptContext
from datetime import datetime, timedelta, timezone
from jose import jwt, JWTError
from ..config import settings
from ..domain.entities import Account

pwd = CryptContext(
    schemes=["bcrypt_sha256"],
    deprecated="auto",
    bcrypt_sha256__truncate_error=False,
    bcrypt_sha256__rounds=settings.BCRYPT_ROUNDS,
)

class PasswordHasher:
    def hash(self, plain: str) -> str: return pwd.hash(plain)
    def verify(self, plain: str, hashed: str) -> bool:
        try:
            return pwd.verify(plain, hashed)
        except ValueError:
            # unrecognised or corrupted hash
            return False

def create_access_token(sub: str, role: str = "student", email: str | None = None,
                        minutes: int | None = None) -> str:
    minutes = minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
    exp = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    payload = {"sub": sub, "role": role, "exp": exp}
    if email:
        payload["email"] = email
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def issue_token(account: Account) -> str:
    return create_access_token(sub=str(account.id), role=account.role.value, email=account.email)


def decode_token(token: str) -> dict:
    """Return the verified claims or raise JWTError."""
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    if not payload.get("sub") or not payload.get("role"):
        raise JWTError("Missing claims")
    return payload
