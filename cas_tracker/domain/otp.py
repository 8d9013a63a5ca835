import hashlib
import hmac
import secrets
from datetime import datetime, timedelta, timezone

OTP_DIGITS = 6


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_code() -> str:
    return str(100000 + secrets.randbelow(900000))


def hash_code(code: str) -> str:
    return hashlib.sha256(code.encode("utf-8")).hexdigest()


def code_matches(code: str, code_hash: str) -> bool:
    return hmac.compare_digest(hash_code(code), code_hash)


def expiry(now: datetime, minutes: int) -> datetime:
    return now + timedelta(minutes=minutes)


def is_live(expires_at: datetime, now: datetime) -> bool:
    # SQLite hands back naive datetimes; they are stored as UTC.
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return now < expires_at
