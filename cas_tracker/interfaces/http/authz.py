from fastapi import Header, HTTPException, status
from jose import JWTError
from ...application.dto import Identity
from ...domain.entities import Role
from ...infrastructure.security import decode_token

def get_identity(authorization: str | None = Header(default=None)) -> Identity:
    # no credential is 401, a bad one is 400 (the web client relies on this split)
    if not authorization:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Access denied")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid token")
    try:
        claims = decode_token(token.strip())
        return Identity(id=int(claims["sub"]), role=Role(claims["role"]), email=claims.get("email"))
    except (JWTError, ValueError, KeyError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid token")
