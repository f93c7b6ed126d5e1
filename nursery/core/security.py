# nursery/core/security.py
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from jose import jwt, JWTError
from passlib.context import CryptContext

from nursery.core.config import JWT_SECRET, JWT_ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def create_access_token(
    subject: str,
    token_version: int,
    expires_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES,
    **claims: Any,
) -> str:
    """
    Signed bearer token for `subject` (the user's email).

    `token_version` is compared with the user row on every request; bumping
    it on logout kills all tokens issued before.
    """
    now = datetime.now(timezone.utc)
    payload = {
        **claims,
        "sub": subject,
        "type": "access",
        "token_version": token_version,
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Raises ValueError for bad signatures, expired tokens and malformed payloads."""
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError:
        raise ValueError("Invalid or expired token")

    if payload.get("type") != "access" or not payload.get("sub") or payload.get("token_version") is None:
        raise ValueError("Invalid token payload")
    return payload
