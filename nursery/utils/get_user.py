# nursery/utils/get_user.py
from typing import Optional

from fastapi import Request, Depends, HTTPException, Header
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from nursery.models.user_models import User
from nursery.core.db import get_db
from nursery.core.security import decode_access_token


def _extract_token(token: Optional[str], authorization: Optional[str]) -> Optional[str]:
    # Support either header
    if token:
        return token
    if authorization and authorization.startswith("Bearer "):
        return authorization.split("Bearer ")[1]
    return None


async def _user_from_token(raw_token: str, db: AsyncSession) -> User:
    try:
        payload = decode_access_token(raw_token)
    except ValueError as e:
        raise HTTPException(status_code=401, detail=str(e))
    email = payload["sub"]
    token_version = payload["token_version"]

    result = await db.execute(select(User).where(User.email == email))
    user = result.scalars().first()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    if user.token_version != token_version:
        raise HTTPException(status_code=401, detail="Token invalidated. Please log in again.")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="User account is inactive.")
    return user


async def get_current_user(
    request: Request,
    token: Optional[str] = Header(default=None),
    authorization: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> User:
    raw_token = _extract_token(token, authorization)
    if not raw_token:
        raise HTTPException(status_code=401, detail="Missing access token")

    user = await _user_from_token(raw_token, db)
    request.state.user_email = user.email
    return user


async def get_optional_user(
    request: Request,
    token: Optional[str] = Header(default=None),
    authorization: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Like get_current_user, but guests without a token get None."""
    raw_token = _extract_token(token, authorization)
    if not raw_token:
        return None

    user = await _user_from_token(raw_token, db)
    request.state.user_email = user.email
    return user
