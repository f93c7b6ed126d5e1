# nursery/services/auth_service.py
from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from nursery.core.db import utcnow
from nursery.models.user_models import User, UserRole
from nursery.core.security import hash_password, verify_password, create_access_token
from nursery.core.config import ACCESS_TOKEN_EXPIRE_MINUTES, ADMIN_ACCESS_TOKEN_EXPIRE_MINUTES
from nursery.schemas.auth_schemas import UserRegister
from nursery.utils.activity_helpers import log_user_activity


async def register_user(db: AsyncSession, data: UserRegister) -> User:
    """Customer self sign-up. Merchants and admins are promoted, never registered."""
    try:
        existing = await db.execute(select(User).where(User.email == data.email))
        if existing.scalars().first():
            raise HTTPException(status_code=400, detail="Email already registered")

        user = User(
            email=data.email,
            full_name=data.full_name,
            password_hash=hash_password(data.password),
            role=UserRole.CUSTOMER,
        )
        db.add(user)
        await db.flush()

        await log_user_activity(
            db,
            user_id=user.id,
            username=user.email,
            message=f"User '{user.email}' registered.",
        )
        await db.commit()
        await db.refresh(user)
        return user

    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        raise HTTPException(status_code=500, detail=f"Error registering user: {e}")


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User:
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalars().first()
    if not user or not verify_password(password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials"
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive.")
    return user


def create_token(user: User) -> str:
    """Access token carrying token_version so logout invalidates it immediately."""
    expire_minutes = (
        ADMIN_ACCESS_TOKEN_EXPIRE_MINUTES
        if user.role == UserRole.ADMIN
        else ACCESS_TOKEN_EXPIRE_MINUTES
    )
    return create_access_token(
        user.email,
        token_version=user.token_version,
        expires_minutes=expire_minutes,
        user_id=user.id,
        role=user.role,
    )


async def login_user(db: AsyncSession, email: str, password: str) -> dict:
    user = await authenticate_user(db, email, password)
    user.last_login = utcnow()

    await log_user_activity(
        db=db,
        user_id=user.id,
        username=user.email,
        message=f"User '{user.email}' logged in.",
    )
    await db.commit()

    return {"access_token": create_token(user), "token_type": "bearer", "role": user.role}


async def logout_user(db: AsyncSession, user: User) -> dict:
    user.token_version += 1
    await log_user_activity(
        db=db,
        user_id=user.id,
        username=user.email,
        message=f"User '{user.email}' logged out.",
    )
    await db.commit()
    return {"msg": "Logged out successfully"}
