# nursery/routers/auth/auth.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from nursery.core.db import get_db
from nursery.schemas.auth_schemas import (
    UserRegister, UserLogin, TokenResponse, MessageResponse, UserResponse, UserOut
)
from nursery.services.auth_service import register_user, login_user, logout_user
from nursery.utils.get_user import get_current_user

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(data: UserRegister, db: AsyncSession = Depends(get_db)):
    user = await register_user(db, data)
    return {"msg": f"User '{user.email}' registered successfully.", "data": UserOut.model_validate(user)}


@router.post("/login", response_model=TokenResponse)
async def login(data: UserLogin, db: AsyncSession = Depends(get_db)):
    return await login_user(db, data.email, data.password)


@router.post("/logout", response_model=MessageResponse)
async def logout(db: AsyncSession = Depends(get_db), current_user=Depends(get_current_user)):
    """
    Logs out the user by bumping token_version, which invalidates every issued token.
    """
    return await logout_user(db, current_user)


@router.get("/me", response_model=UserResponse)
async def me(current_user=Depends(get_current_user)):
    return {"msg": "Current user", "data": UserOut.model_validate(current_user)}
