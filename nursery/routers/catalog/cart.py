# nursery/routers/catalog/cart.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from nursery.core.db import get_db
from nursery.schemas.cart_schemas import CartItemCreate, CartItemUpdate, CartResponse
from nursery.services.cart_service import (
    get_cart, add_to_cart, update_cart_quantity, remove_from_cart, clear_cart
)
from nursery.utils.get_user import get_current_user

router = APIRouter(prefix="/cart", tags=["Cart"])


@router.get("/", response_model=CartResponse)
async def get_cart_route(db: AsyncSession = Depends(get_db), current_user=Depends(get_current_user)):
    return await get_cart(db, current_user.id)


@router.post("/", response_model=CartResponse, status_code=status.HTTP_201_CREATED)
async def add_to_cart_route(
    data: CartItemCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    return await add_to_cart(db, current_user.id, data)


@router.patch("/{product_id}", response_model=CartResponse)
async def update_cart_route(
    product_id: int,
    data: CartItemUpdate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    return await update_cart_quantity(db, current_user.id, product_id, data.quantity)


@router.delete("/{product_id}", response_model=CartResponse)
async def remove_from_cart_route(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    return await remove_from_cart(db, current_user.id, product_id)


@router.delete("/", response_model=CartResponse)
async def clear_cart_route(db: AsyncSession = Depends(get_db), current_user=Depends(get_current_user)):
    await clear_cart(db, current_user.id)
    return await get_cart(db, current_user.id, message="Cart cleared")
