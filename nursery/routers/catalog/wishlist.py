# nursery/routers/catalog/wishlist.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from nursery.core.db import get_db
from nursery.schemas.cart_schemas import WishlistResponse, CartResponse
from nursery.services.cart_service import (
    get_wishlist, add_to_wishlist, remove_from_wishlist, move_wishlist_item_to_cart
)
from nursery.utils.get_user import get_current_user

router = APIRouter(prefix="/wishlist", tags=["Wishlist"])


@router.get("/", response_model=WishlistResponse)
async def get_wishlist_route(db: AsyncSession = Depends(get_db), current_user=Depends(get_current_user)):
    return await get_wishlist(db, current_user.id)


@router.post("/{product_id}", response_model=WishlistResponse)
async def add_to_wishlist_route(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    return await add_to_wishlist(db, current_user.id, product_id)


@router.delete("/{product_id}", response_model=WishlistResponse)
async def remove_from_wishlist_route(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    return await remove_from_wishlist(db, current_user.id, product_id)


@router.post("/{product_id}/move-to-cart", response_model=CartResponse)
async def move_to_cart_route(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    return await move_wishlist_item_to_cart(db, current_user.id, product_id)
