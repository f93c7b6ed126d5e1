# nursery/services/cart_service.py
from decimal import Decimal
from typing import List

from fastapi import HTTPException
from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from nursery.models.cart_models import CartItem, WishlistItem
from nursery.models.product_models import Product
from nursery.schemas.cart_schemas import CartItemCreate, CartItemOut
from nursery.schemas.product_schemas import ProductOut


def _cart_item_out(item: CartItem) -> CartItemOut:
    price = Decimal(str(item.product.price))
    return CartItemOut(
        id=item.id,
        product_id=item.product_id,
        name=item.product.name,
        category=item.product.category,
        image=item.product.image_url,
        price=float(price),
        quantity=item.quantity,
        line_total=float(price * item.quantity),
        specifications=item.specifications,
    )


async def get_cart_items(db: AsyncSession, user_id: int) -> List[CartItem]:
    result = await db.execute(
        select(CartItem)
        .where(CartItem.user_id == user_id)
        .order_by(CartItem.id.asc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def get_cart(db: AsyncSession, user_id: int, message: str = "Cart fetched successfully") -> dict:
    items = [_cart_item_out(i) for i in await get_cart_items(db, user_id)]
    return {
        "message": message,
        "total_amount": round(sum(i.line_total for i in items), 2),
        "data": items,
    }


async def _get_active_product(db: AsyncSession, product_id: int) -> Product:
    product = await db.get(Product, product_id)
    if not product or not product.is_active:
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found")
    return product


# --------------------------
# ADD TO CART
# --------------------------
async def add_to_cart(db: AsyncSession, user_id: int, data: CartItemCreate) -> dict:
    await _get_active_product(db, data.product_id)

    result = await db.execute(
        select(CartItem).where(CartItem.user_id == user_id, CartItem.product_id == data.product_id)
    )
    item = result.scalars().first()
    if item:
        # same product again: merge quantities, keep the newest specification
        item.quantity += data.quantity
        if data.specifications:
            item.specifications = data.specifications
    else:
        db.add(CartItem(
            user_id=user_id,
            product_id=data.product_id,
            quantity=data.quantity,
            specifications=data.specifications,
        ))

    try:
        await db.commit()
    except IntegrityError:
        # another request added the same product first
        await db.rollback()
        raise HTTPException(status_code=409, detail="Cart changed while adding the item, please retry")
    return await get_cart(db, user_id, "Item added to cart")


# --------------------------
# UPDATE QUANTITY
# --------------------------
async def update_cart_quantity(db: AsyncSession, user_id: int, product_id: int, quantity: int) -> dict:
    if quantity < 1:
        raise HTTPException(status_code=400, detail="Quantity must be at least 1")

    result = await db.execute(
        select(CartItem).where(CartItem.user_id == user_id, CartItem.product_id == product_id)
    )
    item = result.scalars().first()
    if not item:
        raise HTTPException(status_code=404, detail="Item not in cart")

    item.quantity = quantity
    await db.commit()
    return await get_cart(db, user_id, "Cart updated")


# --------------------------
# REMOVE / CLEAR
# --------------------------
async def remove_from_cart(db: AsyncSession, user_id: int, product_id: int) -> dict:
    result = await db.execute(
        delete(CartItem).where(CartItem.user_id == user_id, CartItem.product_id == product_id)
    )
    if result.rowcount == 0:
        raise HTTPException(status_code=404, detail="Item not in cart")
    await db.commit()
    return await get_cart(db, user_id, "Item removed from cart")


async def clear_cart(db: AsyncSession, user_id: int, commit: bool = True) -> None:
    await db.execute(delete(CartItem).where(CartItem.user_id == user_id))
    if commit:
        await db.commit()


# ==================================================
# WISHLIST
# ==================================================
async def get_wishlist(db: AsyncSession, user_id: int, message: str = "Wishlist fetched successfully") -> dict:
    result = await db.execute(
        select(WishlistItem)
        .where(WishlistItem.user_id == user_id)
        .order_by(WishlistItem.id.asc())
        .execution_options(populate_existing=True)
    )
    items = result.scalars().all()
    return {
        "message": message,
        "data": [
            {"id": w.id, "product_id": w.product_id, "product": ProductOut.model_validate(w.product)}
            for w in items
        ],
    }


async def add_to_wishlist(db: AsyncSession, user_id: int, product_id: int) -> dict:
    await _get_active_product(db, product_id)
    result = await db.execute(
        select(WishlistItem).where(WishlistItem.user_id == user_id, WishlistItem.product_id == product_id)
    )
    if not result.scalars().first():
        db.add(WishlistItem(user_id=user_id, product_id=product_id))
        try:
            await db.commit()
        except IntegrityError:
            # added concurrently, the row we wanted is there
            await db.rollback()
    return await get_wishlist(db, user_id, "Added to wishlist")


async def remove_from_wishlist(db: AsyncSession, user_id: int, product_id: int) -> dict:
    result = await db.execute(
        delete(WishlistItem).where(WishlistItem.user_id == user_id, WishlistItem.product_id == product_id)
    )
    if result.rowcount == 0:
        raise HTTPException(status_code=404, detail="Item not in wishlist")
    await db.commit()
    return await get_wishlist(db, user_id, "Removed from wishlist")


async def move_wishlist_item_to_cart(db: AsyncSession, user_id: int, product_id: int) -> dict:
    result = await db.execute(
        select(WishlistItem).where(WishlistItem.user_id == user_id, WishlistItem.product_id == product_id)
    )
    wishlist_item = result.scalars().first()
    if not wishlist_item:
        raise HTTPException(status_code=404, detail="Item not in wishlist")

    await db.delete(wishlist_item)
    return await add_to_cart(db, user_id, CartItemCreate(product_id=product_id, quantity=1))
