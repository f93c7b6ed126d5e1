# nursery/services/stock_service.py
import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from nursery.models.product_models import Product, StockTransaction, StockTransactionType

logger = logging.getLogger(__name__)


async def update_product_stock(
    db: AsyncSession,
    product_id: int,
    quantity_change: int,
    transaction_type: str,
    order_id: Optional[int] = None,
    reason: Optional[str] = None,
    notes: Optional[str] = None,
) -> StockTransaction:
    """
    Apply a stock change to a product and record it in the stock ledger.

    The product row is locked for the rest of the transaction. Nothing is
    committed here; the caller owns the transaction.
    """
    if transaction_type not in StockTransactionType.ALL:
        raise HTTPException(status_code=400, detail=f"Unknown stock transaction type '{transaction_type}'")
    if quantity_change == 0:
        raise HTTPException(status_code=400, detail="Stock change must not be zero")

    result = await db.execute(
        select(Product)
        .where(Product.id == product_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    product = result.scalars().first()
    if not product:
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found")

    new_quantity = product.stock_quantity + quantity_change
    if new_quantity < 0:
        raise HTTPException(
            status_code=400,
            detail=(
                f"Insufficient stock for '{product.name}': "
                f"{product.stock_quantity} available, {-quantity_change} requested"
            ),
        )

    product.stock_quantity = new_quantity
    transaction = StockTransaction(
        product_id=product.id,
        quantity_change=quantity_change,
        stock_after=new_quantity,
        transaction_type=transaction_type,
        order_id=order_id,
        reason=reason,
        notes=notes,
    )
    db.add(transaction)
    await db.flush()

    logger.info(
        "Stock %s for product %s: %+d -> %d (order=%s)",
        transaction_type, product.id, quantity_change, new_quantity, order_id,
    )
    return transaction
