# nursery/services/product_service.py
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from nursery.models.product_models import Product, StockTransactionType
from nursery.schemas.product_schemas import ProductCreate, ProductUpdate, ProductOut, StockAdjustment
from nursery.services.stock_service import update_product_stock
from nursery.utils.activity_helpers import log_user_activity


# ---------------------------------------------------
# CREATE PRODUCT
# ---------------------------------------------------
async def create_product(db: AsyncSession, data: ProductCreate, current_user):
    """
    Create a new product and log the creation in the activity log.
    """
    try:
        existing = await db.execute(
            select(Product).where(Product.name == data.name, Product.is_active == True)
        )
        if existing.scalars().first():
            raise HTTPException(status_code=400, detail=f"Product '{data.name}' already exists")

        product = Product(**data.model_dump(), created_by=current_user.id)
        db.add(product)
        await db.flush()

        await log_user_activity(
            db,
            user_id=current_user.id,
            username=current_user.username,
            message=f"{current_user.role.capitalize()} created product '{product.name}' (ID: {product.id})"
        )

        await db.commit()
        await db.refresh(product)
        return {"message": "Product created successfully", "data": ProductOut.model_validate(product)}

    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        raise HTTPException(status_code=500, detail=f"Error creating product: {e}")


# ---------------------------------------------------
# LIST PRODUCTS (catalog)
# ---------------------------------------------------
async def list_products(
    db: AsyncSession,
    search: Optional[str] = None,
    category: Optional[str] = None,
    page: int = 1,
    page_size: int = 20,
    include_inactive: bool = False,
) -> dict:
    filters = []
    if not include_inactive:
        filters.append(Product.is_active == True)
    if search:
        pattern = f"%{search}%"
        filters.append(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))
    if category:
        filters.append(Product.category.ilike(category))

    count_stmt = select(func.count(Product.id))
    stmt = select(Product)
    if filters:
        count_stmt = count_stmt.where(*filters)
        stmt = stmt.where(*filters)

    total = (await db.execute(count_stmt)).scalar() or 0
    result = await db.execute(
        stmt
        .order_by(Product.name.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    products = result.scalars().all()
    return {
        "message": "Products fetched successfully",
        "total": total,
        "page": page,
        "page_size": page_size,
        "data": [ProductOut.model_validate(p) for p in products],
    }


# ---------------------------------------------------
# GET SINGLE PRODUCT
# ---------------------------------------------------
async def get_product(db: AsyncSession, product_id: int) -> dict:
    product = await db.get(Product, product_id)
    if not product or not product.is_active:
        raise HTTPException(status_code=404, detail="Product not found")
    return {"message": "Product fetched successfully", "data": ProductOut.model_validate(product)}


# ---------------------------------------------------
# UPDATE PRODUCT
# ---------------------------------------------------
async def update_product(db: AsyncSession, product_id: int, data: ProductUpdate, current_user):
    """
    Update product details and log the changes.
    """
    product = await db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    changes = []
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None or getattr(product, field) == value:
            continue
        changes.append(f"{field}: {getattr(product, field)} → {value}")
        setattr(product, field, value)

    if not changes:
        return {"message": "No changes applied", "data": ProductOut.model_validate(product)}

    product.updated_by = current_user.id
    await log_user_activity(
        db,
        user_id=current_user.id,
        username=current_user.username,
        message=f"Updated product '{product.name}' (ID: {product.id}): {', '.join(changes)}"
    )
    await db.commit()
    await db.refresh(product)
    return {"message": "Product updated successfully", "data": ProductOut.model_validate(product)}


# ---------------------------------------------------
# ADJUST STOCK
# ---------------------------------------------------
async def adjust_stock(db: AsyncSession, product_id: int, data: StockAdjustment, current_user):
    if data.transaction_type == StockTransactionType.PURCHASE:
        raise HTTPException(status_code=400, detail="Purchases are recorded by order placement")
    try:
        transaction = await update_product_stock(
            db,
            product_id=product_id,
            quantity_change=data.quantity_change,
            transaction_type=data.transaction_type,
            reason=data.reason or "Manual stock adjustment",
            notes=data.notes,
        )
        await log_user_activity(
            db,
            user_id=current_user.id,
            username=current_user.username,
            message=(
                f"Adjusted stock of product {product_id} by {data.quantity_change:+d} "
                f"({data.transaction_type}), now {transaction.stock_after}"
            )
        )
        await db.commit()
    except HTTPException:
        await db.rollback()
        raise

    product = await db.get(Product, product_id)
    await db.refresh(product)
    return {"message": "Stock updated successfully", "data": ProductOut.model_validate(product)}
