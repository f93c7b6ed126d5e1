# nursery/routers/catalog/products.py
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from nursery.core.db import get_db
from nursery.models.user_models import UserRole
from nursery.schemas.product_schemas import (
    ProductCreate, ProductUpdate, StockAdjustment, ProductResponse, ProductListResponse
)
from nursery.services.product_service import (
    create_product, list_products, get_product, update_product, adjust_stock
)
from nursery.utils.get_user import get_current_user
from nursery.utils.check_roles import require_role

router = APIRouter(prefix="/products", tags=["Products"])


# --------------------------
# PUBLIC CATALOG
# --------------------------
@router.get("/", response_model=ProductListResponse)
async def list_products_route(
    search: Optional[str] = Query(None, description="Search by name or description"),
    category: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    return await list_products(db, search=search, category=category, page=page, page_size=page_size)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product_route(product_id: int, db: AsyncSession = Depends(get_db)):
    return await get_product(db, product_id)


# --------------------------
# ADMIN
# --------------------------
@router.post("/", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
@require_role([UserRole.ADMIN])
async def create_product_route(
    data: ProductCreate,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user)
):
    return await create_product(db, data, _user)


@router.put("/{product_id}", response_model=ProductResponse)
@require_role([UserRole.ADMIN])
async def update_product_route(
    product_id: int,
    data: ProductUpdate,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user)
):
    return await update_product(db, product_id, data, _user)


@router.post("/{product_id}/stock", response_model=ProductResponse)
@require_role([UserRole.ADMIN])
async def adjust_stock_route(
    product_id: int,
    data: StockAdjustment,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user)
):
    return await adjust_stock(db, product_id, data, _user)
