# nursery/routers/merchants/dashboard.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from nursery.core.db import get_db
from nursery.models.user_models import UserRole
from nursery.schemas.dashboard_schemas import MerchantSummaryResponse
from nursery.schemas.order_schemas import OrderListResponse
from nursery.services.dashboard_service import get_merchant_summary
from nursery.services.merchant_service import get_approved_merchant_for_user
from nursery.services.order_service import list_merchant_orders
from nursery.utils.get_user import get_current_user
from nursery.utils.check_roles import require_role

router = APIRouter(prefix="/merchant", tags=["Merchant Dashboard"])


@router.get("/orders", response_model=OrderListResponse)
@require_role([UserRole.MERCHANT])
async def merchant_orders_route(
    status: Optional[str] = Query(None, description="pending/Paid/processing/shipped/delivered/cancelled"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user)
):
    merchant = await get_approved_merchant_for_user(db, _user)
    return await list_merchant_orders(db, merchant, status=status, page=page, page_size=page_size)


@router.get("/summary", response_model=MerchantSummaryResponse)
@require_role([UserRole.MERCHANT])
async def merchant_summary_route(db: AsyncSession = Depends(get_db), _user=Depends(get_current_user)):
    """Order counts, delivered revenue by month and quotation activity for the logged-in merchant."""
    merchant = await get_approved_merchant_for_user(db, _user)
    summary = await get_merchant_summary(db, merchant)
    return {"message": "Merchant summary fetched successfully", "data": summary}
