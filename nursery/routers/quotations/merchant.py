# nursery/routers/quotations/merchant.py
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from nursery.core.db import get_db
from nursery.models.user_models import UserRole
from nursery.schemas.quotation_schemas import (
    MerchantQuotationSubmit, QuotationResponse, QuotationListResponse
)
from nursery.services.merchant_service import get_approved_merchant_for_user
from nursery.services.quotation_service import (
    list_open_requests_for_merchant,
    list_merchant_quotations,
    submit_merchant_quotation,
    close_merchant_quotation,
    get_quotation,
)
from nursery.utils.get_user import get_current_user
from nursery.utils.check_roles import require_role

router = APIRouter(prefix="/merchant/quotations", tags=["Merchant Quotations"])


@router.get("/open", response_model=QuotationListResponse)
@require_role([UserRole.MERCHANT])
async def open_requests_route(db: AsyncSession = Depends(get_db), _user=Depends(get_current_user)):
    merchant = await get_approved_merchant_for_user(db, _user)
    return await list_open_requests_for_merchant(db, merchant)


@router.get("/", response_model=QuotationListResponse)
@require_role([UserRole.MERCHANT])
async def my_responses_route(
    status: Optional[str] = Query(None, description="waiting_for_admin/approved/rejected/closed/user_confirmed"),
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user)
):
    merchant = await get_approved_merchant_for_user(db, _user)
    return await list_merchant_quotations(db, merchant, status)


# --------------------------
# SUBMIT PRICE
# --------------------------
@router.post("/", response_model=QuotationResponse, status_code=status.HTTP_201_CREATED)
@require_role([UserRole.MERCHANT])
async def submit_quotation_route(
    data: MerchantQuotationSubmit,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user)
):
    merchant = await get_approved_merchant_for_user(db, _user)
    return await submit_merchant_quotation(db, merchant, data, _user)


@router.get("/{quotation_id}", response_model=QuotationResponse)
@require_role([UserRole.MERCHANT])
async def get_quotation_route(
    quotation_id: int,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user)
):
    merchant = await get_approved_merchant_for_user(db, _user)
    return await get_quotation(db, quotation_id, _user, merchant_code=merchant.merchant_code)


@router.post("/{quotation_id}/close", response_model=QuotationResponse)
@require_role([UserRole.MERCHANT])
async def close_quotation_route(
    quotation_id: int,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user)
):
    merchant = await get_approved_merchant_for_user(db, _user)
    return await close_merchant_quotation(db, quotation_id, merchant, _user)
