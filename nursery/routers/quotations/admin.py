# nursery/routers/quotations/admin.py
from fastapi import APIRouter, Depends, Query, Body
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from nursery.core.db import get_db
from nursery.models.user_models import UserRole
from nursery.schemas.quotation_schemas import (
    QuotationApprove,
    ApprovedPriceUpdate,
    QuotationResponse,
    QuotationListResponse,
    QuotationGroupResponse,
    IntegrityReport,
)
from nursery.services.quotation_service import (
    list_quotations,
    list_waiting_for_admin,
    get_quotation_group,
    approve_merchant_quotation,
    reject_merchant_quotation,
    update_approved_price,
    mark_user_order_placed,
    check_quotation_integrity,
)
from nursery.utils.get_user import get_current_user
from nursery.utils.check_roles import require_role

router = APIRouter(prefix="/admin/quotations", tags=["Admin Quotations"])


@router.get("/", response_model=QuotationListResponse)
@require_role([UserRole.ADMIN])
async def list_quotations_route(
    status: Optional[str] = Query(None),
    quotation_code: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user)
):
    return await list_quotations(db, status=status, quotation_code=quotation_code, page=page, page_size=page_size)


@router.get("/waiting", response_model=QuotationListResponse)
@require_role([UserRole.ADMIN])
async def waiting_for_admin_route(db: AsyncSession = Depends(get_db), _user=Depends(get_current_user)):
    return await list_waiting_for_admin(db)


@router.get("/integrity", response_model=IntegrityReport)
@require_role([UserRole.ADMIN])
async def integrity_route(db: AsyncSession = Depends(get_db), _user=Depends(get_current_user)):
    return await check_quotation_integrity(db)


@router.get("/group/{quotation_code}", response_model=QuotationGroupResponse)
@require_role([UserRole.ADMIN])
async def quotation_group_route(
    quotation_code: str,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user)
):
    return await get_quotation_group(db, quotation_code)


# --------------------------
# DECISIONS
# --------------------------
@router.post("/{quotation_id}/approve", response_model=QuotationResponse)
@require_role([UserRole.ADMIN])
async def approve_quotation_route(
    quotation_id: int,
    data: Optional[QuotationApprove] = Body(None),
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user)
):
    approved_price = data.approved_price if data else None
    return await approve_merchant_quotation(db, quotation_id, approved_price, _user)


@router.post("/{quotation_id}/reject", response_model=QuotationResponse)
@require_role([UserRole.ADMIN])
async def reject_quotation_route(
    quotation_id: int,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user)
):
    return await reject_merchant_quotation(db, quotation_id, _user)


@router.patch("/{quotation_id}/approved-price", response_model=QuotationResponse)
@require_role([UserRole.ADMIN])
async def update_approved_price_route(
    quotation_id: int,
    data: ApprovedPriceUpdate,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user)
):
    return await update_approved_price(db, quotation_id, data.approved_price, _user)


@router.post("/{quotation_id}/mark-order-placed", response_model=QuotationResponse)
@require_role([UserRole.ADMIN])
async def mark_order_placed_route(
    quotation_id: int,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user)
):
    return await mark_user_order_placed(db, quotation_id, _user)
