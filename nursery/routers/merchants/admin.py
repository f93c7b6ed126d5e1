# nursery/routers/merchants/admin.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from nursery.core.db import get_db
from nursery.models.user_models import UserRole
from nursery.schemas.merchant_schemas import MerchantStatusUpdate, MerchantResponse, MerchantListResponse
from nursery.services.merchant_service import list_merchants, set_merchant_status
from nursery.utils.get_user import get_current_user
from nursery.utils.check_roles import require_role

router = APIRouter(prefix="/admin/merchants", tags=["Admin Merchants"])


@router.get("/", response_model=MerchantListResponse)
@require_role([UserRole.ADMIN])
async def list_merchants_route(
    status: Optional[str] = Query(None, description="pending/approved/rejected/blocked/all"),
    search: Optional[str] = Query(None, description="Name, nursery, email or merchant code"),
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user)
):
    return await list_merchants(db, status=status, search=search)


@router.patch("/{merchant_id}/status", response_model=MerchantResponse)
@require_role([UserRole.ADMIN])
async def set_merchant_status_route(
    merchant_id: int,
    data: MerchantStatusUpdate,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user)
):
    return await set_merchant_status(db, merchant_id, data.status, _user)
