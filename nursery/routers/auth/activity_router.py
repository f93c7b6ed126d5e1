# nursery/routers/auth/activity_router.py
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from nursery.core.db import get_db
from nursery.models.user_models import UserRole
from nursery.services.activity_service import get_user_activities
from nursery.schemas.activity_schemas import UserActivityOut, UserActivityListResponse
from nursery.utils.get_user import get_current_user
from nursery.utils.check_roles import require_role

router = APIRouter(prefix="/activities", tags=["User Activities"])


@router.get("/", response_model=UserActivityListResponse)
@require_role([UserRole.ADMIN])
async def list_user_activities(
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
    user_id: Optional[int] = Query(None),
    username: Optional[str] = Query(None),
    reference: Optional[str] = Query(None, description="Quotation, order or merchant code"),
    since: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    order: str = Query("desc", pattern="^(asc|desc)$"),
):
    total, activities = await get_user_activities(
        db=db,
        user_id=user_id,
        username=username,
        reference=reference,
        since=since,
        page=page,
        page_size=page_size,
        order=order,
    )

    return UserActivityListResponse(
        message="User activities fetched successfully",
        total=total,
        data=[UserActivityOut.model_validate(a) for a in activities]
    )
