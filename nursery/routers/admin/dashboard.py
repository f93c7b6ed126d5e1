# nursery/routers/admin/dashboard.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from nursery.core.db import get_db
from nursery.models.user_models import UserRole
from nursery.schemas.dashboard_schemas import DashboardResponse
from nursery.services.dashboard_service import get_admin_summary
from nursery.utils.get_user import get_current_user
from nursery.utils.check_roles import require_role

router = APIRouter(prefix="/admin", tags=["Admin Dashboard"])


@router.get("/summary", response_model=DashboardResponse)
@require_role([UserRole.ADMIN])
async def admin_summary_route(db: AsyncSession = Depends(get_db), _user=Depends(get_current_user)):
    """Merchant, quotation and order counts for the dashboard header."""
    summary = await get_admin_summary(db)
    return {"message": "Dashboard summary fetched successfully", "data": summary}
