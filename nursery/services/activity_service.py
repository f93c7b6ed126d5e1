# nursery/services/activity_service.py
from datetime import datetime
from typing import List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import select, desc, asc, func
from sqlalchemy.ext.asyncio import AsyncSession

from nursery.models.activity_models import UserActivity


async def get_user_activities(
    db: AsyncSession,
    user_id: Optional[int] = None,
    username: Optional[str] = None,
    reference: Optional[str] = None,
    since: Optional[datetime] = None,
    page: int = 1,
    page_size: int = 20,
    order: str = "desc"
) -> Tuple[int, List[UserActivity]]:
    """
    Audit entries, newest first by default.

    `reference` matches a quotation, order or merchant code exactly, so
    `QT-20260101-0007` returns the whole history of that request: the user's
    ask, every merchant price, the admin decision and the resulting order.
    """
    filters = []
    if user_id:
        filters.append(UserActivity.user_id == user_id)
    if username:
        filters.append(UserActivity.username.ilike(f"%{username}%"))
    if reference:
        filters.append(UserActivity.reference == reference.strip())
    if since:
        filters.append(UserActivity.created_at >= since)

    direction = asc if order.lower() == "asc" else desc

    try:
        count_stmt = select(func.count(UserActivity.id)).where(*filters)
        total = (await db.execute(count_stmt)).scalar() or 0

        stmt = (
            select(UserActivity)
            .where(*filters)
            .order_by(direction(UserActivity.created_at), direction(UserActivity.id))
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        activities = (await db.execute(stmt)).scalars().all()
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to fetch activities: {e}")

    return total, activities
