# nursery/utils/activity_helpers.py
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from nursery.models.activity_models import UserActivity


async def log_user_activity(
    db: AsyncSession,
    user_id: Optional[int] = None,
    username: Optional[str] = None,
    message: str = "",
    reference: Optional[str] = None,
) -> UserActivity:
    """
    Stage an audit row in the caller's transaction.

    Nothing is flushed or committed here, so the entry only persists if the
    business change it describes does. Guest checkouts pass no user_id and
    the customer's email as username.
    """
    activity = UserActivity(
        user_id=user_id,
        username=username or "system",
        reference=reference,
        message=message,
    )
    db.add(activity)
    return activity
