# nursery/models/activity_models.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index
from nursery.core.db import Base, utcnow

class UserActivity(Base):
    """Audit trail row. `reference` holds the quotation, order or merchant code the action touched."""
    __tablename__ = "user_activity"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    username = Column(String, nullable=False)
    reference = Column(String(40), nullable=True)
    message = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        Index("ix_user_activity_reference", "reference"),
    )
