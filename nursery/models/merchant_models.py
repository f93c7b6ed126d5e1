# nursery/models/merchant_models.py
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from nursery.core.db import Base, utcnow


class MerchantStatus:
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    BLOCKED = "blocked"

    ALL = {PENDING, APPROVED, REJECTED, BLOCKED}


class Merchant(Base):
    __tablename__ = "merchants"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, unique=True)

    full_name = Column(String, nullable=False)
    nursery_name = Column(String, nullable=False)
    phone_number = Column(String, nullable=True)
    email = Column(String, nullable=False, unique=True, index=True)
    nursery_address = Column(String, nullable=True)

    merchant_code = Column(String, unique=True, nullable=False, index=True)
    status = Column(String, nullable=False, default=MerchantStatus.PENDING)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)
    updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    def __repr__(self):
        return f"<Merchant(code='{self.merchant_code}', status='{self.status}')>"
