# nursery/models/quotation_models.py
import enum
from decimal import Decimal
from sqlalchemy import (
    Column, Integer, String, Boolean, ForeignKey,
    DateTime, JSON, Numeric, UniqueConstraint, Index
)
from nursery.core.db import Base, utcnow


class QuotationStatus(str, enum.Enum):
    PENDING = "pending"
    WAITING_FOR_ADMIN = "waiting_for_admin"
    APPROVED = "approved"
    REJECTED = "rejected"
    ADMIN_APPROVED = "admin approved"
    USER_ORDER_PLACED = "user order placed"
    USER_CONFIRMED = "user_confirmed"
    CLOSED = "closed"


# ==================================================
# QUOTATION MODEL
# ==================================================
# One row per user request (merchant_code is NULL) plus one sibling row per
# merchant response, all sharing the same quotation_code.
class Quotation(Base):
    __tablename__ = "quotations"

    id = Column(Integer, primary_key=True, index=True)
    quotation_code = Column(String, nullable=False, index=True)
    merchant_code = Column(String, ForeignKey("merchants.merchant_code"), nullable=True, index=True)
    is_user_request = Column(Boolean, nullable=False, default=True)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    user_email = Column(String, nullable=True)

    # [{"product_id", "quantity", "name", "price", ...specifications}]
    items = Column(JSON, nullable=False, default=list)
    status = Column(String(30), nullable=False, default=QuotationStatus.PENDING.value)

    # Pricing (merchant responses only)
    unit_prices = Column(JSON, nullable=True)
    modified_specifications = Column(JSON, nullable=True)
    total_quote_price = Column(Numeric(12, 2), nullable=True)
    approved_price = Column(Numeric(12, 2), nullable=True)
    transport_cost = Column(Numeric(12, 2), default=Decimal("0.00"))
    custom_work_cost = Column(Numeric(12, 2), default=Decimal("0.00"))
    estimated_delivery_days = Column(Integer, nullable=True)

    # Audit fields
    admin_updated_at = Column(DateTime(timezone=True), nullable=True)
    updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("quotation_code", "merchant_code", name="uq_quotation_code_merchant"),
        Index("ix_quotation_user_code", "user_id", "quotation_code"),
    )

    def calculate_total(self) -> Decimal:
        total = Decimal("0.00")
        for index, item in enumerate(self.items or []):
            unit_price = Decimal(str((self.unit_prices or [])[index]))
            total += unit_price * int(item.get("quantity") or 0)
        total += Decimal(str(self.transport_cost or 0)) + Decimal(str(self.custom_work_cost or 0))
        return total.quantize(Decimal("0.01"))

    def __repr__(self):
        return (
            f"<Quotation(code='{self.quotation_code}', merchant='{self.merchant_code}', "
            f"status='{self.status}')>"
        )
