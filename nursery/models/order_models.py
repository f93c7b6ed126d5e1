# nursery/models/order_models.py
from decimal import Decimal
from sqlalchemy import (
    Column, Integer, String, ForeignKey, JSON, DateTime, Numeric
)
from sqlalchemy.orm import relationship
from nursery.core.db import Base, utcnow


class OrderStatus:
    PENDING = "pending"
    PAID = "Paid"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    ALL = {PENDING, PAID, PROCESSING, SHIPPED, DELIVERED, CANCELLED}


class GuestUser(Base):
    __tablename__ = "guest_users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    delivery_address = Column(JSON, nullable=True)
    shipping_address = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_code = Column(String, unique=True, nullable=True, index=True)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    guest_user_id = Column(Integer, ForeignKey("guest_users.id"), nullable=True)

    quotation_code = Column(String, nullable=True, index=True)
    merchant_code = Column(String, nullable=True)

    # Snapshot of what was bought; later product/price edits do not touch it
    cart_items = Column(JSON, nullable=False, default=list)
    delivery_address = Column(JSON, nullable=True)
    shipping_address = Column(String, nullable=True)
    total_amount = Column(Numeric(12, 2), default=Decimal("0.00"), nullable=False)
    status = Column(String(20), nullable=False, default=OrderStatus.PENDING)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)
    updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<Order(id={self.id}, code='{self.order_code}', status='{self.status}')>"


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)

    order = relationship("Order", back_populates="items")
    product = relationship("Product", lazy="selectin")
