# nursery/models/product_models.py
from decimal import Decimal
from sqlalchemy import (
    Column, Integer, String, Numeric, Boolean, CheckConstraint, Index,
    ForeignKey, DateTime, Text
)
from sqlalchemy.orm import relationship
from nursery.core.db import Base, utcnow


class StockTransactionType:
    PURCHASE = "purchase"
    RESTOCK = "restock"
    ADJUSTMENT = "adjustment"

    ALL = {PURCHASE, RESTOCK, ADJUSTMENT}


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), index=True, nullable=False)
    category = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    image_url = Column(String, nullable=True)
    price = Column(Numeric(12, 2), default=Decimal("0.00"), nullable=False)
    stock_quantity = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    __table_args__ = (
        CheckConstraint(price >= 0, name="check_product_price_non_negative"),
        CheckConstraint(stock_quantity >= 0, name="check_stock_quantity_non_negative"),
        Index("ix_product_name_category", "name", "category"),
    )

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}')>"


class StockTransaction(Base):
    __tablename__ = "stock_transactions"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity_change = Column(Integer, nullable=False)
    stock_after = Column(Integer, nullable=False)
    transaction_type = Column(String(20), nullable=False)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=True)
    reason = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    product = relationship("Product", lazy="selectin")
