# nursery/schemas/product_schemas.py
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    category: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    stock_quantity: int = Field(0, ge=0)

class ProductUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    is_active: Optional[bool] = None

class StockAdjustment(BaseModel):
    quantity_change: int
    transaction_type: str = "restock"
    reason: Optional[str] = None
    notes: Optional[str] = None

class ProductOut(BaseModel):
    id: int
    name: str
    category: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    price: float
    stock_quantity: int
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ProductResponse(BaseModel):
    message: str
    data: Optional[ProductOut] = None

class ProductListResponse(BaseModel):
    message: str
    total: int
    page: int
    page_size: int
    data: List[ProductOut]
