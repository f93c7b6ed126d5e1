# nursery/schemas/cart_schemas.py
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any

from nursery.schemas.product_schemas import ProductOut


class CartItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(1, ge=1)
    specifications: Optional[Dict[str, Any]] = None

class CartItemUpdate(BaseModel):
    quantity: int

class CartItemOut(BaseModel):
    id: int
    product_id: int
    name: str
    category: Optional[str] = None
    image: Optional[str] = None
    price: float
    quantity: int
    line_total: float
    specifications: Optional[Dict[str, Any]] = None

class CartResponse(BaseModel):
    message: str
    total_amount: float
    data: List[CartItemOut]

class WishlistItemOut(BaseModel):
    id: int
    product_id: int
    product: ProductOut

    class Config:
        from_attributes = True

class WishlistResponse(BaseModel):
    message: str
    data: List[WishlistItemOut]
