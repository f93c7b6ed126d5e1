# nursery/schemas/order_schemas.py
from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any, Union
from datetime import datetime
from decimal import Decimal


# --------------------------
# /place-order payload (camelCase on the wire)
# --------------------------
class CustomerIn(BaseModel):
    email: Optional[str] = None
    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    phone: Optional[str] = None
    delivery_address: Optional[Any] = Field(None, alias="deliveryAddress")
    shipping_address: Optional[str] = Field(None, alias="shippingAddress")

    class Config:
        populate_by_name = True

class OrderIn(BaseModel):
    delivery_address: Optional[Any] = Field(None, alias="deliveryAddress")
    shipping_address: Optional[str] = Field(None, alias="shippingAddress")
    total_amount: Optional[Decimal] = Field(None, alias="totalAmount")

    class Config:
        populate_by_name = True

class PlaceOrderItem(BaseModel):
    id: int                                   # product id
    name: Optional[str] = None
    quantity: int = Field(..., gt=0)
    price: Optional[Decimal] = None           # line total as shown to the buyer
    unit_price: Optional[Decimal] = Field(None, alias="unitPrice")
    quotation_id: Optional[int] = Field(None, alias="quotationId")
    quotation_code: Optional[str] = Field(None, alias="quotationCode")

    class Config:
        populate_by_name = True

class PlaceOrderRequest(BaseModel):
    customer: Optional[CustomerIn] = None
    order: Optional[OrderIn] = None
    cart_items: Optional[Union[List[PlaceOrderItem], PlaceOrderItem]] = Field(None, alias="cartItems")
    user_id: Optional[int] = Field(None, alias="userId")

    class Config:
        populate_by_name = True

class PlaceOrderResponse(BaseModel):
    message: str
    orderId: int
    orderCode: str

class QuotationOrderCreate(BaseModel):
    delivery_address: Optional[Dict[str, Any]] = None
    shipping_address: Optional[str] = None

# --------------------------
# /my-orders response
# --------------------------
class MyOrderItemOut(BaseModel):
    name: Optional[str] = None
    image: Optional[str] = None
    quantity: int
    price: float

class MyOrderOut(BaseModel):
    id: int
    date: datetime
    status: str
    address: Optional[Any] = None
    items: List[MyOrderItemOut] = []

# --------------------------
# Order management
# --------------------------
class OrderItemOut(BaseModel):
    id: int
    product_id: int
    quantity: int
    price: float
    unit_price: float
    subtotal: float

    class Config:
        from_attributes = True

class OrderOut(BaseModel):
    id: int
    order_code: Optional[str] = None
    user_id: Optional[int] = None
    guest_user_id: Optional[int] = None
    quotation_code: Optional[str] = None
    merchant_code: Optional[str] = None
    cart_items: List[Dict[str, Any]] = []
    delivery_address: Optional[Any] = None
    shipping_address: Optional[str] = None
    total_amount: float
    status: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    items: List[OrderItemOut] = []

    class Config:
        from_attributes = True

class OrderResponse(BaseModel):
    message: str
    data: Optional[OrderOut] = None

class OrderListResponse(BaseModel):
    message: str
    total: int
    data: List[OrderOut] = []

class OrderStatusUpdate(BaseModel):
    status: str

class OrderValidationResult(BaseModel):
    is_valid: bool
    errors: List[str] = []
    warnings: List[str] = []
