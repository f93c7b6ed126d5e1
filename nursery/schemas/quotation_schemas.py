# nursery/schemas/quotation_schemas.py
from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any
from datetime import datetime
from decimal import Decimal

# --------------------------
# Request Schemas
# --------------------------
class QuotationItemIn(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)
    specifications: Optional[Dict[str, Any]] = None   # variety, bag_size, is_grafted, ...

class QuotationRequestCreate(BaseModel):
    items: List[QuotationItemIn] = Field(..., min_length=1)

class MerchantQuotationSubmit(BaseModel):
    quotation_code: str
    unit_prices: List[Decimal]                       # aligned with the request items
    estimated_delivery_days: Optional[int] = Field(None, gt=0)
    modified_specifications: Optional[Dict[str, Any]] = None

class QuotationApprove(BaseModel):
    approved_price: Optional[Decimal] = Field(None, gt=0)   # defaults to the merchant total

class ApprovedPriceUpdate(BaseModel):
    approved_price: Decimal = Field(..., gt=0)

# --------------------------
# Response Schemas
# --------------------------
class QuotationOut(BaseModel):
    id: int
    quotation_code: str
    merchant_code: Optional[str] = None
    is_user_request: bool
    user_id: int
    user_email: Optional[str] = None
    items: List[Dict[str, Any]] = []
    status: str
    unit_prices: Optional[List[float]] = None
    modified_specifications: Optional[Dict[str, Any]] = None
    total_quote_price: Optional[float] = None
    approved_price: Optional[float] = None
    transport_cost: Optional[float] = None
    custom_work_cost: Optional[float] = None
    estimated_delivery_days: Optional[int] = None
    admin_updated_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class QuotationResponse(BaseModel):
    message: Optional[str] = None
    data: Optional[QuotationOut] = None

class QuotationListResponse(BaseModel):
    message: str
    data: List[QuotationOut] = []

class QuotationGroupOut(BaseModel):
    quotation_code: str
    original: Optional[QuotationOut] = None
    responses: List[QuotationOut] = []

class QuotationGroupResponse(BaseModel):
    message: str
    data: QuotationGroupOut

class IntegrityReport(BaseModel):
    is_valid: bool
    errors: List[str] = []
    warnings: List[str] = []
