# nursery/schemas/merchant_schemas.py
from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List, Literal
from datetime import datetime


class MerchantRegister(BaseModel):
    full_name: str = Field(..., min_length=1)
    nursery_name: str = Field(..., min_length=1)
    phone_number: Optional[str] = None
    email: Optional[EmailStr] = None  # defaults to the account email
    nursery_address: Optional[str] = None

class MerchantStatusUpdate(BaseModel):
    status: Literal["approved", "rejected", "blocked"]

class MerchantOut(BaseModel):
    id: int
    user_id: Optional[int] = None
    full_name: str
    nursery_name: str
    phone_number: Optional[str] = None
    email: str
    nursery_address: Optional[str] = None
    merchant_code: str
    status: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class MerchantResponse(BaseModel):
    message: str
    data: Optional[MerchantOut] = None

class MerchantListResponse(BaseModel):
    message: str
    data: List[MerchantOut] = []
