# nursery/routers/merchants/register.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from nursery.core.db import get_db
from nursery.schemas.merchant_schemas import MerchantRegister, MerchantResponse, MerchantOut
from nursery.services.merchant_service import register_merchant, get_merchant_for_user
from nursery.utils.get_user import get_current_user

router = APIRouter(prefix="/merchants", tags=["Merchants"])


@router.post("/register", response_model=MerchantResponse, status_code=status.HTTP_201_CREATED)
async def register_merchant_route(
    data: MerchantRegister,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    return await register_merchant(db, data, current_user)


@router.get("/me", response_model=MerchantResponse)
async def my_merchant_profile_route(db: AsyncSession = Depends(get_db), current_user=Depends(get_current_user)):
    merchant = await get_merchant_for_user(db, current_user)
    return {"message": "Merchant profile retrieved", "data": MerchantOut.model_validate(merchant)}
