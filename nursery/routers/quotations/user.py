# nursery/routers/quotations/user.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from nursery.core.db import get_db
from nursery.schemas.quotation_schemas import (
    QuotationRequestCreate, QuotationResponse, QuotationListResponse
)
from nursery.services.quotation_service import (
    request_quotation,
    request_quotation_from_cart,
    list_user_quotations,
    get_quotation,
    cancel_quotation_request,
)
from nursery.utils.get_user import get_current_user

router = APIRouter(prefix="/quotations", tags=["Quotations"])


# --------------------------
# REQUEST QUOTATION
# --------------------------
@router.post("/", response_model=QuotationResponse, status_code=status.HTTP_201_CREATED)
async def request_quotation_route(
    data: QuotationRequestCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    return await request_quotation(db, current_user, data.items)


@router.post("/from-cart", response_model=QuotationResponse, status_code=status.HTTP_201_CREATED)
async def request_quotation_from_cart_route(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    return await request_quotation_from_cart(db, current_user)


# --------------------------
# MY QUOTATIONS
# --------------------------
@router.get("/mine", response_model=QuotationListResponse)
async def my_quotations_route(db: AsyncSession = Depends(get_db), current_user=Depends(get_current_user)):
    return await list_user_quotations(db, current_user)


@router.get("/{quotation_id}", response_model=QuotationResponse)
async def get_quotation_route(
    quotation_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    return await get_quotation(db, quotation_id, current_user)


@router.post("/{quotation_id}/cancel", response_model=QuotationResponse)
async def cancel_quotation_route(
    quotation_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    return await cancel_quotation_request(db, quotation_id, current_user)
