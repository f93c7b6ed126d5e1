# nursery/routers/orders/orders.py
from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from nursery.core.db import get_db
from nursery.models.user_models import UserRole
from nursery.schemas.order_schemas import (
    QuotationOrderCreate,
    PlaceOrderResponse,
    OrderResponse,
    OrderListResponse,
    OrderStatusUpdate,
    OrderValidationResult,
)
from nursery.services.order_events import order_event_stream
from nursery.services.order_service import (
    place_order_from_quotation,
    list_orders,
    get_order,
    update_order_status,
    validate_order_totals,
)
from nursery.utils.get_user import get_current_user
from nursery.utils.check_roles import require_role

router = APIRouter(tags=["Orders"])


# --------------------------
# ORDER FROM APPROVED QUOTATION
# --------------------------
@router.post(
    "/orders/from-quotation/{quotation_id}",
    response_model=PlaceOrderResponse,
    status_code=status.HTTP_201_CREATED,
)
async def order_from_quotation_route(
    quotation_id: int,
    data: QuotationOrderCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    return await place_order_from_quotation(db, current_user, quotation_id, data)


# --------------------------
# LIVE ORDER EVENTS (SSE)
# --------------------------
@router.get("/orders/events")
@require_role([UserRole.ADMIN])
async def order_events_route(request: Request, _user=Depends(get_current_user)):
    headers = {
        "Cache-Control": "no-cache",
        "X-Accel-Buffering": "no",
        "Connection": "keep-alive",
    }
    return StreamingResponse(
        order_event_stream(is_disconnected=request.is_disconnected),
        media_type="text/event-stream",
        headers=headers,
    )


# --------------------------
# ADMIN ORDER MANAGEMENT
# --------------------------
@router.get("/admin/orders", response_model=OrderListResponse)
@require_role([UserRole.ADMIN])
async def list_orders_route(
    status: Optional[str] = Query(None),
    user_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user)
):
    return await list_orders(db, status=status, user_id=user_id, page=page, page_size=page_size)


@router.get("/admin/orders/{order_id}", response_model=OrderResponse)
@require_role([UserRole.ADMIN])
async def get_order_route(order_id: int, db: AsyncSession = Depends(get_db), _user=Depends(get_current_user)):
    return await get_order(db, order_id)


@router.patch("/admin/orders/{order_id}/status", response_model=OrderResponse)
@require_role([UserRole.ADMIN])
async def update_order_status_route(
    order_id: int,
    data: OrderStatusUpdate,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user)
):
    return await update_order_status(db, order_id, data.status, _user)


@router.get("/admin/orders/{order_id}/validate", response_model=OrderValidationResult)
@require_role([UserRole.ADMIN])
async def validate_order_route(order_id: int, db: AsyncSession = Depends(get_db), _user=Depends(get_current_user)):
    return await validate_order_totals(db, order_id)
