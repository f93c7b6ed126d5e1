# nursery/routers/orders/functions.py
"""
Storefront order endpoints kept wire-compatible with the old serverless
handlers: camelCase payloads and `{"error": ...}` bodies on failure.
"""
import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from nursery.core.db import get_db
from nursery.schemas.order_schemas import PlaceOrderRequest
from nursery.services.order_service import place_order, get_user_orders
from nursery.utils.get_user import get_current_user, get_optional_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Storefront Orders"])


def _error(message: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _describe(e: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
    )


@router.post("/place-order")
async def place_order_route(
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_optional_user),
):
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _error("Invalid JSON")
    if not isinstance(body, dict):
        return _error("Invalid JSON")

    if any(body.get(key) in (None, "") for key in ("customer", "order", "cartItems")):
        return _error("Missing required fields")

    try:
        payload = PlaceOrderRequest.model_validate(body)
    except ValidationError as e:
        return _error(f"Invalid order: {_describe(e)}")

    try:
        return await place_order(db, payload, current_user=current_user)
    except HTTPException as e:
        logger.info("Order rejected: %s", e.detail)
        return _error(str(e.detail))


@router.get("/my-orders/{user_id}")
async def my_orders_route(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    try:
        orders = await get_user_orders(db, user_id, current_user)
    except HTTPException as e:
        return _error(str(e.detail))
    return [
        {**order, "date": order["date"].isoformat() if order["date"] else None}
        for order in orders
    ]
