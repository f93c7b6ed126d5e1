# nursery/services/order_service.py
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from nursery.models.merchant_models import Merchant
from nursery.models.order_models import Order, OrderItem, OrderStatus, GuestUser
from nursery.models.product_models import Product, StockTransactionType
from nursery.models.quotation_models import Quotation, QuotationStatus
from nursery.models.user_models import User, UserRole
from nursery.schemas.order_schemas import (
    PlaceOrderRequest,
    PlaceOrderItem,
    CustomerIn,
    OrderIn,
    OrderOut,
    QuotationOrderCreate,
)
from nursery.core.db import utcnow
from nursery.services.quotation_service import confirm_quotation_for_order
from nursery.services.stock_service import update_product_stock
from nursery.services.order_events import publish_order_event
from nursery.utils.activity_helpers import log_user_activity
from nursery.utils.order_state_machine import OrderStateMachine

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
TOTAL_TOLERANCE = Decimal("0.01")


def _money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


# --------------------------
# Helper: pricing of quotation items
# --------------------------
def _quoted_line_price(quotation: Quotation, product_id: int, quantity: int) -> Decimal:
    """
    Line price of a product taken from an approved merchant quotation:
    unit price x quantity, or the approved price split evenly over the items
    when the merchant did not price items individually.
    """
    items = quotation.items or []
    index = next((i for i, item in enumerate(items) if item.get("product_id") == product_id), None)
    if index is None:
        raise HTTPException(
            status_code=400,
            detail=f"Product {product_id} is not part of quotation {quotation.quotation_code}",
        )

    unit_prices = quotation.unit_prices or []
    if index < len(unit_prices) and unit_prices[index] is not None:
        return _money(Decimal(str(unit_prices[index])) * quantity)

    approved = quotation.approved_price if quotation.approved_price is not None else quotation.total_quote_price
    if approved is None:
        raise HTTPException(status_code=400, detail=f"Quotation {quotation.quotation_code} has no price")
    return _money(Decimal(str(approved)) / len(items))


async def _resolve_quotation_id(db: AsyncSession, item: PlaceOrderItem, user_id: Optional[int]) -> Optional[int]:
    if item.quotation_id:
        return item.quotation_id
    if not item.quotation_code:
        return None

    result = await db.execute(
        select(Quotation.id).where(
            Quotation.quotation_code == item.quotation_code,
            Quotation.user_id == user_id,
            Quotation.merchant_code.is_not(None),
            Quotation.status.in_([QuotationStatus.APPROVED.value, QuotationStatus.USER_CONFIRMED.value]),
        )
    )
    quotation_id = result.scalars().first()
    if not quotation_id:
        raise HTTPException(status_code=404, detail=f"No approved quotation {item.quotation_code}")
    return quotation_id


async def _upsert_guest(db: AsyncSession, customer: CustomerIn, order: OrderIn) -> GuestUser:
    if not customer.email:
        raise HTTPException(status_code=400, detail="Customer email is required")

    result = await db.execute(select(GuestUser).where(GuestUser.email == customer.email))
    guest = result.scalars().first()
    if not guest:
        guest = GuestUser(email=customer.email)
        db.add(guest)

    guest.first_name = customer.first_name
    guest.last_name = customer.last_name
    guest.phone = customer.phone
    guest.delivery_address = customer.delivery_address or order.delivery_address
    guest.shipping_address = customer.shipping_address or order.shipping_address
    await db.flush()
    return guest


# --------------------------
# PLACE ORDER
# --------------------------
async def place_order(db: AsyncSession, payload: PlaceOrderRequest, current_user: Optional[User] = None) -> dict:
    """
    Create an order with its items, take the stock and confirm any quotation
    it was priced from. Runs as one transaction: on any failure nothing is
    written.

    Prices are taken from the catalogue or the approved quotation; the
    client's totalAmount must match them.
    """
    if not payload.customer or not payload.order or not payload.cart_items:
        raise HTTPException(status_code=400, detail="Missing required fields")

    cart_items: List[PlaceOrderItem] = (
        payload.cart_items if isinstance(payload.cart_items, list) else [payload.cart_items]
    )
    user_id = payload.user_id
    if user_id is not None:
        if current_user is None or (current_user.id != user_id and current_user.role != UserRole.ADMIN):
            raise HTTPException(status_code=403, detail="Orders for an account require that account's login")

    try:
        guest = None
        if user_id is None:
            guest = await _upsert_guest(db, payload.customer, payload.order)

        order = Order(
            order_code="TEMP",
            user_id=user_id,
            guest_user_id=guest.id if guest else None,
            delivery_address=payload.order.delivery_address or payload.customer.delivery_address,
            shipping_address=payload.order.shipping_address or payload.customer.shipping_address,
            status=OrderStatus.PAID,
            cart_items=[],
            items=[],
        )
        db.add(order)
        await db.flush()

        today_str = utcnow().strftime("%Y%m%d")
        order.order_code = f"ORD-{today_str}-{order.id:04d}"

        confirmed: Dict[int, Quotation] = {}
        snapshot = []
        total = Decimal("0.00")

        for item in cart_items:
            product = await db.get(Product, item.id)
            if not product or not product.is_active:
                raise HTTPException(status_code=404, detail=f"Product {item.id} not found")

            quotation_id = await _resolve_quotation_id(db, item, user_id)
            quotation = None
            if quotation_id is not None:
                quotation = confirmed.get(quotation_id)
                if quotation is None:
                    quotation = await confirm_quotation_for_order(db, quotation_id, user_id)
                    confirmed[quotation_id] = quotation

            if quotation is not None:
                line_price = _quoted_line_price(quotation, product.id, item.quantity)
            else:
                line_price = _money(Decimal(str(product.price)) * item.quantity)
            unit_price = _money(line_price / item.quantity)

            await update_product_stock(
                db,
                product_id=product.id,
                quantity_change=-item.quantity,
                transaction_type=StockTransactionType.PURCHASE,
                order_id=order.id,
                reason=f"Order {order.order_code}",
            )

            order.items.append(OrderItem(
                product_id=product.id,
                product=product,
                quantity=item.quantity,
                price=line_price,
                unit_price=unit_price,
                subtotal=line_price,
            ))
            snapshot.append({
                "product_id": product.id,
                "name": item.name or product.name,
                "image": product.image_url,
                "quantity": item.quantity,
                "price": float(line_price),
                "unit_price": float(unit_price),
                "quotation_code": quotation.quotation_code if quotation else None,
            })
            total += line_price

        claimed_total = payload.order.total_amount
        if claimed_total is not None and abs(_money(claimed_total) - total) > TOTAL_TOLERANCE:
            raise HTTPException(
                status_code=400,
                detail=f"Order total mismatch: expected {total:.2f}, got {_money(claimed_total):.2f}",
            )

        order.cart_items = snapshot
        order.total_amount = total
        if confirmed:
            first = next(iter(confirmed.values()))
            order.quotation_code = first.quotation_code
            order.merchant_code = first.merchant_code

        await log_user_activity(
            db=db,
            user_id=current_user.id if current_user else None,
            username=current_user.username if current_user else payload.customer.email,
            reference=order.order_code,
            message=f"Placed order '{order.order_code}' for ₹{total:.2f} ({len(cart_items)} item(s)).",
        )
        await db.commit()

    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.exception("Order placement failed")
        raise HTTPException(status_code=500, detail=f"Error placing order: {e}")

    logger.info("Order %s placed: total=%s user=%s guest=%s", order.order_code, total, user_id, order.guest_user_id)
    publish_order_event("created", order.id, order.status, order.user_id)
    return {"message": "Order placed successfully", "orderId": order.id, "orderCode": order.order_code}


async def place_order_from_quotation(
    db: AsyncSession, user: User, quotation_id: int, data: QuotationOrderCreate
) -> dict:
    quotation = await db.get(Quotation, quotation_id)
    if not quotation or quotation.merchant_code is None or quotation.user_id != user.id:
        raise HTTPException(status_code=404, detail="Quotation not found")

    payload = PlaceOrderRequest(
        customer=CustomerIn(email=user.email, first_name=user.full_name),
        order=OrderIn(delivery_address=data.delivery_address, shipping_address=data.shipping_address),
        cart_items=[
            PlaceOrderItem(
                id=item["product_id"],
                name=item.get("name"),
                quantity=item["quantity"],
                quotation_id=quotation.id,
            )
            for item in quotation.items
        ],
        user_id=user.id,
    )
    return await place_order(db, payload, current_user=user)


# --------------------------
# MY ORDERS
# --------------------------
async def get_user_orders(db: AsyncSession, user_id: int, current_user: User) -> List[dict]:
    if current_user.id != user_id and current_user.role != UserRole.ADMIN:
        raise HTTPException(status_code=403, detail="You can only view your own orders")

    result = await db.execute(
        select(Order)
        .where(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .execution_options(populate_existing=True)
    )
    orders = result.scalars().all()
    return [
        {
            "id": order.id,
            "date": order.created_at,
            "status": order.status,
            "address": order.delivery_address or order.shipping_address,
            "items": [
                {
                    "name": item.product.name if item.product else None,
                    "image": item.product.image_url if item.product else None,
                    "quantity": item.quantity,
                    "price": float(item.price),
                }
                for item in order.items
            ],
        }
        for order in orders
    ]


# --------------------------
# ADMIN: LIST / UPDATE
# --------------------------
async def _get_order(db: AsyncSession, order_id: int, lock: bool = False) -> Order:
    stmt = select(Order).where(Order.id == order_id).execution_options(populate_existing=True)
    if lock:
        stmt = stmt.with_for_update()
    order = (await db.execute(stmt)).scalars().first()
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


async def get_order(db: AsyncSession, order_id: int) -> dict:
    order = await _get_order(db, order_id)
    return {"message": "Order retrieved successfully", "data": OrderOut.model_validate(order)}


async def list_orders(
    db: AsyncSession,
    status: Optional[str] = None,
    user_id: Optional[int] = None,
    page: int = 1,
    page_size: int = 20,
    merchant_code: Optional[str] = None,
) -> dict:
    conditions = []
    if status:
        conditions.append(Order.status == status)
    if user_id is not None:
        conditions.append(Order.user_id == user_id)
    if merchant_code:
        conditions.append(Order.merchant_code == merchant_code)

    count_stmt = select(func.count(Order.id))
    stmt = select(Order).order_by(Order.created_at.desc(), Order.id.desc())
    if conditions:
        count_stmt = count_stmt.where(*conditions)
        stmt = stmt.where(*conditions)

    total = (await db.execute(count_stmt)).scalar() or 0
    result = await db.execute(
        stmt.offset((page - 1) * page_size).limit(page_size).execution_options(populate_existing=True)
    )
    return {
        "message": "Orders retrieved successfully",
        "total": total,
        "data": [OrderOut.model_validate(o) for o in result.scalars().all()],
    }


async def list_merchant_orders(
    db: AsyncSession, merchant: Merchant, status: Optional[str] = None, page: int = 1, page_size: int = 20
) -> dict:
    """Orders placed from this merchant's approved quotations."""
    if status and status not in OrderStatus.ALL:
        raise HTTPException(status_code=400, detail=f"Invalid order status '{status}'")
    return await list_orders(db, status=status, page=page, page_size=page_size, merchant_code=merchant.merchant_code)


async def update_order_status(db: AsyncSession, order_id: int, status: str, admin: User) -> dict:
    if status not in OrderStatus.ALL:
        raise HTTPException(status_code=400, detail=f"Invalid order status '{status}'")

    try:
        order = await _get_order(db, order_id, lock=True)
        if not OrderStateMachine.is_valid_transition(order.status, status):
            allowed = OrderStateMachine.get_valid_transitions(order.status)
            raise HTTPException(
                status_code=409,
                detail=f"Cannot change order from '{order.status}' to '{status}'. Allowed: {allowed or 'none'}",
            )

        previous = order.status
        order.status = status
        order.updated_by = admin.id

        # Cancelled orders give their stock back
        if status == OrderStatus.CANCELLED:
            for item in order.items:
                await update_product_stock(
                    db,
                    product_id=item.product_id,
                    quantity_change=item.quantity,
                    transaction_type=StockTransactionType.RESTOCK,
                    order_id=order.id,
                    reason=f"Order {order.order_code} cancelled",
                )

        await log_user_activity(
            db=db,
            user_id=admin.id,
            username=admin.username,
            reference=order.order_code,
            message=f"Order '{order.order_code}' status changed {previous} → {status}.",
        )
        await db.commit()
    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        raise HTTPException(status_code=500, detail=f"Error updating order: {e}")

    publish_order_event("status_changed", order.id, order.status, order.user_id)
    order = await _get_order(db, order_id)
    return {"message": f"Order marked as {status}", "data": OrderOut.model_validate(order)}


# --------------------------
# TOTALS CHECK
# --------------------------
async def validate_order_totals(db: AsyncSession, order_id: int) -> dict:
    order = await _get_order(db, order_id)
    errors: List[str] = []
    warnings: List[str] = []

    if not order.items:
        warnings.append(f"Order {order.order_code} has no items")

    items_total = Decimal("0.00")
    for item in order.items:
        expected = _money(Decimal(str(item.unit_price)) * item.quantity)
        subtotal = _money(item.subtotal)
        if abs(expected - subtotal) > TOTAL_TOLERANCE:
            errors.append(
                f"Item {item.id}: subtotal {subtotal:.2f} does not match "
                f"{item.quantity} x {Decimal(str(item.unit_price)):.2f}"
            )
        if abs(_money(item.price) - subtotal) > TOTAL_TOLERANCE:
            warnings.append(f"Item {item.id}: price {_money(item.price):.2f} differs from subtotal {subtotal:.2f}")
        items_total += subtotal

    order_total = _money(order.total_amount)
    if abs(items_total - order_total) > TOTAL_TOLERANCE:
        errors.append(f"Order total {order_total:.2f} does not match item total {items_total:.2f}")

    return {"is_valid": not errors, "errors": errors, "warnings": warnings}
