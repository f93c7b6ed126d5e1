"""
Quotation workflow: user requests, merchant price responses and admin decisions.

Rows sharing a quotation_code form one group: the user's original request
(merchant_code NULL) and one response per merchant. Every status change goes
through the quotation state machine, and changes touching two rows of a
group (approval, order confirmation, withdrawal) happen in one transaction
with both rows locked.
"""
from collections import defaultdict
from decimal import Decimal
import logging
from typing import Optional, List

from fastapi import HTTPException
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from nursery.core.config import DEFAULT_DELIVERY_DAYS
from nursery.core.db import utcnow
from nursery.models.merchant_models import Merchant, MerchantStatus
from nursery.models.product_models import Product
from nursery.models.quotation_models import Quotation, QuotationStatus
from nursery.models.user_models import User, UserRole
from nursery.schemas.quotation_schemas import (
    QuotationItemIn,
    QuotationOut,
    MerchantQuotationSubmit,
)
from nursery.services.cart_service import get_cart_items, clear_cart
from nursery.utils.activity_helpers import log_user_activity
from nursery.utils.quotation_state_machine import (
    QuotationStateMachine,
    InvalidQuotationTransition,
    apply_transition,
)

logger = logging.getLogger(__name__)

# A group may hold at most one response in these statuses
ACCEPTED_RESPONSE_STATUSES = (
    QuotationStatus.APPROVED.value,
    QuotationStatus.USER_CONFIRMED.value,
)
# Original request statuses that mirror an accepted response
ACCEPTED_REQUEST_STATUSES = (
    QuotationStatus.ADMIN_APPROVED.value,
    QuotationStatus.USER_ORDER_PLACED.value,
    QuotationStatus.USER_CONFIRMED.value,
)


# --------------------------
# Helpers
# --------------------------
def _transition(quotation: Quotation, to_status: QuotationStatus, performed_by: str) -> None:
    try:
        apply_transition(quotation, to_status, performed_by)
    except InvalidQuotationTransition as e:
        raise HTTPException(status_code=409, detail=str(e))


def _out(quotation: Quotation) -> QuotationOut:
    return QuotationOut.model_validate(quotation)


async def _get_quotation(db: AsyncSession, quotation_id: int, lock: bool = False) -> Quotation:
    stmt = select(Quotation).where(Quotation.id == quotation_id)
    if lock:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    quotation = (await db.execute(stmt)).scalars().first()
    if not quotation:
        raise HTTPException(status_code=404, detail="Quotation not found")
    return quotation


async def _find_original(
    db: AsyncSession, user_id: int, quotation_code: str, lock: bool = False
) -> Optional[Quotation]:
    stmt = (
        select(Quotation)
        .where(
            Quotation.user_id == user_id,
            Quotation.quotation_code == quotation_code,
            Quotation.merchant_code.is_(None),
        )
        .order_by(Quotation.id.asc())
    )
    if lock:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    originals = (await db.execute(stmt)).scalars().all()
    if len(originals) > 1:
        logger.warning("Quotation %s has %d original requests, using the first", quotation_code, len(originals))
    return originals[0] if originals else None


# Copied from the product when the request is made
PRODUCT_ITEM_FIELDS = frozenset({"product_id", "name", "price", "category", "image"})


async def _build_items(db: AsyncSession, items: List[QuotationItemIn]) -> List[dict]:
    seen = set()
    built = []
    for item in items:
        if item.product_id in seen:
            raise HTTPException(status_code=400, detail=f"Product {item.product_id} is listed more than once")
        seen.add(item.product_id)

        product = await db.get(Product, item.product_id)
        if not product or not product.is_active:
            raise HTTPException(status_code=404, detail=f"Product {item.product_id} not found")

        built.append({
            **(item.specifications or {}),
            "product_id": product.id,
            "quantity": item.quantity,
            "name": product.name,
            "price": float(product.price),
            "category": product.category,
            "image": product.image_url,
        })
    return built


async def _create_request(db: AsyncSession, user: User, items: List[QuotationItemIn]) -> Quotation:
    quotation = Quotation(
        quotation_code="TEMP",
        merchant_code=None,
        is_user_request=True,
        user_id=user.id,
        user_email=user.email,
        items=await _build_items(db, items),
        status=QuotationStateMachine.initial_status(is_user_request=True),
    )
    db.add(quotation)
    await db.flush()

    today_str = utcnow().strftime("%Y%m%d")
    quotation.quotation_code = f"QT-{today_str}-{quotation.id:04d}"

    await log_user_activity(
        db=db,
        user_id=user.id,
        username=user.username,
        reference=quotation.quotation_code,
        message=f"Requested quotation '{quotation.quotation_code}' for {len(quotation.items)} item(s).",
    )
    return quotation


# --------------------------
# USER: REQUEST QUOTATION
# --------------------------
async def request_quotation(db: AsyncSession, user: User, items: List[QuotationItemIn]) -> dict:
    if not items:
        raise HTTPException(status_code=400, detail="A quotation needs at least one item")
    try:
        quotation = await _create_request(db, user, items)
        await db.commit()
    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        raise HTTPException(status_code=500, detail=f"Error creating quotation: {e}")

    await db.refresh(quotation)
    logger.info("Quotation %s requested by user %s", quotation.quotation_code, user.id)
    return {
        "message": f"Quotation {quotation.quotation_code} has been submitted",
        "data": _out(quotation),
    }


async def request_quotation_from_cart(db: AsyncSession, user: User) -> dict:
    """Turn the user's cart into a quotation request and empty the cart."""
    cart_items = await get_cart_items(db, user.id)
    if not cart_items:
        raise HTTPException(status_code=400, detail="Cart is empty")

    items = [
        QuotationItemIn(product_id=c.product_id, quantity=c.quantity, specifications=c.specifications)
        for c in cart_items
    ]
    try:
        quotation = await _create_request(db, user, items)
        await clear_cart(db, user.id, commit=False)
        await db.commit()
    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        raise HTTPException(status_code=500, detail=f"Error creating quotation: {e}")

    await db.refresh(quotation)
    return {
        "message": f"Quotation {quotation.quotation_code} has been submitted",
        "data": _out(quotation),
    }


# --------------------------
# USER: WITHDRAW REQUEST
# --------------------------
async def cancel_quotation_request(db: AsyncSession, quotation_id: int, user: User) -> dict:
    try:
        original = await _get_quotation(db, quotation_id, lock=True)
        if original.merchant_code is not None or original.user_id != user.id:
            raise HTTPException(status_code=404, detail="Quotation not found")

        _transition(original, QuotationStatus.CLOSED, "user")

        responses = (await db.execute(
            select(Quotation)
            .where(
                Quotation.quotation_code == original.quotation_code,
                Quotation.merchant_code.is_not(None),
                Quotation.status == QuotationStatus.WAITING_FOR_ADMIN.value,
            )
            .with_for_update()
        )).scalars().all()
        for response in responses:
            _transition(response, QuotationStatus.CLOSED, "user")

        await log_user_activity(
            db=db,
            user_id=user.id,
            username=user.username,
            reference=original.quotation_code,
            message=f"Withdrew quotation '{original.quotation_code}' ({len(responses)} open response(s) closed).",
        )
        await db.commit()
    except HTTPException:
        await db.rollback()
        raise

    await db.refresh(original)
    return {"message": "Quotation request closed", "data": _out(original)}


# --------------------------
# MERCHANT: OPEN REQUESTS
# --------------------------
async def list_open_requests_for_merchant(db: AsyncSession, merchant: Merchant) -> dict:
    """Pending user requests this merchant has not answered yet."""
    answered = select(Quotation.quotation_code).where(Quotation.merchant_code == merchant.merchant_code)
    result = await db.execute(
        select(Quotation)
        .where(
            Quotation.merchant_code.is_(None),
            Quotation.status == QuotationStatus.PENDING.value,
            Quotation.quotation_code.not_in(answered),
        )
        .order_by(Quotation.created_at.desc(), Quotation.id.desc())
    )
    return {
        "message": "Open quotation requests retrieved",
        "data": [_out(q) for q in result.scalars().all()],
    }


# --------------------------
# MERCHANT: SUBMIT PRICE
# --------------------------
def _parse_quantity(value) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise HTTPException(status_code=400, detail=f"Quantity must be a whole number, got {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise HTTPException(status_code=400, detail=f"Quantity must be a whole number, got {value!r}")
    if value <= 0:
        raise HTTPException(status_code=400, detail="Quantity must be greater than 0")
    return int(value)


def _apply_modified_quantities(items: List[dict], modified: Optional[dict]) -> List[dict]:
    """
    Merchants may adjust quantity and specification fields per item, keyed by
    item index. Which product is quoted, and its catalog name and price, stay
    as the customer requested them.
    """
    items = [dict(item) for item in items]
    for key, changes in (modified or {}).items():
        try:
            index = int(key)
        except (TypeError, ValueError):
            raise HTTPException(status_code=400, detail=f"Invalid item index '{key}' in modified specifications")
        if not 0 <= index < len(items) or not isinstance(changes, dict):
            raise HTTPException(status_code=400, detail=f"Invalid item index '{key}' in modified specifications")

        locked = sorted(PRODUCT_ITEM_FIELDS.intersection(changes))
        if locked:
            raise HTTPException(
                status_code=400,
                detail=f"Item {index}: {', '.join(locked)} cannot be changed by a merchant",
            )
        if "quantity" in changes:
            changes = {**changes, "quantity": _parse_quantity(changes["quantity"])}
        items[index].update(changes)
    return items


async def submit_merchant_quotation(
    db: AsyncSession, merchant: Merchant, data: MerchantQuotationSubmit, current_user: User
) -> dict:
    if merchant.status != MerchantStatus.APPROVED:
        raise HTTPException(status_code=403, detail=f"Merchant account is {merchant.status}")

    try:
        original = (await db.execute(
            select(Quotation)
            .where(Quotation.quotation_code == data.quotation_code, Quotation.merchant_code.is_(None))
            .order_by(Quotation.id.asc())
            .with_for_update()
        )).scalars().first()
        if not original:
            raise HTTPException(status_code=404, detail=f"Quotation {data.quotation_code} not found")
        if original.status != QuotationStatus.PENDING.value:
            raise HTTPException(
                status_code=409,
                detail=f"Quotation {data.quotation_code} is no longer accepting prices ({original.status})",
            )

        existing = await db.execute(
            select(Quotation.id).where(
                Quotation.quotation_code == data.quotation_code,
                Quotation.merchant_code == merchant.merchant_code,
            )
        )
        if existing.scalars().first():
            raise HTTPException(status_code=409, detail="You have already submitted a price for this quotation")

        if len(data.unit_prices) != len(original.items):
            raise HTTPException(
                status_code=400,
                detail=f"Expected {len(original.items)} unit prices, got {len(data.unit_prices)}",
            )
        if any(price < 0 for price in data.unit_prices):
            raise HTTPException(status_code=400, detail="Unit prices must not be negative")

        response = Quotation(
            quotation_code=original.quotation_code,
            merchant_code=merchant.merchant_code,
            is_user_request=False,
            user_id=original.user_id,
            user_email=original.user_email,
            items=_apply_modified_quantities(original.items, data.modified_specifications),
            status=QuotationStateMachine.initial_status(is_user_request=False),
            unit_prices=[float(p) for p in data.unit_prices],
            modified_specifications=data.modified_specifications,
            # transport and custom work are priced by the nursery, not by merchants
            transport_cost=Decimal("0.00"),
            custom_work_cost=Decimal("0.00"),
            estimated_delivery_days=data.estimated_delivery_days or DEFAULT_DELIVERY_DAYS,
        )
        response.total_quote_price = response.calculate_total()
        db.add(response)
        await db.flush()

        await log_user_activity(
            db=db,
            user_id=current_user.id,
            username=current_user.username,
            reference=original.quotation_code,
            message=(
                f"Merchant {merchant.merchant_code} quoted ₹{response.total_quote_price:.2f} "
                f"for '{original.quotation_code}'."
            ),
        )
        await db.commit()

    except HTTPException:
        await db.rollback()
        raise
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="You have already submitted a price for this quotation")
    except Exception as e:
        await db.rollback()
        raise HTTPException(status_code=500, detail=f"Error submitting quotation: {e}")

    await db.refresh(response)
    return {"message": "Quotation submitted for admin review", "data": _out(response)}


# --------------------------
# MERCHANT: WITHDRAW RESPONSE
# --------------------------
async def close_merchant_quotation(db: AsyncSession, quotation_id: int, merchant: Merchant, current_user: User) -> dict:
    try:
        response = await _get_quotation(db, quotation_id, lock=True)
        if response.merchant_code != merchant.merchant_code:
            raise HTTPException(status_code=404, detail="Quotation not found")

        _transition(response, QuotationStatus.CLOSED, "merchant")
        await log_user_activity(
            db=db,
            user_id=current_user.id,
            username=current_user.username,
            reference=response.quotation_code,
            message=f"Merchant {merchant.merchant_code} withdrew its price for '{response.quotation_code}'.",
        )
        await db.commit()
    except HTTPException:
        await db.rollback()
        raise

    await db.refresh(response)
    return {"message": "Quotation closed successfully", "data": _out(response)}


# --------------------------
# ADMIN: APPROVE MERCHANT PRICE
# --------------------------
async def approve_merchant_quotation(
    db: AsyncSession, quotation_id: int, approved_price: Optional[Decimal], admin: User
) -> dict:
    """
    Approve one merchant response and mark the user's request 'admin approved'.

    Both rows are locked and written in a single transaction.
    """
    try:
        response = await _get_quotation(db, quotation_id, lock=True)
        if response.merchant_code is None:
            raise HTTPException(status_code=400, detail="Only merchant quotations can be approved")

        merchant_status = (await db.execute(
            select(Merchant.status).where(Merchant.merchant_code == response.merchant_code)
        )).scalar()
        if merchant_status != MerchantStatus.APPROVED:
            raise HTTPException(
                status_code=409,
                detail=f"Merchant {response.merchant_code} is {merchant_status or 'unknown'}, its price cannot be approved",
            )

        original = await _find_original(db, response.user_id, response.quotation_code, lock=True)
        if not original:
            raise HTTPException(status_code=404, detail="Could not find original user quotation")

        accepted = await db.execute(
            select(Quotation.id).where(
                Quotation.quotation_code == response.quotation_code,
                Quotation.merchant_code.is_not(None),
                Quotation.id != response.id,
                Quotation.status.in_(ACCEPTED_RESPONSE_STATUSES),
            )
        )
        if accepted.scalars().first():
            raise HTTPException(
                status_code=409,
                detail=f"Quotation {response.quotation_code} already has an approved merchant price",
            )

        _transition(response, QuotationStatus.APPROVED, "admin")
        _transition(original, QuotationStatus.ADMIN_APPROVED, "admin")

        now = utcnow()
        response.approved_price = approved_price if approved_price is not None else response.total_quote_price
        response.admin_updated_at = now
        response.updated_by = admin.id
        original.admin_updated_at = now
        original.updated_by = admin.id

        await log_user_activity(
            db=db,
            user_id=admin.id,
            username=admin.username,
            reference=response.quotation_code,
            message=(
                f"Approved merchant {response.merchant_code} for quotation '{response.quotation_code}' "
                f"at ₹{Decimal(str(response.approved_price)):.2f}."
            ),
        )
        await db.commit()

    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        raise HTTPException(status_code=500, detail=f"Error approving quotation: {e}")

    await db.refresh(response)
    logger.info("Quotation %s approved for merchant %s", response.quotation_code, response.merchant_code)
    return {
        "message": f"Quotation {response.quotation_code} has been approved and sent to user",
        "data": _out(response),
    }


# --------------------------
# ADMIN: REJECT MERCHANT PRICE
# --------------------------
async def reject_merchant_quotation(db: AsyncSession, quotation_id: int, admin: User) -> dict:
    try:
        response = await _get_quotation(db, quotation_id, lock=True)
        if response.merchant_code is None:
            raise HTTPException(status_code=400, detail="Only merchant quotations can be rejected")

        original = await _find_original(db, response.user_id, response.quotation_code)
        if not original:
            raise HTTPException(status_code=404, detail="Could not find original user quotation")

        _transition(response, QuotationStatus.REJECTED, "admin")
        response.admin_updated_at = utcnow()
        response.updated_by = admin.id

        await log_user_activity(
            db=db,
            user_id=admin.id,
            username=admin.username,
            reference=response.quotation_code,
            message=f"Rejected merchant {response.merchant_code} for quotation '{response.quotation_code}'.",
        )
        await db.commit()

    except HTTPException:
        await db.rollback()
        raise

    await db.refresh(response)
    return {"message": f"Quotation {response.quotation_code} has been rejected", "data": _out(response)}


# --------------------------
# ADMIN: EDIT APPROVED PRICE
# --------------------------
async def update_approved_price(db: AsyncSession, quotation_id: int, approved_price: Decimal, admin: User) -> dict:
    try:
        response = await _get_quotation(db, quotation_id, lock=True)
        if response.merchant_code is None or response.status != QuotationStatus.APPROVED.value:
            raise HTTPException(status_code=409, detail="Only approved merchant quotations can be repriced")

        previous = response.approved_price
        response.approved_price = approved_price
        response.admin_updated_at = utcnow()
        response.updated_by = admin.id

        await log_user_activity(
            db=db,
            user_id=admin.id,
            username=admin.username,
            reference=response.quotation_code,
            message=(
                f"Changed approved price of '{response.quotation_code}' ({response.merchant_code}) "
                f"from ₹{Decimal(str(previous or 0)):.2f} to ₹{approved_price:.2f}."
            ),
        )
        await db.commit()
    except HTTPException:
        await db.rollback()
        raise

    await db.refresh(response)
    return {"message": "Approved price updated", "data": _out(response)}


# --------------------------
# ADMIN: MARK ORDER PLACED
# --------------------------
async def mark_user_order_placed(db: AsyncSession, quotation_id: int, admin: User) -> dict:
    try:
        original = await _get_quotation(db, quotation_id, lock=True)
        if original.merchant_code is not None:
            raise HTTPException(status_code=400, detail="Only user quotation requests can be marked as ordered")

        _transition(original, QuotationStatus.USER_ORDER_PLACED, "admin")
        original.admin_updated_at = utcnow()
        original.updated_by = admin.id

        await log_user_activity(
            db=db,
            user_id=admin.id,
            username=admin.username,
            reference=original.quotation_code,
            message=f"Marked quotation '{original.quotation_code}' as user order placed.",
        )
        await db.commit()
    except HTTPException:
        await db.rollback()
        raise

    await db.refresh(original)
    return {"message": "Quotation marked as user order placed", "data": _out(original)}


# --------------------------
# ORDER PLACEMENT HOOK
# --------------------------
async def confirm_quotation_for_order(db: AsyncSession, quotation_id: int, user_id: Optional[int]) -> Quotation:
    """
    Move an approved merchant quotation to 'user_confirmed' and mirror it on
    the user's request. Runs inside the caller's transaction; a second call
    for the same quotation raises 409.
    """
    response = await _get_quotation(db, quotation_id, lock=True)
    if response.merchant_code is None:
        raise HTTPException(status_code=400, detail="Orders must reference an approved merchant quotation")
    if user_id is None or response.user_id != user_id:
        raise HTTPException(status_code=403, detail="Quotation belongs to another user")

    _transition(response, QuotationStatus.USER_CONFIRMED, "user")

    original = await _find_original(db, response.user_id, response.quotation_code, lock=True)
    if original and QuotationStateMachine.can_transition(
        original.status, QuotationStatus.USER_CONFIRMED.value, is_user_request=True
    ):
        _transition(original, QuotationStatus.USER_CONFIRMED, "user")
    elif original:
        logger.warning(
            "Quotation %s confirmed while original request is '%s'",
            response.quotation_code, original.status,
        )
    return response


# --------------------------
# QUERIES
# --------------------------
def _can_view(quotation: Quotation, user: User, merchant_code: Optional[str] = None) -> bool:
    if user.role == UserRole.ADMIN:
        return True
    if quotation.user_id == user.id:
        return True
    if merchant_code:
        if quotation.merchant_code == merchant_code:
            return True
        return quotation.merchant_code is None and quotation.status == QuotationStatus.PENDING.value
    return False


async def get_quotation(db: AsyncSession, quotation_id: int, user: User, merchant_code: Optional[str] = None) -> dict:
    quotation = await _get_quotation(db, quotation_id)
    if not _can_view(quotation, user, merchant_code):
        raise HTTPException(status_code=404, detail="Quotation not found")
    return {"message": "Quotation retrieved successfully", "data": _out(quotation)}


async def list_quotations(
    db: AsyncSession,
    status: Optional[str] = None,
    quotation_code: Optional[str] = None,
    page: int = 1,
    page_size: int = 20,
) -> dict:
    conditions = []
    if status:
        conditions.append(Quotation.status == status)
    if quotation_code:
        conditions.append(Quotation.quotation_code == quotation_code)

    query = select(Quotation).order_by(Quotation.created_at.desc(), Quotation.id.desc())
    if conditions:
        query = query.where(*conditions)
    result = await db.execute(query.offset((page - 1) * page_size).limit(page_size))
    return {
        "message": "Quotations retrieved successfully",
        "data": [_out(q) for q in result.scalars().all()],
    }


async def list_waiting_for_admin(db: AsyncSession) -> dict:
    """Merchant responses from approved merchants awaiting an admin decision."""
    result = await db.execute(
        select(Quotation)
        .join(Merchant, Merchant.merchant_code == Quotation.merchant_code)
        .where(Quotation.status == QuotationStatus.WAITING_FOR_ADMIN.value)
        .where(Merchant.status == MerchantStatus.APPROVED)
        .order_by(Quotation.created_at.desc(), Quotation.id.desc())
    )
    return {
        "message": "Merchant quotations awaiting review",
        "data": [_out(q) for q in result.scalars().all()],
    }


async def list_user_quotations(db: AsyncSession, user: User) -> dict:
    """The user's own requests plus merchant prices an admin has accepted for them."""
    result = await db.execute(
        select(Quotation)
        .where(Quotation.user_id == user.id)
        .order_by(Quotation.created_at.desc(), Quotation.id.desc())
    )
    quotations = [
        q for q in result.scalars().all()
        if q.merchant_code is None or q.status in ACCEPTED_RESPONSE_STATUSES
    ]
    return {"message": "Quotations retrieved successfully", "data": [_out(q) for q in quotations]}


async def list_merchant_quotations(db: AsyncSession, merchant: Merchant, status: Optional[str] = None) -> dict:
    query = (
        select(Quotation)
        .where(Quotation.merchant_code == merchant.merchant_code)
        .order_by(Quotation.created_at.desc(), Quotation.id.desc())
    )
    if status:
        query = query.where(Quotation.status == status)
    result = await db.execute(query)
    return {"message": "Merchant quotations retrieved", "data": [_out(q) for q in result.scalars().all()]}


async def get_quotation_group(db: AsyncSession, quotation_code: str) -> dict:
    result = await db.execute(
        select(Quotation)
        .where(Quotation.quotation_code == quotation_code)
        .order_by(Quotation.id.asc())
    )
    rows = result.scalars().all()
    if not rows:
        raise HTTPException(status_code=404, detail="Quotation not found")

    original = next((q for q in rows if q.merchant_code is None), None)
    return {
        "message": "Quotation group retrieved",
        "data": {
            "quotation_code": quotation_code,
            "original": _out(original) if original else None,
            "responses": [_out(q) for q in rows if q.merchant_code is not None],
        },
    }


async def count_quotations_by_status(db: AsyncSession) -> dict:
    result = await db.execute(
        select(Quotation.status, func.count(Quotation.id)).group_by(Quotation.status)
    )
    return {status: count for status, count in result.all()}


# --------------------------
# INTEGRITY CHECK
# --------------------------
async def check_quotation_integrity(db: AsyncSession) -> dict:
    """
    Report quotation groups whose rows disagree with each other.

    Nothing is repaired; the report lists errors (broken invariants) and
    warnings (suspicious but usable data).
    """
    errors: List[str] = []
    warnings: List[str] = []

    result = await db.execute(select(Quotation).order_by(Quotation.quotation_code, Quotation.id))
    groups = defaultdict(list)
    for quotation in result.scalars().all():
        groups[quotation.quotation_code].append(quotation)

    for code, rows in groups.items():
        originals = [q for q in rows if q.merchant_code is None]
        responses = [q for q in rows if q.merchant_code is not None]
        accepted = [q for q in responses if q.status in ACCEPTED_RESPONSE_STATUSES]

        if not originals:
            errors.append(f"Quotation {code} has no original user request")
        elif len(originals) > 1:
            errors.append(f"Quotation {code} has {len(originals)} original user requests")

        if len(accepted) > 1:
            errors.append(f"Quotation {code} has {len(accepted)} approved merchant quotations")

        for original in originals:
            if accepted and original.status not in ACCEPTED_REQUEST_STATUSES:
                errors.append(
                    f"Quotation {code} has an approved merchant price but the user request is '{original.status}'"
                )
            if not accepted and original.status in ACCEPTED_REQUEST_STATUSES:
                errors.append(
                    f"Quotation {code} user request is '{original.status}' without an approved merchant price"
                )

        for response in responses:
            if len(response.unit_prices or []) != len(response.items or []):
                warnings.append(
                    f"Quotation {code} response from {response.merchant_code} prices "
                    f"{len(response.unit_prices or [])} of {len(response.items or [])} items"
                )
            if response.status == QuotationStatus.APPROVED.value and response.approved_price is None:
                warnings.append(f"Quotation {code} response from {response.merchant_code} has no approved price")

    if errors:
        logger.warning("Quotation integrity check found %d error(s)", len(errors))
    return {"is_valid": not errors, "errors": errors, "warnings": warnings}
