# nursery/services/merchant_service.py
import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import select, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from nursery.core.db import utcnow
from nursery.models.merchant_models import Merchant, MerchantStatus
from nursery.models.user_models import User, UserRole
from nursery.schemas.merchant_schemas import MerchantRegister, MerchantOut
from nursery.utils.activity_helpers import log_user_activity

logger = logging.getLogger(__name__)


# --------------------------
# Helper: Generate merchant code
# --------------------------
async def generate_merchant_code(db: AsyncSession) -> str:
    year = utcnow().year
    result = await db.execute(
        select(func.count(Merchant.id)).where(Merchant.merchant_code.like(f"MC-{year}-%"))
    )
    sequence_number = (result.scalar() or 0) + 1
    return f"MC-{year}-{sequence_number:04d}"


# --------------------------
# REGISTER MERCHANT
# --------------------------
async def register_merchant(db: AsyncSession, data: MerchantRegister, current_user: User) -> dict:
    """
    Register the logged-in account as a merchant. The merchant starts as
    'pending' and cannot quote until an admin approves it.
    """
    email = data.email or current_user.email
    try:
        existing = await db.execute(
            select(Merchant).where(or_(Merchant.email == email, Merchant.user_id == current_user.id))
        )
        if existing.scalars().first():
            raise HTTPException(status_code=400, detail="A merchant is already registered for this account")

        merchant = Merchant(
            user_id=current_user.id,
            full_name=data.full_name,
            nursery_name=data.nursery_name,
            phone_number=data.phone_number,
            email=email,
            nursery_address=data.nursery_address,
            merchant_code=await generate_merchant_code(db),
            status=MerchantStatus.PENDING,
        )
        db.add(merchant)
        await db.flush()

        await log_user_activity(
            db,
            user_id=current_user.id,
            username=current_user.username,
            reference=merchant.merchant_code,
            message=f"Registered merchant '{merchant.nursery_name}' ({merchant.merchant_code}), awaiting review.",
        )
        await db.commit()
        await db.refresh(merchant)
        return {"message": "Merchant registration submitted", "data": MerchantOut.model_validate(merchant)}

    except HTTPException:
        await db.rollback()
        raise
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="Merchant code already taken, please retry")
    except Exception as e:
        await db.rollback()
        raise HTTPException(status_code=500, detail=f"Error registering merchant: {e}")


# --------------------------
# APPROVE / REJECT / BLOCK
# --------------------------
async def set_merchant_status(db: AsyncSession, merchant_id: int, status: str, admin: User) -> dict:
    if status not in MerchantStatus.ALL or status == MerchantStatus.PENDING:
        raise HTTPException(status_code=400, detail=f"Invalid merchant status '{status}'")

    try:
        merchant = await db.get(Merchant, merchant_id)
        if not merchant:
            raise HTTPException(status_code=404, detail="Merchant not found")
        if merchant.status == status:
            raise HTTPException(status_code=409, detail=f"Merchant is already {status}")

        previous = merchant.status
        merchant.status = status
        merchant.updated_by = admin.id

        # The linked login gains merchant access only while the merchant is approved
        if merchant.user_id:
            user = await db.get(User, merchant.user_id)
            if user and user.role != UserRole.ADMIN:
                user.role = UserRole.MERCHANT if status == MerchantStatus.APPROVED else UserRole.CUSTOMER

        await log_user_activity(
            db,
            user_id=admin.id,
            username=admin.username,
            reference=merchant.merchant_code,
            message=f"Merchant {merchant.merchant_code} status changed {previous} → {status}.",
        )
        await db.commit()
    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        raise HTTPException(status_code=500, detail=f"Error updating merchant status: {e}")

    await db.refresh(merchant)
    logger.info("Merchant %s %s -> %s by admin %s", merchant.merchant_code, previous, status, admin.id)

    return {"message": f"Merchant {status}", "data": MerchantOut.model_validate(merchant)}


# --------------------------
# LIST MERCHANTS
# --------------------------
async def list_merchants(db: AsyncSession, status: Optional[str] = None, search: Optional[str] = None) -> dict:
    query = select(Merchant).order_by(Merchant.created_at.desc(), Merchant.id.desc())
    if status and status != "all":
        query = query.where(Merchant.status == status)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            Merchant.full_name.ilike(pattern),
            Merchant.nursery_name.ilike(pattern),
            Merchant.email.ilike(pattern),
            Merchant.merchant_code.ilike(pattern),
        ))

    result = await db.execute(query)
    merchants = result.scalars().all()
    return {
        "message": "Merchants retrieved successfully",
        "data": [MerchantOut.model_validate(m) for m in merchants],
    }


async def get_merchant_for_user(db: AsyncSession, user: User) -> Merchant:
    result = await db.execute(select(Merchant).where(Merchant.user_id == user.id))
    merchant = result.scalars().first()
    if not merchant:
        raise HTTPException(status_code=404, detail="No merchant profile for this account")
    return merchant


async def get_approved_merchant_for_user(db: AsyncSession, user: User) -> Merchant:
    merchant = await get_merchant_for_user(db, user)
    if merchant.status != MerchantStatus.APPROVED:
        raise HTTPException(status_code=403, detail=f"Merchant account is {merchant.status}")
    return merchant
