# nursery/services/dashboard_service.py
from collections import defaultdict
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from nursery.models.merchant_models import Merchant, MerchantStatus
from nursery.models.order_models import Order, OrderStatus
from nursery.models.quotation_models import Quotation, QuotationStatus
from nursery.schemas.dashboard_schemas import DashboardSummary, MerchantSummary, MonthlyRevenue
from nursery.services.quotation_service import (
    ACCEPTED_RESPONSE_STATUSES,
    count_quotations_by_status,
    list_open_requests_for_merchant,
)


async def get_admin_summary(db: AsyncSession) -> DashboardSummary:
    result = await db.execute(
        select(Merchant.status, func.count(Merchant.id)).group_by(Merchant.status)
    )
    merchants_by_status = {status: 0 for status in sorted(MerchantStatus.ALL)}
    merchants_by_status.update({status: count for status, count in result.all()})

    quotations_by_status = await count_quotations_by_status(db)

    total_orders = (await db.execute(select(func.count(Order.id)))).scalar() or 0
    # cancelled orders are not revenue
    revenue = (await db.execute(
        select(func.coalesce(func.sum(Order.total_amount), 0)).where(Order.status != OrderStatus.CANCELLED)
    )).scalar()

    return DashboardSummary(
        merchants_by_status=merchants_by_status,
        quotations_by_status=quotations_by_status,
        quotations_waiting_for_admin=quotations_by_status.get(QuotationStatus.WAITING_FOR_ADMIN.value, 0),
        total_orders=total_orders,
        total_revenue=float(revenue or 0),
    )


# orders a merchant still has to fulfil
ACTIVE_ORDER_STATUSES = (OrderStatus.PENDING, OrderStatus.PAID, OrderStatus.PROCESSING, OrderStatus.SHIPPED)


async def get_merchant_summary(db: AsyncSession, merchant: Merchant) -> MerchantSummary:
    """
    Order and quotation figures for one merchant. Revenue counts delivered
    orders only, grouped by the month the order was placed.
    """
    open_requests = await list_open_requests_for_merchant(db, merchant)

    result = await db.execute(
        select(Quotation.status, func.count(Quotation.id))
        .where(Quotation.merchant_code == merchant.merchant_code)
        .group_by(Quotation.status)
    )
    quotes_by_status = dict(result.all())

    result = await db.execute(
        select(Order.status, func.count(Order.id))
        .where(Order.merchant_code == merchant.merchant_code)
        .group_by(Order.status)
    )
    orders_by_status = {status: 0 for status in sorted(OrderStatus.ALL)}
    orders_by_status.update(dict(result.all()))

    delivered = await db.execute(
        select(Order.created_at, Order.total_amount)
        .where(Order.merchant_code == merchant.merchant_code, Order.status == OrderStatus.DELIVERED)
    )
    monthly = defaultdict(Decimal)
    for created_at, total_amount in delivered.all():
        monthly[created_at.strftime("%Y-%m")] += Decimal(str(total_amount or 0))

    return MerchantSummary(
        merchant_code=merchant.merchant_code,
        open_requests=len(open_requests["data"]),
        quotes_waiting_for_admin=quotes_by_status.get(QuotationStatus.WAITING_FOR_ADMIN.value, 0),
        quotes_accepted=sum(quotes_by_status.get(s, 0) for s in ACCEPTED_RESPONSE_STATUSES),
        orders_by_status=orders_by_status,
        active_orders=sum(orders_by_status[s] for s in ACTIVE_ORDER_STATUSES),
        completed_orders=orders_by_status[OrderStatus.DELIVERED],
        delivered_revenue=float(sum(monthly.values(), Decimal("0"))),
        monthly_revenue=[
            MonthlyRevenue(month=month, amount=float(amount)) for month, amount in sorted(monthly.items())
        ],
    )
