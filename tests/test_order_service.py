"""
Service Tests: Order placement and management

- place_order(): guest upsert, server-side pricing, stock, all-or-nothing
- place_order_from_quotation(): user_confirmed exactly once
- get_user_orders(): storefront shape and ownership
- update_order_status() / validate_order_totals()
- list_merchant_orders() scoped to one merchant
"""

from decimal import Decimal

import pytest
from fastapi import HTTPException
from sqlalchemy import select, func

from nursery.models.order_models import Order, OrderItem, GuestUser
from nursery.models.product_models import Product, StockTransaction
from nursery.models.quotation_models import Quotation
from nursery.models.user_models import User
from nursery.schemas.order_schemas import PlaceOrderRequest, QuotationOrderCreate
from nursery.schemas.quotation_schemas import QuotationItemIn, MerchantQuotationSubmit
from nursery.services import order_service
from nursery.services import quotation_service as qs
from nursery.services.order_events import broker


def _guest_payload(items, total=None, email="guest@example.com"):
    return PlaceOrderRequest.model_validate({
        "customer": {
            "email": email,
            "firstName": "Ravi",
            "lastName": "K",
            "phone": "9000000000",
            "deliveryAddress": {"line1": "12 Garden Road", "city": "Pune"},
        },
        "order": {"totalAmount": total},
        "cartItems": items,
    })


async def _count(session, model):
    return (await session.execute(select(func.count(model.id)))).scalar()


async def _stock(session, product_id):
    result = await session.execute(select(Product.stock_quantity).where(Product.id == product_id))
    return result.scalar()


async def _approved_quotation(session, admin, customer, products, merchant):
    mango, neem = products
    request = await qs.request_quotation(session, customer, [
        QuotationItemIn(product_id=mango.id, quantity=2),
        QuotationItemIn(product_id=neem.id, quantity=3),
    ])
    code = request["data"].quotation_code

    submitted = await qs.submit_merchant_quotation(
        session, merchant,
        MerchantQuotationSubmit(quotation_code=code, unit_prices=[Decimal("100"), Decimal("40")]),
        await session.get(User, merchant.user_id),
    )
    await qs.approve_merchant_quotation(session, submitted["data"].id, None, admin)
    return request["data"], submitted["data"]


@pytest.mark.asyncio
class TestPlaceOrder:

    async def test_guest_order(self, test_session, products):
        mango, neem = products

        result = await order_service.place_order(test_session, _guest_payload(
            [{"id": mango.id, "quantity": 2}, {"id": neem.id, "quantity": 1}], total="285.50",
        ))

        assert result["message"] == "Order placed successfully"
        order = (await test_session.execute(
            select(Order).where(Order.id == result["orderId"]).execution_options(populate_existing=True)
        )).scalars().one()
        assert order.status == "Paid"
        assert order.order_code == result["orderCode"]
        assert order.total_amount == Decimal("285.50")
        assert order.user_id is None
        assert {i.product_id: i.unit_price for i in order.items} == {
            mango.id: Decimal("120.00"), neem.id: Decimal("45.50"),
        }
        assert order.cart_items[0]["name"] == "Alphonso Mango"
        assert await _stock(test_session, mango.id) == 8
        assert await _stock(test_session, neem.id) == 4
        assert await _count(test_session, StockTransaction) == 2

    async def test_single_cart_item_object_accepted(self, test_session, products):
        mango, _ = products

        result = await order_service.place_order(test_session, _guest_payload({"id": mango.id, "quantity": 1}))

        assert result["orderId"]

    async def test_guest_upserted_by_email(self, test_session, products):
        mango, _ = products
        await order_service.place_order(test_session, _guest_payload([{"id": mango.id, "quantity": 1}]))
        await order_service.place_order(test_session, _guest_payload([{"id": mango.id, "quantity": 1}]))

        assert await _count(test_session, GuestUser) == 1
        assert await _count(test_session, Order) == 2

    async def test_missing_fields(self, test_session):
        payload = PlaceOrderRequest.model_validate({"customer": {"email": "x@example.com"}})

        with pytest.raises(HTTPException) as exc_info:
            await order_service.place_order(test_session, payload)
        assert exc_info.value.detail == "Missing required fields"

    async def test_insufficient_stock_writes_nothing(self, test_session, products):
        mango, neem = products
        mango_id = mango.id

        with pytest.raises(HTTPException) as exc_info:
            await order_service.place_order(test_session, _guest_payload(
                [{"id": mango.id, "quantity": 1}, {"id": neem.id, "quantity": 6}],
            ))

        assert exc_info.value.status_code == 400
        assert "Insufficient stock" in exc_info.value.detail
        assert await _count(test_session, Order) == 0
        assert await _count(test_session, OrderItem) == 0
        assert await _count(test_session, GuestUser) == 0
        assert await _stock(test_session, mango_id) == 10

    async def test_total_mismatch_rejected(self, test_session, products):
        mango, _ = products

        with pytest.raises(HTTPException) as exc_info:
            await order_service.place_order(test_session, _guest_payload(
                [{"id": mango.id, "quantity": 1}], total="1.00",
            ))

        assert exc_info.value.status_code == 400
        assert await _count(test_session, Order) == 0

    async def test_user_id_requires_that_login(self, test_session, customer, products):
        mango, _ = products
        payload = _guest_payload([{"id": mango.id, "quantity": 1}])
        payload.user_id = customer.id

        with pytest.raises(HTTPException) as exc_info:
            await order_service.place_order(test_session, payload)
        assert exc_info.value.status_code == 403

    async def test_publishes_event(self, test_session, products):
        mango, _ = products
        queue = broker.subscribe()
        try:
            result = await order_service.place_order(test_session, _guest_payload([{"id": mango.id, "quantity": 1}]))
            event = queue.get_nowait()
        finally:
            broker.unsubscribe(queue)

        assert event["action"] == "created"
        assert event["order_id"] == result["orderId"]


@pytest.mark.asyncio
class TestOrderFromQuotation:

    async def test_uses_quoted_prices_and_confirms(self, test_session, admin, customer, products, merchant_a):
        original, response = await _approved_quotation(test_session, admin, customer, products, merchant_a)

        result = await order_service.place_order_from_quotation(
            test_session, customer, response.id, QuotationOrderCreate(delivery_address={"city": "Nashik"}),
        )

        order = (await test_session.execute(select(Order).where(Order.id == result["orderId"]))).scalars().one()
        assert order.total_amount == Decimal("320.00")
        assert order.quotation_code == original.quotation_code
        assert order.merchant_code == "MC-2026-0001"
        assert order.user_id == customer.id
        statuses = (await test_session.execute(
            select(Quotation.status).where(Quotation.quotation_code == original.quotation_code)
        )).scalars().all()
        assert sorted(statuses) == ["user_confirmed", "user_confirmed"]

    async def test_second_order_conflicts_and_creates_nothing(
        self, test_session, admin, customer, products, merchant_a
    ):
        _, response = await _approved_quotation(test_session, admin, customer, products, merchant_a)
        await order_service.place_order_from_quotation(test_session, customer, response.id, QuotationOrderCreate())
        mango_id = products[0].id
        stock_after_first = await _stock(test_session, mango_id)

        with pytest.raises(HTTPException) as exc_info:
            await order_service.place_order_from_quotation(
                test_session, customer, response.id, QuotationOrderCreate(),
            )

        assert exc_info.value.status_code == 409
        assert await _count(test_session, Order) == 1
        assert await _stock(test_session, mango_id) == stock_after_first

    async def test_unapproved_response_cannot_be_ordered(self, test_session, customer, products, merchant_a):
        mango, _ = products
        request = await qs.request_quotation(test_session, customer, [QuotationItemIn(product_id=mango.id, quantity=1)])

        with pytest.raises(HTTPException) as exc_info:
            await order_service.place_order_from_quotation(
                test_session, customer, request["data"].id, QuotationOrderCreate(),
            )
        assert exc_info.value.status_code == 404


@pytest.mark.asyncio
class TestUserOrders:

    async def test_storefront_shape_newest_first(self, test_session, customer, products):
        mango, neem = products
        first = _guest_payload([{"id": mango.id, "quantity": 1}])
        first.user_id = customer.id
        second = _guest_payload([{"id": neem.id, "quantity": 2}])
        second.user_id = customer.id
        await order_service.place_order(test_session, first, current_user=customer)
        await order_service.place_order(test_session, second, current_user=customer)

        orders = await order_service.get_user_orders(test_session, customer.id, customer)

        assert len(orders) == 2
        assert orders[0]["items"] == [
            {"name": "Neem", "image": neem.image_url, "quantity": 2, "price": 91.0},
        ]
        assert orders[0]["status"] == "Paid"
        assert orders[0]["address"] == {"line1": "12 Garden Road", "city": "Pune"}

    async def test_other_users_orders_forbidden(self, test_session, customer, admin):
        with pytest.raises(HTTPException) as exc_info:
            await order_service.get_user_orders(test_session, admin.id, customer)
        assert exc_info.value.status_code == 403

    async def test_admin_may_read_any(self, test_session, customer, admin):
        assert await order_service.get_user_orders(test_session, customer.id, admin) == []


@pytest.mark.asyncio
class TestOrderManagement:

    async def test_status_flow_and_cancellation_restocks(self, test_session, admin, products):
        mango, _ = products
        placed = await order_service.place_order(test_session, _guest_payload([{"id": mango.id, "quantity": 3}]))
        order_id = placed["orderId"]

        result = await order_service.update_order_status(test_session, order_id, "processing", admin)
        assert result["data"].status == "processing"

        result = await order_service.update_order_status(test_session, order_id, "cancelled", admin)
        assert result["data"].status == "cancelled"
        assert await _stock(test_session, mango.id) == 10

    async def test_shipped_order_can_still_be_cancelled(self, test_session, admin, products):
        mango, _ = products
        mango_id = mango.id
        placed = await order_service.place_order(test_session, _guest_payload([{"id": mango_id, "quantity": 4}]))
        order_id = placed["orderId"]
        assert await _stock(test_session, mango_id) == 6

        await order_service.update_order_status(test_session, order_id, "processing", admin)
        await order_service.update_order_status(test_session, order_id, "shipped", admin)
        result = await order_service.update_order_status(test_session, order_id, "cancelled", admin)

        assert result["data"].status == "cancelled"
        assert await _stock(test_session, mango_id) == 10

        with pytest.raises(HTTPException) as exc_info:
            await order_service.update_order_status(test_session, order_id, "delivered", admin)
        assert exc_info.value.status_code == 409

    async def test_merchant_sees_only_its_orders(
        self, test_session, admin, customer, products, merchant_a, merchant_b
    ):
        _, response = await _approved_quotation(test_session, admin, customer, products, merchant_a)
        placed = await order_service.place_order_from_quotation(
            test_session, customer, response.id, QuotationOrderCreate(shipping_address="Farm 4"),
        )
        await order_service.place_order(test_session, _guest_payload([{"id": products[1].id, "quantity": 1}]))

        mine = await order_service.list_merchant_orders(test_session, merchant_a)
        paid = await order_service.list_merchant_orders(test_session, merchant_a, status="Paid")
        shipped = await order_service.list_merchant_orders(test_session, merchant_a, status="shipped")
        other = await order_service.list_merchant_orders(test_session, merchant_b)

        assert [o.id for o in mine["data"]] == [placed["orderId"]]
        assert paid["total"] == 1
        assert shipped["total"] == 0
        assert other["total"] == 0

        with pytest.raises(HTTPException) as exc_info:
            await order_service.list_merchant_orders(test_session, merchant_a, status="lost")
        assert exc_info.value.status_code == 400

    async def test_invalid_transition(self, test_session, admin, products):
        mango, _ = products
        placed = await order_service.place_order(test_session, _guest_payload([{"id": mango.id, "quantity": 1}]))

        with pytest.raises(HTTPException) as exc_info:
            await order_service.update_order_status(test_session, placed["orderId"], "delivered", admin)
        assert exc_info.value.status_code == 409

    async def test_unknown_status(self, test_session, admin):
        with pytest.raises(HTTPException) as exc_info:
            await order_service.update_order_status(test_session, 1, "lost", admin)
        assert exc_info.value.status_code == 400

    async def test_list_orders_filters(self, test_session, products):
        mango, _ = products
        await order_service.place_order(test_session, _guest_payload([{"id": mango.id, "quantity": 1}]))

        assert (await order_service.list_orders(test_session, status="Paid"))["total"] == 1
        assert (await order_service.list_orders(test_session, status="shipped"))["total"] == 0

    async def test_validate_totals(self, test_session, products):
        mango, _ = products
        placed = await order_service.place_order(test_session, _guest_payload([{"id": mango.id, "quantity": 2}]))

        report = await order_service.validate_order_totals(test_session, placed["orderId"])
        assert report == {"is_valid": True, "errors": [], "warnings": []}

        order = (await test_session.execute(select(Order).where(Order.id == placed["orderId"]))).scalars().one()
        order.total_amount = Decimal("999.00")
        await test_session.commit()

        report = await order_service.validate_order_totals(test_session, placed["orderId"])
        assert report["is_valid"] is False
        assert "does not match item total 240.00" in report["errors"][0]
