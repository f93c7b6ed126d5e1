"""
Service Tests: Merchant onboarding

- register_merchant() codes and duplicates
- set_merchant_status() role promotion and rollback
- get_merchant_for_user() / get_approved_merchant_for_user()
- list_merchants() filters
"""

import pytest
from fastapi import HTTPException
from sqlalchemy import select

from nursery.core.db import utcnow
from nursery.models.merchant_models import Merchant, MerchantStatus
from nursery.models.user_models import User, UserRole
from nursery.schemas.merchant_schemas import MerchantRegister
from nursery.services import merchant_service
from tests.conftest import make_user


def _registration(name="Green Thumb"):
    return MerchantRegister(full_name="Meera Patil", nursery_name=name, phone_number="9800000000")


@pytest.mark.asyncio
class TestRegisterMerchant:

    async def test_codes_count_up_per_year(self, test_session):
        first_user = await make_user(test_session, "meera@example.com")
        second_user = await make_user(test_session, "john@example.com")

        first = await merchant_service.register_merchant(test_session, _registration(), first_user)
        second = await merchant_service.register_merchant(test_session, _registration("Leaf Co"), second_user)

        year = utcnow().year
        assert first["data"].merchant_code == f"MC-{year}-0001"
        assert second["data"].merchant_code == f"MC-{year}-0002"
        assert first["data"].status == "pending"
        assert first["data"].email == "meera@example.com"

    async def test_one_merchant_per_account(self, test_session):
        user = await make_user(test_session, "meera@example.com")
        await merchant_service.register_merchant(test_session, _registration(), user)

        with pytest.raises(HTTPException) as exc_info:
            await merchant_service.register_merchant(test_session, _registration("Second"), user)
        assert exc_info.value.status_code == 400


@pytest.mark.asyncio
class TestMerchantStatus:

    async def test_approval_grants_merchant_role(self, test_session, admin):
        user = await make_user(test_session, "meera@example.com")
        registered = await merchant_service.register_merchant(test_session, _registration(), user)

        result = await merchant_service.set_merchant_status(test_session, registered["data"].id, "approved", admin)

        assert result["data"].status == "approved"
        assert user.role == UserRole.MERCHANT

        await merchant_service.set_merchant_status(test_session, registered["data"].id, "blocked", admin)
        assert user.role == UserRole.CUSTOMER

    async def test_same_status_conflicts(self, test_session, admin, merchant_a):
        with pytest.raises(HTTPException) as exc_info:
            await merchant_service.set_merchant_status(test_session, merchant_a.id, "approved", admin)
        assert exc_info.value.status_code == 409

    async def test_pending_is_not_a_decision(self, test_session, admin, merchant_a):
        with pytest.raises(HTTPException) as exc_info:
            await merchant_service.set_merchant_status(test_session, merchant_a.id, "pending", admin)
        assert exc_info.value.status_code == 400

    async def test_unknown_merchant(self, test_session, admin):
        with pytest.raises(HTTPException) as exc_info:
            await merchant_service.set_merchant_status(test_session, 404, "approved", admin)
        assert exc_info.value.status_code == 404

    async def test_failed_audit_write_rolls_back_status(self, test_session, admin, merchant_a, monkeypatch):
        merchant_id = merchant_a.id

        async def broken_log(*args, **kwargs):
            raise RuntimeError("activity table unavailable")

        monkeypatch.setattr(merchant_service, "log_user_activity", broken_log)

        with pytest.raises(HTTPException) as exc_info:
            await merchant_service.set_merchant_status(test_session, merchant_id, "blocked", admin)

        assert exc_info.value.status_code == 500
        result = await test_session.execute(
            select(Merchant).where(Merchant.id == merchant_id).execution_options(populate_existing=True)
        )
        merchant = result.scalars().one()
        assert merchant.status == MerchantStatus.APPROVED
        login = await test_session.get(User, merchant.user_id)
        assert login.role == UserRole.MERCHANT

    async def test_pending_merchant_cannot_act(self, test_session):
        user = await make_user(test_session, "meera@example.com")
        await merchant_service.register_merchant(test_session, _registration(), user)

        with pytest.raises(HTTPException) as exc_info:
            await merchant_service.get_approved_merchant_for_user(test_session, user)
        assert exc_info.value.status_code == 403

    async def test_profile_lookup(self, test_session, customer, merchant_a):
        login = await test_session.get(User, merchant_a.user_id)
        assert (await merchant_service.get_merchant_for_user(test_session, login)).id == merchant_a.id

        with pytest.raises(HTTPException) as exc_info:
            await merchant_service.get_merchant_for_user(test_session, customer)
        assert exc_info.value.status_code == 404


@pytest.mark.asyncio
class TestListMerchants:

    async def test_search_and_status(self, test_session, merchant_a, merchant_b):
        by_code = await merchant_service.list_merchants(test_session, search="mc-2026-0002")
        by_name = await merchant_service.list_merchants(test_session, search="green nursery")
        pending = await merchant_service.list_merchants(test_session, status="pending")

        assert [m.merchant_code for m in by_code["data"]] == ["MC-2026-0002"]
        assert [m.merchant_code for m in by_name["data"]] == ["MC-2026-0001"]
        assert pending["data"] == []
