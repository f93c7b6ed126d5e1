"""
Pytest configuration and fixtures for tests.

Every test gets a fresh in-memory SQLite database. Service tests use the
`test_session` fixture directly; HTTP tests use `client`, which routes the
app's `get_db` dependency to the same database.
"""

import os
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Config is read at import time
os.environ.setdefault("JWT_SECRET", "test-secret-do-not-use")
os.environ.setdefault("DB_TYPE", "sqlite")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from nursery.core.db import Base, get_db  # noqa: E402
from nursery.core.security import hash_password  # noqa: E402
from nursery.models.merchant_models import Merchant, MerchantStatus  # noqa: E402
from nursery.models.product_models import Product  # noqa: E402
from nursery.models.user_models import User, UserRole  # noqa: E402
from nursery.services.auth_service import create_token  # noqa: E402
import nursery.models  # noqa: E402,F401

TEST_PASSWORD = "secret123"
_PASSWORD_HASH = hash_password(TEST_PASSWORD)


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def test_engine():
    """Create test database engine (in-memory SQLite shared by all sessions)."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def test_session(session_maker):
    """Create test database session."""
    async with session_maker() as session:
        yield session
        await session.rollback()


# ============================================================================
# Data Factories
# ============================================================================

async def make_user(session, email, role=UserRole.CUSTOMER, full_name=None):
    user = User(
        email=email,
        full_name=full_name or email.split("@")[0].title(),
        password_hash=_PASSWORD_HASH,
        role=role,
        is_active=True,
    )
    session.add(user)
    await session.commit()
    return user


async def make_product(session, name, price, stock=10, category="Plants"):
    product = Product(
        name=name,
        category=category,
        description=f"{name} sapling",
        image_url=f"https://img.example/{name.lower().replace(' ', '-')}.jpg",
        price=Decimal(str(price)),
        stock_quantity=stock,
        is_active=True,
    )
    session.add(product)
    await session.commit()
    return product


async def make_merchant(session, user, code, status=MerchantStatus.APPROVED):
    merchant = Merchant(
        user_id=user.id,
        full_name=user.full_name,
        nursery_name=f"{user.full_name} Nursery",
        phone_number="9999999999",
        email=user.email,
        nursery_address="Green Lane 1",
        merchant_code=code,
        status=status,
    )
    session.add(merchant)
    await session.commit()
    return merchant


def auth_headers(user):
    return {"Authorization": f"Bearer {create_token(user)}"}


@pytest_asyncio.fixture
async def admin(test_session):
    return await make_user(test_session, "admin@nursery.test", role=UserRole.ADMIN)


@pytest_asyncio.fixture
async def customer(test_session):
    return await make_user(test_session, "asha@example.com")


@pytest_asyncio.fixture
async def merchant_a(test_session):
    user = await make_user(test_session, "green@merchant.test", role=UserRole.MERCHANT, full_name="Green")
    return await make_merchant(test_session, user, "MC-2026-0001")


@pytest_asyncio.fixture
async def merchant_b(test_session):
    user = await make_user(test_session, "leafy@merchant.test", role=UserRole.MERCHANT, full_name="Leafy")
    return await make_merchant(test_session, user, "MC-2026-0002")


@pytest_asyncio.fixture
async def products(test_session):
    mango = await make_product(test_session, "Alphonso Mango", "120.00", stock=10, category="Fruit Plants")
    neem = await make_product(test_session, "Neem", "45.50", stock=5, category="Trees")
    return mango, neem


# ============================================================================
# HTTP Client
# ============================================================================

@pytest_asyncio.fixture
async def client(session_maker):
    from main import app

    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
