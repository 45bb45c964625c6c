"""
Pytest fixtures for test database, client, payment gateway and authentication.

Each test gets a fresh in-memory SQLite database (aiosqlite) with all tables
created, so tests are isolated and need no running PostgreSQL.
"""

import hashlib
import hmac
import os
from typing import AsyncGenerator

# Must be set before the application modules read their settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
import pytest_asyncio
import razorpay
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from eventpass.main import app
from eventpass.db.base import Base
from eventpass.db.session import get_db
from eventpass.core.security import create_access_token, hash_password
from eventpass.infrastructure.razorpay_client import RazorpayGateway, get_payment_gateway
from eventpass.models.booking import Booking, BookingStatus
from eventpass.models.user import User

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_KEY_ID = "rzp_test_key"
TEST_KEY_SECRET = "rzp_test_secret"


def sign(order_id: str, payment_id: str, secret: str = TEST_KEY_SECRET) -> str:
    """Compute the signature Razorpay would send back to the client."""
    return hmac.new(
        secret.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256
    ).hexdigest()


class FakeOrders:
    """Stands in for razorpay.Client().order."""

    def __init__(self):
        self.calls = []
        self.fail = False

    def create(self, options: dict) -> dict:
        self.calls.append(options)
        if self.fail:
            raise razorpay.errors.ServerError("gateway unavailable")
        return {
            "id": f"order_test{len(self.calls)}",
            "entity": "order",
            "amount": options["amount"],
            "currency": options["currency"],
            "receipt": options["receipt"],
            "status": "created",
        }


def make_razorpay_client() -> razorpay.Client:
    """Real SDK client (signature utility included) with order creation stubbed out."""
    client = razorpay.Client(auth=(TEST_KEY_ID, TEST_KEY_SECRET))
    client.order = FakeOrders()
    return client


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables in a fresh in-memory database and yield a session."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def razorpay_client() -> razorpay.Client:
    return make_razorpay_client()


@pytest.fixture
def gateway(razorpay_client: razorpay.Client) -> RazorpayGateway:
    return RazorpayGateway(TEST_KEY_ID, TEST_KEY_SECRET, currency="INR", client=razorpay_client)


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, gateway: RazorpayGateway) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB and gateway dependencies."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    user = User(
        name="Test User",
        email="test@example.com",
        phone="9876543210",
        hashed_password=hash_password("testpassword123"),
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    user = User(
        name="Other User",
        email="other@example.com",
        phone="9123456780",
        hashed_password=hash_password("otherpassword123"),
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    user = User(
        name="Admin",
        email="admin@example.com",
        phone="9000000000",
        hashed_password=hash_password("adminpassword123"),
        is_admin=True,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def auth_headers(test_user: User) -> dict:
    token = create_access_token(data={"sub": str(test_user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def admin_headers(admin_user: User) -> dict:
    token = create_access_token(data={"sub": str(admin_user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def booking_form(test_user: User) -> dict:
    """formData for a STAG x2 @500 + COUPLE x1 @900 purchase."""
    return {
        "tickets": [
            {"type": "STAG", "quantity": 2, "price": 500},
            {"type": "COUPLE", "quantity": 1, "price": 900},
        ],
        "totalAmount": 1900,
        "name": test_user.name,
        "email": test_user.email,
        "phone": test_user.phone,
        "userId": test_user.id,
    }


@pytest.fixture
def make_booking(db_session: AsyncSession):
    """Insert a booking row directly, bypassing payment verification."""
    counter = {"n": 0}

    async def _make(user: User, tickets: list[dict], email: str | None = None) -> Booking:
        counter["n"] += 1
        booking = Booking(
            booking_id=f"BNTEST{counter['n']:04d}",
            user_id=user.id,
            payment_id=f"pay_seed{counter['n']}",
            tickets=tickets,
            total_amount=sum(t["price"] * t["quantity"] for t in tickets),
            name=user.name,
            email=email or user.email,
            phone=user.phone,
            status=BookingStatus.CONFIRMED.value,
        )
        db_session.add(booking)
        await db_session.commit()
        await db_session.refresh(booking)
        return booking

    return _make
