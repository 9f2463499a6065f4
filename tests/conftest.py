import json
import os
from datetime import timedelta
from itertools import count
from typing import Dict, List, Optional

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "")

import httpx
import pytest
from fastapi_users.db import SQLAlchemyUserDatabase
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.auth.manager import UserManager
from app.auth.routes import get_jwt_strategy
from app.core.constants import ROLE_ADMIN
from app.core.errors import PaymentGatewayError
from app.db import enable_sqlite_foreign_keys, get_db
from app.main import app
from app.models import Address, Category, Product, Table
from app.models.base import Base
from app.models.user import User
from app.schemas.user import UserCreate
from app.services.payment_gateway import (
    CheckoutSession,
    InvalidWebhookSignature,
    WebhookEvent,
    get_payment_gateway,
)
from app.utils.storage import get_image_store
from app.utils.timezones import local_today

VALID_SIGNATURE = "t=1,v1=valid"


class FakeGateway:
    """In-memory stand-in for the Stripe wrapper."""

    def __init__(self):
        self.sessions: Dict[str, CheckoutSession] = {}
        self.created: List[dict] = []
        self.fail_create = False
        self._ids = count(1)

    async def create_checkout_session(self, order_id, items, metadata):
        if self.fail_create:
            raise PaymentGatewayError("Your card was declined.")
        session_id = f"cs_test_{next(self._ids)}"
        session = CheckoutSession(
            id=session_id,
            url=f"https://checkout.test/pay/{session_id}",
            status="open",
            payment_status="unpaid",
            metadata=dict(metadata),
        )
        self.sessions[session_id] = session
        self.created.append({"order_id": order_id, "items": items, "metadata": dict(metadata)})
        return session

    async def retrieve_session(self, session_id):
        if session_id not in self.sessions:
            raise PaymentGatewayError(f"No such checkout.session: '{session_id}'")
        return self.sessions[session_id]

    def construct_event(self, payload, signature):
        if signature != VALID_SIGNATURE:
            raise InvalidWebhookSignature("No signatures found matching the expected signature")
        event = json.loads(payload)
        obj = event["data"]["object"]
        return WebhookEvent(type=event["type"], session_id=obj.get("id"), metadata=obj.get("metadata") or {})

    # test helpers
    def mark_paid(self, session_id):
        session = self.sessions[session_id]
        session.status = "complete"
        session.payment_status = "paid"

    def expire(self, session_id):
        self.sessions[session_id].status = "expired"


class FakeImageStore:
    def __init__(self):
        self.saved: Dict[str, bytes] = {}
        self.deleted: List[str] = []

    async def save(self, *, filename, body, content_type):
        key = f"test/products/{filename}"
        self.saved[key] = body
        return f"https://cdn.test/{key}", key

    async def delete(self, key):
        self.deleted.append(key)
        self.saved.pop(key, None)


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def image_store():
    return FakeImageStore()


@pytest.fixture
async def client(session_maker, gateway, image_store):
    async def _get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_image_store] = lambda: image_store

    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


async def create_user(session_maker, email, password="s3cret-pass", name="Test User", role=None) -> User:
    async with session_maker() as session:
        manager = UserManager(SQLAlchemyUserDatabase(session, User))
        user = await manager.create(
            UserCreate(email=email, password=password, name=name, phone_number="5550100")
        )
        if role:
            user = await manager.user_db.update(user, {"role": role})
        return user


async def auth_headers(user: User) -> Dict[str, str]:
    token = await get_jwt_strategy().write_token(user)
    return {"Authorization": f"Bearer {token}"}


class Account:
    def __init__(self, user: User, headers: Dict[str, str]):
        self.user = user
        self.headers = headers

    @property
    def id(self):
        return self.user.id


@pytest.fixture
async def customer(session_maker):
    user = await create_user(session_maker, "alice@example.com", name="Alice")
    return Account(user, await auth_headers(user))


@pytest.fixture
async def other_customer(session_maker):
    user = await create_user(session_maker, "bob@example.com", name="Bob")
    return Account(user, await auth_headers(user))


@pytest.fixture
async def admin(session_maker):
    user = await create_user(session_maker, "admin@example.com", name="Admin", role=ROLE_ADMIN)
    return Account(user, await auth_headers(user))


# ---------- data factories ----------
@pytest.fixture
def make_category(db):
    async def _make(name="Pizza", description="Wood fired"):
        category = Category(name=name, description=description)
        db.add(category)
        await db.commit()
        return category

    return _make


@pytest.fixture
def make_product(db, make_category):
    async def _make(name="Margherita", price=10.0, category: Optional[Category] = None, available=True):
        category = category or await make_category(name=f"Category for {name}")
        product = Product(
            name=name,
            description=f"{name} description",
            price=price,
            is_available=available,
            ingredients=["tomato", "basil"],
            images=[f"https://cdn.test/{name}.jpg"],
            image_keys=[f"test/products/{name}.jpg"],
            category_id=category.id,
        )
        db.add(product)
        await db.commit()
        return product

    return _make


@pytest.fixture
def make_address(db):
    async def _make(user):
        address = Address(
            user_id=user.id,
            label="Home",
            street="1 Main St",
            city="Springfield",
            postal_code="12345",
            country="US",
        )
        db.add(address)
        await db.commit()
        return address

    return _make


@pytest.fixture
def make_table(db):
    async def _make(number=1, capacity=4, is_active=True):
        table = Table(number=number, capacity=capacity, is_active=is_active)
        db.add(table)
        await db.commit()
        return table

    return _make


@pytest.fixture
def future_day():
    return (local_today() + timedelta(days=3)).isoformat()
