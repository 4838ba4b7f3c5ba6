"""Store service test fixtures: auth tokens, seeded store, fake collaborators."""

import uuid
from contextlib import contextmanager
from typing import Optional

import pytest
import pytest_asyncio
from jose import jwt

from libs.auth.dependencies import require_store_owner
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from services.store_service import notifications, yoco_client
from services.store_service.yoco_client import CheckoutSession, YocoError
from tests.factories import ProductFactory, StoreFactory

settings = get_settings()


# ---------------------------------------------------------------------------
# Auth helpers
# ---------------------------------------------------------------------------


def make_token(user_id: str, role: str = "store_owner", email: Optional[str] = None):
    claims = {"sub": user_id, "role": role}
    if email:
        claims["email"] = email
    return jwt.encode(
        claims, settings.AUTH_JWT_SECRET, algorithm=settings.AUTH_JWT_ALGORITHM
    )


def auth_headers_for(user_id: str, role: str = "store_owner") -> dict:
    return {"Authorization": f"Bearer {make_token(user_id, role)}"}


def make_owner_user(user_id: Optional[str] = None) -> AuthUser:
    return AuthUser(
        user_id=user_id or f"owner-{uuid.uuid4().hex[:8]}",
        email="owner@example.com",
        role="store_owner",
    )


@contextmanager
def override_auth(app, user: AuthUser):
    """Temporarily replace the store-owner dependency with a fixed user."""
    previous = app.dependency_overrides.get(require_store_owner)
    app.dependency_overrides[require_store_owner] = lambda: user
    try:
        yield
    finally:
        if previous is None:
            app.dependency_overrides.pop(require_store_owner, None)
        else:
            app.dependency_overrides[require_store_owner] = previous


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def store(db_session):
    """An open store with a zero balance."""
    store = StoreFactory.create()
    db_session.add(store)
    await db_session.commit()
    return store


@pytest_asyncio.fixture
async def products(db_session, store):
    """Two available products (R45 and R30) and one unavailable one."""
    kota = ProductFactory.create(store.id, name="Quarter Kota", price_cents=4500)
    chips = ProductFactory.create(store.id, name="Slap Chips", price_cents=3000)
    sold_out = ProductFactory.create(
        store.id, name="Mogodu", price_cents=6000, is_available=False
    )
    db_session.add_all([kota, chips, sold_out])
    await db_session.commit()
    return {"kota": kota, "chips": chips, "sold_out": sold_out}


@pytest.fixture
def owner_headers(store) -> dict:
    return auth_headers_for(store.owner_auth_id)


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def notification_outbox(monkeypatch):
    """Capture notification jobs instead of talking to Redis."""
    outbox: list[tuple[str, dict]] = []

    async def _fake_enqueue(job_name: str, payload: dict) -> bool:
        outbox.append((job_name, payload))
        return True

    monkeypatch.setattr(notifications, "_enqueue", _fake_enqueue)
    return outbox


class FakeYocoClient:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: list[dict] = []

    async def create_checkout(self, **kwargs) -> CheckoutSession:
        self.calls.append(kwargs)
        if self.fail:
            raise YocoError("Failed to create Yoco checkout session", status_code=500)
        return CheckoutSession(
            checkout_id=f"ch_{uuid.uuid4().hex[:12]}",
            redirect_url="https://pay.yoco.com/checkout/test",
        )


@pytest.fixture
def fake_yoco(monkeypatch) -> FakeYocoClient:
    client = FakeYocoClient()
    monkeypatch.setattr(yoco_client, "get_yoco_client", lambda: client)
    return client


@pytest.fixture
def failing_yoco(monkeypatch) -> FakeYocoClient:
    client = FakeYocoClient(fail=True)
    monkeypatch.setattr(yoco_client, "get_yoco_client", lambda: client)
    return client
