"""Integration tests for store order endpoints (customer and owner)."""

import uuid

import pytest
from jose import jwt
from libs.common.config import get_settings
from libs.common.rate_limit import limiter
from services.store_service.models import Order, OrderStatus
from tests.conftest import auth_headers_for
from tests.factories import OrderFactory, StoreFactory


def _checkout_body(slug, products, **overrides):
    body = {
        "store_slug": slug,
        "customer_name": "Thandi",
        "customer_email": "thandi@example.com",
        "customer_phone": "+27820000000",
        "fulfilment_type": "COLLECTION",
        "items": [
            {"product_id": str(products["kota"].id), "quantity": 2},
            {"product_id": str(products["chips"].id), "quantity": 1},
        ],
    }
    body.update(overrides)
    return body


async def _seed_order(db, store_id, **overrides):
    order = OrderFactory.create(store_id, **overrides)
    db.add(order)
    await db.commit()
    return order.id, order.pickup_code


# ---------------------------------------------------------------------------
# Customer checkout and tracking
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_creates_pending_order(store_client, store, products):
    """POST /store/checkout - R120 cart becomes a PENDING order."""
    response = await store_client.post(
        "/store/checkout", json=_checkout_body(store.slug, products)
    )

    assert response.status_code == 201, response.text
    data = response.json()
    assert data["status"] == "PENDING"
    assert data["source"] == "CUSTOMER"
    assert data["payment_method"] == "CASH_ON_DELIVERY"
    assert data["total_cents"] == 12000
    assert len(data["items"]) == 2
    assert len(data["pickup_code"]) == 6


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_with_token_links_customer(
    store_client, store, products, db_session
):
    headers = auth_headers_for("cust-42", role="customer")

    response = await store_client.post(
        "/store/checkout", json=_checkout_body(store.slug, products), headers=headers
    )

    assert response.status_code == 201, response.text
    order = await db_session.get(Order, uuid.UUID(response.json()["id"]))
    assert order.customer_auth_id == "cust-42"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_replay_returns_same_order(store_client, store, products):
    body = _checkout_body(store.slug, products, idempotency_key="cart-7")

    first = await store_client.post("/store/checkout", json=body)
    second = await store_client.post("/store/checkout", json=body)

    assert first.status_code == 201
    assert second.status_code == 201
    assert second.json()["id"] == first.json()["id"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_closed_store(store_client, db_session, store, products):
    store.is_open = False
    await db_session.commit()

    response = await store_client.post(
        "/store/checkout", json=_checkout_body(store.slug, products)
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Store is closed"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_unavailable_product(store_client, store, products):
    body = _checkout_body(
        store.slug,
        products,
        items=[{"product_id": str(products["sold_out"].id), "quantity": 1}],
    )

    response = await store_client.post("/store/checkout", json=body)

    assert response.status_code == 400
    assert "not available" in response.json()["detail"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_validation_error(store_client, store, products):
    body = _checkout_body(store.slug, products, customer_email="not-an-email")

    response = await store_client.post("/store/checkout", json=body)

    assert response.status_code == 422


@pytest.mark.asyncio
@pytest.mark.integration
async def test_track_order_by_token(store_client, store, products):
    created = await store_client.post(
        "/store/checkout", json=_checkout_body(store.slug, products)
    )
    token = created.json()["tracking_token"]

    response = await store_client.get(f"/store/track/{token}")

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["id"] == created.json()["id"]
    assert data["store_name"] == "Mama's Kota"
    assert data["status"] == "PENDING"
    assert data["pickup_code"] == created.json()["pickup_code"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_track_unknown_token(store_client):
    response = await store_client.get("/store/track/does-not-exist")

    assert response.status_code == 404


# ---------------------------------------------------------------------------
# Owner: manual orders and listing
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_manual_order_walk_in(store_client, store, products, owner_headers):
    """POST /owner/store/orders/manual - blank name becomes Walk-in."""
    response = await store_client.post(
        "/owner/store/orders/manual",
        json={"items": [{"product_id": str(products["kota"].id), "quantity": 1}]},
        headers=owner_headers,
    )

    assert response.status_code == 201, response.text
    data = response.json()
    assert data["customer_name"] == "Walk-in"
    assert data["source"] == "MANUAL"
    assert data["payment_method"] == "CASH_ON_COLLECTION"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_owner_routes_require_token(store_client, store):
    response = await store_client.get("/owner/store/orders")

    assert response.status_code in (401, 403)


@pytest.mark.asyncio
@pytest.mark.integration
async def test_customer_role_cannot_use_owner_routes(store_client, store):
    headers = auth_headers_for(store.owner_auth_id, role="customer")

    response = await store_client.get("/owner/store/orders", headers=headers)

    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_orders_with_status_filter(
    store_client, db_session, store, owner_headers
):
    pending_id, _ = await _seed_order(db_session, store.id)
    await _seed_order(db_session, store.id, status=OrderStatus.CANCELLED)

    response = await store_client.get(
        "/owner/store/orders", params={"status": "PENDING"}, headers=owner_headers
    )

    assert response.status_code == 200, response.text
    assert [o["id"] for o in response.json()] == [str(pending_id)]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_heartbeat(store_client, db_session, store, owner_headers):
    empty = await store_client.get(
        "/owner/store/orders/heartbeat", headers=owner_headers
    )
    assert empty.status_code == 200
    assert empty.json()["latest_order_id"] is None

    order_id, _ = await _seed_order(db_session, store.id)
    response = await store_client.get(
        "/owner/store/orders/heartbeat", headers=owner_headers
    )

    assert response.json()["latest_order_id"] == str(order_id)


# ---------------------------------------------------------------------------
# Owner: lifecycle
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_status_flow_to_completion_charges_fee(
    store_client, db_session, store, owner_headers
):
    order_id, _ = await _seed_order(db_session, store.id, total_cents=12000)

    for target in ("ACCEPTED", "IN_PREPARATION", "READY_FOR_COLLECTION", "COMPLETED"):
        response = await store_client.post(
            f"/owner/store/orders/{order_id}/status",
            json={"status": target},
            headers=owner_headers,
        )
        assert response.status_code == 200, response.text
        assert response.json()["status"] == target

    data = response.json()
    assert data["platform_fee_paid"] is True
    assert data["platform_fee_cents"] == 1200

    billing = await store_client.get("/owner/store/billing", headers=owner_headers)
    assert billing.json()["balance_cents"] == -1200


@pytest.mark.asyncio
@pytest.mark.integration
async def test_illegal_status_change_is_conflict(
    store_client, db_session, store, owner_headers
):
    order_id, _ = await _seed_order(db_session, store.id)

    response = await store_client.post(
        f"/owner/store/orders/{order_id}/status",
        json={"status": "COMPLETED"},
        headers=owner_headers,
    )

    assert response.status_code == 409
    assert response.json()["detail"] == "Cannot change status from PENDING to COMPLETED"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_other_owner_cannot_touch_order(store_client, db_session, store):
    other = StoreFactory.create()
    db_session.add(other)
    await db_session.commit()
    other_headers = auth_headers_for(other.owner_auth_id)
    order_id, _ = await _seed_order(db_session, store.id)

    response = await store_client.post(
        f"/owner/store/orders/{order_id}/status",
        json={"status": "ACCEPTED"},
        headers=other_headers,
    )

    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.integration
async def test_mark_ready_for_delivery(
    store_client, db_session, store, owner_headers, notification_outbox
):
    order_id, _ = await _seed_order(db_session, store.id)

    response = await store_client.post(
        f"/owner/store/orders/{order_id}/ready",
        json={"mode": "DELIVERY"},
        headers=owner_headers,
    )

    assert response.status_code == 200, response.text
    assert response.json()["status"] == "OUT_FOR_DELIVERY"
    assert "task_send_order_ready_email" in [job for job, _ in notification_outbox]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_confirm_with_code(store_client, db_session, store, owner_headers):
    order_id, code = await _seed_order(
        db_session, store.id, status=OrderStatus.READY_FOR_COLLECTION
    )
    url = f"/owner/store/orders/{order_id}/confirm"

    wrong_code = "000000" if code != "000000" else "111111"
    wrong = await store_client.post(
        url, json={"code": wrong_code}, headers=owner_headers
    )
    assert wrong.status_code == 200
    assert wrong.json() == {"confirmed": False}

    right = await store_client.post(url, json={"code": code}, headers=owner_headers)
    assert right.status_code == 200
    assert right.json() == {"confirmed": True}

    again = await store_client.post(url, json={"code": code}, headers=owner_headers)
    assert again.json() == {"confirmed": False}



@pytest.fixture
def enabled_limiter(monkeypatch):
    monkeypatch.setattr(limiter, "enabled", True)
    limiter.reset()
    yield limiter
    limiter.reset()


def _issued_token(user_id: str, issued_at: int) -> dict:
    settings = get_settings()
    token = jwt.encode(
        {"sub": user_id, "role": "store_owner", "iat": issued_at},
        settings.AUTH_JWT_SECRET,
        algorithm=settings.AUTH_JWT_ALGORITHM,
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_confirm_budget_is_shared_across_tokens(
    store_client, db_session, store, enabled_limiter
):
    order_id, code = await _seed_order(
        db_session, store.id, status=OrderStatus.READY_FOR_COLLECTION
    )
    url = f"/owner/store/orders/{order_id}/confirm"
    wrong_code = "000000" if code != "000000" else "111111"
    first_token = _issued_token(store.owner_auth_id, issued_at=1000)
    second_token = _issued_token(store.owner_auth_id, issued_at=2000)

    for _ in range(10):
        response = await store_client.post(
            url, json={"code": wrong_code}, headers=first_token
        )
        assert response.status_code == 200

    blocked = await store_client.post(
        url, json={"code": wrong_code}, headers=first_token
    )
    assert blocked.status_code == 429

    fresh_token = await store_client.post(
        url, json={"code": code}, headers=second_token
    )
    assert fresh_token.status_code == 429

    order = await db_session.get(Order, order_id, populate_existing=True)
    assert order.status == OrderStatus.READY_FOR_COLLECTION


@pytest.mark.asyncio
@pytest.mark.integration
async def test_confirm_budget_is_per_owner(
    store_client, db_session, store, owner_headers, enabled_limiter
):
    order_id, code = await _seed_order(
        db_session, store.id, status=OrderStatus.READY_FOR_COLLECTION
    )
    url = f"/owner/store/orders/{order_id}/confirm"
    wrong_code = "000000" if code != "000000" else "111111"
    stranger = auth_headers_for(f"owner-{uuid.uuid4().hex[:8]}")

    for _ in range(11):
        await store_client.post(url, json={"code": wrong_code}, headers=stranger)

    response = await store_client.post(
        url, json={"code": code}, headers=owner_headers
    )
    assert response.status_code == 200
    assert response.json() == {"confirmed": True}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_health(store_client):
    response = await store_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "store"}
