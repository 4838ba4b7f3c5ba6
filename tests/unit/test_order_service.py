"""Unit tests for order creation, store reads and the open/close toggle."""

import pytest
from fastapi import HTTPException
from services.store_service import notifications
from services.store_service.errors import Unauthorized
from services.store_service.models import (
    FulfilmentType,
    OrderSource,
    OrderStatus,
    PaymentMethod,
)
from services.store_service.schemas import CheckoutRequest, ManualOrderRequest
from services.store_service.services.order_service import (
    WALK_IN_NAME,
    create_customer_order,
    create_manual_order,
    get_latest_order,
    get_order_by_tracking_token,
    list_store_orders,
)
from services.store_service.services.store_ops import toggle_store_open
from tests.factories import OrderFactory, StoreFactory


def _checkout(store, products, **overrides):
    data = {
        "store_slug": store.slug,
        "customer_name": "Thandi",
        "customer_email": "thandi@example.com",
        "customer_phone": "+27820000000",
        "items": [
            {"product_id": str(products["kota"].id), "quantity": 2},
            {"product_id": str(products["chips"].id), "quantity": 1},
        ],
    }
    data.update(overrides)
    return CheckoutRequest(**data)


# ---------------------------------------------------------------------------
# create_customer_order
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_customer_order_snapshots_prices(
    db_session, store, products, notification_outbox
):
    order = await create_customer_order(db_session, payload=_checkout(store, products))

    assert order.status == OrderStatus.PENDING
    assert order.source == OrderSource.CUSTOMER
    assert order.payment_method == PaymentMethod.CASH_ON_DELIVERY
    assert order.total_cents == 12000
    assert sum(item.total_cents for item in order.items) == order.total_cents
    assert len(order.pickup_code) == 6 and order.pickup_code.isdigit()
    assert order.tracking_token
    assert order.estimated_ready_at is not None
    assert order.platform_fee_paid is False

    jobs = [job for job, _ in notification_outbox]
    assert jobs == [
        "task_send_order_confirmation_email",
        "task_send_order_confirmation_whatsapp",
    ]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_later_price_change_does_not_touch_the_order(db_session, store, products):
    order = await create_customer_order(db_session, payload=_checkout(store, products))

    products["kota"].price_cents = 9900
    await db_session.commit()
    reloaded = await get_order_by_tracking_token(db_session, order.tracking_token)

    assert reloaded.total_cents == 12000
    assert {item.unit_cents for item in reloaded.items} == {4500, 3000}


@pytest.mark.asyncio
@pytest.mark.unit
async def test_signed_in_customer_is_linked(db_session, store, products):
    from libs.auth.models import AuthUser

    customer = AuthUser(user_id="cust-1", role="customer")

    order = await create_customer_order(
        db_session, payload=_checkout(store, products), customer=customer
    )

    assert order.customer_auth_id == "cust-1"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_closed_store_refuses_checkout(db_session, products):
    store = StoreFactory.create(is_open=False)
    db_session.add(store)
    await db_session.commit()

    with pytest.raises(HTTPException) as exc_info:
        await create_customer_order(db_session, payload=_checkout(store, products))

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == "Store is closed"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_unknown_store_is_404(db_session, store, products):
    payload = _checkout(store, products, store_slug="no-such-store")

    with pytest.raises(HTTPException) as exc_info:
        await create_customer_order(db_session, payload=payload)

    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
@pytest.mark.unit
async def test_delivery_needs_an_address(db_session, store, products):
    payload = _checkout(store, products, fulfilment_type="DELIVERY")

    with pytest.raises(HTTPException) as exc_info:
        await create_customer_order(db_session, payload=payload)

    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
@pytest.mark.unit
async def test_collection_order_drops_delivery_address(db_session, store, products):
    payload = _checkout(store, products, delivery_address="12 Vilakazi St")

    order = await create_customer_order(db_session, payload=payload)

    assert order.fulfilment_type == FulfilmentType.COLLECTION
    assert order.delivery_address is None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_idempotency_key_replay_returns_same_order(
    db_session, store, products, notification_outbox
):
    payload = _checkout(store, products, idempotency_key="cart-42")

    first = await create_customer_order(db_session, payload=payload)
    second = await create_customer_order(db_session, payload=payload)

    assert second.id == first.id
    orders = await list_store_orders(db_session, owner_auth_id=store.owner_auth_id)
    assert len(orders) == 1
    # Only the first placement asks for a confirmation
    assert len(notification_outbox) == 2


@pytest.mark.asyncio
@pytest.mark.unit
async def test_notification_failure_does_not_fail_checkout(
    db_session, store, products, monkeypatch
):
    async def _boom(order, store):
        raise RuntimeError("redis down")

    monkeypatch.setattr(notifications, "request_order_confirmation", _boom)

    order = await create_customer_order(db_session, payload=_checkout(store, products))

    assert order.status == OrderStatus.PENDING


# ---------------------------------------------------------------------------
# create_manual_order
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_manual_order_defaults_to_walk_in(db_session, store, products):
    store.is_open = False
    await db_session.commit()
    payload = ManualOrderRequest(
        customer_name="   ",
        items=[{"product_id": str(products["chips"].id), "quantity": 3}],
    )

    order = await create_manual_order(
        db_session, owner_auth_id=store.owner_auth_id, payload=payload
    )

    assert order.customer_name == WALK_IN_NAME
    assert order.source == OrderSource.MANUAL
    assert order.payment_method == PaymentMethod.CASH_ON_COLLECTION
    assert order.created_by_owner_auth_id == store.owner_auth_id
    assert order.total_cents == 9000


@pytest.mark.asyncio
@pytest.mark.unit
async def test_manual_delivery_order_is_cash_on_delivery(
    db_session, store, products, notification_outbox
):
    payload = ManualOrderRequest(
        customer_name="  Sipho  ",
        customer_phone="0821234567",
        fulfilment_type="DELIVERY",
        delivery_address=" 5 Mofolo Rd ",
        items=[{"product_id": str(products["kota"].id), "quantity": 1}],
    )

    order = await create_manual_order(
        db_session, owner_auth_id=store.owner_auth_id, payload=payload
    )

    assert order.customer_name == "Sipho"
    assert order.delivery_address == "5 Mofolo Rd"
    assert order.payment_method == PaymentMethod.CASH_ON_DELIVERY
    assert notification_outbox == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_manual_order_needs_a_store(db_session, store, products):
    payload = ManualOrderRequest(
        items=[{"product_id": str(products["kota"].id), "quantity": 1}]
    )

    with pytest.raises(Unauthorized):
        await create_manual_order(db_session, owner_auth_id="nobody", payload=payload)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_list_orders_filters_by_status(db_session, store):
    db_session.add_all(
        [
            OrderFactory.create(store.id, status=OrderStatus.PENDING),
            OrderFactory.create(store.id, status=OrderStatus.COMPLETED),
        ]
    )
    await db_session.commit()

    pending = await list_store_orders(
        db_session,
        owner_auth_id=store.owner_auth_id,
        status_filter=OrderStatus.PENDING,
    )

    assert [o.status for o in pending] == [OrderStatus.PENDING]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_latest_order_is_none_for_new_store(db_session, store):
    assert await get_latest_order(db_session, owner_auth_id=store.owner_auth_id) is None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_unknown_tracking_token_is_404(db_session):
    with pytest.raises(HTTPException) as exc_info:
        await get_order_by_tracking_token(db_session, "nope")

    assert exc_info.value.status_code == 404


# ---------------------------------------------------------------------------
# toggle_store_open
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_toggle_closes_and_reopens(db_session, store):
    closed = await toggle_store_open(db_session, owner_auth_id=store.owner_auth_id)
    assert closed.is_open is False

    reopened = await toggle_store_open(db_session, owner_auth_id=store.owner_auth_id)
    assert reopened.is_open is True


@pytest.mark.asyncio
@pytest.mark.unit
async def test_negative_balance_blocks_opening(db_session):
    store = StoreFactory.create(is_open=False, credit_cents=-2000)
    db_session.add(store)
    await db_session.commit()
    owner_auth_id = store.owner_auth_id

    with pytest.raises(HTTPException) as exc_info:
        await toggle_store_open(db_session, owner_auth_id=owner_auth_id)

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail["balance_cents"] == -2000
    await db_session.refresh(store)
    assert store.is_open is False


@pytest.mark.asyncio
@pytest.mark.unit
async def test_negative_balance_does_not_block_closing(db_session):
    store = StoreFactory.create(is_open=True, credit_cents=-2000)
    db_session.add(store)
    await db_session.commit()

    toggled = await toggle_store_open(db_session, owner_auth_id=store.owner_auth_id)

    assert toggled.is_open is False
