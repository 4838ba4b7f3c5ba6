"""Unit tests for the platform fee charged on order completion."""

import uuid
from decimal import Decimal

import pytest
from services.store_service.models import LedgerStatus, LedgerType, OrderStatus
from services.store_service.services.fee_service import (
    charge_platform_fee_on_completion,
    compute_platform_fee,
    fee_note,
)
from services.store_service.services.ledger_ops import list_ledger_entries
from tests.factories import OrderFactory


async def _completed_order(db, store, **overrides):
    order = OrderFactory.create(store.id, status=OrderStatus.COMPLETED, **overrides)
    db.add(order)
    await db.commit()
    return order


# ---------------------------------------------------------------------------
# compute_platform_fee
# ---------------------------------------------------------------------------


@pytest.mark.unit
@pytest.mark.parametrize(
    "total, fee",
    [(12000, 1200), (10000, 1000), (0, 0), (5, 1), (4, 0), (12345, 1235)],
)
def test_compute_platform_fee_rounds_half_up(total, fee):
    assert compute_platform_fee(total) == fee


@pytest.mark.unit
def test_compute_platform_fee_custom_rate():
    assert compute_platform_fee(10000, Decimal("0.05")) == 500


@pytest.mark.unit
def test_fee_note_mentions_rate_and_reference():
    order = OrderFactory.create(uuid.uuid4())

    note = fee_note(order)

    assert note == f"Platform fee (10%) on order {order.short_ref}"


# ---------------------------------------------------------------------------
# charge_platform_fee_on_completion
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_charges_fee_once_for_completed_order(db_session, store):
    order = await _completed_order(db_session, store, total_cents=10000)

    entry = await charge_platform_fee_on_completion(db_session, order.id)

    assert entry is not None
    assert entry.type == LedgerType.FEE_DEBIT
    assert entry.status == LedgerStatus.COMPLETED
    assert entry.amount_cents == 1000
    assert entry.balance_cents == -1000
    assert entry.order_id == order.id
    assert store.credit_cents == -1000
    assert order.platform_fee_paid is True
    assert order.platform_fee_cents == 1000


@pytest.mark.asyncio
@pytest.mark.unit
async def test_second_charge_is_a_no_op(db_session, store):
    order = await _completed_order(db_session, store, total_cents=10000)

    first = await charge_platform_fee_on_completion(db_session, order.id)
    second = await charge_platform_fee_on_completion(db_session, order.id)

    assert first is not None
    assert second is None
    entries = await list_ledger_entries(db_session, store_id=store.id)
    assert len(entries) == 1
    assert store.credit_cents == -1000


@pytest.mark.asyncio
@pytest.mark.unit
async def test_preset_fee_is_used(db_session, store):
    order = await _completed_order(
        db_session, store, total_cents=10000, platform_fee_cents=750
    )

    entry = await charge_platform_fee_on_completion(db_session, order.id)

    assert entry.amount_cents == 750
    assert store.credit_cents == -750


@pytest.mark.asyncio
@pytest.mark.unit
async def test_zero_fee_marks_paid_without_ledger_entry(db_session, store):
    order = await _completed_order(db_session, store, total_cents=0)

    entry = await charge_platform_fee_on_completion(db_session, order.id)

    assert entry is None
    assert order.platform_fee_paid is True
    assert order.platform_fee_cents == 0
    assert await list_ledger_entries(db_session, store_id=store.id) == []
    assert store.credit_cents == 0


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.parametrize(
    "order_status",
    [OrderStatus.PENDING, OrderStatus.READY_FOR_COLLECTION, OrderStatus.CANCELLED],
)
async def test_orders_not_completed_are_not_charged(db_session, store, order_status):
    order = OrderFactory.create(store.id, status=order_status)
    db_session.add(order)
    await db_session.commit()

    entry = await charge_platform_fee_on_completion(db_session, order.id)

    assert entry is None
    assert order.platform_fee_paid is False
    assert await list_ledger_entries(db_session, store_id=store.id) == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_missing_order_is_ignored(db_session):
    assert await charge_platform_fee_on_completion(db_session, uuid.uuid4()) is None
    assert await charge_platform_fee_on_completion(db_session, None) is None
