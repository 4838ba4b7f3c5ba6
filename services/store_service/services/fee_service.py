"""Platform fee charged against the store balance when an order completes."""

import uuid
from decimal import Decimal
from typing import Optional

from libs.common.config import get_settings
from libs.common.currency import apply_rate
from libs.common.logging import get_logger
from services.store_service.models import LedgerEntry, LedgerType, Order, OrderStatus
from services.store_service.services.ledger_ops import (
    append_completed_entry,
    lock_store,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
settings = get_settings()


def compute_platform_fee(total_cents: int, rate: Optional[Decimal] = None) -> int:
    """Fee in cents, rounded half-up. 12000 at 10% -> 1200."""
    if rate is None:
        rate = settings.PLATFORM_FEE_RATE
    return apply_rate(total_cents, rate)


def fee_note(order: Order, rate: Optional[Decimal] = None) -> str:
    if rate is None:
        rate = settings.PLATFORM_FEE_RATE
    percent = (Decimal(rate) * 100).quantize(Decimal("1"))
    return f"Platform fee ({percent}%) on order {order.short_ref}"


async def charge_platform_fee_on_completion(
    db: AsyncSession, order_id: uuid.UUID
) -> Optional[LedgerEntry]:
    """Charge the platform fee for a COMPLETED order, at most once.

    Returns the FEE_DEBIT entry, or ``None`` when there was nothing to
    charge (missing order, not completed, already paid, or zero fee).

    Lock order is order row then store row. ``platform_fee_paid`` is
    re-read under the order lock so a concurrent second call is a no-op.
    """
    if order_id is None:
        return None

    result = await db.execute(
        select(Order)
        .where(Order.id == order_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    order = result.scalar_one_or_none()
    if (
        order is None
        or order.status != OrderStatus.COMPLETED
        or order.platform_fee_paid
    ):
        # Nothing to charge; release the row lock
        await db.commit()
        return None

    fee_cents = order.platform_fee_cents or compute_platform_fee(order.total_cents)

    if fee_cents <= 0:
        order.platform_fee_cents = 0
        order.platform_fee_paid = True
        await db.commit()
        logger.info("Order %s completed with no platform fee", order.id)
        return None

    store = await lock_store(db, order.store_id)
    if store is None:
        await db.commit()
        logger.error(
            "Store %s missing while charging fee for order %s",
            order.store_id,
            order.id,
        )
        return None

    try:
        entry = append_completed_entry(
            db,
            store,
            entry_type=LedgerType.FEE_DEBIT,
            amount_cents=fee_cents,
            order_id=order.id,
            note=fee_note(order),
        )
        order.platform_fee_cents = fee_cents
        order.platform_fee_paid = True
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    await db.refresh(entry)

    logger.info(
        "Charged platform fee %d on order %s (store %s balance=%d)",
        fee_cents,
        order.id,
        store.id,
        entry.balance_cents,
    )
    return entry
