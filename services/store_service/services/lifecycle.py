"""Order lifecycle state machine.

PENDING -> ACCEPTED -> IN_PREPARATION -> READY_FOR_COLLECTION | OUT_FOR_DELIVERY
-> COMPLETED, with CANCELLED reachable from every non-terminal state.
Entering COMPLETED charges the platform fee; entering a ready state tells
the customer.
"""

import hmac
import uuid
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.store_service import notifications
from services.store_service.errors import InvalidTransition, Unauthorized
from services.store_service.models import FulfilmentType, Order, OrderStatus, Store
from services.store_service.services.fee_service import (
    charge_platform_fee_on_completion,
)
from services.store_service.services.order_service import load_order
from services.store_service.services.store_ops import get_owner_store
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.ACCEPTED, OrderStatus.CANCELLED}),
    OrderStatus.ACCEPTED: frozenset(
        {OrderStatus.IN_PREPARATION, OrderStatus.CANCELLED}
    ),
    OrderStatus.IN_PREPARATION: frozenset(
        {
            OrderStatus.READY_FOR_COLLECTION,
            OrderStatus.OUT_FOR_DELIVERY,
            OrderStatus.CANCELLED,
        }
    ),
    OrderStatus.READY_FOR_COLLECTION: frozenset(
        {OrderStatus.COMPLETED, OrderStatus.CANCELLED}
    ),
    OrderStatus.OUT_FOR_DELIVERY: frozenset(
        {OrderStatus.COMPLETED, OrderStatus.CANCELLED}
    ),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

READY_STATES = frozenset(
    {OrderStatus.READY_FOR_COLLECTION, OrderStatus.OUT_FOR_DELIVERY}
)

# "Mark ready" skips the intermediate steps
MARK_READY_FROM = frozenset(
    {OrderStatus.PENDING, OrderStatus.ACCEPTED, OrderStatus.IN_PREPARATION}
)


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


async def _lock_order(
    db: AsyncSession, store_id: uuid.UUID, order_id: uuid.UUID
) -> Optional[Order]:
    result = await db.execute(
        select(Order)
        .where(Order.id == order_id, Order.store_id == store_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _get_owned_order_for_update(
    db: AsyncSession, owner_auth_id: str, order_id: uuid.UUID
) -> Order:
    store = await get_owner_store(db, owner_auth_id)
    order = await _lock_order(db, store.id, order_id)
    if order is None:
        await db.commit()
        raise Unauthorized("Order does not belong to your store")
    return order


def _apply_status(order: Order, target: OrderStatus) -> None:
    now = utc_now()
    order.status = target
    order.updated_at = now
    if target == OrderStatus.COMPLETED:
        order.completed_at = now
    elif target == OrderStatus.CANCELLED:
        order.cancelled_at = now


async def _after_transition(
    db: AsyncSession, order_id: uuid.UUID, target: OrderStatus
) -> Order:
    """Post-commit side effects, then the order reloaded for the response."""
    if target == OrderStatus.COMPLETED:
        try:
            await charge_platform_fee_on_completion(db, order_id)
        except Exception:
            # Status change stands; the charger is idempotent and can be re-run
            logger.exception("Platform fee charge failed for order %s", order_id)

    order = await load_order(db, order_id)

    if target in READY_STATES:
        try:
            await notifications.request_order_ready(order, order.store)
        except Exception:
            logger.exception("Order ready notification failed for order %s", order_id)

    return order


# ---------------------------------------------------------------------------
# Owner actions
# ---------------------------------------------------------------------------


async def set_order_status(
    db: AsyncSession,
    *,
    owner_auth_id: str,
    order_id: uuid.UUID,
    target: OrderStatus,
) -> Order:
    """Move an order of the owner's store to ``target``.

    Raises ``Unauthorized`` when the order is not the owner's and
    ``InvalidTransition`` when the transition table forbids the move.
    """
    order = await _get_owned_order_for_update(db, owner_auth_id, order_id)
    current = order.status

    if not can_transition(current, target):
        await db.commit()
        raise InvalidTransition(current, target)

    _apply_status(order, target)
    await db.commit()

    logger.info(
        "Order %s status %s -> %s by %s",
        order_id,
        current.value,
        target.value,
        owner_auth_id,
    )
    return await _after_transition(db, order_id, target)


async def mark_order_ready(
    db: AsyncSession,
    *,
    owner_auth_id: str,
    order_id: uuid.UUID,
    mode: FulfilmentType,
) -> Order:
    """Shortcut to READY_FOR_COLLECTION or OUT_FOR_DELIVERY from an open state."""
    target = (
        OrderStatus.OUT_FOR_DELIVERY
        if mode == FulfilmentType.DELIVERY
        else OrderStatus.READY_FOR_COLLECTION
    )
    order = await _get_owned_order_for_update(db, owner_auth_id, order_id)
    current = order.status

    if current not in MARK_READY_FROM:
        await db.commit()
        raise InvalidTransition(current, target)

    _apply_status(order, target)
    await db.commit()

    logger.info("Order %s marked %s by %s", order_id, target.value, owner_auth_id)
    return await _after_transition(db, order_id, target)


async def confirm_order_with_code(
    db: AsyncSession,
    *,
    owner_auth_id: str,
    order_id: uuid.UUID,
    code: str,
) -> bool:
    """Complete a ready order when the customer's code matches.

    Any mismatch (foreign order, wrong state, wrong code) is a silent no-op
    returning False.
    """
    result = await db.execute(
        select(Store.id).where(Store.owner_auth_id == owner_auth_id)
    )
    store_id = result.scalar_one_or_none()
    if store_id is None:
        return False

    order = await _lock_order(db, store_id, order_id)
    if order is None or order.status not in READY_STATES:
        await db.commit()
        return False

    supplied = (code or "").strip().encode()
    if not hmac.compare_digest(supplied, order.pickup_code.encode()):
        await db.commit()
        logger.info("Pickup code mismatch for order %s", order_id)
        return False

    _apply_status(order, OrderStatus.COMPLETED)
    await db.commit()
    logger.info("Order %s confirmed with code by %s", order_id, owner_auth_id)

    await _after_transition(db, order_id, OrderStatus.COMPLETED)
    return True
