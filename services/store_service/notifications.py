"""Order notification requests.

Jobs are pushed onto the ARQ notifications queue after the order change has
been committed. Delivery is at-most-once: enqueue failures are logged and
dropped, never surfaced to the caller.
"""

from typing import Optional

from arq import create_pool
from arq.connections import ArqRedis
from libs.common.arq_config import NOTIFICATIONS_QUEUE, get_redis_settings
from libs.common.logging import get_logger
from services.store_service.models import Order, Store

logger = get_logger(__name__)

_pool: Optional[ArqRedis] = None


async def _get_pool() -> ArqRedis:
    global _pool
    if _pool is None:
        _pool = await create_pool(get_redis_settings())
    return _pool


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.aclose()
        _pool = None


async def _discard_pool() -> None:
    global _pool
    pool, _pool = _pool, None
    if pool is None:
        return
    try:
        await pool.aclose()
    except Exception as e:
        logger.warning("Could not close ARQ pool: %s", e)


def build_order_payload(order: Order, store: Store) -> dict:
    """Snapshot of everything the templates need. Items must be loaded."""
    return {
        "order_id": str(order.id),
        "short_ref": order.short_ref,
        "store_name": store.name,
        "customer_name": order.customer_name,
        "customer_email": order.customer_email,
        "customer_phone": order.customer_phone,
        "fulfilment_type": order.fulfilment_type.value,
        "status": order.status.value,
        "pickup_code": order.pickup_code,
        "tracking_token": order.tracking_token,
        "total_cents": order.total_cents,
        "items": [
            {
                "name": item.name,
                "quantity": item.quantity,
                "total_cents": item.total_cents,
            }
            for item in order.items
        ],
    }


async def _enqueue(job_name: str, payload: dict) -> bool:
    try:
        pool = await _get_pool()
        await pool.enqueue_job(job_name, payload, _queue_name=NOTIFICATIONS_QUEUE)
    except Exception as e:
        # Drop the cached pool so the next request reconnects
        await _discard_pool()
        logger.warning(
            "Could not enqueue %s for order %s: %s",
            job_name,
            payload.get("order_id"),
            e,
        )
        return False
    logger.info("Enqueued %s for order %s", job_name, payload.get("order_id"))
    return True


async def request_order_ready(order: Order, store: Store) -> None:
    """Email and WhatsApp the customer that the order is ready or on its way."""
    payload = build_order_payload(order, store)
    if order.customer_email:
        await _enqueue("task_send_order_ready_email", payload)
    if order.customer_phone:
        await _enqueue("task_send_order_ready_whatsapp", payload)


async def request_order_confirmation(order: Order, store: Store) -> None:
    payload = build_order_payload(order, store)
    if order.customer_email:
        await _enqueue("task_send_order_confirmation_email", payload)
    if order.customer_phone:
        await _enqueue("task_send_order_confirmation_whatsapp", payload)
