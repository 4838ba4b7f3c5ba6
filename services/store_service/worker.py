"""ARQ worker for store order notifications.

Run with: arq services.store_service.worker.WorkerSettings
"""

from libs.common.arq_config import NOTIFICATIONS_QUEUE, get_redis_settings
from libs.common.logging import configure_logging, get_logger

logger = get_logger(__name__)


# ── Wrapper functions (ARQ requires top-level async callables) ──


async def task_send_order_ready_email(ctx: dict, payload: dict):
    """Tell the customer by email that the order is ready or on its way."""
    from services.store_service.tasks import send_order_ready_email

    logger.info("Running: send_order_ready_email order=%s", payload.get("order_id"))
    return await send_order_ready_email(payload)


async def task_send_order_ready_whatsapp(ctx: dict, payload: dict):
    from services.store_service.tasks import send_order_ready_whatsapp

    logger.info("Running: send_order_ready_whatsapp order=%s", payload.get("order_id"))
    return await send_order_ready_whatsapp(payload)


async def task_send_order_confirmation_email(ctx: dict, payload: dict):
    """Send the checkout confirmation with code and tracking link."""
    from services.store_service.tasks import send_order_confirmation_email

    logger.info(
        "Running: send_order_confirmation_email order=%s", payload.get("order_id")
    )
    return await send_order_confirmation_email(payload)


async def task_send_order_confirmation_whatsapp(ctx: dict, payload: dict):
    from services.store_service.tasks import send_order_confirmation_whatsapp

    logger.info(
        "Running: send_order_confirmation_whatsapp order=%s", payload.get("order_id")
    )
    return await send_order_confirmation_whatsapp(payload)


async def startup(ctx: dict):
    configure_logging()
    logger.info("Store notification worker started")


# ── Worker configuration ──


class WorkerSettings:
    """ARQ worker settings for the notifications queue."""

    redis_settings = get_redis_settings()
    queue_name = NOTIFICATIONS_QUEUE
    on_startup = startup

    # Register all task functions so ARQ can discover them
    functions = [
        task_send_order_ready_email,
        task_send_order_ready_whatsapp,
        task_send_order_confirmation_email,
        task_send_order_confirmation_whatsapp,
    ]

    # Notifications are best-effort; a failed send is not retried
    max_tries = 1
