"""
Notification jobs executed by the ARQ worker.

Each job renders a template and hands it to the SMTP or WhatsApp sender.
Delivery failures are logged; the order itself is never touched here.
"""

from libs.common.emails.core import send_email
from libs.common.logging import get_logger
from libs.common.whatsapp import WhatsAppError, send_whatsapp_message
from services.store_service.templates import (
    build_order_confirmation_email,
    build_order_confirmation_whatsapp,
    build_order_ready_email,
    build_order_ready_whatsapp,
)

logger = get_logger(__name__)


async def send_order_ready_email(payload: dict) -> bool:
    to_email = payload.get("customer_email")
    if not to_email:
        return False
    built = build_order_ready_email(payload)
    return await send_email(
        to_email=to_email,
        subject=built.subject,
        body=built.body,
        html_body=built.html_body,
    )


async def send_order_confirmation_email(payload: dict) -> bool:
    to_email = payload.get("customer_email")
    if not to_email:
        return False
    built = build_order_confirmation_email(payload)
    return await send_email(
        to_email=to_email,
        subject=built.subject,
        body=built.body,
        html_body=built.html_body,
    )


async def _send_whatsapp(payload: dict, body: str) -> bool:
    to_phone = payload.get("customer_phone")
    if not to_phone:
        return False
    try:
        message = await send_whatsapp_message(to_phone, body)
    except WhatsAppError as e:
        logger.error(
            "WhatsApp for order %s failed: %s", payload.get("order_id"), e.message
        )
        return False
    except Exception:
        logger.exception("WhatsApp for order %s failed", payload.get("order_id"))
        return False
    logger.info(
        "WhatsApp %s queued for order %s (%s)",
        message.sid,
        payload.get("order_id"),
        message.status,
    )
    return True


async def send_order_ready_whatsapp(payload: dict) -> bool:
    return await _send_whatsapp(payload, build_order_ready_whatsapp(payload))


async def send_order_confirmation_whatsapp(payload: dict) -> bool:
    return await _send_whatsapp(payload, build_order_confirmation_whatsapp(payload))
