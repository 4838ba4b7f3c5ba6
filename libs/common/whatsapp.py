"""
WhatsApp messaging through Twilio.

Sends free-form WhatsApp messages (sandbox or an approved sender) with the
Twilio SDK. Callers treat delivery as best-effort.
"""

import asyncio
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from libs.common.config import get_settings
from libs.common.logging import get_logger
from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client

logger = get_logger(__name__)


@dataclass
class WhatsAppMessage:
    """Result of queuing a message with Twilio."""

    sid: str
    status: str


class WhatsAppError(Exception):
    """Raised when Twilio rejects a message or is not configured."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def _normalise_address(phone: str) -> str:
    phone = phone.strip()
    if phone.startswith("whatsapp:"):
        return phone
    return f"whatsapp:{phone}"


@lru_cache
def _get_client(account_sid: str, auth_token: str) -> Client:
    return Client(account_sid, auth_token)


async def send_whatsapp_message(to_phone: str, body: str) -> WhatsAppMessage:
    """
    Send a WhatsApp message.

    The SDK call is blocking, so it runs in a worker thread.

    Raises:
        WhatsAppError: when credentials are missing or Twilio rejects the message.
    """
    settings = get_settings()
    if (
        not settings.TWILIO_ACCOUNT_SID
        or not settings.TWILIO_AUTH_TOKEN
        or not settings.TWILIO_WHATSAPP_FROM
    ):
        raise WhatsAppError("Twilio WhatsApp is not configured")

    client = _get_client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
    try:
        message = await asyncio.to_thread(
            client.messages.create,
            body=body,
            from_=_normalise_address(settings.TWILIO_WHATSAPP_FROM),
            to=_normalise_address(to_phone),
        )
    except TwilioRestException as e:
        # Error text may echo the destination number; log the code only.
        logger.error("Twilio API error: %s (code=%s)", e.status, e.code)
        raise WhatsAppError(
            "Failed to send WhatsApp message", status_code=e.status
        ) from e

    return WhatsAppMessage(sid=message.sid or "", status=str(message.status or ""))
