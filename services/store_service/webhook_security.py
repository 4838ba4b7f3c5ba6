"""
Yoco webhook signature verification.

Yoco signs ``"{webhook-id}.{webhook-timestamp}." + raw body`` with
HMAC-SHA256, keyed by the base64 part of a ``whsec_<base64>`` secret. The
``webhook-signature`` header carries one or more space-separated
``v1,<base64 signature>`` candidates.
"""

import base64
import binascii
import hashlib
import hmac
from typing import Mapping, Optional

from fastapi import HTTPException, status
from libs.common.config import get_settings
from libs.common.datetime_utils import unix_now
from libs.common.logging import get_logger

logger = get_logger(__name__)

SECRET_PREFIX = "whsec_"


def decode_secret(secret: Optional[str]) -> bytes:
    """Key bytes from a ``whsec_`` secret. Raises ValueError when malformed."""
    if not secret or not secret.startswith(SECRET_PREFIX):
        raise ValueError("Webhook secret must start with whsec_")
    try:
        key = base64.b64decode(secret[len(SECRET_PREFIX) :], validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError("Webhook secret is not valid base64") from e
    if not key:
        raise ValueError("Webhook secret is empty")
    return key


def compute_signature(key: bytes, msg_id: str, timestamp: str, body: bytes) -> str:
    signed = f"{msg_id}.{timestamp}.".encode() + body
    digest = hmac.new(key, signed, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def extract_v1_signatures(header: str) -> list[str]:
    signatures = []
    for chunk in header.split():
        version, _, sig = chunk.partition(",")
        if version.lower() == "v1" and sig.strip():
            signatures.append(sig.strip())
    return signatures


def _reject(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def verify_webhook(
    headers: Mapping[str, str],
    body: bytes,
    *,
    secret: Optional[str] = None,
    now: Optional[int] = None,
    tolerance_seconds: Optional[int] = None,
) -> None:
    """
    Authenticate a webhook request before anything is read from the database.

    Raises:
        HTTPException(400): missing headers, stale or future timestamp, or no
            matching signature.
        HTTPException(500): the webhook secret is missing or malformed.
    """
    settings = get_settings()
    if secret is None:
        secret = settings.YOCO_WEBHOOK_SECRET
    if tolerance_seconds is None:
        tolerance_seconds = settings.WEBHOOK_TOLERANCE_SECONDS
    if now is None:
        now = unix_now()

    msg_id = headers.get("webhook-id")
    timestamp = headers.get("webhook-timestamp")
    signature_header = headers.get("webhook-signature")
    if not msg_id or not timestamp or not signature_header:
        logger.warning("Yoco webhook missing signature headers")
        raise _reject("Missing signature headers")

    try:
        sent_at = int(timestamp)
    except ValueError:
        raise _reject("Invalid webhook timestamp")
    if abs(now - sent_at) > tolerance_seconds:
        logger.warning("Yoco webhook outside tolerance (ts=%s now=%d)", timestamp, now)
        raise _reject("Request expired")

    try:
        key = decode_secret(secret)
    except ValueError:
        logger.error("Yoco webhook secret missing or invalid")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server misconfigured",
        )

    expected = compute_signature(key, msg_id, timestamp, body).encode()
    if not any(
        hmac.compare_digest(expected, candidate.encode())
        for candidate in extract_v1_signatures(signature_header)
    ):
        logger.warning("Yoco webhook signature mismatch (id=%s)", msg_id)
        raise _reject("Invalid signature")
