"""Store credit top-ups: Yoco checkout initiation and webhook reconciliation."""

import uuid
from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException, status
from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.store_service import yoco_client
from services.store_service.errors import CheckoutSessionError, TopupAmountTooLow
from services.store_service.models import (
    LedgerEntry,
    LedgerStatus,
    LedgerType,
    PaymentProvider,
)
from services.store_service.services.ledger_ops import (
    get_required_topup_cents,
    lock_store,
)
from services.store_service.services.store_ops import get_owner_store
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
settings = get_settings()

TOPUP_NOTE = "Store topup via Yoco"
STORE_MISSING_NOTE = "Store not found while applying topup."

EVENT_SUCCEEDED = "payment.succeeded"
FAILURE_EVENTS = frozenset({"payment.failed", "payment.canceled"})


@dataclass
class TopupSession:
    topup_id: uuid.UUID
    redirect_url: str


# ---------------------------------------------------------------------------
# Initiation
# ---------------------------------------------------------------------------


async def initiate_topup(
    db: AsyncSession,
    *,
    owner_auth_id: str,
    amount_cents: int,
) -> TopupSession:
    """Start a top-up for the owner's store.

    1. Validate amount against the required minimum
    2. Create PENDING TOPUP ledger entry
    3. Create Yoco checkout (external id = entry id)
    4. Stamp checkout id on the entry and return the redirect URL

    A gateway failure marks the entry FAILED and raises a generic 502.
    """
    store = await get_owner_store(db, owner_auth_id)
    store_id = store.id

    required = get_required_topup_cents(store.credit_cents)
    if (
        isinstance(amount_cents, bool)
        or not isinstance(amount_cents, int)
        or amount_cents <= 0
        or amount_cents < required
    ):
        raise TopupAmountTooLow(required)

    entry = LedgerEntry(
        store_id=store_id,
        type=LedgerType.TOPUP,
        status=LedgerStatus.PENDING,
        amount_cents=amount_cents,
        note=TOPUP_NOTE,
    )
    db.add(entry)
    await db.commit()
    topup_id = entry.id

    base_url = settings.BASE_URL.rstrip("/")
    try:
        client = yoco_client.get_yoco_client()
        session = await client.create_checkout(
            amount_cents=amount_cents,
            currency=settings.CURRENCY,
            success_url=f"{base_url}/owner/store/orders?topupId={topup_id}",
            cancel_url=f"{base_url}/owner/store/billing/topup?topupId={topup_id}",
            external_id=str(topup_id),
            metadata={
                "topupId": str(topup_id),
                "storeId": str(store_id),
                "ownerId": owner_auth_id,
                "type": "store_topup",
            },
        )
    except Exception as e:
        logger.error(
            "Yoco checkout failed for topup %s: %s (status=%s)",
            topup_id,
            type(e).__name__,
            getattr(e, "status_code", None),
        )
        entry.status = LedgerStatus.FAILED
        entry.note = f"{TOPUP_NOTE} - checkout creation failed"
        await db.commit()
        raise CheckoutSessionError(str(topup_id))

    entry.checkout_id = session.checkout_id
    entry.provider = PaymentProvider.YOCO
    await db.commit()

    logger.info(
        "Initiated topup %s: %d cents for store %s (checkout %s)",
        topup_id,
        amount_cents,
        store_id,
        session.checkout_id,
    )
    return TopupSession(topup_id=topup_id, redirect_url=session.redirect_url)


# ---------------------------------------------------------------------------
# Webhook reconciliation
# ---------------------------------------------------------------------------


def _parse_uuid(value) -> Optional[uuid.UUID]:
    if not value:
        return None
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


async def _find_topup_entry(
    db: AsyncSession,
    *,
    topup_id: Optional[str],
    checkout_id: Optional[str],
) -> Optional[LedgerEntry]:
    """Metadata topup id first, then checkout id. Row is locked."""
    entry_id = _parse_uuid(topup_id)
    if entry_id is not None:
        result = await db.execute(
            select(LedgerEntry)
            .where(LedgerEntry.id == entry_id, LedgerEntry.type == LedgerType.TOPUP)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        entry = result.scalar_one_or_none()
        if entry is not None:
            return entry

    if checkout_id:
        result = await db.execute(
            select(LedgerEntry)
            .where(
                LedgerEntry.checkout_id == checkout_id,
                LedgerEntry.type == LedgerType.TOPUP,
            )
            .order_by(LedgerEntry.created_at.desc())
            .limit(1)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()
    return None


def extract_identifiers(event: dict) -> tuple[str, Optional[str], Optional[str]]:
    """Return ``(event_type, checkout_id, topup_id)`` from a webhook body."""
    if not isinstance(event, dict):
        return "", None, None
    payload = event.get("payload")
    if not isinstance(payload, dict):
        payload = {}
    metadata = payload.get("metadata")
    if not isinstance(metadata, dict):
        metadata = {}
    checkout_id = payload.get("id")
    topup_id = metadata.get("topupId")
    return (
        str(event.get("type") or ""),
        str(checkout_id) if checkout_id else None,
        str(topup_id) if topup_id else None,
    )


async def reconcile_topup_event(db: AsyncSession, event: dict) -> Optional[LedgerEntry]:
    """Apply a verified Yoco event to its TOPUP entry.

    Returns the entry when one was found, ``None`` otherwise. A COMPLETED
    entry is never touched again, so replays are harmless. Raises 400 when
    the event carries neither a checkout id nor a topup id.
    """
    event_type, checkout_id, topup_id = extract_identifiers(event)
    if not checkout_id and not topup_id:
        logger.warning("Yoco webhook %s without identifiers", event_type or "?")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Missing identifiers"
        )

    entry = await _find_topup_entry(db, topup_id=topup_id, checkout_id=checkout_id)
    if entry is None:
        await db.commit()
        logger.warning(
            "Topup entry not found (event=%s topup=%s checkout=%s)",
            event_type,
            topup_id,
            checkout_id,
        )
        return None

    if entry.status == LedgerStatus.COMPLETED:
        await db.commit()
        logger.info("Topup %s already completed, skipping %s", entry.id, event_type)
        return entry

    if event_type == EVENT_SUCCEEDED:
        await _complete_topup(db, entry, checkout_id)
    elif event_type in FAILURE_EVENTS:
        await _fail_topup(db, entry, checkout_id)
    else:
        await db.commit()
        logger.info("Ignored Yoco event %s for topup %s", event_type, entry.id)
    return entry


async def _complete_topup(
    db: AsyncSession, entry: LedgerEntry, checkout_id: Optional[str]
) -> None:
    # A FAILED entry is still credited: the provider says the money arrived
    store = await lock_store(db, entry.store_id)
    now = utc_now()
    if store is None:
        entry.status = LedgerStatus.FAILED
        entry.note = STORE_MISSING_NOTE
        await db.commit()
        logger.error("Store %s missing for topup %s", entry.store_id, entry.id)
        return

    new_balance = store.credit_cents + entry.amount_cents
    store.credit_cents = new_balance
    store.updated_at = now

    entry.status = LedgerStatus.COMPLETED
    entry.balance_cents = new_balance
    entry.provider = PaymentProvider.YOCO
    entry.checkout_id = entry.checkout_id or checkout_id
    entry.provider_payment_id = checkout_id
    entry.completed_at = now
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "Topup %s completed: +%d cents to store %s (balance=%d)",
        entry.id,
        entry.amount_cents,
        store.id,
        new_balance,
    )


async def _fail_topup(
    db: AsyncSession, entry: LedgerEntry, checkout_id: Optional[str]
) -> None:
    if entry.status == LedgerStatus.PENDING:
        entry.status = LedgerStatus.FAILED
        entry.provider = PaymentProvider.YOCO
        entry.checkout_id = entry.checkout_id or checkout_id
        logger.info("Topup %s marked failed", entry.id)
    await db.commit()
