"""Store credit ledger: atomic entry application with row-level locking."""

import uuid
from dataclasses import dataclass
from typing import Iterable, Optional

from fastapi import HTTPException, status
from libs.common.config import get_settings
from libs.common.datetime_utils import ensure_utc, utc_now
from libs.common.logging import get_logger
from services.store_service.models import LedgerEntry, LedgerStatus, LedgerType, Store
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
settings = get_settings()

# ---------------------------------------------------------------------------
# Sign rules
# ---------------------------------------------------------------------------

_CREDIT_TYPES = frozenset({LedgerType.TOPUP, LedgerType.REFUND})
_DEBIT_TYPES = frozenset({LedgerType.FEE_DEBIT, LedgerType.PAYOUT})


def ledger_delta(entry_type: LedgerType, amount_cents: int) -> int:
    """Effect of a completed entry on ``Store.credit_cents``.

    ADJUSTMENT has no implicit direction and must go through a dedicated
    signed helper, so it is rejected here.
    """
    if entry_type in _CREDIT_TYPES:
        return amount_cents
    if entry_type in _DEBIT_TYPES:
        return -amount_cents
    if entry_type == LedgerType.FEE_RESERVE:
        return 0
    if entry_type == LedgerType.ADJUSTMENT:
        raise ValueError("ADJUSTMENT entries need an explicit signed helper")
    raise ValueError(f"Unsupported ledger type: {entry_type}")


def get_required_topup_cents(balance_cents: int) -> int:
    """Minimum top-up that clears any debt and leaves the minimum credit."""
    return max(0, -balance_cents) + settings.MIN_TOPUP_CENTS


# ---------------------------------------------------------------------------
# Locked application
# ---------------------------------------------------------------------------


async def lock_store(db: AsyncSession, store_id: uuid.UUID) -> Optional[Store]:
    """SELECT ... FOR UPDATE on the store row, refreshing any cached copy."""
    result = await db.execute(
        select(Store)
        .where(Store.id == store_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


def append_completed_entry(
    db: AsyncSession,
    store: Store,
    *,
    entry_type: LedgerType,
    amount_cents: int,
    order_id: Optional[uuid.UUID] = None,
    note: Optional[str] = None,
) -> LedgerEntry:
    """Add a COMPLETED entry and move the store balance.

    ``store`` must already be locked by the caller's transaction. Nothing is
    committed here.
    """
    new_balance = store.credit_cents + ledger_delta(entry_type, amount_cents)
    now = utc_now()
    entry = LedgerEntry(
        store_id=store.id,
        type=entry_type,
        status=LedgerStatus.COMPLETED,
        order_id=order_id,
        amount_cents=amount_cents,
        balance_cents=new_balance,
        note=note,
        completed_at=now,
    )
    db.add(entry)
    store.credit_cents = new_balance
    store.updated_at = now
    return entry


def _validate_amount(amount_cents) -> None:
    if (
        isinstance(amount_cents, bool)
        or not isinstance(amount_cents, int)
        or amount_cents <= 0
    ):
        raise ValueError("amount_cents must be a positive integer")


async def apply_ledger_entry(
    db: AsyncSession,
    *,
    store_id: uuid.UUID,
    entry_type: LedgerType,
    amount_cents: int,
    order_id: Optional[uuid.UUID] = None,
    note: Optional[str] = None,
) -> LedgerEntry:
    """Apply one ledger entry and update the store balance atomically.

    1. Validate amount and sign rule
    2. SELECT FOR UPDATE on the store row
    3. Insert COMPLETED entry with the post-application balance
    4. Write ``Store.credit_cents``
    5. Commit

    Negative balances are allowed.
    """
    if store_id is None:
        raise ValueError("store_id is required for a ledger entry")
    _validate_amount(amount_cents)
    ledger_delta(entry_type, amount_cents)

    store = await lock_store(db, store_id)
    if store is None:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Store not found"
        )

    try:
        entry = append_completed_entry(
            db,
            store,
            entry_type=entry_type,
            amount_cents=amount_cents,
            order_id=order_id,
            note=note,
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    await db.refresh(entry)

    logger.info(
        "Applied %s of %d to store %s (balance=%d)",
        entry_type.value,
        amount_cents,
        store_id,
        entry.balance_cents,
    )
    return entry


# ---------------------------------------------------------------------------
# Reads and audit
# ---------------------------------------------------------------------------


async def list_ledger_entries(
    db: AsyncSession,
    *,
    store_id: uuid.UUID,
    limit: int = 50,
    offset: int = 0,
) -> list[LedgerEntry]:
    result = await db.execute(
        select(LedgerEntry)
        .where(LedgerEntry.store_id == store_id)
        .order_by(LedgerEntry.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())


def _applied_at(entry: LedgerEntry):
    return ensure_utc(entry.completed_at or entry.created_at)


def replay_ledger(entries: Iterable[LedgerEntry]) -> list[tuple[LedgerEntry, int]]:
    """Completed entries in the order they moved the balance, with the
    running balance after each one, starting from zero.

    A top-up moves the balance when it completes, not when it is initiated.
    """
    balance = 0
    replayed = []
    completed = [e for e in entries if e.status == LedgerStatus.COMPLETED]
    for entry in sorted(completed, key=_applied_at):
        balance += ledger_delta(entry.type, entry.amount_cents)
        replayed.append((entry, balance))
    return replayed


def fold_ledger_balance(entries: Iterable[LedgerEntry]) -> int:
    replayed = replay_ledger(entries)
    return replayed[-1][1] if replayed else 0


@dataclass(frozen=True)
class BalanceAudit:
    store_id: uuid.UUID
    store_balance_cents: int
    ledger_balance_cents: int
    snapshot_mismatches: tuple[uuid.UUID, ...] = ()

    @property
    def matches(self) -> bool:
        return self.store_balance_cents == self.ledger_balance_cents


async def audit_store_balance(db: AsyncSession, store_id: uuid.UUID) -> BalanceAudit:
    """Compare the stored balance against a fold of the ledger."""
    store = await db.get(Store, store_id)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Store not found"
        )
    result = await db.execute(
        select(LedgerEntry).where(
            LedgerEntry.store_id == store_id,
            LedgerEntry.status == LedgerStatus.COMPLETED,
        )
    )
    replayed = replay_ledger(result.scalars().all())
    audit = BalanceAudit(
        store_id=store_id,
        store_balance_cents=store.credit_cents,
        ledger_balance_cents=replayed[-1][1] if replayed else 0,
        snapshot_mismatches=tuple(
            entry.id
            for entry, running in replayed
            if entry.balance_cents is not None and entry.balance_cents != running
        ),
    )
    if not audit.matches:
        logger.warning(
            "Ledger drift for store %s: stored=%d folded=%d",
            store_id,
            audit.store_balance_cents,
            audit.ledger_balance_cents,
        )
    if audit.snapshot_mismatches:
        logger.warning(
            "Ledger snapshots out of step for store %s: %d entries",
            store_id,
            len(audit.snapshot_mismatches),
        )
    return audit
