"""Owner store routes: open/close toggle, billing summary, ledger and top-ups."""

from fastapi import APIRouter, Depends, Query
from libs.auth.dependencies import require_store_owner
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.db.session import get_async_db
from services.store_service.schemas import (
    BillingSummaryResponse,
    LedgerEntryResponse,
    StoreToggleResponse,
    TopupRequest,
    TopupResponse,
)
from services.store_service.services.ledger_ops import (
    get_required_topup_cents,
    list_ledger_entries,
)
from services.store_service.services.store_ops import get_owner_store, toggle_store_open
from services.store_service.services.topup_service import initiate_topup
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["owner-billing"])
settings = get_settings()


@router.post("/toggle", response_model=StoreToggleResponse)
async def toggle_store(
    current_user: AuthUser = Depends(require_store_owner),
    db: AsyncSession = Depends(get_async_db),
):
    """Open or close the store. Opening needs a non-negative balance."""
    store = await toggle_store_open(db, owner_auth_id=current_user.user_id)
    return StoreToggleResponse(is_open=store.is_open, balance_cents=store.credit_cents)


@router.get("/billing", response_model=BillingSummaryResponse)
async def billing_summary(
    current_user: AuthUser = Depends(require_store_owner),
    db: AsyncSession = Depends(get_async_db),
):
    store = await get_owner_store(db, current_user.user_id)
    return BillingSummaryResponse(
        store_id=store.id,
        is_open=store.is_open,
        balance_cents=store.credit_cents,
        required_topup_cents=get_required_topup_cents(store.credit_cents),
        min_topup_cents=settings.MIN_TOPUP_CENTS,
        currency=settings.CURRENCY,
    )


@router.get("/billing/ledger", response_model=list[LedgerEntryResponse])
async def billing_ledger(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: AuthUser = Depends(require_store_owner),
    db: AsyncSession = Depends(get_async_db),
):
    """Ledger entries for the owner's store, newest first."""
    store = await get_owner_store(db, current_user.user_id)
    return await list_ledger_entries(db, store_id=store.id, limit=limit, offset=offset)


@router.post("/billing/topup", response_model=TopupResponse)
async def start_topup(
    request: TopupRequest,
    current_user: AuthUser = Depends(require_store_owner),
    db: AsyncSession = Depends(get_async_db),
):
    """Create a Yoco checkout for a credit top-up and return its redirect URL."""
    session = await initiate_topup(
        db, owner_auth_id=current_user.user_id, amount_cents=request.amount_cents
    )
    return TopupResponse(topup_id=session.topup_id, redirect_url=session.redirect_url)
