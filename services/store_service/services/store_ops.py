"""Store lookups and the owner open/close toggle."""

from fastapi import HTTPException, status
from libs.common.logging import get_logger
from services.store_service.errors import Unauthorized
from services.store_service.models import Store
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def get_owner_store(db: AsyncSession, owner_auth_id: str) -> Store:
    """Resolve the store owned by a principal. Raises ``Unauthorized`` if none."""
    result = await db.execute(select(Store).where(Store.owner_auth_id == owner_auth_id))
    store = result.scalar_one_or_none()
    if store is None:
        raise Unauthorized("No store for this user")
    return store


async def get_store_by_slug(db: AsyncSession, slug: str) -> Store:
    result = await db.execute(select(Store).where(Store.slug == slug))
    store = result.scalar_one_or_none()
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Store not found"
        )
    return store


async def toggle_store_open(db: AsyncSession, *, owner_auth_id: str) -> Store:
    """Open a closed store or close an open one.

    Opening is refused while the credit balance is negative; closing is
    always allowed.
    """
    store = await get_owner_store(db, owner_auth_id)
    result = await db.execute(
        select(Store)
        .where(Store.id == store.id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    store = result.scalar_one()

    if not store.is_open and store.credit_cents < 0:
        balance_cents = store.credit_cents
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": (
                    "Your store balance is negative. Please top up your credit "
                    "before opening the store."
                ),
                "balance_cents": balance_cents,
            },
        )

    store.is_open = not store.is_open
    await db.commit()
    await db.refresh(store)

    logger.info(
        "Store %s is now %s", store.id, "open" if store.is_open else "closed"
    )
    return store
