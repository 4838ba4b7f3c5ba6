"""Order creation (customer checkout and owner manual entry) and order reads."""

import uuid
from datetime import timedelta
from typing import Optional

from fastapi import HTTPException, status
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.store_service import notifications
from services.store_service.models import (
    FulfilmentType,
    Order,
    OrderItem,
    OrderSource,
    OrderStatus,
    PaymentMethod,
    Store,
)
from services.store_service.schemas import CheckoutRequest, ManualOrderRequest
from services.store_service.services.pricing import PricedOrder, price_line_items
from services.store_service.services.store_ops import get_owner_store, get_store_by_slug
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)
settings = get_settings()

WALK_IN_NAME = "Walk-in"
MAX_MANUAL_NAME_LENGTH = 120
MAX_MANUAL_PHONE_LENGTH = 20
MAX_NOTE_LENGTH = 500


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def load_order(db: AsyncSession, order_id: uuid.UUID) -> Optional[Order]:
    """Fetch an order with items and store eagerly loaded (fresh from the DB)."""
    result = await db.execute(
        select(Order)
        .where(Order.id == order_id)
        .options(selectinload(Order.items), selectinload(Order.store))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_order_by_tracking_token(db: AsyncSession, token: str) -> Order:
    result = await db.execute(
        select(Order)
        .where(Order.tracking_token == token)
        .options(selectinload(Order.items), selectinload(Order.store))
    )
    order = result.scalar_one_or_none()
    if order is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Order not found"
        )
    return order


async def list_store_orders(
    db: AsyncSession,
    *,
    owner_auth_id: str,
    status_filter: Optional[OrderStatus] = None,
    limit: int = 50,
    offset: int = 0,
) -> list[Order]:
    store = await get_owner_store(db, owner_auth_id)
    query = (
        select(Order)
        .where(Order.store_id == store.id)
        .options(selectinload(Order.items))
        .order_by(Order.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    if status_filter is not None:
        query = query.where(Order.status == status_filter)
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_latest_order(db: AsyncSession, *, owner_auth_id: str) -> Optional[Order]:
    """Newest order of the owner's store; polled by the dashboard."""
    store = await get_owner_store(db, owner_auth_id)
    result = await db.execute(
        select(Order)
        .where(Order.store_id == store.id)
        .order_by(Order.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


def _build_order(store: Store, priced: PricedOrder, **fields) -> Order:
    prep_minutes = store.avg_prep_time_minutes or settings.DEFAULT_PREP_TIME_MINUTES
    order = Order(
        store_id=store.id,
        status=OrderStatus.PENDING,
        total_cents=priced.total_cents,
        estimated_ready_at=utc_now() + timedelta(minutes=prep_minutes),
        platform_fee_paid=False,
        **fields,
    )
    order.items = [
        OrderItem(
            product_id=line.product_id,
            name=line.name,
            quantity=line.quantity,
            unit_cents=line.unit_cents,
            total_cents=line.total_cents,
        )
        for line in priced.lines
    ]
    return order


def _clean_text(value: Optional[str], max_length: int) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()[:max_length]
    return value or None


async def _find_by_idempotency_key(
    db: AsyncSession, store_id: uuid.UUID, key: str
) -> Optional[Order]:
    result = await db.execute(
        select(Order.id).where(
            Order.store_id == store_id, Order.idempotency_key == key
        )
    )
    order_id = result.scalar_one_or_none()
    if order_id is None:
        return None
    return await load_order(db, order_id)


async def create_customer_order(
    db: AsyncSession,
    *,
    payload: CheckoutRequest,
    customer: Optional[AuthUser] = None,
) -> Order:
    """Place a customer order against an open store.

    Replaying the same ``idempotency_key`` for the same store returns the
    order created the first time.
    """
    store = await get_store_by_slug(db, payload.store_slug)
    store_id = store.id

    idempotency_key = _clean_text(payload.idempotency_key, 255)
    if idempotency_key:
        existing = await _find_by_idempotency_key(db, store.id, idempotency_key)
        if existing is not None:
            logger.info(
                "Idempotent checkout replay key=%s -> order %s",
                idempotency_key,
                existing.id,
            )
            return existing

    if not store.is_open:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Store is closed"
        )

    customer_name = payload.customer_name.strip()
    if len(customer_name) < 2:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Name is required"
        )
    delivery_address = _clean_text(payload.delivery_address, MAX_NOTE_LENGTH)
    if payload.fulfilment_type == FulfilmentType.DELIVERY and not delivery_address:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Delivery address is required for delivery orders",
        )

    priced = await price_line_items(db, store_id=store.id, items=payload.items)

    order = _build_order(
        store,
        priced,
        customer_auth_id=customer.user_id if customer else None,
        customer_name=customer_name,
        customer_email=str(payload.customer_email),
        customer_phone=_clean_text(payload.customer_phone, 50),
        fulfilment_type=payload.fulfilment_type,
        payment_method=PaymentMethod.CASH_ON_DELIVERY,
        source=OrderSource.CUSTOMER,
        delivery_address=(
            delivery_address
            if payload.fulfilment_type == FulfilmentType.DELIVERY
            else None
        ),
        note=_clean_text(payload.note, MAX_NOTE_LENGTH),
        idempotency_key=idempotency_key,
    )
    db.add(order)
    try:
        await db.commit()
    except IntegrityError:
        # Concurrent replay of the same idempotency key won the insert
        await db.rollback()
        if idempotency_key:
            existing = await _find_by_idempotency_key(db, store_id, idempotency_key)
            if existing is not None:
                return existing
        raise

    order = await load_order(db, order.id)
    logger.info(
        "Created order %s for store %s (total=%d, items=%d)",
        order.id,
        store_id,
        order.total_cents,
        len(order.items),
    )

    try:
        await notifications.request_order_confirmation(order, order.store)
    except Exception:
        logger.exception("Order confirmation request failed for order %s", order.id)

    return order


async def create_manual_order(
    db: AsyncSession,
    *,
    owner_auth_id: str,
    payload: ManualOrderRequest,
) -> Order:
    """Record a walk-in or phone order for the owner's own store.

    Allowed while the store is closed. No confirmation is sent.
    """
    store = await get_owner_store(db, owner_auth_id)
    priced = await price_line_items(db, store_id=store.id, items=payload.items)

    customer_name = _clean_text(payload.customer_name, MAX_MANUAL_NAME_LENGTH)
    is_delivery = payload.fulfilment_type == FulfilmentType.DELIVERY

    order = _build_order(
        store,
        priced,
        customer_name=customer_name or WALK_IN_NAME,
        customer_phone=_clean_text(payload.customer_phone, MAX_MANUAL_PHONE_LENGTH),
        customer_email=(
            str(payload.customer_email) if payload.customer_email else None
        ),
        fulfilment_type=payload.fulfilment_type,
        payment_method=(
            PaymentMethod.CASH_ON_DELIVERY
            if is_delivery
            else PaymentMethod.CASH_ON_COLLECTION
        ),
        source=OrderSource.MANUAL,
        created_by_owner_auth_id=owner_auth_id,
        delivery_address=(
            _clean_text(payload.delivery_address, MAX_NOTE_LENGTH)
            if is_delivery
            else None
        ),
        note=_clean_text(payload.note, MAX_NOTE_LENGTH),
    )
    db.add(order)
    await db.commit()

    order = await load_order(db, order.id)
    logger.info(
        "Owner %s created manual order %s (total=%d)",
        owner_auth_id,
        order.id,
        order.total_cents,
    )
    return order
