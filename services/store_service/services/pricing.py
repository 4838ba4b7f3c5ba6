"""Pricing and snapshot engine.

Resolves cart lines against the live catalogue and produces the priced
snapshot that order creation persists as ``OrderItem`` rows.
"""

import uuid
from dataclasses import dataclass, field
from typing import Iterable

from fastapi import HTTPException, status
from libs.common.config import get_settings
from services.store_service.errors import InvalidLineItem
from services.store_service.models import Product
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

settings = get_settings()


@dataclass(frozen=True)
class PricedLine:
    product_id: uuid.UUID
    name: str
    quantity: int
    unit_cents: int
    total_cents: int


@dataclass
class PricedOrder:
    lines: list[PricedLine] = field(default_factory=list)
    total_cents: int = 0


def clamp_quantity(quantity) -> int:
    """Coerce a requested quantity into the allowed per-line range."""
    try:
        qty = int(quantity)
    except (TypeError, ValueError):
        qty = settings.MIN_ITEM_QUANTITY
    return max(settings.MIN_ITEM_QUANTITY, min(settings.MAX_ITEM_QUANTITY, qty))


async def price_line_items(
    db: AsyncSession,
    *,
    store_id: uuid.UUID,
    items: Iterable,
) -> PricedOrder:
    """Price cart lines for a store.

    Each item needs ``product_id`` and ``quantity`` (attributes or mapping
    keys). Every product must belong to the store and be available;
    otherwise nothing is priced and ``InvalidLineItem`` is raised.
    """
    requested = [_read_line(item) for item in items]
    if not requested:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Cart is empty"
        )
    if len(requested) > settings.MAX_ITEMS_PER_ORDER:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Too many items in order (max {settings.MAX_ITEMS_PER_ORDER})",
        )

    product_ids = {product_id for product_id, _ in requested}
    result = await db.execute(
        select(Product).where(
            Product.id.in_(product_ids),
            Product.store_id == store_id,
        )
    )
    products = {product.id: product for product in result.scalars().all()}

    priced = PricedOrder()
    for product_id, quantity in requested:
        product = products.get(product_id)
        if product is None:
            raise InvalidLineItem(f"Product {product_id} not found in store")
        if not product.is_available:
            raise InvalidLineItem(f"Product {product_id} is not available")

        qty = clamp_quantity(quantity)
        line_total = product.price_cents * qty
        priced.lines.append(
            PricedLine(
                product_id=product.id,
                name=product.name,
                quantity=qty,
                unit_cents=product.price_cents,
                total_cents=line_total,
            )
        )
        priced.total_cents += line_total

    return priced


def _read_line(item) -> tuple[uuid.UUID, object]:
    if isinstance(item, dict):
        product_id, quantity = item.get("product_id"), item.get("quantity", 1)
    else:
        product_id, quantity = item.product_id, getattr(item, "quantity", 1)
    if product_id is None:
        raise InvalidLineItem("Cart line is missing a product")
    if not isinstance(product_id, uuid.UUID):
        try:
            product_id = uuid.UUID(str(product_id))
        except ValueError:
            raise InvalidLineItem(f"Product {product_id} not found in store")
    return product_id, quantity
