"""Public store routes: customer checkout and order tracking."""

from typing import Optional

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import get_optional_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.store_service.routers._helpers import tracking_view
from services.store_service.schemas import (
    CheckoutRequest,
    OrderResponse,
    OrderTrackingResponse,
)
from services.store_service.services.order_service import (
    create_customer_order,
    get_order_by_tracking_token,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["store"])


@router.post(
    "/checkout", response_model=OrderResponse, status_code=status.HTTP_201_CREATED
)
async def checkout(
    request: CheckoutRequest,
    current_user: Optional[AuthUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Place an order. Guests may check out; a signed-in customer is linked."""
    return await create_customer_order(db, payload=request, customer=current_user)


@router.get("/track/{token}", response_model=OrderTrackingResponse)
async def track_order(
    token: str,
    db: AsyncSession = Depends(get_async_db),
):
    order = await get_order_by_tracking_token(db, token)
    return tracking_view(order)
