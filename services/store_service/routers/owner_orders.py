"""Owner order routes: manual orders, listing and lifecycle actions."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from libs.auth.dependencies import require_store_owner
from libs.auth.models import AuthUser
from libs.common.rate_limit import code_confirm_limit
from libs.db.session import get_async_db
from services.store_service.models import OrderStatus
from services.store_service.schemas import (
    ConfirmCodeRequest,
    ConfirmCodeResponse,
    ManualOrderRequest,
    MarkReadyRequest,
    OrderHeartbeatResponse,
    OrderResponse,
    OrderStatusUpdate,
)
from services.store_service.services.lifecycle import (
    confirm_order_with_code,
    mark_order_ready,
    set_order_status,
)
from services.store_service.services.order_service import (
    create_manual_order,
    get_latest_order,
    list_store_orders,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/orders", tags=["owner-orders"])


@router.post(
    "/manual", response_model=OrderResponse, status_code=status.HTTP_201_CREATED
)
async def add_manual_order(
    request: ManualOrderRequest,
    current_user: AuthUser = Depends(require_store_owner),
    db: AsyncSession = Depends(get_async_db),
):
    """Record a walk-in or phone order."""
    return await create_manual_order(
        db, owner_auth_id=current_user.user_id, payload=request
    )


@router.get("", response_model=list[OrderResponse])
async def list_orders(
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: AuthUser = Depends(require_store_owner),
    db: AsyncSession = Depends(get_async_db),
):
    """List the store's orders, newest first."""
    return await list_store_orders(
        db,
        owner_auth_id=current_user.user_id,
        status_filter=status_filter,
        limit=limit,
        offset=offset,
    )


@router.get("/heartbeat", response_model=OrderHeartbeatResponse)
async def orders_heartbeat(
    current_user: AuthUser = Depends(require_store_owner),
    db: AsyncSession = Depends(get_async_db),
):
    """Latest order id and time, polled by the dashboard to spot new orders."""
    latest = await get_latest_order(db, owner_auth_id=current_user.user_id)
    if latest is None:
        return OrderHeartbeatResponse()
    return OrderHeartbeatResponse(
        latest_order_id=latest.id, latest_order_created_at=latest.created_at
    )


@router.post("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: uuid.UUID,
    request: OrderStatusUpdate,
    current_user: AuthUser = Depends(require_store_owner),
    db: AsyncSession = Depends(get_async_db),
):
    return await set_order_status(
        db,
        owner_auth_id=current_user.user_id,
        order_id=order_id,
        target=request.status,
    )


@router.post("/{order_id}/ready", response_model=OrderResponse)
async def mark_ready(
    order_id: uuid.UUID,
    request: MarkReadyRequest,
    current_user: AuthUser = Depends(require_store_owner),
    db: AsyncSession = Depends(get_async_db),
):
    return await mark_order_ready(
        db,
        owner_auth_id=current_user.user_id,
        order_id=order_id,
        mode=request.mode,
    )


@router.post("/{order_id}/confirm", response_model=ConfirmCodeResponse)
@code_confirm_limit
async def confirm_with_code(
    request: Request,
    order_id: uuid.UUID,
    body: ConfirmCodeRequest,
    current_user: AuthUser = Depends(require_store_owner),
    db: AsyncSession = Depends(get_async_db),
):
    """Complete a ready order with the customer's pickup code.

    A wrong code, wrong state or foreign order answers ``confirmed: false``.
    """
    confirmed = await confirm_order_with_code(
        db,
        owner_auth_id=current_user.user_id,
        order_id=order_id,
        code=body.code,
    )
    return ConfirmCodeResponse(confirmed=confirmed)
