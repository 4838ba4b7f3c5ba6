"""Shared helper functions for store routers."""

from services.store_service.models import Order
from services.store_service.schemas import OrderItemResponse, OrderTrackingResponse


def tracking_view(order: Order) -> OrderTrackingResponse:
    """Public projection of an order. Store and items must be loaded."""
    return OrderTrackingResponse(
        id=order.id,
        store_name=order.store.name,
        status=order.status,
        fulfilment_type=order.fulfilment_type,
        total_cents=order.total_cents,
        pickup_code=order.pickup_code,
        estimated_ready_at=order.estimated_ready_at,
        created_at=order.created_at,
        items=[OrderItemResponse.model_validate(item) for item in order.items],
    )
