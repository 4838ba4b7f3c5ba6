"""Pydantic schemas for store service."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from services.store_service.models import (
    FulfilmentType,
    LedgerStatus,
    LedgerType,
    OrderSource,
    OrderStatus,
    PaymentMethod,
    PaymentProvider,
)

# ============================================================================
# CART / CHECKOUT SCHEMAS
# ============================================================================


class CartLine(BaseModel):
    product_id: uuid.UUID
    # Out-of-range quantities are clamped by the pricing engine
    quantity: int = 1


class CheckoutRequest(BaseModel):
    store_slug: str = Field(..., max_length=255)
    customer_name: str = Field(..., min_length=2, max_length=255)
    customer_email: EmailStr
    customer_phone: Optional[str] = Field(None, max_length=50)
    fulfilment_type: FulfilmentType = FulfilmentType.COLLECTION
    delivery_address: Optional[str] = Field(None, max_length=500)
    note: Optional[str] = Field(None, max_length=500)
    items: list[CartLine]
    idempotency_key: Optional[str] = Field(None, max_length=255)


class ManualOrderRequest(BaseModel):
    """Walk-in or phone order captured by the owner. Text is trimmed server-side."""

    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[EmailStr] = None
    fulfilment_type: FulfilmentType = FulfilmentType.COLLECTION
    delivery_address: Optional[str] = None
    note: Optional[str] = None
    items: list[CartLine]


# ============================================================================
# ORDER SCHEMAS
# ============================================================================


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: Optional[uuid.UUID] = None
    name: str
    quantity: int
    unit_cents: int
    total_cents: int


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    store_id: uuid.UUID
    customer_name: str
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    fulfilment_type: FulfilmentType
    payment_method: PaymentMethod
    status: OrderStatus
    source: OrderSource
    total_cents: int
    delivery_address: Optional[str] = None
    note: Optional[str] = None
    pickup_code: str
    tracking_token: str
    estimated_ready_at: Optional[datetime] = None
    platform_fee_cents: Optional[int] = None
    platform_fee_paid: bool
    created_at: datetime
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    items: list[OrderItemResponse] = []


class OrderTrackingResponse(BaseModel):
    """Public view of an order, looked up by tracking token."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    store_name: str
    status: OrderStatus
    fulfilment_type: FulfilmentType
    total_cents: int
    pickup_code: str
    estimated_ready_at: Optional[datetime] = None
    created_at: datetime
    items: list[OrderItemResponse] = []


class OrderHeartbeatResponse(BaseModel):
    latest_order_id: Optional[uuid.UUID] = None
    latest_order_created_at: Optional[datetime] = None


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class MarkReadyRequest(BaseModel):
    mode: FulfilmentType


class ConfirmCodeRequest(BaseModel):
    code: str = Field(..., max_length=32)


class ConfirmCodeResponse(BaseModel):
    confirmed: bool


# ============================================================================
# STORE / BILLING SCHEMAS
# ============================================================================


class StoreToggleResponse(BaseModel):
    is_open: bool
    balance_cents: int


class BillingSummaryResponse(BaseModel):
    store_id: uuid.UUID
    is_open: bool
    balance_cents: int
    required_topup_cents: int
    min_topup_cents: int
    currency: str


class LedgerEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    type: LedgerType
    status: LedgerStatus
    order_id: Optional[uuid.UUID] = None
    amount_cents: int
    balance_cents: Optional[int] = None
    provider: Optional[PaymentProvider] = None
    checkout_id: Optional[str] = None
    note: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None


class TopupRequest(BaseModel):
    amount_cents: int


class TopupResponse(BaseModel):
    topup_id: uuid.UUID
    redirect_url: str
