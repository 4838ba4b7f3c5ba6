"""Store commerce models: orders and their immutable line snapshots."""

import secrets
import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.store_service.models.enums import (
    FulfilmentType,
    OrderSource,
    OrderStatus,
    PaymentMethod,
    enum_values,
)
from sqlalchemy import Boolean, CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship


def generate_pickup_code() -> str:
    """Random six-digit numeric code (100000-999999)."""
    return str(100000 + secrets.randbelow(900000))


def generate_tracking_token() -> str:
    return secrets.token_urlsafe(16)


# ============================================================================
# ORDER MODELS
# ============================================================================


class Order(Base):
    """Customer or walk-in order placed against a store."""

    __tablename__ = "store_orders"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    store_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("stores.id", ondelete="CASCADE"), index=True, nullable=False
    )

    # Customer (snapshot at time of order)
    customer_auth_id: Mapped[Optional[str]] = mapped_column(
        String(255), index=True, nullable=True
    )
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    customer_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    fulfilment_type: Mapped[FulfilmentType] = mapped_column(
        SAEnum(
            FulfilmentType,
            values_callable=enum_values,
            name="store_fulfilment_type_enum",
        ),
        nullable=False,
    )
    payment_method: Mapped[PaymentMethod] = mapped_column(
        SAEnum(
            PaymentMethod,
            values_callable=enum_values,
            name="store_payment_method_enum",
        ),
        nullable=False,
    )
    status: Mapped[OrderStatus] = mapped_column(
        SAEnum(
            OrderStatus,
            values_callable=enum_values,
            name="store_order_status_enum",
        ),
        default=OrderStatus.PENDING,
        server_default="PENDING",
        index=True,
    )
    source: Mapped[OrderSource] = mapped_column(
        SAEnum(
            OrderSource,
            values_callable=enum_values,
            name="store_order_source_enum",
        ),
        default=OrderSource.CUSTOMER,
        server_default="CUSTOMER",
    )
    created_by_owner_auth_id: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True
    )

    total_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    delivery_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    pickup_code: Mapped[str] = mapped_column(
        String(6), default=generate_pickup_code, nullable=False
    )
    tracking_token: Mapped[str] = mapped_column(
        String(64), unique=True, default=generate_tracking_token, nullable=False
    )
    estimated_ready_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    idempotency_key: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Platform fee (charged once on completion)
    platform_fee_cents: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    platform_fee_paid: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        UniqueConstraint(
            "store_id", "idempotency_key", name="uq_store_orders_idempotency"
        ),
        CheckConstraint("total_cents >= 0", name="order_total_non_negative"),
    )

    # Relationships
    store = relationship("Store")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.created_at",
    )

    @property
    def short_ref(self) -> str:
        """Human reference used in notes and messages: last 6 chars of the id."""
        return str(self.id)[-6:].upper()

    def __repr__(self):
        return f"<Order {self.short_ref} {self.status.value}>"


class OrderItem(Base):
    """Priced line snapshot. Written once at order creation."""

    __tablename__ = "store_order_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("store_orders.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    # Product may be removed later; the snapshot keeps name and price
    product_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("store_products.id", ondelete="SET NULL"), nullable=True
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    total_cents: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    __table_args__ = (
        CheckConstraint("quantity > 0", name="order_item_quantity_positive"),
    )

    order = relationship("Order", back_populates="items")

    def __repr__(self):
        return f"<OrderItem {self.name} x{self.quantity}>"
