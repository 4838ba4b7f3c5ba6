"""Store credit ledger.

Every change to ``Store.credit_cents`` is recorded as a ledger entry. The
``balance_cents`` column is the store balance immediately after the entry
was applied.
"""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.store_service.models.enums import (
    LedgerStatus,
    LedgerType,
    PaymentProvider,
    enum_values,
)
from sqlalchemy import CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship


class LedgerEntry(Base):
    __tablename__ = "store_ledger_entries"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    store_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("stores.id", ondelete="CASCADE"), index=True, nullable=False
    )
    order_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("store_orders.id", ondelete="SET NULL"),
        index=True,
        nullable=True,
    )

    type: Mapped[LedgerType] = mapped_column(
        SAEnum(
            LedgerType,
            values_callable=enum_values,
            name="store_ledger_type_enum",
        ),
        nullable=False,
    )
    status: Mapped[LedgerStatus] = mapped_column(
        SAEnum(
            LedgerStatus,
            values_callable=enum_values,
            name="store_ledger_status_enum",
        ),
        default=LedgerStatus.PENDING,
        server_default="PENDING",
        nullable=False,
    )

    # Always positive; direction comes from the entry type
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    # Store balance after this entry (set when COMPLETED)
    balance_cents: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Payment gateway reference (top-ups)
    provider: Mapped[Optional[PaymentProvider]] = mapped_column(
        SAEnum(
            PaymentProvider,
            values_callable=enum_values,
            name="store_payment_provider_enum",
        ),
        nullable=True,
    )
    provider_payment_id: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True
    )
    checkout_id: Mapped[Optional[str]] = mapped_column(
        String(255), index=True, nullable=True
    )

    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        CheckConstraint("amount_cents > 0", name="ledger_amount_positive"),
    )

    store = relationship("Store")
    order = relationship("Order")

    def __repr__(self):
        return (
            f"<LedgerEntry {self.type.value} {self.status.value} "
            f"{self.amount_cents}c>"
        )
