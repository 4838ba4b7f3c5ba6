"""create_store_tables

Revision ID: 5c1e9a2b7d40
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "5c1e9a2b7d40"
down_revision = None
branch_labels = None
depends_on = None


fulfilment_type_enum = sa.Enum(
    "COLLECTION", "DELIVERY", name="store_fulfilment_type_enum"
)
payment_method_enum = sa.Enum(
    "CASH_ON_DELIVERY", "CASH_ON_COLLECTION", name="store_payment_method_enum"
)
order_status_enum = sa.Enum(
    "PENDING",
    "ACCEPTED",
    "IN_PREPARATION",
    "READY_FOR_COLLECTION",
    "OUT_FOR_DELIVERY",
    "COMPLETED",
    "CANCELLED",
    name="store_order_status_enum",
)
order_source_enum = sa.Enum("CUSTOMER", "MANUAL", name="store_order_source_enum")
ledger_type_enum = sa.Enum(
    "TOPUP",
    "REFUND",
    "FEE_DEBIT",
    "FEE_RESERVE",
    "PAYOUT",
    "ADJUSTMENT",
    name="store_ledger_type_enum",
)
ledger_status_enum = sa.Enum(
    "PENDING", "COMPLETED", "FAILED", name="store_ledger_status_enum"
)
payment_provider_enum = sa.Enum("YOCO", name="store_payment_provider_enum")


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "stores",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("owner_auth_id", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("address", sa.String(length=500), nullable=True),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("area", sa.String(length=100), nullable=True),
        sa.Column("contact_email", sa.String(length=255), nullable=True),
        sa.Column("contact_phone", sa.String(length=50), nullable=True),
        sa.Column(
            "avg_prep_time_minutes", sa.Integer(), server_default="25", nullable=False
        ),
        sa.Column("is_open", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("credit_cents", sa.Integer(), server_default="0", nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )
    op.create_index(
        op.f("ix_stores_owner_auth_id"), "stores", ["owner_auth_id"], unique=True
    )

    op.create_table(
        "store_products",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("store_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price_cents", sa.Integer(), nullable=False),
        sa.Column("is_available", sa.Boolean(), server_default="true", nullable=False),
        *_timestamps(),
        sa.CheckConstraint("price_cents >= 0", name="product_price_non_negative"),
        sa.ForeignKeyConstraint(["store_id"], ["stores.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_store_products_store_id"), "store_products", ["store_id"]
    )

    op.create_table(
        "store_orders",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("store_id", sa.Uuid(), nullable=False),
        sa.Column("customer_auth_id", sa.String(length=255), nullable=True),
        sa.Column("customer_name", sa.String(length=255), nullable=False),
        sa.Column("customer_email", sa.String(length=255), nullable=True),
        sa.Column("customer_phone", sa.String(length=50), nullable=True),
        sa.Column("fulfilment_type", fulfilment_type_enum, nullable=False),
        sa.Column("payment_method", payment_method_enum, nullable=False),
        sa.Column(
            "status", order_status_enum, server_default="PENDING", nullable=True
        ),
        sa.Column(
            "source", order_source_enum, server_default="CUSTOMER", nullable=True
        ),
        sa.Column("created_by_owner_auth_id", sa.String(length=255), nullable=True),
        sa.Column("total_cents", sa.Integer(), nullable=False),
        sa.Column("delivery_address", sa.Text(), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("pickup_code", sa.String(length=6), nullable=False),
        sa.Column("tracking_token", sa.String(length=64), nullable=False),
        sa.Column("estimated_ready_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("idempotency_key", sa.String(length=255), nullable=True),
        sa.Column("platform_fee_cents", sa.Integer(), nullable=True),
        sa.Column(
            "platform_fee_paid", sa.Boolean(), server_default="false", nullable=False
        ),
        *_timestamps(),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("total_cents >= 0", name="order_total_non_negative"),
        sa.ForeignKeyConstraint(["store_id"], ["stores.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tracking_token"),
        sa.UniqueConstraint(
            "store_id", "idempotency_key", name="uq_store_orders_idempotency"
        ),
    )
    op.create_index(op.f("ix_store_orders_store_id"), "store_orders", ["store_id"])
    op.create_index(
        op.f("ix_store_orders_customer_auth_id"), "store_orders", ["customer_auth_id"]
    )
    op.create_index(op.f("ix_store_orders_status"), "store_orders", ["status"])
    op.create_index(op.f("ix_store_orders_created_at"), "store_orders", ["created_at"])

    op.create_table(
        "store_order_items",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("order_id", sa.Uuid(), nullable=False),
        sa.Column("product_id", sa.Uuid(), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_cents", sa.Integer(), nullable=False),
        sa.Column("total_cents", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("quantity > 0", name="order_item_quantity_positive"),
        sa.ForeignKeyConstraint(
            ["order_id"], ["store_orders.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["product_id"], ["store_products.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_store_order_items_order_id"), "store_order_items", ["order_id"]
    )

    op.create_table(
        "store_ledger_entries",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("store_id", sa.Uuid(), nullable=False),
        sa.Column("order_id", sa.Uuid(), nullable=True),
        sa.Column("type", ledger_type_enum, nullable=False),
        sa.Column(
            "status", ledger_status_enum, server_default="PENDING", nullable=False
        ),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("balance_cents", sa.Integer(), nullable=True),
        sa.Column("provider", payment_provider_enum, nullable=True),
        sa.Column("provider_payment_id", sa.String(length=255), nullable=True),
        sa.Column("checkout_id", sa.String(length=255), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        *_timestamps(),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("amount_cents > 0", name="ledger_amount_positive"),
        sa.ForeignKeyConstraint(["store_id"], ["stores.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["order_id"], ["store_orders.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_store_ledger_entries_store_id"), "store_ledger_entries", ["store_id"]
    )
    op.create_index(
        op.f("ix_store_ledger_entries_order_id"), "store_ledger_entries", ["order_id"]
    )
    op.create_index(
        op.f("ix_store_ledger_entries_checkout_id"),
        "store_ledger_entries",
        ["checkout_id"],
    )
    op.create_index(
        op.f("ix_store_ledger_entries_created_at"),
        "store_ledger_entries",
        ["created_at"],
    )


def downgrade() -> None:
    op.drop_table("store_ledger_entries")
    op.drop_table("store_order_items")
    op.drop_table("store_orders")
    op.drop_table("store_products")
    op.drop_table("stores")

    bind = op.get_bind()
    for enum in (
        payment_provider_enum,
        ledger_status_enum,
        ledger_type_enum,
        order_source_enum,
        order_status_enum,
        payment_method_enum,
        fulfilment_type_enum,
    ):
        enum.drop(bind, checkfirst=True)
