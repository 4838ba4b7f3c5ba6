"""Store Service models package."""

from services.store_service.models.catalog import Product, Store
from services.store_service.models.commerce import (
    Order,
    OrderItem,
    generate_pickup_code,
    generate_tracking_token,
)
from services.store_service.models.enums import (
    FulfilmentType,
    LedgerStatus,
    LedgerType,
    OrderSource,
    OrderStatus,
    PaymentMethod,
    PaymentProvider,
)
from services.store_service.models.ledger import LedgerEntry

__all__ = [
    "FulfilmentType",
    "LedgerEntry",
    "LedgerStatus",
    "LedgerType",
    "Order",
    "OrderItem",
    "OrderSource",
    "OrderStatus",
    "PaymentMethod",
    "PaymentProvider",
    "Product",
    "Store",
    "generate_pickup_code",
    "generate_tracking_token",
]
