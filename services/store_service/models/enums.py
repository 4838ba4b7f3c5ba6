"""Enum definitions for store service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class FulfilmentType(str, enum.Enum):
    COLLECTION = "COLLECTION"
    DELIVERY = "DELIVERY"


class PaymentMethod(str, enum.Enum):
    CASH_ON_DELIVERY = "CASH_ON_DELIVERY"
    CASH_ON_COLLECTION = "CASH_ON_COLLECTION"


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    IN_PREPARATION = "IN_PREPARATION"
    READY_FOR_COLLECTION = "READY_FOR_COLLECTION"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class OrderSource(str, enum.Enum):
    CUSTOMER = "CUSTOMER"
    MANUAL = "MANUAL"


class LedgerType(str, enum.Enum):
    TOPUP = "TOPUP"
    REFUND = "REFUND"
    FEE_DEBIT = "FEE_DEBIT"
    FEE_RESERVE = "FEE_RESERVE"
    PAYOUT = "PAYOUT"
    ADJUSTMENT = "ADJUSTMENT"


class LedgerStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class PaymentProvider(str, enum.Enum):
    YOCO = "YOCO"
