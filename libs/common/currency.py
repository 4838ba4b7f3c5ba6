"""Currency utilities.

Internal storage unit: cents (smallest ZAR unit, 100 cents = R1).
Display unit: Rand, rendered as ``R 12.34``.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

CENTS_PER_RAND: int = 100


def format_cents(cents: int) -> str:
    """Render cents for humans, e.g. 4500 -> ``R 45.00``."""
    sign = "-" if cents < 0 else ""
    return f"{sign}R {abs(cents) / CENTS_PER_RAND:.2f}"


def apply_rate(cents: int, rate: float | Decimal) -> int:
    """Multiply an amount in cents by a rate, rounding half away from zero."""
    product = Decimal(cents) * Decimal(str(rate))
    return int(product.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
