"""Domain errors raised by the store service layer.

Each error is an ``HTTPException`` so routers can let it propagate untouched.
"""

from typing import Optional

from fastapi import HTTPException, status


class InvalidLineItem(HTTPException):
    """A cart line references a product that is missing, foreign or unavailable."""

    def __init__(self, detail: str = "Invalid item in cart"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class Unauthorized(HTTPException):
    """The principal does not own the store or order it is acting on."""

    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class InvalidTransition(HTTPException):
    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot change status from {_label(current)} to {_label(target)}",
        )


class TopupAmountTooLow(HTTPException):
    def __init__(self, required_cents: int):
        self.required_cents = required_cents
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": "Top-up amount is below the required minimum",
                "required_cents": required_cents,
            },
        )


class CheckoutSessionError(HTTPException):
    """Gateway refused to create a checkout. Provider detail is never exposed."""

    def __init__(self, topup_id: Optional[str] = None):
        self.topup_id = topup_id
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to create checkout session",
        )


def _label(value) -> str:
    return getattr(value, "value", str(value))
