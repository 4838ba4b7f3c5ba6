"""Rate limiting configuration.

Uses slowapi. Storage defaults to in-process memory; point
``RATE_LIMIT_STORAGE_URL`` at Redis to share counters across instances.
"""

from functools import lru_cache

from fastapi import FastAPI, Request, Response
from jose import JWTError
from pydantic import ValidationError
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from libs.auth.dependencies import _decode_token
from libs.common.config import get_settings


def _get_client_ip(request: Request) -> str:
    """
    Get client IP from request, preferring the first X-Forwarded-For hop.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


def _get_principal_or_ip(request: Request) -> str:
    """
    Rate limit by token subject when the bearer token decodes, otherwise by IP.

    Every token issued to one owner draws on the same budget.
    """
    authorization = request.headers.get("Authorization", "")
    if authorization.lower().startswith("bearer "):
        try:
            user = _decode_token(authorization[7:].strip())
        except (JWTError, ValidationError):
            pass
        else:
            return f"user:{user.user_id}"
    return f"ip:{_get_client_ip(request)}"


@lru_cache
def get_limiter() -> Limiter:
    """Create and return the cached Limiter instance."""
    settings = get_settings()
    return Limiter(
        key_func=_get_principal_or_ip,
        storage_uri=settings.RATE_LIMIT_STORAGE_URL,
        strategy="fixed-window",
        enabled=settings.RATE_LIMIT_ENABLED,
    )


limiter = get_limiter()


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Return a JSON 429 with a Retry-After hint."""
    return JSONResponse(
        status_code=429,
        content={
            "detail": f"Rate limit exceeded: {exc.detail}",
            "code": "RATE_LIMIT_EXCEEDED",
        },
        headers={"Retry-After": "60"},
    )


def install_rate_limiting(app: FastAPI) -> None:
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


def code_confirm_limit(func):
    """Per-principal budget for pickup-code guesses."""
    return limiter.limit(get_settings().CODE_CONFIRM_RATE_LIMIT)(func)
