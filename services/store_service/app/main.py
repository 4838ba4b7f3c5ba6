"""FastAPI application for the Store Service."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from libs.common.middleware import add_observability_middleware
from libs.common.rate_limit import install_rate_limiting
from services.store_service.notifications import close_pool
from services.store_service.routers import (
    billing_router,
    orders_router,
    owner_orders_router,
    webhooks_router,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_pool()


def create_app() -> FastAPI:
    """Create and configure the Store Service FastAPI app."""
    app = FastAPI(
        title="Kasi Flavors Store Service",
        version="0.1.0",
        description="Ordering, order lifecycle and store credit billing.",
        lifespan=lifespan,
    )

    # Rate limiter state (pickup-code confirmation)
    install_rate_limiting(app)

    # Structured logging + request tracing
    add_observability_middleware(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "store"}

    # Customer routes (checkout, tracking)
    app.include_router(orders_router, prefix="/store")

    # Owner routes
    app.include_router(owner_orders_router, prefix="/owner/store")
    app.include_router(billing_router, prefix="/owner/store")

    # Payment provider callbacks (signature-verified, no auth)
    app.include_router(webhooks_router)

    return app


app = create_app()
