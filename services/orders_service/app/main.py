"""FastAPI application for the Orders Service."""

from fastapi import FastAPI
from libs.common.middleware import add_observability_middleware
from services.orders_service.routers import orders_router


def create_app() -> FastAPI:
    """Create and configure the Orders Service FastAPI app."""
    app = FastAPI(
        title="Orders Service",
        version="0.1.0",
        description="Order commit engine - stock reservation, pricing and order writes.",
    )
    add_observability_middleware(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "orders"}

    app.include_router(orders_router, prefix="/api")

    return app


app = create_app()
