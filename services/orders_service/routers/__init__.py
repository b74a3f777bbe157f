"""Orders service routers package."""

from services.orders_service.routers.orders import router as orders_router

__all__ = ["orders_router"]
