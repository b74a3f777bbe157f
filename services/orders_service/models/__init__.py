"""Orders Service models package."""

from services.orders_service.models.catalog import (
    Product,
    Seller,
    StockUnit,
    Variation,
)
from services.orders_service.models.enums import OrderStatus, StockMovementType
from services.orders_service.models.inventory import StockMovement
from services.orders_service.models.orders import Order, OrderItem

__all__ = [
    "Order",
    "OrderItem",
    "OrderStatus",
    "Product",
    "Seller",
    "StockMovement",
    "StockMovementType",
    "StockUnit",
    "Variation",
]
