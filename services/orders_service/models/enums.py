"""Enum definitions for orders service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class StockMovementType(str, enum.Enum):
    SALE = "sale"
    RELEASE = "release"
