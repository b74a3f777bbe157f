"""Pydantic schemas for orders service."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from services.orders_service.models import OrderStatus

# ============================================================================
# REQUEST SCHEMAS
# ============================================================================


class OrderLineRequest(BaseModel):
    stock_unit_id: int = Field(..., gt=0)
    quantity: int = Field(..., gt=0)


class OrderCreateRequest(BaseModel):
    seller_id: int = Field(..., gt=0)
    items: list[OrderLineRequest] = Field(..., min_length=1)


class OrderUpdateRequest(BaseModel):
    items: list[OrderLineRequest] = Field(..., min_length=1)


# ============================================================================
# RESPONSE SCHEMAS
# ============================================================================


class OrderTotalsResponse(BaseModel):
    order_id: int
    subtotal: Decimal
    tax_total: Decimal
    grand_total: Decimal
    status: OrderStatus


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    stock_unit_id: int
    product_name: str
    variation_name: Optional[str] = None
    quantity: int
    unit_price_at_sale: Decimal
    tax_rate_percent_at_sale: Decimal
    base_amount: Decimal
    tax_amount: Decimal
    line_total: Decimal


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    seller_id: int
    subtotal: Decimal
    tax_total: Decimal
    grand_total: Decimal
    status: OrderStatus
    created_at: datetime
    updated_at: datetime
    items: list[OrderItemResponse] = []
