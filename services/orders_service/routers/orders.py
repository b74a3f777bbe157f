"""Orders router: commit, update and read orders."""

from fastapi import APIRouter, Depends, HTTPException, status
from libs.db.session import get_async_db
from services.orders_service.errors import OrderError
from services.orders_service.models import Order
from services.orders_service.schemas import (
    OrderCreateRequest,
    OrderResponse,
    OrderTotalsResponse,
    OrderUpdateRequest,
)
from services.orders_service.services import order_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["orders"])


RETRY_AFTER_SECONDS = "1"


def _http_error(exc: OrderError) -> HTTPException:
    headers = {"Retry-After": RETRY_AFTER_SECONDS} if exc.retryable else None
    return HTTPException(
        status_code=exc.status_code, detail=exc.to_detail(), headers=headers
    )


def _totals(order: Order) -> OrderTotalsResponse:
    return OrderTotalsResponse(
        order_id=order.id,
        subtotal=order.subtotal,
        tax_total=order.tax_total,
        grand_total=order.grand_total,
        status=order.status,
    )


@router.post(
    "/orders",
    response_model=OrderTotalsResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_order(
    request: OrderCreateRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """Commit a new order, reserving stock for every line."""
    try:
        order = await order_ops.commit_order(
            db, seller_id=request.seller_id, items=request.items
        )
    except OrderError as exc:
        raise _http_error(exc) from exc
    return _totals(order)


@router.put("/orders/{order_id}", response_model=OrderTotalsResponse)
async def update_order(
    order_id: int,
    request: OrderUpdateRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """Replace an order's lines and re-price it."""
    try:
        order = await order_ops.update_order(db, order_id=order_id, items=request.items)
    except OrderError as exc:
        raise _http_error(exc) from exc
    return _totals(order)


@router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    db: AsyncSession = Depends(get_async_db),
):
    """Get an order with its line items."""
    try:
        return await order_ops.get_order(db, order_id)
    except OrderError as exc:
        raise _http_error(exc) from exc
