"""Order engine errors.

Raised by the order services when a request cannot be committed. Every
error raised out of a commit or update means nothing was persisted. The
router translates them into HTTP responses.
"""

from typing import Any, Optional


class OrderError(Exception):
    """Base class for every error the order engine raises."""

    code = "order_error"
    status_code = 400
    retryable = False

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = {k: v for k, v in context.items() if v is not None}

    def to_detail(self) -> dict:
        """Structured payload for API responses and logs."""
        return {
            "code": self.code,
            "message": self.message,
            "retryable": self.retryable,
            **self.context,
        }


class OrderValidationError(OrderError):
    """Malformed request; rejected before any transaction is opened."""

    code = "validation_error"

    def __init__(self, message: str, line_index: Optional[int] = None):
        super().__init__(message, line_index=line_index)
        self.line_index = line_index


class NotFoundError(OrderError):
    code = "not_found"
    status_code = 404


class SellerNotFoundError(NotFoundError):
    code = "seller_not_found"

    def __init__(self, seller_id: int):
        super().__init__(f"Seller {seller_id} not found", seller_id=seller_id)
        self.seller_id = seller_id


class StockUnitNotFoundError(NotFoundError):
    code = "stock_unit_not_found"

    def __init__(self, stock_unit_id: int, line_index: Optional[int] = None):
        super().__init__(
            f"Stock unit {stock_unit_id} not found",
            stock_unit_id=stock_unit_id,
            line_index=line_index,
        )
        self.stock_unit_id = stock_unit_id
        self.line_index = line_index


class OrderNotFoundError(NotFoundError):
    code = "order_not_found"

    def __init__(self, order_id: int):
        super().__init__(f"Order {order_id} not found", order_id=order_id)
        self.order_id = order_id


class InsufficientStockError(OrderError):
    """Requested quantity exceeds stock on hand at lock time."""

    code = "insufficient_stock"

    def __init__(
        self,
        *,
        stock_unit_id: int,
        product_name: Optional[str],
        variation_name: Optional[str],
        available: int,
        requested: int,
        held: int = 0,
    ):
        need = (
            f"need {requested} more ({held} already held by this order)"
            if held
            else f"need {requested}"
        )
        super().__init__(
            f"Insufficient stock for {product_name or 'stock unit'}"
            f"{f' ({variation_name})' if variation_name else ''}: "
            f"have {available}, {need}",
            stock_unit_id=stock_unit_id,
            product=product_name,
            variation=variation_name,
            available=available,
            requested=requested,
            held=held or None,
        )
        self.stock_unit_id = stock_unit_id
        self.product_name = product_name
        self.variation_name = variation_name
        self.available = available
        self.requested = requested
        self.held = held


class ConcurrencyError(OrderError):
    """Lock wait timed out or the database aborted us to break a conflict."""

    code = "concurrency_conflict"
    status_code = 503
    retryable = True


class InfrastructureError(OrderError):
    """Unexpected storage failure."""

    code = "infrastructure_error"
    status_code = 500
