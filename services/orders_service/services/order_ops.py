"""Order commit and update: all-or-nothing order writes over the inventory ledger.

Both operations follow the same shape:

1. Validate the request before touching the database
2. Bound lock waits, then lock stock rows in ascending stock unit id order
3. Reserve/release stock through the ledger
4. Price every line from the locked row (never from the request)
5. Write the order and its items, commit

Any error rolls the whole transaction back before it propagates, so a
raised error always means stock, order and items are unchanged.
"""

from dataclasses import dataclass, replace
from functools import partial
from operator import attrgetter
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence

from libs.common.config import get_settings
from libs.common.logging import get_logger
from services.orders_service.errors import (
    ConcurrencyError,
    InfrastructureError,
    OrderError,
    OrderNotFoundError,
    OrderValidationError,
    SellerNotFoundError,
)
from services.orders_service.models import (
    Order,
    OrderItem,
    OrderStatus,
    Seller,
    StockUnit,
)
from services.orders_service.services.ledger import (
    apply_lock_timeout,
    lock_and_fetch,
    release,
    reserve,
)
from services.orders_service.services.pricing import (
    ZERO,
    LineAmounts,
    aggregate,
    line_amounts,
)
from sqlalchemy import select
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)

# PostgreSQL SQLSTATEs
LOCK_NOT_AVAILABLE = "55P03"
DEADLOCK_DETECTED = "40P01"
SERIALIZATION_FAILURE = "40001"
RESTARTABLE_SQLSTATES = {DEADLOCK_DETECTED, SERIALIZATION_FAILURE}


@dataclass(frozen=True)
class RequestedLine:
    """One validated (stock unit, quantity) pair and its position in the request."""

    index: int
    stock_unit_id: int
    quantity: int


# ---------------------------------------------------------------------------
# Request validation
# ---------------------------------------------------------------------------


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _field(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def normalize_lines(items: Optional[Sequence[Any]]) -> list[RequestedLine]:
    """Validate request lines (mappings or objects with ``stock_unit_id``/``quantity``).

    Repeated stock units are merged into one line: quantities are summed and
    the first occurrence's index is kept for error reporting.
    """
    if items is None or isinstance(items, (str, bytes)):
        raise OrderValidationError("items must be a non-empty list")
    items = list(items)
    if not items:
        raise OrderValidationError("items must be a non-empty list")

    merged: dict[int, RequestedLine] = {}
    for index, item in enumerate(items):
        stock_unit_id = _field(item, "stock_unit_id")
        quantity = _field(item, "quantity")

        if not _is_positive_int(stock_unit_id):
            raise OrderValidationError(
                f"Invalid stock_unit_id at item index {index}", line_index=index
            )
        if not _is_positive_int(quantity):
            raise OrderValidationError(
                f"Invalid quantity at item index {index}", line_index=index
            )

        first = merged.get(stock_unit_id)
        if first is not None:
            merged[stock_unit_id] = replace(first, quantity=first.quantity + quantity)
        else:
            merged[stock_unit_id] = RequestedLine(
                index=index, stock_unit_id=stock_unit_id, quantity=quantity
            )
    return list(merged.values())


# ---------------------------------------------------------------------------
# Transaction handling
# ---------------------------------------------------------------------------


def _sqlstate(exc: DBAPIError) -> Optional[str]:
    orig = exc.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


async def _run_in_transaction(
    db: AsyncSession, operation: str, work: Callable[[], Awaitable[int]]
) -> int:
    """Run ``work`` and commit, rolling back on any error.

    Deadlocks and serialization failures re-run the whole unit of work up to
    ``ORDER_DEADLOCK_RETRIES`` times.
    """
    retries = get_settings().ORDER_DEADLOCK_RETRIES
    attempt = 0
    while True:
        attempt += 1
        try:
            result = await work()
            await db.commit()
            return result
        except OrderError as exc:
            await db.rollback()
            logger.warning(
                "%s rejected: %s",
                operation,
                exc.message,
                extra={"extra_fields": exc.to_detail()},
            )
            raise
        except DBAPIError as exc:
            await db.rollback()
            sqlstate = _sqlstate(exc)
            if sqlstate == LOCK_NOT_AVAILABLE:
                logger.warning("%s timed out waiting for a stock lock", operation)
                raise ConcurrencyError(
                    "Timed out waiting for stock to become available; retry the request",
                    sqlstate=sqlstate,
                ) from exc
            if sqlstate in RESTARTABLE_SQLSTATES:
                if attempt <= retries:
                    logger.warning(
                        "%s aborted by the database (sqlstate=%s), retrying (attempt %d)",
                        operation,
                        sqlstate,
                        attempt + 1,
                    )
                    continue
                raise ConcurrencyError(
                    "Conflicting concurrent order; retry the request",
                    sqlstate=sqlstate,
                ) from exc
            logger.exception("%s failed with a storage error", operation)
            raise InfrastructureError(f"{operation} failed") from exc
        except Exception:
            await db.rollback()
            raise


def _stage_item(order: Order, unit: StockUnit, quantity: int) -> LineAmounts:
    """Price one line from the locked stock unit and attach it to the order."""
    amounts = line_amounts(unit.unit_price, quantity, unit.tax_rate_percent)
    order.items.append(
        OrderItem(
            product_id=unit.product_id,
            stock_unit_id=unit.id,
            product_name=unit.product.name,
            variation_name=unit.variation.name,
            quantity=quantity,
            unit_price_at_sale=unit.unit_price,
            tax_rate_percent_at_sale=unit.tax_rate_percent,
            base_amount=amounts.base,
            tax_amount=amounts.tax,
            line_total=amounts.total,
        )
    )
    return amounts


def _apply_totals(order: Order, amounts: list[LineAmounts]) -> None:
    totals = aggregate(amounts)
    order.subtotal = totals.subtotal
    order.tax_total = totals.tax_total
    order.grand_total = totals.grand_total
    order.status = OrderStatus.COMPLETED


# ---------------------------------------------------------------------------
# Commit
# ---------------------------------------------------------------------------


async def _commit(db: AsyncSession, seller_id: int, lines: list[RequestedLine]) -> int:
    await apply_lock_timeout(db)

    seller = await db.get(Seller, seller_id)
    if seller is None or not seller.is_active:
        raise SellerNotFoundError(seller_id)

    # Placeholder row gives the items a stable order_id
    order = Order(
        seller_id=seller_id,
        subtotal=ZERO,
        tax_total=ZERO,
        grand_total=ZERO,
        status=OrderStatus.PENDING,
        items=[],
    )
    db.add(order)
    await db.flush()

    amounts: list[LineAmounts] = []
    for line in sorted(lines, key=attrgetter("stock_unit_id")):
        unit = await lock_and_fetch(db, line.stock_unit_id, line_index=line.index)
        await reserve(db, unit, line.quantity, order_id=order.id)
        amounts.append(_stage_item(order, unit, line.quantity))

    _apply_totals(order, amounts)
    await db.flush()
    return order.id


async def commit_order(
    db: AsyncSession, *, seller_id: int, items: Sequence[Any]
) -> Order:
    """Create a completed order for ``seller_id`` from the requested lines.

    Raises:
        OrderValidationError: bad seller id or lines (no transaction opened)
        SellerNotFoundError / StockUnitNotFoundError
        InsufficientStockError
        ConcurrencyError: lock timeout or repeated deadlock (retryable)
        InfrastructureError: any other storage failure
    """
    if not _is_positive_int(seller_id):
        raise OrderValidationError("seller_id is required")
    lines = normalize_lines(items)

    order_id = await _run_in_transaction(
        db, "commit_order", partial(_commit, db, seller_id, lines)
    )
    order = await get_order(db, order_id)

    logger.info(
        "Committed order %s for seller %s: %d lines, grand total %s",
        order.id,
        seller_id,
        len(order.items),
        order.grand_total,
    )
    return order


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------


async def _update(db: AsyncSession, order_id: int, lines: list[RequestedLine]) -> int:
    await apply_lock_timeout(db)

    result = await db.execute(
        select(Order)
        .where(Order.id == order_id)
        .options(selectinload(Order.items))
        .with_for_update(of=Order)
        .execution_options(populate_existing=True)
    )
    order = result.scalar_one_or_none()
    if order is None:
        raise OrderNotFoundError(order_id)

    previous = {item.stock_unit_id: item.quantity for item in order.items}
    requested = {line.stock_unit_id: line for line in lines}

    units: dict[int, StockUnit] = {}
    for stock_unit_id in sorted(previous.keys() | requested.keys()):
        line = requested.get(stock_unit_id)
        unit = await lock_and_fetch(
            db, stock_unit_id, line_index=line.index if line else None
        )
        delta = (line.quantity if line else 0) - previous.get(stock_unit_id, 0)
        if delta > 0:
            await reserve(
                db,
                unit,
                delta,
                order_id=order.id,
                held=previous.get(stock_unit_id, 0),
            )
        elif delta < 0:
            await release(db, unit, -delta, order_id=order.id)
        units[stock_unit_id] = unit

    # Old rows must be gone before the replacements hit the unique constraint
    order.items.clear()
    await db.flush()

    amounts = [
        _stage_item(order, units[line.stock_unit_id], line.quantity)
        for line in sorted(lines, key=attrgetter("stock_unit_id"))
    ]
    _apply_totals(order, amounts)
    await db.flush()
    return order.id


async def update_order(
    db: AsyncSession, *, order_id: int, items: Sequence[Any]
) -> Order:
    """Replace an order's lines, moving only the stock deltas.

    Lines are re-priced at the current stock unit price and tax rate.
    Raises the same errors as :func:`commit_order`, plus
    ``OrderNotFoundError``.
    """
    if not _is_positive_int(order_id):
        raise OrderValidationError("order_id is required")
    lines = normalize_lines(items)

    await _run_in_transaction(db, "update_order", partial(_update, db, order_id, lines))
    order = await get_order(db, order_id)

    logger.info(
        "Updated order %s: %d lines, grand total %s",
        order.id,
        len(order.items),
        order.grand_total,
    )
    return order


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------


async def get_order(db: AsyncSession, order_id: int) -> Order:
    """Load an order with its items. Raises OrderNotFoundError."""
    result = await db.execute(
        select(Order)
        .where(Order.id == order_id)
        .options(selectinload(Order.items))
        .execution_options(populate_existing=True)
    )
    order = result.scalar_one_or_none()
    if order is None:
        raise OrderNotFoundError(order_id)
    return order
