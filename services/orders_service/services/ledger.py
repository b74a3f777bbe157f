"""Inventory ledger: row-locked stock reservation and release.

All functions run inside the caller's transaction on ``db``. Callers must
``lock_and_fetch`` a stock unit before reserving or releasing against it,
and should lock units in ascending id order to avoid deadlocks.
"""

from typing import Optional

from libs.common.config import get_settings
from libs.common.logging import get_logger
from services.orders_service.errors import (
    InsufficientStockError,
    StockUnitNotFoundError,
)
from services.orders_service.models import (
    StockMovement,
    StockMovementType,
    StockUnit,
)
from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

logger = get_logger(__name__)


async def apply_lock_timeout(db: AsyncSession) -> None:
    """Bound row-lock waits for the rest of the current transaction.

    Only PostgreSQL supports this; other backends are left alone.
    """
    if db.get_bind().dialect.name != "postgresql":
        return
    timeout_ms = int(get_settings().ORDER_LOCK_TIMEOUT_MS)
    # SET does not accept bind parameters
    await db.execute(text(f"SET LOCAL lock_timeout = {timeout_ms}"))


async def lock_and_fetch(
    db: AsyncSession, stock_unit_id: int, *, line_index: Optional[int] = None
) -> StockUnit:
    """SELECT ... FOR UPDATE the stock unit, with product and variation loaded.

    Blocks while another transaction holds the row.
    """
    result = await db.execute(
        select(StockUnit)
        .where(StockUnit.id == stock_unit_id)
        .options(
            joinedload(StockUnit.product, innerjoin=True),
            joinedload(StockUnit.variation, innerjoin=True),
        )
        .with_for_update(of=StockUnit)
        .execution_options(populate_existing=True)
    )
    unit = result.scalar_one_or_none()
    if unit is None:
        raise StockUnitNotFoundError(stock_unit_id, line_index=line_index)
    return unit


async def reserve(
    db: AsyncSession,
    unit: StockUnit,
    quantity: int,
    *,
    order_id: Optional[int],
    held: int = 0,
) -> StockUnit:
    """Take ``quantity`` more units out of stock. Nothing changes on failure.

    ``held`` is what the order already has reserved of this unit; it is only
    reported on failure.
    """
    if quantity <= 0:
        raise ValueError(f"reserve quantity must be positive, got {quantity}")

    if unit.stock_on_hand < quantity:
        raise InsufficientStockError(
            stock_unit_id=unit.id,
            product_name=unit.product.name,
            variation_name=unit.variation.name,
            available=unit.stock_on_hand,
            requested=quantity,
            held=held,
        )

    before = unit.stock_on_hand
    unit.stock_on_hand = before - quantity
    db.add(
        StockMovement(
            stock_unit_id=unit.id,
            movement_type=StockMovementType.SALE,
            quantity=-quantity,
            order_id=order_id,
        )
    )
    logger.debug(
        "Reserved %d of stock unit %s (%d→%d)",
        quantity,
        unit.id,
        before,
        unit.stock_on_hand,
    )
    return unit


async def release(
    db: AsyncSession, unit: StockUnit, quantity: int, *, order_id: Optional[int]
) -> StockUnit:
    """Return ``quantity`` units to stock."""
    if quantity <= 0:
        raise ValueError(f"release quantity must be positive, got {quantity}")

    before = unit.stock_on_hand
    unit.stock_on_hand = before + quantity
    db.add(
        StockMovement(
            stock_unit_id=unit.id,
            movement_type=StockMovementType.RELEASE,
            quantity=quantity,
            order_id=order_id,
        )
    )
    logger.debug(
        "Released %d to stock unit %s (%d→%d)",
        quantity,
        unit.id,
        before,
        unit.stock_on_hand,
    )
    return unit
