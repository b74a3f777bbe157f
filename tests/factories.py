"""
Model factories for creating valid test data.

Every factory produces a valid, insertable SQLAlchemy model instance.
Override any field via kwargs. The ``make_*`` helpers insert, commit and
return plain ids so tests never touch expired ORM state.

Usage:
    seller_id = await make_seller(db_session)
    unit_id = await make_stock_unit(db_session, unit_price="10.00", stock_on_hand=5)
"""

import uuid
from decimal import Decimal

from services.orders_service.models import (
    Order,
    OrderItem,
    Product,
    Seller,
    StockMovement,
    StockUnit,
    Variation,
)
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _suffix() -> str:
    return uuid.uuid4().hex[:6]


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


class SellerFactory:
    @staticmethod
    def create(**overrides) -> Seller:
        defaults = {
            "name": f"Seller {_suffix()}",
            "contact_number": "9876543210",
            "email": f"Seller-{_suffix()}@Example.com",
            "is_active": True,
        }
        defaults.update(overrides)
        return Seller(**defaults)


class ProductFactory:
    @staticmethod
    def create(**overrides) -> Product:
        defaults = {
            "name": f"Paracetamol {_suffix()}",
            "tax_rate_percent": Decimal("18.00"),
            "hsn_code": 3004,
            "is_active": True,
        }
        defaults.update(overrides)
        return Product(**defaults)


class VariationFactory:
    @staticmethod
    def create(**overrides) -> Variation:
        defaults = {"name": f"500mg {_suffix()}", "is_active": True}
        defaults.update(overrides)
        return Variation(**defaults)


class StockUnitFactory:
    @staticmethod
    def create(product: Product, variation: Variation, **overrides) -> StockUnit:
        defaults = {
            "product": product,
            "variation": variation,
            "unit_price": Decimal("10.00"),
            "stock_on_hand": 10,
        }
        defaults.update(overrides)
        return StockUnit(**defaults)


# ---------------------------------------------------------------------------
# Insert helpers
# ---------------------------------------------------------------------------


async def make_seller(db: AsyncSession, **overrides) -> int:
    seller = SellerFactory.create(**overrides)
    db.add(seller)
    await db.commit()
    return seller.id


async def make_stock_unit(
    db: AsyncSession,
    *,
    unit_price="10.00",
    tax_rate_percent="18",
    stock_on_hand: int = 10,
    product_name=None,
    variation_name=None,
) -> int:
    product = ProductFactory.create(tax_rate_percent=Decimal(tax_rate_percent))
    if product_name:
        product.name = product_name
    variation = VariationFactory.create()
    if variation_name:
        variation.name = variation_name
    unit = StockUnitFactory.create(
        product,
        variation,
        unit_price=Decimal(unit_price),
        stock_on_hand=stock_on_hand,
    )
    db.add_all([product, variation, unit])
    await db.commit()
    return unit.id


# ---------------------------------------------------------------------------
# Read helpers (column selects, bypass the identity map)
# ---------------------------------------------------------------------------


async def stock_on_hand(db: AsyncSession, stock_unit_id: int) -> int:
    result = await db.execute(
        select(StockUnit.stock_on_hand).where(StockUnit.id == stock_unit_id)
    )
    return result.scalar_one()


async def count_rows(db: AsyncSession, model) -> int:
    result = await db.execute(select(func.count()).select_from(model))
    return result.scalar_one()


async def table_counts(db: AsyncSession) -> dict:
    return {
        "orders": await count_rows(db, Order),
        "order_items": await count_rows(db, OrderItem),
        "stock_movements": await count_rows(db, StockMovement),
    }
