"""Catalog models read by the order engine: sellers, products, variations, stock units."""

from decimal import Decimal
from typing import Optional

from libs.db.base import Base, TimestampMixin
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

# ============================================================================
# SELLERS
# ============================================================================


class Seller(TimestampMixin, Base):
    """Sellers that orders are placed for."""

    __tablename__ = "sellers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_number: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=true(), nullable=False
    )

    # Relationships
    orders = relationship("Order", back_populates="seller")

    @validates("email")
    def _lowercase_email(self, key, value):
        return value.lower() if value else value

    def __repr__(self):
        return f"<Seller {self.name}>"


# ============================================================================
# PRODUCTS AND VARIATIONS
# ============================================================================


class Product(TimestampMixin, Base):
    """Products; the tax rate applies to every stock unit of the product."""

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    tax_rate_percent: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), nullable=False, default=0
    )  # GST
    hsn_code: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=true(), nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "tax_rate_percent >= 0 AND tax_rate_percent <= 100",
            name="valid_tax_rate",
        ),
    )

    # Relationships
    stock_units = relationship(
        "StockUnit", back_populates="product", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Product {self.name}>"


class Variation(TimestampMixin, Base):
    """Variations shared across products (e.g. '10mg', 'Strip of 15')."""

    __tablename__ = "variations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=true(), nullable=False
    )

    # Relationships
    stock_units = relationship("StockUnit", back_populates="variation")

    def __repr__(self):
        return f"<Variation {self.name}>"


# ============================================================================
# STOCK UNITS
# ============================================================================


class StockUnit(TimestampMixin, Base):
    """A sellable product x variation pairing with its own price and stock count.

    ``stock_on_hand`` is only changed by the inventory ledger, inside a
    transaction that holds this row's lock.
    """

    __tablename__ = "stock_units"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False
    )
    variation_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("variations.id"), nullable=False
    )

    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    stock_on_hand: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )

    __table_args__ = (
        UniqueConstraint("product_id", "variation_id", name="unique_product_variation"),
        CheckConstraint("stock_on_hand >= 0", name="non_negative_stock"),
        CheckConstraint("unit_price >= 0", name="non_negative_price"),
    )

    # Relationships
    product = relationship("Product", back_populates="stock_units")
    variation = relationship("Variation", back_populates="stock_units")
    movements = relationship(
        "StockMovement", back_populates="stock_unit", cascade="all, delete-orphan"
    )

    @property
    def tax_rate_percent(self) -> Decimal:
        """Tax rate of the owning product (product must be loaded)."""
        return self.product.tax_rate_percent

    def __repr__(self):
        return f"<StockUnit {self.id} qty={self.stock_on_hand}>"
