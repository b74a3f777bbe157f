"""Order models: the order aggregate and its priced line items."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.db.base import Base, TimestampMixin, utc_now
from services.orders_service.models.enums import OrderStatus, enum_values
from sqlalchemy import CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Index, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship


class Order(TimestampMixin, Base):
    """Orders. Totals are always re-derived from the current items."""

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    seller_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("sellers.id"), nullable=False
    )

    # Totals
    subtotal: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0.00")
    )
    tax_total: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0.00")
    )
    grand_total: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0.00")
    )

    status: Mapped[OrderStatus] = mapped_column(
        SAEnum(
            OrderStatus,
            values_callable=enum_values,
            name="order_status_enum",
        ),
        default=OrderStatus.PENDING,
        server_default="pending",
        nullable=False,
    )

    __table_args__ = (
        Index("ix_orders_seller_id_created_at", "seller_id", "created_at"),
        # Compared at the cent; SQLite stores numerics as floats
        CheckConstraint(
            "round(grand_total - subtotal - tax_total, 2) = 0",
            name="consistent_totals",
        ),
    )

    # Relationships
    seller = relationship("Seller", back_populates="orders")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.stock_unit_id",
    )

    def __repr__(self):
        return f"<Order {self.id} status={self.status}>"


class OrderItem(Base):
    """Order line items (price snapshot at commit/update time)."""

    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False
    )
    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id"), nullable=False
    )
    stock_unit_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("stock_units.id"), nullable=False
    )

    # Snapshot at sale time (catalog may change)
    product_name: Mapped[str] = mapped_column(String(100), nullable=False)
    variation_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price_at_sale: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    tax_rate_percent_at_sale: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), nullable=False
    )
    base_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    line_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    __table_args__ = (
        UniqueConstraint("order_id", "stock_unit_id", name="unique_order_stock_unit"),
        CheckConstraint("quantity > 0", name="positive_quantity"),
    )

    # Relationships
    order = relationship("Order", back_populates="items")
    stock_unit = relationship("StockUnit")

    def __repr__(self):
        return f"<OrderItem {self.product_name} qty={self.quantity}>"
