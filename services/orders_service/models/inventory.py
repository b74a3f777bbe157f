"""Stock movement audit trail written by the inventory ledger."""

from datetime import datetime
from typing import Optional

from libs.db.base import Base, utc_now
from services.orders_service.models.enums import StockMovementType, enum_values
from sqlalchemy import DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship


class StockMovement(Base):
    """One row per ledger reserve/release."""

    __tablename__ = "stock_movements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    stock_unit_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("stock_units.id", ondelete="CASCADE"), nullable=False
    )

    movement_type: Mapped[StockMovementType] = mapped_column(
        SAEnum(
            StockMovementType,
            values_callable=enum_values,
            name="stock_movement_type_enum",
        ),
        nullable=False,
    )
    quantity: Mapped[int] = mapped_column(
        Integer, nullable=False
    )  # Positive = add, negative = subtract

    order_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("orders.id", ondelete="SET NULL"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    __table_args__ = (
        Index("ix_stock_movements_stock_unit_id", "stock_unit_id"),
        Index("ix_stock_movements_order_id", "order_id"),
    )

    # Relationships
    stock_unit = relationship("StockUnit", back_populates="movements")

    def __repr__(self):
        return f"<StockMovement {self.movement_type} qty={self.quantity}>"
