"""Order pricing: line and aggregate amounts in exact decimal arithmetic.

Base and tax are each rounded to the cent before they are added, and the
order totals are plain sums of the already-rounded line values:

    base  = round2(unit_price * quantity)
    tax   = round2(base * tax_rate_percent / 100)
    total = base + tax

Nothing here touches the database.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Union

Number = Union[Decimal, int, float, str]

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class LineAmounts:
    base: Decimal
    tax: Decimal
    total: Decimal


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    tax_total: Decimal
    grand_total: Decimal


def to_decimal(value: Number) -> Decimal:
    """Convert to Decimal; floats go through ``str`` so 10.1 stays 10.1."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round2(value: Number) -> Decimal:
    """Round half-up to the currency minor unit."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def line_amounts(
    unit_price: Number, quantity: int, tax_rate_percent: Number
) -> LineAmounts:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValueError(f"quantity must be a positive integer, got {quantity!r}")

    price = to_decimal(unit_price)
    rate = to_decimal(tax_rate_percent)
    if price < 0:
        raise ValueError(f"unit price cannot be negative, got {price}")
    if rate < 0 or rate > HUNDRED:
        raise ValueError(f"tax rate must be between 0 and 100, got {rate}")

    base = round2(price * quantity)
    tax = round2(base * rate / HUNDRED)
    return LineAmounts(base=base, tax=tax, total=base + tax)


def aggregate(lines: Iterable[LineAmounts]) -> OrderTotals:
    subtotal = ZERO
    tax_total = ZERO
    for line in lines:
        subtotal += line.base
        tax_total += line.tax
    return OrderTotals(
        subtotal=subtotal, tax_total=tax_total, grand_total=subtotal + tax_total
    )
