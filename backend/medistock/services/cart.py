"""
Sale cart arithmetic: FEFO batch ordering, per-batch reservation and totals.

A cart is transient - it lives on the client while a sale is being composed
and is sent whole to the quote / availability / commit endpoints. Nothing
here touches the database; batches are any objects exposing id, medicine_id,
quantity and expiry_date.

Availability for a batch is its last known quantity minus what other cart
lines already reserve on it. The line being edited is excluded so that its
own prior quantity goes back into the pool while it is changed.
"""
from dataclasses import dataclass, replace
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Sequence

from medistock.core.exceptions import InsufficientStockError, ValidationError

MONEY = Decimal("0.01")


def round_money(value) -> Decimal:
    return Decimal(str(value)).quantize(MONEY, rounding=ROUND_HALF_UP)


class InvalidCartLine(ValidationError):
    pass


@dataclass(frozen=True)
class CartLine:
    medicine_id: int
    batch_id: int
    quantity: int
    unit_price: Decimal

    @property
    def amount(self) -> Decimal:
        return Decimal(self.quantity) * Decimal(str(self.unit_price))


@dataclass(frozen=True)
class CartTotals:
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal


def fefo_batches(batches: Iterable, medicine_id: int) -> list:
    """Sellable batches of a medicine, earliest expiry first.

    sorted() is stable, so batches sharing an expiry date keep input order.
    """
    return sorted(
        (b for b in batches if b.medicine_id == medicine_id and b.quantity > 0),
        key=lambda b: b.expiry_date,
    )


def reserved_in_cart(lines: Sequence[CartLine], batch_id: int, editing_index: Optional[int] = None) -> int:
    return sum(
        line.quantity
        for idx, line in enumerate(lines)
        if line.batch_id == batch_id and idx != editing_index
    )


def available_for_batch(batch, lines: Sequence[CartLine], editing_index: Optional[int] = None) -> int:
    return max(0, batch.quantity - reserved_in_cart(lines, batch.id, editing_index))


def compute_totals(lines: Sequence[CartLine], tax_rate, discount_rate) -> CartTotals:
    """subtotal + tax - discount, clamped at zero, every figure rounded to cents."""
    subtotal = sum((line.amount for line in lines), Decimal("0"))
    rate_tax = Decimal(str(tax_rate))
    rate_discount = Decimal(str(discount_rate))
    tax = round_money(subtotal * rate_tax)
    discount = round_money(subtotal * rate_discount)
    total = max(Decimal("0.00"), round_money(subtotal + tax - discount))
    return CartTotals(
        subtotal=round_money(subtotal),
        tax=tax,
        discount=discount,
        total=total,
    )


def validate_line(line: CartLine, batch, lines: Sequence[CartLine], editing_index: Optional[int] = None) -> None:
    if line.quantity <= 0 or Decimal(str(line.unit_price)) <= 0:
        raise InvalidCartLine("Quantity and price must be greater than 0")
    if batch.id != line.batch_id or batch.medicine_id != line.medicine_id:
        raise InvalidCartLine("Selected batch does not belong to the selected medicine")
    available = available_for_batch(batch, lines, editing_index)
    if line.quantity > available:
        raise InsufficientStockError(available)


class SaleCart:
    """Ordered list of cart lines with index-based editing."""

    def __init__(self, lines: Optional[Iterable[CartLine]] = None):
        self.lines: List[CartLine] = list(lines or [])

    def __len__(self):
        return len(self.lines)

    def available(self, batch, editing_index: Optional[int] = None) -> int:
        return available_for_batch(batch, self.lines, editing_index)

    def add_line(self, line: CartLine, batch) -> int:
        validate_line(line, batch, self.lines)
        self.lines.append(line)
        return len(self.lines) - 1

    def update_line(self, index: int, line: CartLine, batch) -> None:
        self._check_index(index)
        validate_line(line, batch, self.lines, editing_index=index)
        self.lines[index] = line

    def set_quantity(self, index: int, quantity: int, batch) -> None:
        self._check_index(index)
        self.update_line(index, replace(self.lines[index], quantity=quantity), batch)

    def remove_line(self, index: int) -> CartLine:
        self._check_index(index)
        return self.lines.pop(index)

    def totals(self, tax_rate, discount_rate) -> CartTotals:
        return compute_totals(self.lines, tax_rate, discount_rate)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.lines):
            raise InvalidCartLine(f"Cart has no line {index}")
