"""
Line-item ledger.

Pure consistency rules over a PO's line items: one line per catalog item,
quantity bounds, and the derived order total. Nothing here talks to the
catalog or the database; callers pass in the lines they hold.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from procurement.app.db.models.models_v1 import POLineItem
from procurement.services import errors

MIN_LINE_QUANTITY = 1
MAX_LINE_QUANTITY = 10_000

CENT = Decimal("0.01")


def validate_quantity(quantity) -> int:
    # bool is an int subclass; True must not count as 1
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise errors.ValidationError(
            f"quantity must be an integer between {MIN_LINE_QUANTITY} and {MAX_LINE_QUANTITY}"
        )
    if quantity < MIN_LINE_QUANTITY or quantity > MAX_LINE_QUANTITY:
        raise errors.ValidationError(
            f"quantity must be an integer between {MIN_LINE_QUANTITY} and {MAX_LINE_QUANTITY}"
        )
    return quantity


def merged_quantity(current: int, added: int) -> int:
    """Quantity after adding `added` to an existing line."""
    total = current + added
    if total > MAX_LINE_QUANTITY:
        raise errors.QuantityExceeded(
            f"Total quantity cannot exceed {MAX_LINE_QUANTITY} (current={current}, requested={added})"
        )
    return total


def find_line(lines: Iterable[POLineItem], catalog_item_id: str) -> POLineItem | None:
    for line in lines:
        if line.catalog_item_id == catalog_item_id:
            return line
    return None


def to_cents(amount) -> Decimal:
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def line_total(line: POLineItem) -> Decimal:
    return (Decimal(line.quantity) * Decimal(line.unit_price)).quantize(CENT)


def compute_total(lines: Iterable[POLineItem]) -> Decimal:
    total = sum((line_total(line) for line in lines), Decimal("0"))
    return total.quantize(CENT)
