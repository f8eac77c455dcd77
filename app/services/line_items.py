"""
Line item normalization.

Each raw item is checked and its ``line_total`` recomputed from quantity and
unit price. Any ``line_total`` supplied by the caller is discarded.
"""

from typing import Iterable, List, Optional, Tuple

from app.errors import InvalidLineItem
from app.models import DEFAULT_UNIT, LineItem
from app.services import money

# Sequence numbers are stored in a signed 64-bit INTEGER column.
MAX_SEQUENCE_NUMBER = 2 ** 63 - 1


def item_problems(item) -> List[Tuple[str, str]]:
    """Return ``(field, reason)`` pairs for every per-item rule ``item`` breaks."""
    problems = []

    sequence_number = getattr(item, "sequence_number", None)
    if sequence_number is not None and sequence_number < 1:
        problems.append(("sequence_number", "sequence number must be a positive integer"))
    elif sequence_number is not None and sequence_number > MAX_SEQUENCE_NUMBER:
        problems.append(("sequence_number", f"sequence number cannot exceed {MAX_SEQUENCE_NUMBER}"))

    name = getattr(item, "product_name", None)
    if not name or not str(name).strip():
        problems.append(("product_name", "product name is required"))

    quantity = getattr(item, "quantity", None)
    if quantity is None:
        problems.append(("quantity", "quantity is required"))
    elif not quantity.is_finite() or quantity <= 0:
        problems.append(("quantity", "quantity must be greater than 0"))
    elif not money.within_limit(quantity):
        problems.append(("quantity", f"quantity cannot exceed {money.MAX_AMOUNT}"))

    unit_price = getattr(item, "unit_price", None)
    if unit_price is None:
        problems.append(("unit_price", "unit price is required"))
    elif not unit_price.is_finite() or unit_price < 0:
        problems.append(("unit_price", "unit price cannot be negative"))
    elif not money.within_limit(unit_price):
        problems.append(("unit_price", f"unit price cannot exceed {money.MAX_AMOUNT}"))

    return problems


def normalize_item(index: int, item) -> LineItem:
    problems = item_problems(item)
    if problems:
        field, reason = problems[0]
        raise InvalidLineItem(index, reason, field=field)

    sequence_number: Optional[int] = getattr(item, "sequence_number", None)
    return LineItem(
        sequence_number=sequence_number if sequence_number is not None else index + 1,
        product_name=str(item.product_name).strip(),
        unit=getattr(item, "unit", None) or DEFAULT_UNIT,
        quantity=item.quantity,
        unit_price=item.unit_price,
        line_total=money.multiply(item.quantity, item.unit_price),
    )


def normalize_items(items: Iterable) -> List[LineItem]:
    """
    Normalize ``items`` in input order.

    Sequence numbers are preserved; an item without one gets its 1-based
    position. Raises ``InvalidLineItem`` on the first offending item.
    """
    return [normalize_item(index, item) for index, item in enumerate(items)]
