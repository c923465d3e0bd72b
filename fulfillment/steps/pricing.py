"""
Pricing calculator.
"""

from decimal import Decimal
from typing import Any

from fulfillment.core.exceptions import InvalidInput
from fulfillment.core.types import to_decimal, to_quantity


def compute_total(unit_price: Any, quantity: int) -> Decimal:
    """
    Order total for ``quantity`` copies at ``unit_price``.

    Raises:
        InvalidInput: Negative or non-numeric price, or a bad quantity
    """
    price = to_decimal(unit_price, "unit_price")
    if not price.is_finite() or price < 0:
        msg = f"unit_price must be a non-negative number, got {unit_price!r}"
        raise InvalidInput(msg, field="unit_price")

    return price * to_quantity(quantity)
