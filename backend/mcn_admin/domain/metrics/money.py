from __future__ import annotations

from decimal import Decimal
from typing import Any

ZERO = Decimal("0")
PER_MILLE = Decimal("1000")


def to_decimal(value: Any) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    # floats go through str() so 5.1 stays 5.1 rather than its binary expansion
    return Decimal(str(value))


def compute_rpm(revenue: Any, views: Any) -> Decimal:
    """Revenue per thousand views; 0 when there are no views."""
    views = int(views or 0)
    if views <= 0:
        return ZERO
    return to_decimal(revenue) * PER_MILLE / Decimal(views)
