import math
from decimal import Decimal


def size_quantity(position_size: Decimal, price: Decimal) -> int:
    """Whole shares for a dollar budget, never fewer than one."""
    if not (Decimal(position_size).is_finite() and Decimal(price).is_finite()):
        raise ValueError(f"cannot size {position_size} at price {price}")
    if price <= 0:
        raise ValueError(f"price must be positive, got {price}")
    return max(1, math.floor(Decimal(position_size) / Decimal(price)))


def order_qty_from_position(qty: Decimal) -> int:
    # signed/fractional broker qty -> absolute whole shares (truncated)
    return int(abs(Decimal(qty)))
