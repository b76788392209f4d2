"""
Discount calculator.

Rounding is half-up to the nearest display unit, done in Decimal so
``499 * 0.8`` lands on 399 and ``.5`` always rounds away from zero.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP


def final_price(base_price: int, discount_percentage: int) -> int:
    """
    Charge amount after a percentage discount.

    Example:
        final_price(499, 20)   # 399
        final_price(499, 0)    # 499
        final_price(499, 100)  # 0
    """
    if not 0 <= discount_percentage <= 100:
        raise ValueError(f"discount_percentage must be in [0, 100], got {discount_percentage}")
    if discount_percentage == 0:
        return base_price

    exact = Decimal(base_price) * (Decimal(100) - Decimal(discount_percentage)) / Decimal(100)
    return int(exact.quantize(Decimal(1), rounding=ROUND_HALF_UP))


__all__ = ("final_price",)
