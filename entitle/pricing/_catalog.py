"""
Region to PricingPlan lookup table.

Note: every Region has exactly one plan. Adding a Region means adding its
plan here in the same change.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from entitle.region import Region


class BillingPeriod(Enum):
    YEAR = "year"


@dataclass(frozen=True, slots=True)
class PricingPlan:
    currency: str  # ISO-4217
    symbol: str
    base_price: int  # display units, not minor units
    period: BillingPeriod = BillingPeriod.YEAR

    def __post_init__(self) -> None:
        if self.base_price <= 0:
            raise ValueError(f"base_price must be positive, got {self.base_price}")
        if not self.currency or not self.symbol:
            raise ValueError("currency and symbol are required")


FALLBACK_PLAN = PricingPlan(currency="INR", symbol="₹", base_price=799)

CATALOG: Mapping[Region, PricingPlan] = MappingProxyType({
    Region.IN: PricingPlan(currency="INR", symbol="₹", base_price=499),
    Region.US: PricingPlan(currency="USD", symbol="$", base_price=12),
    Region.EU: PricingPlan(currency="EUR", symbol="€", base_price=11),
    Region.OTHER: FALLBACK_PLAN,
})

# Minor-unit exponent per currency; anything unlisted uses 2.
_EXPONENTS: Mapping[str, int] = MappingProxyType({"INR": 2, "USD": 2, "EUR": 2})


def price_for(region: Region | str | None) -> PricingPlan:
    """Total lookup: unknown or unresolved input gets the fallback plan."""
    if isinstance(region, str):
        try:
            region = Region(region.strip().upper())
        except ValueError:
            return FALLBACK_PLAN
    if region is None:
        return FALLBACK_PLAN
    return CATALOG.get(region, FALLBACK_PLAN)


def plans_for_currency(currency: str) -> tuple[PricingPlan, ...]:
    """Distinct plans billed in ``currency`` (case-insensitive)."""
    code = currency.strip().upper()
    seen: list[PricingPlan] = []
    for plan in CATALOG.values():
        if plan.currency == code and plan not in seen:
            seen.append(plan)
    return tuple(seen)


def to_minor_units(amount: int, currency: str) -> int:
    """Display amount → gateway amount (e.g. rupees → paise)."""
    return amount * 10 ** _EXPONENTS.get(currency.strip().upper(), 2)


__all__ = (
    "BillingPeriod",
    "PricingPlan",
    "CATALOG",
    "FALLBACK_PLAN",
    "price_for",
    "plans_for_currency",
    "to_minor_units",
)
