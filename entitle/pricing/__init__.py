"""
Pricing — regional catalog and discount arithmetic.

    from entitle import pricing as P
    from entitle.region import Region

    plan = P.price_for(Region.IN)              # ₹499 / year
    P.final_price(plan.base_price, 20)         # 399
    P.to_minor_units(399, plan.currency)       # 39900
"""

from entitle.pricing._catalog import (
    BillingPeriod,
    PricingPlan,
    CATALOG,
    FALLBACK_PLAN,
    price_for,
    plans_for_currency,
    to_minor_units,
)
from entitle.pricing._discount import final_price

__all__ = (
    "BillingPeriod",
    "PricingPlan",
    "CATALOG",
    "FALLBACK_PLAN",
    "price_for",
    "plans_for_currency",
    "to_minor_units",
    "final_price",
)
