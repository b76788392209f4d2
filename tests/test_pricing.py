import pytest

from entitle.pricing import (
    CATALOG,
    FALLBACK_PLAN,
    BillingPeriod,
    PricingPlan,
    final_price,
    plans_for_currency,
    price_for,
    to_minor_units,
)
from entitle.region import Region


def test_catalog_prices() -> None:
    assert (price_for(Region.IN).currency, price_for(Region.IN).base_price) == ("INR", 499)
    assert (price_for(Region.US).currency, price_for(Region.US).base_price) == ("USD", 12)
    assert (price_for(Region.EU).currency, price_for(Region.EU).base_price) == ("EUR", 11)
    assert price_for(Region.OTHER) == FALLBACK_PLAN
    assert FALLBACK_PLAN.base_price == 799 and FALLBACK_PLAN.symbol == "₹"


def test_every_region_has_a_yearly_plan() -> None:
    for region in Region:
        plan = CATALOG[region]
        assert plan.base_price > 0
        assert plan.period is BillingPeriod.YEAR


@pytest.mark.parametrize("value", [None, "", "mars", "us", " eu "])
def test_price_for_is_total(value: str | None) -> None:
    plan = price_for(value)
    assert isinstance(plan, PricingPlan)


def test_price_for_accepts_region_strings() -> None:
    assert price_for("us") == price_for(Region.US)
    assert price_for("mars") == FALLBACK_PLAN


def test_plan_rejects_non_positive_price() -> None:
    with pytest.raises(ValueError):
        PricingPlan(currency="INR", symbol="₹", base_price=0)


def test_plans_for_currency() -> None:
    assert {p.base_price for p in plans_for_currency("inr")} == {499, 799}
    assert [p.base_price for p in plans_for_currency("USD")] == [12]
    assert plans_for_currency("JPY") == ()


def test_minor_units() -> None:
    assert to_minor_units(399, "INR") == 39900
    assert to_minor_units(12, "usd") == 1200


@pytest.mark.parametrize(
    ("base", "pct", "expected"),
    [
        (499, 0, 499),
        (499, 20, 399),
        (499, 100, 0),
        (12, 25, 9),
        (11, 50, 6),  # 5.5 rounds half up
        (799, 33, 535),  # 535.33
        (1, 50, 1),
    ],
)
def test_final_price(base: int, pct: int, expected: int) -> None:
    assert final_price(base, pct) == expected


@pytest.mark.parametrize("pct", [-1, 101])
def test_final_price_rejects_out_of_range(pct: int) -> None:
    with pytest.raises(ValueError):
        final_price(499, pct)


def test_final_price_never_exceeds_base() -> None:
    for pct in range(0, 101):
        assert 0 <= final_price(799, pct) <= 799


@pytest.mark.parametrize("base", [1, 11, 12, 499, 799, 1999])
def test_larger_discount_never_costs_more(base: int) -> None:
    for pct in range(0, 100):
        assert final_price(base, pct) >= final_price(base, pct + 1)
