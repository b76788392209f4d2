"""
Promo rules and the in-memory authority.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone

from kungfu import Result, Ok

from entitle.promo._types import PromoCode, AuthorityError, MSG_UNKNOWN


# ═══════════════════════════════════════════════════════════════════════════════
# Rule Evaluation: shared by Memory and SQLAlchemy authorities
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True)
class PromoRule:
    code: str
    discount_percentage: int
    is_active: bool = True
    max_uses: int | None = None
    current_uses: int = 0
    expires_at: datetime | None = None


def _aware(moment: datetime) -> datetime:
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


def evaluate(rule: PromoRule | None, code: str, now: datetime) -> PromoCode:
    """Turn a stored rule into a verdict at ``now``."""
    if rule is None:
        return PromoCode.rejected(code, MSG_UNKNOWN)
    if not rule.is_active:
        return PromoCode.rejected(code, "Promo code is no longer active")
    if rule.expires_at is not None and _aware(rule.expires_at) <= _aware(now):
        return PromoCode.rejected(code, "Promo code has expired")
    if rule.max_uses is not None and rule.current_uses >= rule.max_uses:
        return PromoCode.rejected(code, "Promo code usage limit reached")
    return PromoCode(
        code=code,
        valid=True,
        discount_percentage=rule.discount_percentage,
        message=f"Promo code applied! {rule.discount_percentage}% off",
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Memory Authority: For Testing
# ═══════════════════════════════════════════════════════════════════════════════


class MemoryPromoAuthority:
    """
    In-process promo authority.

    Note: Single-instance only. ``calls`` counts lookups so callers can
    assert that no lookup happened.
    """

    def __init__(self, *rules: PromoRule) -> None:
        self._rules: dict[str, PromoRule] = {r.code.upper(): r for r in rules}
        self._lock = asyncio.Lock()
        self.calls = 0

    def add(self, rule: PromoRule) -> None:
        self._rules[rule.code.upper()] = rule

    async def lookup(self, code: str) -> Result[PromoCode | None, AuthorityError]:
        self.calls += 1
        async with self._lock:
            rule = self._rules.get(code)
            if rule is None:
                return Ok(None)
            return Ok(evaluate(rule, code, datetime.now(timezone.utc)))

    async def redeem(self, code: str) -> Result[bool, AuthorityError]:
        async with self._lock:
            rule = self._rules.get(code)
            if rule is None or not evaluate(rule, code, datetime.now(timezone.utc)).valid:
                return Ok(False)
            rule.current_uses += 1
            return Ok(True)


__all__ = (
    "PromoRule",
    "evaluate",
    "MemoryPromoAuthority",
)
