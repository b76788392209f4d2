"""
Promo validator — the pipeline's only way to learn a discount.

Failure never turns into a discount: empty input, transport errors and
authority errors all come back as an invalid PromoCode with 0%.
"""

from __future__ import annotations

import logging

from kungfu import Ok, Error

from entitle.pricing import final_price
from entitle.promo._types import (
    PromoAuthority,
    PromoCode,
    normalize,
    MSG_EMPTY,
    MSG_ERROR,
    MSG_UNKNOWN,
)

logger = logging.getLogger(__name__)


class PromoValidator:
    def __init__(self, authority: PromoAuthority) -> None:
        self._authority = authority

    async def validate(self, code: str | None) -> PromoCode:
        normalized = normalize(code)
        if not normalized:
            return PromoCode.rejected(normalized, MSG_EMPTY)

        try:
            answer = await self._authority.lookup(normalized)
        except Exception:
            logger.exception("Promo authority raised for %s", normalized)
            return PromoCode.rejected(normalized, MSG_ERROR)

        match answer:
            case Ok(None):
                return PromoCode.rejected(normalized, MSG_UNKNOWN)
            case Ok(verdict):
                return PromoCode(
                    code=normalized,
                    valid=verdict.valid,
                    discount_percentage=verdict.discount_percentage,
                    message=verdict.message,
                )
            case Error(e):
                logger.warning("Error validating promo code %s: %s", normalized, e.message)
                return PromoCode.rejected(normalized, MSG_ERROR)

    async def redeem(self, code: str | None) -> bool:
        """Best-effort usage count; False on any failure."""
        normalized = normalize(code)
        if not normalized:
            return False
        try:
            result = await self._authority.redeem(normalized)
        except Exception:
            logger.exception("Promo authority raised redeeming %s", normalized)
            return False
        match result:
            case Ok(used):
                return used
            case Error(e):
                logger.warning("Failed to redeem promo code %s: %s", normalized, e.message)
                return False


class PromoSession:
    """
    Display-side promo state for one checkout.

    apply() only ever sets the active code; an invalid code leaves the
    previous one in place. clear() is the only way to drop it.
    """

    def __init__(self, validator: PromoValidator) -> None:
        self._validator = validator
        self.active_code: str = ""
        self.discount_percentage: int = 0
        self.message: str = ""
        self.last_result: PromoCode | None = None

    async def validate(self, code: str | None) -> PromoCode:
        result = await self._validator.validate(code)
        self.last_result = result
        return result

    async def apply(self, code: str | None) -> PromoCode:
        result = await self.validate(code)
        if result.valid:
            self.active_code = result.code
            self.discount_percentage = result.discount_percentage
            self.message = result.message
        return result

    def clear(self) -> None:
        self.active_code = ""
        self.discount_percentage = 0
        self.message = ""

    def discounted_price(self, base_price: int) -> int:
        return final_price(base_price, self.discount_percentage)


__all__ = (
    "PromoValidator",
    "PromoSession",
)
