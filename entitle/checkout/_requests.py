"""
Checkout operations and their results.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from entitle._errors import PipelineError
from entitle._types import BearerCredential, UserId
from entitle.directory import UserEntitlement
from entitle.ops import Returning
from entitle.pricing import BillingPeriod
from entitle.promo import PromoCode
from entitle.region import Region

# ═══════════════════════════════════════════════════════════════════════════════
# Results
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Quote:
    region: Region
    currency: str
    symbol: str
    base_price: int
    discount_percentage: int
    final_price: int
    amount: int  # minor units, what /create-order expects
    period: BillingPeriod
    promo: PromoCode | None


@dataclass(frozen=True, slots=True)
class OrderPlaced:
    order_id: str
    amount: int
    currency: str


@dataclass(frozen=True, slots=True)
class Activated:
    user_id: UserId
    payment_id: str
    order_id: str
    entitlement: UserEntitlement
    verified_at: datetime


# ═══════════════════════════════════════════════════════════════════════════════
# Operations
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ResolveQuote(Returning[Quote, PipelineError]):
    locale: str | None = None
    timezone: str | None = None
    promo_code: str | None = None


@dataclass(frozen=True, slots=True)
class ValidatePromo(Returning[PromoCode, PipelineError]):
    promo_code: str | None = None


@dataclass(frozen=True, slots=True)
class CreateOrder(Returning[OrderPlaced, PipelineError]):
    """
    Note: ``discount`` is what the client claims; it is logged and ignored.
    The discount on the order comes from re-validating ``promo_code``.
    """

    credential: BearerCredential | None
    user_id: UserId | None
    amount: int | None
    currency: str | None
    promo_code: str | None = None
    discount: int | None = None


@dataclass(frozen=True, slots=True)
class VerifyPayment(Returning[Activated, PipelineError]):
    credential: BearerCredential | None
    payment_id: str | None
    order_id: str | None
    signature: str | None
    promo_code: str | None = None
    amount: int | None = None
    currency: str | None = None


__all__ = (
    "Quote",
    "OrderPlaced",
    "Activated",
    "ResolveQuote",
    "ValidatePromo",
    "CreateOrder",
    "VerifyPayment",
)
