"""
User profiles, entitlement, and the ledger record.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Protocol

from kungfu import Result

from entitle._types import BearerCredential, UserId

PREMIUM_YEARLY = "premium_yearly"
FREE_TIER = "free_tier"


class PlanTier(Enum):
    FREE = "free"
    PREMIUM = "premium"


# ═══════════════════════════════════════════════════════════════════════════════
# Entitlement
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class UserEntitlement:
    """
    Subscription fields of a profile.

    Invariant: an active subscription is premium and ends after it starts.
    """

    has_active_subscription: bool
    plan_tier: PlanTier
    plan_id: str | None
    plan_start_date: datetime | None
    plan_end_date: datetime | None

    def __post_init__(self) -> None:
        if not self.has_active_subscription:
            return
        if self.plan_tier is not PlanTier.PREMIUM:
            raise ValueError("active subscription must be premium")
        if (
            self.plan_start_date is None
            or self.plan_end_date is None
            or self.plan_end_date <= self.plan_start_date
        ):
            raise ValueError("active subscription must end after it starts")

    @classmethod
    def free(cls) -> UserEntitlement:
        return cls(False, PlanTier.FREE, FREE_TIER, None, None)

    @classmethod
    def premium(
        cls, start: datetime, term: timedelta, plan_id: str = PREMIUM_YEARLY
    ) -> UserEntitlement:
        return cls(True, PlanTier.PREMIUM, plan_id, start, start + term)

    def is_active_at(self, moment: datetime) -> bool:
        return (
            self.has_active_subscription
            and self.plan_end_date is not None
            and moment < self.plan_end_date
        )


@dataclass(frozen=True, slots=True)
class Identity:
    """What a bearer credential resolves to."""

    user_id: UserId
    email: str = ""


@dataclass(frozen=True, slots=True)
class UserProfile:
    user_id: UserId
    email: str
    entitlement: UserEntitlement
    used_promo_code: str | None = None


@dataclass(frozen=True, slots=True)
class SubscriptionRecord:
    """One verified payment in the ledger. One-time yearly, never auto-renewed."""

    user_id: UserId
    payment_id: str
    order_id: str
    period_start: datetime
    period_end: datetime
    amount: int | None = None  # minor units
    currency: str | None = None
    status: str = "active"
    plan_type: str = "yearly"
    auto_renew: bool = False


# ═══════════════════════════════════════════════════════════════════════════════
# Protocols: all methods return Result
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class DirectoryError:
    """User-directory or identity-provider error."""

    message: str
    cause: Exception | None = None


class Directory(Protocol):
    async def get_profile(self, user_id: UserId) -> Result[UserProfile | None, DirectoryError]:
        ...

    async def update_entitlement(
        self,
        user_id: UserId,
        entitlement: UserEntitlement,
        used_promo_code: str | None = None,
    ) -> Result[None, DirectoryError]:
        """Single-record write keyed by user id. Error if no such user."""
        ...

    async def record_subscription(self, record: SubscriptionRecord) -> Result[None, DirectoryError]:
        ...

    async def find_subscription(
        self, payment_id: str
    ) -> Result[SubscriptionRecord | None, DirectoryError]:
        ...


class Authenticator(Protocol):
    async def authenticate(self, credential: BearerCredential) -> Result[Identity, DirectoryError]:
        """Resolve a bearer credential. Error for unknown tokens and outages alike."""
        ...


__all__ = (
    "PREMIUM_YEARLY",
    "FREE_TIER",
    "PlanTier",
    "UserEntitlement",
    "Identity",
    "UserProfile",
    "SubscriptionRecord",
    "DirectoryError",
    "Directory",
    "Authenticator",
)
