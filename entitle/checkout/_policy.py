"""
Checkout policy: signing secret, entitlement term, replay handling.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum


class ReplayPolicy(Enum):
    """
    What to do when an already-verified payment is verified again.

    EXTEND_FROM_NOW  re-apply entitlement anchored at the new verification
                     time (so a replay extends plan_end_date)
    REJECT_CONSUMED  refuse payments already in the subscription ledger
    """

    EXTEND_FROM_NOW = "extend_from_now"
    REJECT_CONSUMED = "reject_consumed"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class CheckoutPolicy:
    signing_secret: str = field(repr=False)
    replay: ReplayPolicy = ReplayPolicy.EXTEND_FROM_NOW
    term: timedelta = timedelta(days=365)
    clock: Callable[[], datetime] = utcnow

    def __post_init__(self) -> None:
        if self.term <= timedelta(0):
            raise ValueError("term must be positive")


__all__ = (
    "ReplayPolicy",
    "CheckoutPolicy",
    "utcnow",
)
