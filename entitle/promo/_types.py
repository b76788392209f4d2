"""
Validation answers and the authority protocol.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from kungfu import Result

# ═══════════════════════════════════════════════════════════════════════════════
# Validation Answer
# ═══════════════════════════════════════════════════════════════════════════════

MSG_EMPTY = "Please enter a promo code"
MSG_ERROR = "Error validating code"
MSG_UNKNOWN = "Invalid promo code"


@dataclass(frozen=True, slots=True)
class PromoCode:
    """
    Authority's verdict on a code.

    Note: discount_percentage is always 0 when valid is False.
    """

    code: str
    valid: bool
    discount_percentage: int
    message: str

    def __post_init__(self) -> None:
        if not self.valid and self.discount_percentage != 0:
            object.__setattr__(self, "discount_percentage", 0)
        elif not 0 <= self.discount_percentage <= 100:
            object.__setattr__(
                self, "discount_percentage", min(max(self.discount_percentage, 0), 100)
            )

    @classmethod
    def rejected(cls, code: str, message: str) -> PromoCode:
        return cls(code=code, valid=False, discount_percentage=0, message=message)

    def to_json(self) -> dict[str, object]:
        return {
            "valid": self.valid,
            "discount_percentage": self.discount_percentage,
            "message": self.message,
        }


def normalize(code: str | None) -> str:
    return (code or "").strip().upper()


# ═══════════════════════════════════════════════════════════════════════════════
# Authority Protocol
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class AuthorityError:
    """Promo authority transport or backend error."""

    message: str
    cause: Exception | None = None


class PromoAuthority(Protocol):
    """
    Trusted source of promo verdicts.

    Codes passed in are already normalized (trimmed, upper-cased).
    """

    async def lookup(self, code: str) -> Result[PromoCode | None, AuthorityError]:
        """Verdict for ``code``. Ok(None) when the authority has no answer."""
        ...

    async def redeem(self, code: str) -> Result[bool, AuthorityError]:
        """Count one use of ``code``. Ok(False) if it could not be used."""
        ...


__all__ = (
    "MSG_EMPTY",
    "MSG_ERROR",
    "MSG_UNKNOWN",
    "PromoCode",
    "normalize",
    "AuthorityError",
    "PromoAuthority",
)
