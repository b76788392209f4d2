"""
Order drafts, placed orders, and the gateway protocol.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from typing import Protocol

from kungfu import Result, Ok, Error

from entitle._types import UserId


@dataclass(frozen=True, slots=True)
class OrderNotes:
    """Audit metadata attached to a gateway order."""

    user_id: UserId
    promo_code: str = ""
    discount: int = 0

    def to_json(self) -> dict[str, object]:
        return {"user_id": self.user_id, "promo_code": self.promo_code, "discount": self.discount}


@dataclass(frozen=True, slots=True)
class OrderDraft:
    amount: int  # minor units
    currency: str
    receipt: str
    notes: OrderNotes


@dataclass(frozen=True, slots=True)
class GatewayOrder:
    id: str
    amount: int
    currency: str
    receipt: str
    notes: OrderNotes


@dataclass(frozen=True)
class GatewayError:
    """Gateway rejection or transport failure, with the gateway's reason."""

    message: str
    status_code: int | None = None
    cause: Exception | None = None


class PaymentGateway(Protocol):
    async def create_order(self, draft: OrderDraft) -> Result[GatewayOrder, GatewayError]:
        """Place one order. Never retried by the caller."""
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# Memory Gateway: For Testing
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass
class MemoryGateway:
    """
    Records drafts and hands out ``order_…`` ids.

    Set ``reject_with`` to make every call fail with that reason.
    """

    reject_with: str | None = None
    drafts: list[OrderDraft] = field(default_factory=list[OrderDraft])
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    async def create_order(self, draft: OrderDraft) -> Result[GatewayOrder, GatewayError]:
        async with self._lock:
            self.drafts.append(draft)
        if self.reject_with is not None:
            return Error(GatewayError(self.reject_with, status_code=400))
        return Ok(
            GatewayOrder(
                id=f"order_{uuid.uuid4().hex[:14]}",
                amount=draft.amount,
                currency=draft.currency,
                receipt=draft.receipt,
                notes=draft.notes,
            )
        )


__all__ = (
    "OrderNotes",
    "OrderDraft",
    "GatewayOrder",
    "GatewayError",
    "PaymentGateway",
    "MemoryGateway",
)
