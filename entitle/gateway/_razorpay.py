"""
Razorpay order client.

    POST {api_base}/v1/orders   (HTTP basic auth: key_id:key_secret)
    {"amount": 39900, "currency": "INR", "receipt": "...", "notes": {...}}
"""

from __future__ import annotations

import logging

import httpx
from kungfu import Result, Ok, Error

from entitle.gateway._types import OrderDraft, GatewayOrder, GatewayError

logger = logging.getLogger(__name__)


def _reason(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return "Failed to create order"
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("description"):
            return str(error["description"])
    return "Failed to create order"


class RazorpayGateway:
    def __init__(
        self,
        client: httpx.AsyncClient,
        key_id: str,
        key_secret: str,
        api_base: str = "https://api.razorpay.com",
    ) -> None:
        self._client = client
        self._auth = httpx.BasicAuth(key_id, key_secret)
        self._url = f"{api_base.rstrip('/')}/v1/orders"

    async def create_order(self, draft: OrderDraft) -> Result[GatewayOrder, GatewayError]:
        try:
            response = await self._client.post(
                self._url,
                auth=self._auth,
                json={
                    "amount": draft.amount,
                    "currency": draft.currency,
                    "receipt": draft.receipt,
                    "notes": draft.notes.to_json(),
                },
            )
        except httpx.HTTPError as e:
            return Error(GatewayError(f"Razorpay error: {e}", cause=e))

        if response.is_error:
            reason = _reason(response)
            logger.error("Razorpay rejected order %s (HTTP %d): %s", draft.receipt, response.status_code, reason)
            return Error(GatewayError(f"Razorpay error: {reason}", status_code=response.status_code))

        try:
            body = response.json()
            return Ok(
                GatewayOrder(
                    id=str(body["id"]),
                    amount=int(body["amount"]),
                    currency=str(body["currency"]),
                    receipt=str(body.get("receipt") or draft.receipt),
                    notes=draft.notes,
                )
            )
        except (ValueError, KeyError, TypeError) as e:
            return Error(GatewayError("Razorpay error: malformed order response", cause=e))


__all__ = ("RazorpayGateway",)
