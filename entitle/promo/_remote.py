"""
Remote promo authority — remote procedures on the data layer (PostgREST).

    POST {url}/rest/v1/rpc/validate_promo_code  {"promo_code": "SAVE20"}
      → [{"valid": true, "discount_percentage": 20, "message": "..."}]

    POST {url}/rest/v1/rpc/use_promo_code       {"promo_code": "SAVE20"}
      → true
"""

from __future__ import annotations

from typing import Any

import httpx
from kungfu import Result, Ok, Error

from entitle.promo._types import PromoCode, AuthorityError


class RemotePromoAuthority:
    def __init__(self, client: httpx.AsyncClient, url: str, service_key: str) -> None:
        self._client = client
        self._url = url.rstrip("/")
        self._headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
        }

    async def _rpc(self, name: str, code: str) -> Result[Any, AuthorityError]:
        try:
            response = await self._client.post(
                f"{self._url}/rest/v1/rpc/{name}",
                json={"promo_code": code},
                headers=self._headers,
            )
        except httpx.HTTPError as e:
            return Error(AuthorityError(f"{name} transport error: {e}", e))

        if response.is_error:
            return Error(AuthorityError(f"{name} returned HTTP {response.status_code}"))
        try:
            return Ok(response.json())
        except ValueError as e:
            return Error(AuthorityError(f"{name} returned invalid JSON", e))

    async def lookup(self, code: str) -> Result[PromoCode | None, AuthorityError]:
        match await self._rpc("validate_promo_code", code):
            case Ok(rows):
                if not isinstance(rows, list) or not rows:
                    return Ok(None)
                first = rows[0]
                try:
                    return Ok(
                        PromoCode(
                            code=code,
                            valid=bool(first["valid"]),
                            discount_percentage=int(first.get("discount_percentage") or 0),
                            message=str(first.get("message") or ""),
                        )
                    )
                except (KeyError, TypeError, ValueError) as e:
                    return Error(AuthorityError("validate_promo_code returned a malformed row", e))
            case Error(e):
                return Error(e)

    async def redeem(self, code: str) -> Result[bool, AuthorityError]:
        match await self._rpc("use_promo_code", code):
            case Ok(used):
                return Ok(bool(used))
            case Error(e):
                return Error(e)


__all__ = ("RemotePromoAuthority",)
