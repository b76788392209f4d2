"""
Identity provider and hosted profile store, both over httpx.

    GET   {url}/auth/v1/user                            Authorization: Bearer <user token>
      → {"id": "...", "email": "..."}

    GET   {url}/rest/v1/profiles?user_id=eq.<id>
    PATCH {url}/rest/v1/profiles?user_id=eq.<id>        Prefer: return=representation
      → [] when no row matched

    GET   {url}/rest/v1/subscriptions?razorpay_payment_id=eq.<id>
    POST  {url}/rest/v1/subscriptions?on_conflict=razorpay_payment_id
                                                        Prefer: resolution=merge-duplicates
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

import httpx
from kungfu import Result, Ok, Error

from entitle._types import BearerCredential, UserId
from entitle.directory._types import (
    DirectoryError,
    Identity,
    PlanTier,
    SubscriptionRecord,
    UserEntitlement,
    UserProfile,
)


class RemoteAuthenticator:
    def __init__(self, client: httpx.AsyncClient, url: str, service_key: str) -> None:
        self._client = client
        self._url = f"{url.rstrip('/')}/auth/v1/user"
        self._service_key = service_key

    async def authenticate(self, credential: BearerCredential) -> Result[Identity, DirectoryError]:
        try:
            response = await self._client.get(
                self._url,
                headers={
                    "apikey": self._service_key,
                    "Authorization": f"Bearer {credential.token}",
                },
            )
        except httpx.HTTPError as e:
            return Error(DirectoryError(f"Identity provider unreachable: {e}", e))

        if response.is_error:
            return Error(DirectoryError(f"Identity provider rejected token (HTTP {response.status_code})"))

        try:
            body = response.json()
            user_id = body["id"]
        except (ValueError, KeyError, TypeError) as e:
            return Error(DirectoryError("Identity provider returned a malformed user", e))
        if not user_id:
            return Error(DirectoryError("Identity provider returned no user"))
        return Ok(Identity(user_id=str(user_id), email=str(body.get("email") or "")))


# ═══════════════════════════════════════════════════════════════════════════════
# Hosted profiles and ledger
# ═══════════════════════════════════════════════════════════════════════════════


def _moment(value: Any) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _iso(moment: datetime | None) -> str | None:
    return moment.isoformat() if moment is not None else None


def _to_profile(row: dict[str, Any]) -> UserProfile:
    start = _moment(row.get("plan_start_date"))
    end = _moment(row.get("plan_end_date"))
    active = bool(row.get("has_active_subscription"))
    tier = PlanTier(row["plan_tier"]) if row.get("plan_tier") else PlanTier.FREE
    if active and (tier is not PlanTier.PREMIUM or start is None or end is None or end <= start):
        active = False
    return UserProfile(
        user_id=str(row["user_id"]),
        email=str(row.get("email") or ""),
        entitlement=UserEntitlement(active, tier, row.get("plan_id"), start, end),
        used_promo_code=row.get("used_promo_code"),
    )


def _to_record(row: dict[str, Any]) -> SubscriptionRecord:
    return SubscriptionRecord(
        user_id=str(row["user_id"]),
        payment_id=str(row["razorpay_payment_id"]),
        order_id=str(row["razorpay_order_id"]),
        period_start=datetime.fromisoformat(row["current_period_start"]),
        period_end=datetime.fromisoformat(row["current_period_end"]),
        amount=row.get("amount"),
        currency=row.get("currency"),
        status=row.get("status") or "active",
        plan_type=row.get("plan_type") or "yearly",
        auto_renew=bool(row.get("auto_renew")),
    )


class RemoteDirectory:
    """
    Profiles and subscriptions kept by the identity provider's data API.

    Used whenever users authenticate remotely, so the entitlement lands on
    the same profile row the provider created at sign-up.
    """

    def __init__(self, client: httpx.AsyncClient, url: str, service_key: str) -> None:
        self._client = client
        self._url = f"{url.rstrip('/')}/rest/v1"
        self._headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
        }

    async def _send(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, str],
        json: dict[str, Any] | None = None,
        prefer: str | None = None,
    ) -> Result[list[dict[str, Any]], DirectoryError]:
        headers = dict(self._headers)
        if prefer:
            headers["Prefer"] = prefer
        try:
            response = await self._client.request(
                method, f"{self._url}/{table}", params=params, json=json, headers=headers
            )
        except httpx.HTTPError as e:
            return Error(DirectoryError(f"{table} transport error: {e}", e))

        if response.is_error:
            return Error(DirectoryError(f"{method} {table} returned HTTP {response.status_code}"))
        if not response.content:
            return Ok([])
        try:
            rows = response.json()
        except ValueError as e:
            return Error(DirectoryError(f"{table} returned invalid JSON", e))
        if not isinstance(rows, list):
            return Error(DirectoryError(f"{table} returned a non-list body"))
        return Ok(rows)

    async def get_profile(self, user_id: UserId) -> Result[UserProfile | None, DirectoryError]:
        match await self._send("GET", "profiles", params={"user_id": f"eq.{user_id}"}):
            case Ok(rows):
                if not rows:
                    return Ok(None)
                try:
                    return Ok(_to_profile(rows[0]))
                except (KeyError, TypeError, ValueError) as e:
                    return Error(DirectoryError("profiles returned a malformed row", e))
            case Error(e):
                return Error(e)

    async def update_entitlement(
        self,
        user_id: UserId,
        entitlement: UserEntitlement,
        used_promo_code: str | None = None,
    ) -> Result[None, DirectoryError]:
        written = await self._send(
            "PATCH",
            "profiles",
            params={"user_id": f"eq.{user_id}"},
            json={
                "has_active_subscription": entitlement.has_active_subscription,
                "plan_tier": entitlement.plan_tier.value,
                "plan_id": entitlement.plan_id,
                "plan_start_date": _iso(entitlement.plan_start_date),
                "plan_end_date": _iso(entitlement.plan_end_date),
                "used_promo_code": used_promo_code,
            },
            prefer="return=representation",
        )
        match written:
            case Ok([]):
                return Error(DirectoryError(f"No profile for user {user_id}"))
            case Ok(_):
                return Ok(None)
            case Error(e):
                return Error(e)

    async def record_subscription(self, record: SubscriptionRecord) -> Result[None, DirectoryError]:
        written = await self._send(
            "POST",
            "subscriptions",
            params={"on_conflict": "razorpay_payment_id"},
            json={
                "user_id": record.user_id,
                "razorpay_payment_id": record.payment_id,
                "razorpay_order_id": record.order_id,
                "status": record.status,
                "plan_type": record.plan_type,
                "amount": record.amount,
                "currency": record.currency,
                "current_period_start": _iso(record.period_start),
                "current_period_end": _iso(record.period_end),
                "auto_renew": record.auto_renew,
            },
            prefer="resolution=merge-duplicates",
        )
        match written:
            case Ok(_):
                return Ok(None)
            case Error(e):
                return Error(e)

    async def find_subscription(
        self, payment_id: str
    ) -> Result[SubscriptionRecord | None, DirectoryError]:
        match await self._send("GET", "subscriptions", params={"razorpay_payment_id": f"eq.{payment_id}"}):
            case Ok(rows):
                if not rows:
                    return Ok(None)
                try:
                    return Ok(_to_record(rows[0]))
                except (KeyError, TypeError, ValueError) as e:
                    return Error(DirectoryError("subscriptions returned a malformed row", e))
            case Error(e):
                return Error(e)


__all__ = (
    "RemoteAuthenticator",
    "RemoteDirectory",
)
