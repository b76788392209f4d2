"""
In-memory directory and authenticator for tests and local runs.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace

from kungfu import Result, Ok, Error

from entitle._types import BearerCredential, UserId
from entitle.directory._types import (
    DirectoryError,
    Identity,
    SubscriptionRecord,
    UserEntitlement,
    UserProfile,
)


class MemoryDirectory:
    """
    Note: ``update_attempts`` counts every entitlement write attempt, failed
    ones included, so tests can assert that no write was tried.
    """

    def __init__(self, *profiles: UserProfile) -> None:
        self._profiles: dict[UserId, UserProfile] = {p.user_id: p for p in profiles}
        self._ledger: dict[str, SubscriptionRecord] = {}
        self._lock = asyncio.Lock()
        self.update_attempts = 0
        self.fail_updates = False
        self.fail_ledger = False

    def add(self, user_id: UserId, email: str = "") -> UserProfile:
        profile = UserProfile(user_id, email, UserEntitlement.free())
        self._profiles[user_id] = profile
        return profile

    @property
    def ledger(self) -> list[SubscriptionRecord]:
        return list(self._ledger.values())

    async def get_profile(self, user_id: UserId) -> Result[UserProfile | None, DirectoryError]:
        async with self._lock:
            return Ok(self._profiles.get(user_id))

    async def update_entitlement(
        self,
        user_id: UserId,
        entitlement: UserEntitlement,
        used_promo_code: str | None = None,
    ) -> Result[None, DirectoryError]:
        async with self._lock:
            self.update_attempts += 1
            if self.fail_updates:
                return Error(DirectoryError("directory unavailable"))
            profile = self._profiles.get(user_id)
            if profile is None:
                return Error(DirectoryError(f"No profile for user {user_id}"))
            self._profiles[user_id] = replace(
                profile, entitlement=entitlement, used_promo_code=used_promo_code
            )
            return Ok(None)

    async def record_subscription(self, record: SubscriptionRecord) -> Result[None, DirectoryError]:
        async with self._lock:
            if self.fail_ledger:
                return Error(DirectoryError("ledger unavailable"))
            self._ledger[record.payment_id] = record
            return Ok(None)

    async def find_subscription(
        self, payment_id: str
    ) -> Result[SubscriptionRecord | None, DirectoryError]:
        async with self._lock:
            return Ok(self._ledger.get(payment_id))


class StaticAuthenticator:
    """Fixed token → identity table."""

    def __init__(self, tokens: dict[str, Identity] | None = None) -> None:
        self._tokens = dict(tokens or {})

    def grant(self, token: str, identity: Identity) -> None:
        self._tokens[token] = identity

    async def authenticate(self, credential: BearerCredential) -> Result[Identity, DirectoryError]:
        identity = self._tokens.get(credential.token)
        if identity is None:
            return Error(DirectoryError("Unknown bearer token"))
        return Ok(identity)


__all__ = (
    "MemoryDirectory",
    "StaticAuthenticator",
)
