"""
Profiles and subscriptions tables.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from kungfu import Result, Ok, Error

from entitle._types import UserId
from entitle.db import ProfileTable, SubscriptionTable
from entitle.directory._types import (
    DirectoryError,
    PlanTier,
    SubscriptionRecord,
    UserEntitlement,
    UserProfile,
)


def _aware(moment: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes; everything is stored as UTC.
    if moment is None or moment.tzinfo is not None:
        return moment
    return moment.replace(tzinfo=timezone.utc)


def _to_profile(row: ProfileTable) -> UserProfile:
    start = _aware(row.plan_start_date)
    end = _aware(row.plan_end_date)
    active = bool(row.has_active_subscription)
    tier = PlanTier(row.plan_tier) if row.plan_tier else PlanTier.FREE
    # Rows written by other tools may break the invariant; read them as free.
    if active and (tier is not PlanTier.PREMIUM or start is None or end is None or end <= start):
        active = False
    return UserProfile(
        user_id=row.user_id,
        email=row.email,
        entitlement=UserEntitlement(active, tier, row.plan_id, start, end),
        used_promo_code=row.used_promo_code,
    )


def _to_record(row: SubscriptionTable) -> SubscriptionRecord:
    return SubscriptionRecord(
        user_id=row.user_id,
        payment_id=row.payment_id,
        order_id=row.order_id,
        period_start=_aware(row.current_period_start) or row.current_period_start,
        period_end=_aware(row.current_period_end) or row.current_period_end,
        amount=row.amount,
        currency=row.currency,
        status=row.status,
        plan_type=row.plan_type,
        auto_renew=row.auto_renew,
    )


class SQLAlchemyDirectory:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def add(self, user_id: UserId, email: str) -> Result[UserProfile, DirectoryError]:
        """Create a free profile (sign-up hook)."""
        try:
            async with self._session_factory() as session:
                row = ProfileTable(
                    user_id=user_id,
                    email=email,
                    has_active_subscription=False,
                    plan_tier=PlanTier.FREE.value,
                    plan_id=UserEntitlement.free().plan_id,
                )
                session.add(row)
                await session.commit()
                return Ok(_to_profile(row))
        except Exception as e:
            return Error(DirectoryError(f"Failed to create profile: {e}", e))

    async def ensure_profile(self, user_id: UserId, email: str) -> Result[UserProfile, DirectoryError]:
        """Existing profile, or a new free one."""
        match await self.get_profile(user_id):
            case Ok(None):
                return await self.add(user_id, email)
            case Ok(profile):
                return Ok(profile)
            case Error(e):
                return Error(e)

    async def get_profile(self, user_id: UserId) -> Result[UserProfile | None, DirectoryError]:
        try:
            async with self._session_factory() as session:
                row = (
                    await session.execute(select(ProfileTable).where(ProfileTable.user_id == user_id))
                ).scalar_one_or_none()
                return Ok(_to_profile(row) if row is not None else None)
        except Exception as e:
            return Error(DirectoryError(f"Failed to get profile: {e}", e))

    async def update_entitlement(
        self,
        user_id: UserId,
        entitlement: UserEntitlement,
        used_promo_code: str | None = None,
    ) -> Result[None, DirectoryError]:
        try:
            async with self._session_factory() as session:
                cursor = await session.execute(
                    update(ProfileTable)
                    .where(ProfileTable.user_id == user_id)
                    .values(
                        has_active_subscription=entitlement.has_active_subscription,
                        plan_tier=entitlement.plan_tier.value,
                        plan_id=entitlement.plan_id,
                        plan_start_date=entitlement.plan_start_date,
                        plan_end_date=entitlement.plan_end_date,
                        used_promo_code=used_promo_code,
                    )
                )
                await session.commit()
                if cursor.rowcount == 0:
                    return Error(DirectoryError(f"No profile for user {user_id}"))
                return Ok(None)
        except Exception as e:
            return Error(DirectoryError(f"Failed to update entitlement: {e}", e))

    async def record_subscription(self, record: SubscriptionRecord) -> Result[None, DirectoryError]:
        try:
            async with self._session_factory() as session:
                existing = (
                    await session.execute(
                        select(SubscriptionTable).where(
                            SubscriptionTable.payment_id == record.payment_id
                        )
                    )
                ).scalar_one_or_none()
                if existing is None:
                    existing = SubscriptionTable(payment_id=record.payment_id)
                    session.add(existing)
                existing.user_id = record.user_id
                existing.order_id = record.order_id
                existing.status = record.status
                existing.plan_type = record.plan_type
                existing.amount = record.amount
                existing.currency = record.currency
                existing.current_period_start = record.period_start
                existing.current_period_end = record.period_end
                existing.auto_renew = record.auto_renew
                await session.commit()
                return Ok(None)
        except Exception as e:
            return Error(DirectoryError(f"Failed to record subscription: {e}", e))

    async def find_subscription(
        self, payment_id: str
    ) -> Result[SubscriptionRecord | None, DirectoryError]:
        try:
            async with self._session_factory() as session:
                row = (
                    await session.execute(
                        select(SubscriptionTable).where(SubscriptionTable.payment_id == payment_id)
                    )
                ).scalar_one_or_none()
                return Ok(_to_record(row) if row is not None else None)
        except Exception as e:
            return Error(DirectoryError(f"Failed to find subscription: {e}", e))


__all__ = ("SQLAlchemyDirectory",)
