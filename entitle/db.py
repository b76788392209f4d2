"""
Database layer — SQLAlchemy models for profiles, the subscription ledger
and promo codes.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _uuid() -> str:
    return str(uuid.uuid4())


# ═══════════════════════════════════════════════════════════════════════════════
# Base
# ═══════════════════════════════════════════════════════════════════════════════


class Base(DeclarativeBase):
    pass


# ═══════════════════════════════════════════════════════════════════════════════
# Profiles: the user-directory record holding entitlement
# ═══════════════════════════════════════════════════════════════════════════════


class ProfileTable(Base):
    __tablename__ = "profiles"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)

    has_active_subscription: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    plan_tier: Mapped[str] = mapped_column(String(20), nullable=False, default="free")
    plan_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    plan_start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    plan_end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    used_promo_code: Mapped[str | None] = mapped_column(String(50), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_now)


# ═══════════════════════════════════════════════════════════════════════════════
# Subscriptions: ledger of verified payments
# ═══════════════════════════════════════════════════════════════════════════════


class SubscriptionTable(Base):
    __tablename__ = "subscriptions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    payment_id: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    order_id: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    plan_type: Mapped[str] = mapped_column(String(20), nullable=False, default="yearly")
    amount: Mapped[int | None] = mapped_column(Integer, nullable=True)  # minor units
    currency: Mapped[str | None] = mapped_column(String(3), nullable=True)
    current_period_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    current_period_end: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    auto_renew: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_now)


# ═══════════════════════════════════════════════════════════════════════════════
# Promo Codes
# ═══════════════════════════════════════════════════════════════════════════════


class PromoCodeTable(Base):
    __tablename__ = "promo_codes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    discount_percentage: Mapped[int] = mapped_column(Integer, nullable=False)
    max_uses: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_uses: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_now)


# ═══════════════════════════════════════════════════════════════════════════════
# Database Setup
# ═══════════════════════════════════════════════════════════════════════════════


def open_database(url: str) -> tuple[async_sessionmaker[AsyncSession], AsyncEngine]:
    """Engine + session factory. No I/O until first use."""
    engine = create_async_engine(url, echo=False)
    return async_sessionmaker(engine, expire_on_commit=False), engine


async def create_tables(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def create_database(
    url: str = "sqlite+aiosqlite:///:memory:",
) -> tuple[async_sessionmaker[AsyncSession], AsyncEngine]:
    """Create tables and return (session_factory, engine)."""
    session_factory, engine = open_database(url)
    await create_tables(engine)
    return session_factory, engine


__all__ = (
    "Base",
    "ProfileTable",
    "SubscriptionTable",
    "PromoCodeTable",
    "open_database",
    "create_tables",
    "create_database",
)
