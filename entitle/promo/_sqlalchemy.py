"""
Promo codes stored in the promo_codes table.

Also carries the admin operations (create / list / toggle / delete).
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from kungfu import Result, Ok, Error

from entitle.db import PromoCodeTable
from entitle.promo._types import PromoCode, AuthorityError, normalize
from entitle.promo._authority import PromoRule, evaluate


def _to_rule(row: PromoCodeTable) -> PromoRule:
    return PromoRule(
        code=row.code,
        discount_percentage=row.discount_percentage,
        is_active=row.is_active,
        max_uses=row.max_uses,
        current_uses=row.current_uses,
        expires_at=row.expires_at,
    )


class SQLAlchemyPromoAuthority:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def lookup(self, code: str) -> Result[PromoCode | None, AuthorityError]:
        try:
            async with self._session_factory() as session:
                row = (
                    await session.execute(select(PromoCodeTable).where(PromoCodeTable.code == code))
                ).scalar_one_or_none()
                rule = _to_rule(row) if row is not None else None
                return Ok(evaluate(rule, code, datetime.now(timezone.utc)))
        except Exception as e:
            return Error(AuthorityError(f"Failed to look up promo code: {e}", e))

    async def redeem(self, code: str) -> Result[bool, AuthorityError]:
        try:
            async with self._session_factory() as session:
                row = (
                    await session.execute(select(PromoCodeTable).where(PromoCodeTable.code == code))
                ).scalar_one_or_none()
                if row is None or not evaluate(_to_rule(row), code, datetime.now(timezone.utc)).valid:
                    return Ok(False)

                # Conditional increment so concurrent redemptions cannot overshoot max_uses
                stmt = (
                    update(PromoCodeTable)
                    .where(PromoCodeTable.id == row.id)
                    .where(
                        (PromoCodeTable.max_uses.is_(None))
                        | (PromoCodeTable.current_uses < PromoCodeTable.max_uses)
                    )
                    .values(current_uses=PromoCodeTable.current_uses + 1)
                )
                cursor = await session.execute(stmt)
                await session.commit()
                return Ok(cursor.rowcount > 0)
        except Exception as e:
            return Error(AuthorityError(f"Failed to redeem promo code: {e}", e))

    # ───────────────────────────────────────────────────────────────────────────
    # Admin
    # ───────────────────────────────────────────────────────────────────────────

    async def create(
        self,
        code: str,
        discount_percentage: int,
        max_uses: int | None = None,
        expires_at: datetime | None = None,
    ) -> Result[PromoRule, AuthorityError]:
        normalized = normalize(code)
        if not normalized:
            return Error(AuthorityError("Promo code must not be empty"))
        if not 0 < discount_percentage <= 100:
            return Error(AuthorityError("discount_percentage must be in (0, 100]"))

        row = PromoCodeTable(
            code=normalized,
            discount_percentage=discount_percentage,
            max_uses=max_uses,
            current_uses=0,
            is_active=True,
            expires_at=expires_at,
        )
        try:
            async with self._session_factory() as session:
                session.add(row)
                await session.commit()
                return Ok(_to_rule(row))
        except IntegrityError as e:
            return Error(AuthorityError(f"Promo code {normalized} already exists", e))
        except Exception as e:
            return Error(AuthorityError(f"Failed to create promo code: {e}", e))

    async def list_all(self) -> Result[list[PromoRule], AuthorityError]:
        try:
            async with self._session_factory() as session:
                rows = (
                    await session.execute(
                        select(PromoCodeTable).order_by(PromoCodeTable.created_at.desc())
                    )
                ).scalars().all()
                return Ok([_to_rule(r) for r in rows])
        except Exception as e:
            return Error(AuthorityError(f"Failed to list promo codes: {e}", e))

    async def set_active(self, code: str, is_active: bool) -> Result[bool, AuthorityError]:
        try:
            async with self._session_factory() as session:
                cursor = await session.execute(
                    update(PromoCodeTable)
                    .where(PromoCodeTable.code == normalize(code))
                    .values(is_active=is_active)
                )
                await session.commit()
                return Ok(cursor.rowcount > 0)
        except Exception as e:
            return Error(AuthorityError(f"Failed to toggle promo code: {e}", e))

    async def delete(self, code: str) -> Result[bool, AuthorityError]:
        try:
            async with self._session_factory() as session:
                row = (
                    await session.execute(
                        select(PromoCodeTable).where(PromoCodeTable.code == normalize(code))
                    )
                ).scalar_one_or_none()
                if row is None:
                    return Ok(False)
                await session.delete(row)
                await session.commit()
                return Ok(True)
        except Exception as e:
            return Error(AuthorityError(f"Failed to delete promo code: {e}", e))


__all__ = ("SQLAlchemyPromoAuthority",)
