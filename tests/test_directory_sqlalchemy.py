from datetime import timedelta

from entitle import directory as D
from entitle.db import ProfileTable, create_database

from conftest import NOW, err, ok, run


async def _directory() -> tuple[D.SQLAlchemyDirectory, object]:
    session_factory, _ = await create_database()
    return D.SQLAlchemyDirectory(session_factory), session_factory


def test_new_profile_is_free() -> None:
    async def scenario() -> None:
        directory, _ = await _directory()
        ok(await directory.add("u1", "u1@example.com"))

        profile = ok(await directory.get_profile("u1"))
        assert profile is not None
        assert profile.entitlement == D.UserEntitlement.free()
        assert ok(await directory.get_profile("nobody")) is None

    run(scenario())


def test_update_entitlement_round_trips_as_utc() -> None:
    async def scenario() -> None:
        directory, _ = await _directory()
        ok(await directory.add("u1", "u1@example.com"))
        premium = D.UserEntitlement.premium(NOW, timedelta(days=365))

        ok(await directory.update_entitlement("u1", premium, used_promo_code="SAVE20"))

        profile = ok(await directory.get_profile("u1"))
        assert profile.entitlement == premium
        assert profile.entitlement.plan_end_date.tzinfo is not None
        assert profile.used_promo_code == "SAVE20"

    run(scenario())


def test_update_unknown_user_is_error() -> None:
    async def scenario() -> None:
        directory, _ = await _directory()
        premium = D.UserEntitlement.premium(NOW, timedelta(days=365))
        assert "No profile" in err(await directory.update_entitlement("ghost", premium)).message

    run(scenario())


def test_inconsistent_row_reads_as_inactive() -> None:
    async def scenario() -> None:
        directory, session_factory = await _directory()
        async with session_factory() as session:
            session.add(
                ProfileTable(
                    user_id="u2",
                    email="u2@example.com",
                    has_active_subscription=True,
                    plan_tier="premium",
                    plan_id="premium_yearly",
                    plan_start_date=NOW,
                    plan_end_date=None,
                )
            )
            await session.commit()

        profile = ok(await directory.get_profile("u2"))
        assert profile.entitlement.has_active_subscription is False

    run(scenario())


def test_ledger_upserts_by_payment_id() -> None:
    async def scenario() -> None:
        directory, _ = await _directory()
        first = D.SubscriptionRecord(
            user_id="u1",
            payment_id="pay_1",
            order_id="order_1",
            period_start=NOW,
            period_end=NOW + timedelta(days=365),
            amount=39900,
            currency="INR",
        )
        ok(await directory.record_subscription(first))
        assert ok(await directory.find_subscription("pay_1")) == first

        later = NOW + timedelta(days=10)
        again = D.SubscriptionRecord("u1", "pay_1", "order_1", later, later + timedelta(days=365))
        ok(await directory.record_subscription(again))
        assert ok(await directory.find_subscription("pay_1")) == again
        assert ok(await directory.find_subscription("pay_2")) is None

    run(scenario())


def test_ensure_profile_creates_once() -> None:
    async def scenario() -> None:
        directory, _ = await _directory()
        created = ok(await directory.ensure_profile("u1", "u1@example.com"))
        assert created.entitlement == D.UserEntitlement.free()

        premium = D.UserEntitlement.premium(NOW, timedelta(days=365))
        ok(await directory.update_entitlement("u1", premium))
        again = ok(await directory.ensure_profile("u1", "other@example.com"))
        assert again.entitlement == premium
        assert again.email == "u1@example.com"

    run(scenario())
