"""
Command line entry point.

    entitle serve [--host H] [--port P]
    entitle quote --locale hi-IN --timezone Asia/Kolkata [--promo SAVE20]
    entitle init-db
    entitle promo create CODE PERCENT [--max-uses N] [--expires 2026-12-31]
    entitle promo list | toggle CODE on|off | delete CODE
    entitle profile add USER_ID EMAIL | show USER_ID
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime, timezone

from kungfu import Ok, Error

from entitle import directory as D
from entitle import promo as PR
from entitle.config import Settings
from entitle.db import create_database
from entitle.pricing import final_price, price_for, to_minor_units
from entitle.region import resolve

logger = logging.getLogger("entitle")


def _configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _parse_expiry(raw: str) -> datetime:
    moment = datetime.fromisoformat(raw)
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


# ═══════════════════════════════════════════════════════════════════════════════
# Commands
# ═══════════════════════════════════════════════════════════════════════════════


def cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    import uvicorn

    from entitle.api import create_app

    uvicorn.run(create_app(settings), host=args.host, port=args.port, log_level=settings.log_level.lower())
    return 0


async def cmd_quote(args: argparse.Namespace, settings: Settings) -> int:
    region = resolve(args.locale, args.timezone)
    plan = price_for(region)
    discount = 0
    if args.promo:
        session_factory, engine = await create_database(settings.database_url)
        try:
            verdict = await PR.PromoValidator(PR.SQLAlchemyPromoAuthority(session_factory)).validate(args.promo)
        finally:
            await engine.dispose()
        print(verdict.message)
        discount = verdict.discount_percentage
    charge = final_price(plan.base_price, discount)
    print(
        f"{region.value}: {plan.symbol}{charge} / {plan.period.value} "
        f"({to_minor_units(charge, plan.currency)} {plan.currency} minor units)"
    )
    return 0


async def cmd_init_db(args: argparse.Namespace, settings: Settings) -> int:
    _, engine = await create_database(settings.database_url)
    await engine.dispose()
    logger.info("Tables created at %s", settings.database_url)
    return 0


async def _with_promos(settings: Settings, fn: Callable[[PR.SQLAlchemyPromoAuthority], Awaitable[int]]) -> int:
    session_factory, engine = await create_database(settings.database_url)
    try:
        return await fn(PR.SQLAlchemyPromoAuthority(session_factory))
    finally:
        await engine.dispose()


def _print_rule(rule: PR.PromoRule) -> None:
    uses = f"{rule.current_uses}/{rule.max_uses}" if rule.max_uses is not None else f"{rule.current_uses}/∞"
    expires = rule.expires_at.isoformat() if rule.expires_at else "never"
    state = "active" if rule.is_active else "inactive"
    print(f"{rule.code:<16} {rule.discount_percentage:>3}%  {uses:<10} expires {expires:<26} {state}")


async def cmd_promo(args: argparse.Namespace, settings: Settings) -> int:
    async def run(authority: PR.SQLAlchemyPromoAuthority) -> int:
        match args.promo_command:
            case "create":
                expires = _parse_expiry(args.expires) if args.expires else None
                result = await authority.create(args.code, args.percent, max_uses=args.max_uses, expires_at=expires)
                match result:
                    case Ok(rule):
                        _print_rule(rule)
                        return 0
                    case Error(e):
                        print(e.message, file=sys.stderr)
                        return 1
            case "list":
                match await authority.list_all():
                    case Ok(rules):
                        for rule in rules:
                            _print_rule(rule)
                        return 0
                    case Error(e):
                        print(e.message, file=sys.stderr)
                        return 1
            case "toggle":
                found = await authority.set_active(args.code, args.state == "on")
            case _:
                found = await authority.delete(args.code)

        match found:
            case Ok(True):
                return 0
            case Ok(False):
                print(f"No promo code {PR.normalize(args.code)}", file=sys.stderr)
                return 1
            case Error(e):
                print(e.message, file=sys.stderr)
                return 1
        return 1

    return await _with_promos(settings, run)


async def cmd_profile(args: argparse.Namespace, settings: Settings) -> int:
    session_factory, engine = await create_database(settings.database_url)
    directory = D.SQLAlchemyDirectory(session_factory)
    try:
        if args.profile_command == "add":
            result = await directory.add(args.user_id, args.email)
        else:
            result = await directory.get_profile(args.user_id)
    finally:
        await engine.dispose()

    match result:
        case Ok(None):
            print(f"No profile for {args.user_id}", file=sys.stderr)
            return 1
        case Ok(profile):
            ent = profile.entitlement
            until = ent.plan_end_date.isoformat() if ent.plan_end_date else "-"
            print(f"{profile.user_id} <{profile.email}> {ent.plan_tier.value} {ent.plan_id} until {until}")
            return 0
        case Error(e):
            print(e.message, file=sys.stderr)
            return 1
    return 1


# ═══════════════════════════════════════════════════════════════════════════════
# Parser
# ═══════════════════════════════════════════════════════════════════════════════


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="entitle", description="Premium entitlement payment service")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="run the HTTP service")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    quote = sub.add_parser("quote", help="show the regional price")
    quote.add_argument("--locale")
    quote.add_argument("--timezone")
    quote.add_argument("--promo")

    sub.add_parser("init-db", help="create database tables")

    promo = sub.add_parser("promo", help="manage promo codes")
    promo_sub = promo.add_subparsers(dest="promo_command", required=True)
    create = promo_sub.add_parser("create")
    create.add_argument("code")
    create.add_argument("percent", type=int)
    create.add_argument("--max-uses", type=int)
    create.add_argument("--expires", help="ISO date or datetime, UTC if naive")
    promo_sub.add_parser("list")
    toggle = promo_sub.add_parser("toggle")
    toggle.add_argument("code")
    toggle.add_argument("state", choices=("on", "off"))
    delete = promo_sub.add_parser("delete")
    delete.add_argument("code")

    profile = sub.add_parser("profile", help="manage user profiles")
    profile_sub = profile.add_subparsers(dest="profile_command", required=True)
    add = profile_sub.add_parser("add")
    add.add_argument("user_id")
    add.add_argument("email")
    show = profile_sub.add_parser("show")
    show.add_argument("user_id")

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = Settings.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    _configure_logging(settings)

    if args.command == "serve":
        try:
            return cmd_serve(args, settings)
        except ValueError as e:
            print(f"Configuration error: {e}", file=sys.stderr)
            return 2

    commands = {
        "quote": cmd_quote,
        "init-db": cmd_init_db,
        "promo": cmd_promo,
        "profile": cmd_profile,
    }
    return asyncio.run(commands[args.command](args, settings))


if __name__ == "__main__":
    sys.exit(main())
