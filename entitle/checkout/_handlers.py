"""
Quote, promo check, order placement and payment verification handlers.

Every handler returns ``Result[..., PipelineError]``. External calls are
wrapped so an adapter that raises still produces a structured error.
"""

from __future__ import annotations

import logging
import re
import time

from kungfu import Result, Ok, Error
from combinators import lift as L

from entitle._errors import Errors, PipelineError
from entitle._types import BearerCredential
from entitle.directory import (
    Authenticator,
    Directory,
    DirectoryError,
    Identity,
    SubscriptionRecord,
    UserEntitlement,
)
from entitle.gateway import GatewayError, OrderDraft, OrderNotes, PaymentGateway, verify_signature
from entitle.pricing import final_price, plans_for_currency, price_for, to_minor_units
from entitle.promo import PromoCode, PromoValidator, normalize
from entitle.region import resolve
from entitle.checkout._policy import CheckoutPolicy, ReplayPolicy
from entitle.checkout._requests import (
    Activated,
    CreateOrder,
    OrderPlaced,
    Quote,
    ResolveQuote,
    ValidatePromo,
    VerifyPayment,
)

logger = logging.getLogger(__name__)

_CURRENCY = re.compile(r"^[A-Za-z]{3}$")


async def _authenticate(
    credential: BearerCredential | None,
    authenticator: Authenticator,
) -> Result[Identity, PipelineError]:
    if credential is None:
        return Error(Errors.unauthenticated())
    try:
        result = await authenticator.authenticate(credential)
    except Exception:
        logger.exception("Authenticator raised")
        return Error(Errors.unauthenticated())

    match result:
        case Ok(identity):
            return Ok(identity)
        case Error(e):
            logger.info("Rejected bearer credential: %s", e.message)
            return Error(Errors.unauthenticated())


# ═══════════════════════════════════════════════════════════════════════════════
# Quote & Promo
# ═══════════════════════════════════════════════════════════════════════════════


async def resolve_quote(req: ResolveQuote, promos: PromoValidator) -> Result[Quote, PipelineError]:
    region = resolve(req.locale, req.timezone)
    plan = price_for(region)

    verdict: PromoCode | None = None
    if normalize(req.promo_code):
        verdict = await promos.validate(req.promo_code)
    discount = verdict.discount_percentage if verdict is not None and verdict.valid else 0

    charge = final_price(plan.base_price, discount)
    return Ok(
        Quote(
            region=region,
            currency=plan.currency,
            symbol=plan.symbol,
            base_price=plan.base_price,
            discount_percentage=discount,
            final_price=charge,
            amount=to_minor_units(charge, plan.currency),
            period=plan.period,
            promo=verdict,
        )
    )


async def validate_promo(req: ValidatePromo, promos: PromoValidator) -> Result[PromoCode, PipelineError]:
    return Ok(await promos.validate(req.promo_code))


# ═══════════════════════════════════════════════════════════════════════════════
# Order Service
# ═══════════════════════════════════════════════════════════════════════════════


def _check_order_input(req: CreateOrder) -> PipelineError | None:
    if not req.user_id or not str(req.user_id).strip():
        return Errors.invalid_input("Missing user_id")
    if not isinstance(req.amount, int) or isinstance(req.amount, bool) or req.amount <= 0:
        return Errors.invalid_input("amount must be a positive integer in minor units")
    if not req.currency or not _CURRENCY.match(req.currency):
        return Errors.invalid_input("currency must be an ISO-4217 code")
    return None


async def create_order(
    req: CreateOrder,
    authenticator: Authenticator,
    gateway: PaymentGateway,
    promos: PromoValidator,
) -> Result[OrderPlaced, PipelineError]:
    match await _authenticate(req.credential, authenticator):
        case Ok(identity):
            pass
        case Error(e):
            return Error(e)

    if (invalid := _check_order_input(req)) is not None:
        return Error(invalid)

    user_id = str(req.user_id).strip()
    if user_id != identity.user_id:
        logger.warning("Order for user %s requested by user %s", user_id, identity.user_id)
        return Error(Errors.unauthenticated("user_id does not match the authenticated user"))

    currency = str(req.currency).upper()
    amount = int(req.amount or 0)

    promo_code = normalize(req.promo_code)
    discount = 0
    if promo_code:
        verdict = await promos.validate(promo_code)
        if not verdict.valid:
            logger.warning("Order for user %s rejected: promo %s (%s)", user_id, promo_code, verdict.message)
            return Error(Errors.invalid_input(f"Promo code rejected: {verdict.message}"))
        discount = verdict.discount_percentage
    if req.discount is not None and req.discount != discount:
        logger.warning(
            "Ignoring client discount %s for user %s; server derived %s",
            req.discount, user_id, discount,
        )

    allowed = {
        to_minor_units(final_price(plan.base_price, discount), currency)
        for plan in plans_for_currency(currency)
    }
    if amount not in allowed:
        logger.warning(
            "Order for user %s rejected: %d %s does not match %s", user_id, amount, currency, sorted(allowed)
        )
        return Error(Errors.invalid_input("amount does not match the plan price"))

    draft = OrderDraft(
        amount=amount,
        currency=currency,
        receipt=f"receipt_{user_id}_{time.time_ns()}",
        notes=OrderNotes(user_id=user_id, promo_code=promo_code, discount=discount),
    )

    placed = await L.catching_async(
        lambda: gateway.create_order(draft),
        on_error=lambda e: GatewayError(f"Failed to create order: {e}", cause=e),
    )

    match placed:
        case Ok(Ok(order)):
            logger.info("Created order %s for user %s (%d %s)", order.id, user_id, order.amount, order.currency)
            return Ok(OrderPlaced(order_id=order.id, amount=order.amount, currency=order.currency))
        case Ok(Error(e)) | Error(e):
            logger.error("Order %s for user %s rejected upstream: %s", draft.receipt, user_id, e.message)
            return Error(Errors.upstream_rejected(e.message))


# ═══════════════════════════════════════════════════════════════════════════════
# Payment Verification Service
# ═══════════════════════════════════════════════════════════════════════════════


async def _already_consumed(
    payment_id: str, directory: Directory
) -> Result[bool, PipelineError]:
    try:
        found = await directory.find_subscription(payment_id)
    except Exception:
        logger.exception("Directory raised reading ledger for payment %s", payment_id)
        return Error(Errors.upstream_rejected("Could not check payment ledger"))
    match found:
        case Ok(record):
            return Ok(record is not None)
        case Error(e):
            logger.error("Ledger lookup for payment %s failed: %s", payment_id, e.message)
            return Error(Errors.upstream_rejected("Could not check payment ledger"))


async def _profile_promo(
    req: VerifyPayment,
    identity: Identity,
    first_use: bool,
    directory: Directory,
    promos: PromoValidator,
) -> str | None:
    """Code to store as ``used_promo_code``: a code that validates now, or on a replay the stored one."""
    if not first_use:
        try:
            stored = await directory.get_profile(identity.user_id)
        except Exception:
            logger.exception("Directory raised reading profile %s", identity.user_id)
            return None
        match stored:
            case Ok(profile) if profile is not None:
                return profile.used_promo_code
            case _:
                return None

    code = normalize(req.promo_code)
    if not code:
        return None
    verdict = await promos.validate(code)
    if not verdict.valid:
        logger.warning(
            "Ignoring promo %s on payment %s for user %s: %s",
            code, req.payment_id, identity.user_id, verdict.message,
        )
        return None
    return verdict.code


async def _record_after_activation(
    req: VerifyPayment,
    activated: Activated,
    redeem_code: str | None,
    directory: Directory,
    promos: PromoValidator,
) -> None:
    """Ledger row and promo redemption. Failures are logged, never returned."""
    start = activated.entitlement.plan_start_date
    end = activated.entitlement.plan_end_date
    if start is None or end is None:
        logger.error("Activation for payment %s has no subscription period", activated.payment_id)
        return

    record = SubscriptionRecord(
        user_id=activated.user_id,
        payment_id=activated.payment_id,
        order_id=activated.order_id,
        period_start=start,
        period_end=end,
        amount=req.amount,
        currency=req.currency.upper() if req.currency else None,
    )
    try:
        match await directory.record_subscription(record):
            case Error(e):
                logger.warning("Ledger write for payment %s failed: %s", record.payment_id, e.message)
            case _:
                pass
    except Exception:
        logger.exception("Directory raised writing ledger for payment %s", record.payment_id)

    if redeem_code and not await promos.redeem(redeem_code):
        logger.warning("Promo code %s was not redeemed for payment %s", redeem_code, record.payment_id)


async def verify_payment(
    req: VerifyPayment,
    authenticator: Authenticator,
    directory: Directory,
    promos: PromoValidator,
    policy: CheckoutPolicy,
) -> Result[Activated, PipelineError]:
    match await _authenticate(req.credential, authenticator):
        case Ok(identity):
            pass
        case Error(e):
            return Error(e)

    if not req.payment_id or not req.order_id or not req.signature:
        return Error(Errors.invalid_input("Missing payment_id, order_id or signature"))

    if not verify_signature(policy.signing_secret, req.order_id, req.payment_id, req.signature):
        logger.warning(
            "Invalid payment signature for order %s payment %s (user %s)",
            req.order_id, req.payment_id, identity.user_id,
        )
        return Error(Errors.invalid_signature())

    consumed = await _already_consumed(req.payment_id, directory)
    if policy.replay is ReplayPolicy.REJECT_CONSUMED:
        match consumed:
            case Ok(True):
                logger.warning("Payment %s already consumed; rejecting replay", req.payment_id)
                return Error(Errors.already_consumed())
            case Error(e):
                return Error(e)
            case _:
                pass

    # An unreadable ledger counts as a replay: nothing is redeemed.
    match consumed:
        case Ok(False):
            first_use = True
        case _:
            first_use = False

    now = policy.clock()
    entitlement = UserEntitlement.premium(now, policy.term)
    promo_code = await _profile_promo(req, identity, first_use, directory, promos)

    written = await L.catching_async(
        lambda: directory.update_entitlement(identity.user_id, entitlement, used_promo_code=promo_code),
        on_error=lambda e: DirectoryError(str(e), e),
    )

    match written:
        case Ok(Ok(_)):
            pass
        case Ok(Error(e)) | Error(e):
            logger.error(
                "Payment %s for order %s verified but entitlement write failed for user %s: %s",
                req.payment_id, req.order_id, identity.user_id, e.message,
            )
            return Error(Errors.update_failed("Payment verified but subscription update failed"))

    activated = Activated(
        user_id=identity.user_id,
        payment_id=req.payment_id,
        order_id=req.order_id,
        entitlement=entitlement,
        verified_at=now,
    )
    logger.info(
        "Activated %s for user %s until %s (payment %s)",
        entitlement.plan_id, identity.user_id, entitlement.plan_end_date, req.payment_id,
    )
    await _record_after_activation(
        req, activated, promo_code if first_use else None, directory, promos
    )
    return Ok(activated)


__all__ = (
    "resolve_quote",
    "validate_promo",
    "create_order",
    "verify_payment",
)
