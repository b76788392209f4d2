"""
HTTP surface — wire models for the checkout ops and the assembled app.

    POST /create-order     bearer   {amount, currency, user_id, promo_code?, discount?}
    POST /verify-payment   bearer   {payment_id, order_id, signature, promo_code?, amount?, currency?}
    GET  /quote                     ?locale=&timezone=&promo_code=
    POST /validate-promo            {promo_code}

Request fields are all optional at the wire level so that a missing field is
reported by the handler as INVALID_INPUT, after the credential check.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any

import fastapi
import httpx
from kungfu import Error
from pydantic import AliasChoices, BaseModel, Field

from entitle import checkout as C
from entitle import directory as D
from entitle import gateway as GW
from entitle import promo as PR
from entitle._types import BearerCredential
from entitle.config import Settings
from entitle.db import create_tables, open_database
from entitle.ops import Runner
from entitle.wire import (
    Application,
    HTTPRouteTrigger,
    RequestResponseCodec,
    endpoint,
    from_application,
)

logger = logging.getLogger(__name__)

ACTIVATED_MESSAGE = "Payment verified and subscription activated"


# ═══════════════════════════════════════════════════════════════════════════════
# Create order
# ═══════════════════════════════════════════════════════════════════════════════


class CreateOrderRequest(BaseModel):
    user_id: str | None = None
    amount: int | None = None
    currency: str | None = None
    promo_code: str | None = None
    discount: int | None = None

    def to_domain(self, credential: BearerCredential | None) -> C.CreateOrder:
        return C.CreateOrder(
            credential=credential,
            user_id=self.user_id,
            amount=self.amount,
            currency=self.currency,
            promo_code=self.promo_code,
            discount=self.discount,
        )


class OrderResponse(BaseModel):
    success: bool = True
    order_id: str
    amount: int
    currency: str

    @classmethod
    def from_domain(cls, placed: C.OrderPlaced) -> OrderResponse:
        return cls(order_id=placed.order_id, amount=placed.amount, currency=placed.currency)


# ═══════════════════════════════════════════════════════════════════════════════
# Verify payment
# ═══════════════════════════════════════════════════════════════════════════════


class VerifyPaymentRequest(BaseModel):
    """Accepts the gateway checkout's ``razorpay_*`` field names as well."""

    payment_id: str | None = Field(
        default=None, validation_alias=AliasChoices("payment_id", "razorpay_payment_id")
    )
    order_id: str | None = Field(
        default=None, validation_alias=AliasChoices("order_id", "razorpay_order_id")
    )
    signature: str | None = Field(
        default=None, validation_alias=AliasChoices("signature", "razorpay_signature")
    )
    promo_code: str | None = None
    amount: int | None = None
    currency: str | None = None

    def to_domain(self, credential: BearerCredential | None) -> C.VerifyPayment:
        return C.VerifyPayment(
            credential=credential,
            payment_id=self.payment_id,
            order_id=self.order_id,
            signature=self.signature,
            promo_code=self.promo_code,
            amount=self.amount,
            currency=self.currency,
        )


class VerifyPaymentResponse(BaseModel):
    success: bool = True
    message: str = ACTIVATED_MESSAGE
    plan_id: str | None = None
    plan_end_date: str | None = None

    @classmethod
    def from_domain(cls, activated: C.Activated) -> VerifyPaymentResponse:
        end = activated.entitlement.plan_end_date
        return cls(
            plan_id=activated.entitlement.plan_id,
            plan_end_date=end.isoformat() if end is not None else None,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Quote & promo
# ═══════════════════════════════════════════════════════════════════════════════


class QuoteRequest(BaseModel):
    locale: str | None = None
    timezone: str | None = None
    promo_code: str | None = None

    def to_domain(self) -> C.ResolveQuote:
        return C.ResolveQuote(locale=self.locale, timezone=self.timezone, promo_code=self.promo_code)


class QuoteResponse(BaseModel):
    region: str
    currency: str
    symbol: str
    base_price: int
    discount_percentage: int
    final_price: int
    amount: int
    period: str
    promo_message: str | None = None

    @classmethod
    def from_domain(cls, quote: C.Quote) -> QuoteResponse:
        return cls(
            region=quote.region.value,
            currency=quote.currency,
            symbol=quote.symbol,
            base_price=quote.base_price,
            discount_percentage=quote.discount_percentage,
            final_price=quote.final_price,
            amount=quote.amount,
            period=quote.period.value,
            promo_message=quote.promo.message if quote.promo is not None else None,
        )


class ValidatePromoRequest(BaseModel):
    promo_code: str | None = None

    def to_domain(self) -> C.ValidatePromo:
        return C.ValidatePromo(promo_code=self.promo_code)


class PromoResponse(BaseModel):
    code: str
    valid: bool
    discount_percentage: int
    message: str

    @classmethod
    def from_domain(cls, verdict: PR.PromoCode) -> PromoResponse:
        return cls(
            code=verdict.code,
            valid=verdict.valid,
            discount_percentage=verdict.discount_percentage,
            message=verdict.message,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Application
# ═══════════════════════════════════════════════════════════════════════════════


def build_app(
    runner: Runner,
    *,
    cors_origins: Sequence[str] = ("*",),
    **fastapi_kwargs: Any,
) -> fastapi.FastAPI:
    """Mount the checkout routes on a FastAPI app. ``runner`` must come from ``checkout.build_runner``."""
    endp = (
        endpoint(runner)
        .expose(
            HTTPRouteTrigger("POST", "/create-order", authenticated=True, summary="Create a gateway order"),
            RequestResponseCodec(CreateOrderRequest, OrderResponse),
        )
        .expose(
            HTTPRouteTrigger("POST", "/verify-payment", authenticated=True, summary="Verify a payment and activate premium"),
            RequestResponseCodec(VerifyPaymentRequest, VerifyPaymentResponse),
        )
        .expose(
            HTTPRouteTrigger("GET", "/quote", summary="Regional price with optional promo"),
            RequestResponseCodec(QuoteRequest, QuoteResponse),
        )
        .expose(
            HTTPRouteTrigger("POST", "/validate-promo", summary="Check a promo code"),
            RequestResponseCodec(ValidatePromoRequest, PromoResponse),
        )
    )
    return from_application(
        Application().mount(endp),
        cors_origins=cors_origins,
        **fastapi_kwargs,
    )


def create_app(settings: Settings | None = None, *, client: httpx.AsyncClient | None = None) -> fastapi.FastAPI:
    """
    Production wiring: Razorpay, SQLAlchemy stores, remote or static auth.

    Remote auth writes entitlement to the identity provider's own profiles.
    Static auth keeps profiles in the local database and creates a free row
    for every configured identity at startup.
    """
    settings = settings or Settings.from_env()
    settings.check_service()

    client = client or httpx.AsyncClient(timeout=settings.http_timeout)
    session_factory, engine = open_database(settings.database_url)
    local_profiles = D.SQLAlchemyDirectory(session_factory)

    authenticator: D.Authenticator
    directory: D.Directory
    if settings.auth_backend == "static":
        authenticator = D.StaticAuthenticator(dict(settings.static_tokens))
        directory = local_profiles
    else:
        authenticator = D.RemoteAuthenticator(client, settings.directory_url, settings.directory_service_key)
        directory = D.RemoteDirectory(client, settings.directory_url, settings.directory_service_key)

    authority: PR.PromoAuthority
    if settings.promo_backend == "remote":
        authority = PR.RemotePromoAuthority(client, settings.directory_url, settings.directory_service_key)
    else:
        authority = PR.SQLAlchemyPromoAuthority(session_factory)

    runner = C.build_runner(
        authenticator=authenticator,
        directory=directory,
        gateway=GW.RazorpayGateway(
            client, settings.gateway_key_id, settings.gateway_key_secret, settings.gateway_api_base
        ),
        promos=PR.PromoValidator(authority),
        policy=C.CheckoutPolicy(
            signing_secret=settings.gateway_key_secret,
            replay=settings.replay_policy,
            term=settings.plan_term,
        ),
    )

    @asynccontextmanager
    async def lifespan(_: fastapi.FastAPI) -> AsyncIterator[None]:
        await create_tables(engine)
        if settings.auth_backend == "static":
            for identity in settings.static_tokens.values():
                match await local_profiles.ensure_profile(identity.user_id, identity.email):
                    case Error(e):
                        raise RuntimeError(f"Cannot provision profile {identity.user_id}: {e.message}")
                    case _:
                        pass
        logger.info(
            "entitle ready (auth=%s, promos=%s, replay=%s)",
            settings.auth_backend, settings.promo_backend, settings.replay_policy.value,
        )
        try:
            yield
        finally:
            await client.aclose()
            await engine.dispose()

    return build_app(runner, cors_origins=settings.cors_origins, title="entitle", lifespan=lifespan)


__all__ = (
    "CreateOrderRequest",
    "OrderResponse",
    "VerifyPaymentRequest",
    "VerifyPaymentResponse",
    "QuoteRequest",
    "QuoteResponse",
    "ValidatePromoRequest",
    "PromoResponse",
    "build_app",
    "create_app",
)
