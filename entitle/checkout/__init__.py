"""
Checkout — quote, order placement, and payment verification as ops.

    from entitle import checkout as C

    runner = C.build_runner(authenticator, directory, gateway, promos, policy)
    match await runner.run(C.VerifyPayment(credential, payment_id, order_id, signature)):
        case Ok(activated): ...
        case Error(e): ...  # PipelineError, e.status is the HTTP status
"""

from entitle import ops as O
from entitle.directory import Authenticator, Directory
from entitle.gateway import PaymentGateway
from entitle.promo import PromoValidator
from entitle.checkout._policy import ReplayPolicy, CheckoutPolicy, utcnow
from entitle.checkout._requests import (
    Quote,
    OrderPlaced,
    Activated,
    ResolveQuote,
    ValidatePromo,
    CreateOrder,
    VerifyPayment,
)
from entitle.checkout._handlers import (
    resolve_quote,
    validate_promo,
    create_order,
    verify_payment,
)


def build_runner(
    authenticator: Authenticator,
    directory: Directory,
    gateway: PaymentGateway,
    promos: PromoValidator,
    policy: CheckoutPolicy,
) -> O.Runner:
    """Register every checkout handler and inject its collaborators."""
    return (
        O.ops()
        .on(ResolveQuote, resolve_quote)
        .on(ValidatePromo, validate_promo)
        .on(CreateOrder, create_order)
        .on(VerifyPayment, verify_payment)
        .compile()
        .inject(Authenticator, authenticator)
        .inject(Directory, directory)
        .inject(PaymentGateway, gateway)
        .inject(PromoValidator, promos)
        .inject(CheckoutPolicy, policy)
    )


__all__ = (
    # Policy
    "ReplayPolicy",
    "CheckoutPolicy",
    "utcnow",
    # Ops & results
    "Quote",
    "OrderPlaced",
    "Activated",
    "ResolveQuote",
    "ValidatePromo",
    "CreateOrder",
    "VerifyPayment",
    # Handlers
    "resolve_quote",
    "validate_promo",
    "create_order",
    "verify_payment",
    "build_runner",
)
