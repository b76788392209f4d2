"""
Promo — promo code validation against a trusted authority.

    from entitle import promo as PR

    validator = PR.PromoValidator(PR.MemoryPromoAuthority(PR.PromoRule("SAVE20", 20)))
    await validator.validate(" save20 ")   # PromoCode(code="SAVE20", valid=True, 20, ...)

    session = PR.PromoSession(validator)
    await session.apply("SAVE20")
    session.discounted_price(499)          # 399

Authorities:
    MemoryPromoAuthority      in-process, for tests
    RemotePromoAuthority      remote procedures over httpx
    SQLAlchemyPromoAuthority  promo_codes table, with admin operations
"""

from entitle.promo._types import (
    PromoCode,
    PromoAuthority,
    AuthorityError,
    normalize,
    MSG_EMPTY,
    MSG_ERROR,
    MSG_UNKNOWN,
)
from entitle.promo._authority import (
    PromoRule,
    evaluate,
    MemoryPromoAuthority,
)
from entitle.promo._validator import PromoValidator, PromoSession
from entitle.promo._remote import RemotePromoAuthority
from entitle.promo._sqlalchemy import SQLAlchemyPromoAuthority

__all__ = (
    # Types
    "PromoCode",
    "PromoAuthority",
    "AuthorityError",
    "normalize",
    "MSG_EMPTY",
    "MSG_ERROR",
    "MSG_UNKNOWN",
    # Rules
    "PromoRule",
    "evaluate",
    # Authorities
    "MemoryPromoAuthority",
    "RemotePromoAuthority",
    "SQLAlchemyPromoAuthority",
    # Validation
    "PromoValidator",
    "PromoSession",
)
