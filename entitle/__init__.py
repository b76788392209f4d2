"""
entitle — premium entitlement in exchange for a verified payment.

    from entitle import region as R     # Locale/timezone → pricing region
    from entitle import pricing as P    # Regional catalog + discount arithmetic
    from entitle import promo as PR     # Promo code validation
    from entitle import gateway as GW   # Gateway orders + payment signatures
    from entitle import directory as D  # Profiles, entitlement, identity
    from entitle import checkout as C   # Order + verification ops
"""

from entitle import region
from entitle import pricing
from entitle import promo
from entitle import gateway
from entitle import directory
from entitle import ops
from entitle import checkout
from entitle._types import (
    UserId,
    BearerCredential,
)
from entitle._errors import ErrorKind, PipelineError, Errors

__version__ = "0.1.0"

__all__ = (
    "region",
    "pricing",
    "promo",
    "gateway",
    "directory",
    "ops",
    "checkout",
    "UserId",
    "BearerCredential",
    "ErrorKind",
    "PipelineError",
    "Errors",
)
