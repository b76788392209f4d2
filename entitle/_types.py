"""
Core types for entitle: user ids and bearer credentials.
"""

from __future__ import annotations

from dataclasses import dataclass

# ═══════════════════════════════════════════════════════════════════════════════
# Identity
# ═══════════════════════════════════════════════════════════════════════════════

type UserId = str
"""Opaque user id issued by the identity provider."""


@dataclass(frozen=True, slots=True)
class BearerCredential:
    """
    Raw bearer token taken from an ``Authorization`` header.

    Note: repr hides the token so it never ends up in logs.
    """

    token: str

    def __repr__(self) -> str:
        return "BearerCredential(token=***)"

    @classmethod
    def from_header(cls, header: str | None) -> BearerCredential | None:
        """Parse ``Bearer <token>``. Returns None for a missing or empty header."""
        if not header:
            return None
        scheme, _, token = header.strip().partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            return None
        return cls(token.strip())


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "UserId",
    "BearerCredential",
)
