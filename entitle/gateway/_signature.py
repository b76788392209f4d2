"""
Payment signature — HMAC-SHA256 over ``order_id|payment_id``.

The key is the gateway's shared secret; it never leaves the server.
"""

from __future__ import annotations

import hashlib
import hmac


def payment_payload(order_id: str, payment_id: str) -> bytes:
    return f"{order_id}|{payment_id}".encode()


def sign(secret: str, order_id: str, payment_id: str) -> str:
    """Hex digest the gateway sends back after checkout."""
    return hmac.new(
        secret.encode(), payment_payload(order_id, payment_id), hashlib.sha256
    ).hexdigest()


def verify_signature(secret: str, order_id: str, payment_id: str, signature: str) -> bool:
    """Constant-time comparison against the recomputed signature."""
    if not secret or not signature:
        return False
    expected = sign(secret, order_id, payment_id)
    return hmac.compare_digest(expected.encode(), signature.encode())


__all__ = (
    "payment_payload",
    "sign",
    "verify_signature",
)
