"""
Gateway — payment-gateway orders and callback signatures.

    from entitle import gateway as GW

    gw = GW.RazorpayGateway(client, key_id, key_secret)
    order = await gw.create_order(GW.OrderDraft(39900, "INR", receipt, notes))

    GW.verify_signature(secret, order_id, payment_id, signature)
"""

from entitle.gateway._types import (
    OrderNotes,
    OrderDraft,
    GatewayOrder,
    GatewayError,
    PaymentGateway,
    MemoryGateway,
)
from entitle.gateway._signature import payment_payload, sign, verify_signature
from entitle.gateway._razorpay import RazorpayGateway

__all__ = (
    "OrderNotes",
    "OrderDraft",
    "GatewayOrder",
    "GatewayError",
    "PaymentGateway",
    "MemoryGateway",
    "RazorpayGateway",
    "payment_payload",
    "sign",
    "verify_signature",
)
