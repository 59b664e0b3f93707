"""
Payment gateway adapters.

All gateway calls go through a GatewayClient so that reconciliation and
checkout never depend on a particular provider SDK.

Usage:
    from payments.adapters import StripeGateway

    gateway = StripeGateway()
    notification = gateway.verify(request.body, request.headers["Stripe-Signature"])
"""

from payments.adapters.base import (
    ChargeResult,
    GatewayClient,
    RefundResult,
    VerifiedNotification,
)
from payments.adapters.stripe_adapter import StripeGateway, to_minor_units

__all__ = [
    "ChargeResult",
    "GatewayClient",
    "RefundResult",
    "StripeGateway",
    "VerifiedNotification",
    "to_minor_units",
]
