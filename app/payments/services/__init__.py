"""
Payment services.

This module provides:
- ReconciliationEngine: applies gateway notifications and issues refunds
- CheckoutService: creates gateway charges for orders and installments

Usage:
    from django.apps import apps

    engine = apps.get_app_config("payments").engine
    result = engine.handle_payment_notification(request.body, signature)

    checkout = apps.get_app_config("payments").checkout
    charge = checkout.pay_installment(plan, caller=request.user)
"""

from payments.services.checkout import CheckoutService
from payments.services.reconciliation import (
    APPLIED,
    DUPLICATE,
    IGNORED,
    NotificationResult,
    ReconciliationEngine,
    generate_refund_no,
)

__all__ = [
    "APPLIED",
    "CheckoutService",
    "DUPLICATE",
    "IGNORED",
    "NotificationResult",
    "ReconciliationEngine",
    "generate_refund_no",
]
