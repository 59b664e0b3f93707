"""
Payment domain models.

This module contains all payment-related models:
- Order: Single-payment order with refund lifecycle
- InstallmentPlan: Multi-installment schedule paying one Order
- InstallmentItem: One installment of a plan
"""

from payments.models.installment import InstallmentItem, InstallmentPlan
from payments.models.order import Order

__all__ = [
    "InstallmentItem",
    "InstallmentPlan",
    "Order",
]
