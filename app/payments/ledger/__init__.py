"""
Ledgers - persistence and state changes for payable records.

    OrderLedger: single-payment orders and their refund status
    InstallmentLedger: installment plans, their items and boundary transitions

Usage:
    from payments.ledger import InstallmentLedger, OrderLedger
"""

from payments.ledger.installments import (
    INSTALLMENT_PAYMENT_METHOD,
    InstallmentLedger,
    PlanTransition,
)
from payments.ledger.orders import OrderLedger

__all__ = [
    "INSTALLMENT_PAYMENT_METHOD",
    "InstallmentLedger",
    "OrderLedger",
    "PlanTransition",
]
