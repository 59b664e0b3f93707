"""
State machine enums and helpers for payment models.

This module defines the state enums used by payment models with django-fsm.
"""

from payments.state_machines.states import (
    InstallmentStatus,
    RefundStatus,
)

__all__ = [
    "InstallmentStatus",
    "RefundStatus",
]
