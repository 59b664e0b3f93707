"""
State enums for payment models.

This module defines the state enums used by payment models with django-fsm.
These are Django TextChoices for database storage and admin integration.

State Machines Overview:

Order refund status:
    none → pending → success
    none → pending → failed
    none → success / failed (recorded without a pending claim)

InstallmentPlan status:
    pending → repaying → finished
    pending → finished (last installment settled before the first)
"""

from django.db import models


class RefundStatus(models.TextChoices):
    """
    Refund lifecycle of an Order.

    Terminal states: SUCCESS, FAILED

    A status never moves backwards. A FAILED refund is left for an
    operator; it is not retried by the service.
    """

    NONE = "none", "Not Refunded"
    PENDING = "pending", "Pending"
    SUCCESS = "success", "Refunded"
    FAILED = "failed", "Refund Failed"


class InstallmentStatus(models.TextChoices):
    """
    Lifecycle of an InstallmentPlan.

    Terminal state: FINISHED

    State Flow:
        PENDING → REPAYING (first installment, sequence 0, paid)
        PENDING/REPAYING → FINISHED (last installment, sequence count-1, paid)
    """

    PENDING = "pending", "Pending"
    REPAYING = "repaying", "Repaying"
    FINISHED = "finished", "Finished"


__all__ = [
    "InstallmentStatus",
    "RefundStatus",
]
