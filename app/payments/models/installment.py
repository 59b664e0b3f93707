"""
InstallmentPlan and InstallmentItem models.

A plan splits one Order into `count` installments with contiguous
sequences 0..count-1. Plan status is driven by two boundary items only:
paying sequence 0 starts repayment (and pays the order), paying
sequence count-1 finishes the plan. Intermediate items never move the
plan.

Usage:
    from payments.models import InstallmentItem, InstallmentPlan

    plan = InstallmentPlan.objects.create(
        no="INS_202610170001", user=user, order=order, count=3
    )
    for sequence in range(plan.count):
        InstallmentItem.objects.create(plan=plan, sequence=sequence, total="33.00")
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

from payments.state_machines import InstallmentStatus


class InstallmentPlan(UUIDPrimaryKeyMixin, BaseModel):
    """
    Multi-installment repayment schedule tied to exactly one Order.

    State Flow:
        PENDING -> REPAYING -> FINISHED
        PENDING -> FINISHED (last installment paid before the first)

    Fields:
        no: Plan number, "<prefix>_<digits>"
        user: Owner of the plan (must match the caller on payment)
        order: The order this plan pays for
        status: Plan lifecycle (managed by FSM)
        count: Number of installments
    """

    no = models.CharField(
        max_length=64,
        unique=True,
        help_text="Plan number, used as the prefix of installment references",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="installment_plans",
        help_text="User repaying the plan",
    )

    order = models.OneToOneField(
        "payments.Order",
        on_delete=models.PROTECT,
        related_name="installment_plan",
        help_text="Order paid by this plan",
    )

    status = FSMField(
        default=InstallmentStatus.PENDING,
        choices=InstallmentStatus.choices,
        db_index=True,
        help_text="Plan lifecycle (managed by FSM)",
    )

    count = models.PositiveSmallIntegerField(
        help_text="Number of installments",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Installment Plan"
        verbose_name_plural = "Installment Plans"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(count__gt=0),
                name="installment_plan_count_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"InstallmentPlan({self.no}, {self.status}, {self.count})"

    @property
    def last_sequence(self) -> int:
        return self.count - 1

    @property
    def is_finished(self) -> bool:
        return self.status == InstallmentStatus.FINISHED

    @transition(
        field=status,
        source=InstallmentStatus.PENDING,
        target=InstallmentStatus.REPAYING,
    )
    def start_repayment(self):
        """
        First installment paid.

        Transition: PENDING -> REPAYING
        """
        pass

    @transition(
        field=status,
        source=[InstallmentStatus.PENDING, InstallmentStatus.REPAYING],
        target=InstallmentStatus.FINISHED,
    )
    def finish(self):
        """
        Last installment paid.

        Transition: PENDING/REPAYING -> FINISHED
        """
        pass


class InstallmentItem(BaseModel):
    """
    One installment of a plan.

    Invariant: paid_at is set at most once.
    """

    plan = models.ForeignKey(
        InstallmentPlan,
        on_delete=models.CASCADE,
        related_name="items",
    )

    sequence = models.PositiveSmallIntegerField(
        help_text="Zero-based position within the plan",
    )

    total = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text="Amount due for this installment",
    )

    paid_at = models.DateTimeField(null=True, blank=True)
    payment_method = models.CharField(max_length=32, null=True, blank=True)
    payment_no = models.CharField(max_length=255, null=True, blank=True)

    class Meta:
        ordering = ["plan", "sequence"]
        verbose_name = "Installment Item"
        verbose_name_plural = "Installment Items"
        constraints = [
            models.UniqueConstraint(
                fields=["plan", "sequence"],
                name="installment_item_unique_sequence",
            ),
            models.CheckConstraint(
                condition=models.Q(total__gt=0),
                name="installment_item_total_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"InstallmentItem({self.plan_id}, #{self.sequence}, paid={self.is_paid})"

    @property
    def is_paid(self) -> bool:
        return self.paid_at is not None

    def record_payment(self, payment_method: str, payment_no: str, paid_at=None) -> None:
        """Set the payment fields in memory. Callers check is_paid first."""
        self.paid_at = paid_at or timezone.now()
        self.payment_method = payment_method
        self.payment_no = payment_no
