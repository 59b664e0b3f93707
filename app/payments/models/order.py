"""
Order model for single-payment checkout and refunds.

An Order is created at checkout (outside this service) and mutated only
by the reconciliation engine: marked paid once when the gateway notifies
a completed payment, and moved through its refund status when a refund
is issued.

Usage:
    from payments.models import Order
    from payments.state_machines import RefundStatus

    order = Order.objects.create(no="202610170001", user=user, total_amount="99.00")

    # Refund status transitions using django-fsm
    order.begin_refund(refund_no="refund_6f1c...")
    order.save()
"""

from __future__ import annotations

from django.conf import settings
from django.core.validators import RegexValidator
from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.model_mixins import ExtraDataMixin, UUIDPrimaryKeyMixin
from core.models import BaseModel

from payments.state_machines import RefundStatus

# extra key holding the gateway's refund failure code
REFUND_FAILED_CODE_KEY = "refund_failed_code"

ORDER_NO_VALIDATOR = RegexValidator(
    r"^[^_]+\Z",
    message="Order numbers may not contain underscores",
    code="invalid_order_no",
)


class Order(UUIDPrimaryKeyMixin, ExtraDataMixin, BaseModel):
    """
    Single-payment order.

    Invariants:
        paid_at is set at most once.
        refund_status only moves from none/pending to success or failed.

    Fields:
        no: Business order number, also the gateway client reference
        user: Owner of the order
        total_amount: Amount charged and refunded
        paid_at: When the payment was confirmed (None while unpaid)
        closed: Whether the order was closed before payment
        payment_method: Gateway name, or "installment" for plan-backed orders
        payment_no: Gateway transaction id, or the plan number
        refund_no: Reference of the refund issued for this order
        refund_status: Refund lifecycle (managed by FSM)
        extra: Diagnostics such as refund_failed_code
    """

    # ==========================================================================
    # Identity & Ownership
    # ==========================================================================

    no = models.CharField(
        max_length=64,
        unique=True,
        validators=[ORDER_NO_VALIDATOR],
        help_text="Business order number (gateway client reference)",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
        help_text="User who placed the order",
    )

    total_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text="Order total in major currency units",
    )

    # ==========================================================================
    # Payment
    # ==========================================================================

    paid_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the payment was confirmed by the gateway",
    )

    closed = models.BooleanField(
        default=False,
        help_text="Closed orders can no longer be paid",
    )

    payment_method = models.CharField(
        max_length=32,
        null=True,
        blank=True,
        help_text="Gateway name, or 'installment' for plan-backed orders",
    )

    payment_no = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="Gateway transaction id, or the installment plan number",
    )

    # ==========================================================================
    # Refund
    # ==========================================================================

    refund_no = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        unique=True,
        help_text="Reference of the refund issued for this order",
    )

    refund_status = FSMField(
        default=RefundStatus.NONE,
        choices=RefundStatus.choices,
        db_index=True,
        help_text="Refund lifecycle (managed by FSM)",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Order"
        verbose_name_plural = "Orders"
        indexes = [
            models.Index(fields=["user", "created_at"], name="order_user_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_amount__gt=0),
                name="order_total_amount_positive",
            ),
            # "_" separates installment references
            models.CheckConstraint(
                condition=~models.Q(no__contains="_"),
                name="order_no_without_underscore",
            ),
        ]

    def __str__(self) -> str:
        return f"Order({self.no}, paid={self.is_paid}, refund={self.refund_status})"

    @property
    def is_paid(self) -> bool:
        return self.paid_at is not None

    def record_payment(self, payment_method: str, payment_no: str, paid_at=None) -> None:
        """Set the payment fields in memory. Callers check is_paid first."""
        self.paid_at = paid_at or timezone.now()
        self.payment_method = payment_method
        self.payment_no = payment_no

    # ==========================================================================
    # Refund Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=refund_status,
        source=RefundStatus.NONE,
        target=RefundStatus.PENDING,
    )
    def begin_refund(self, refund_no: str):
        """
        Claim the order for a refund before calling the gateway.

        Transition: NONE -> PENDING
        """
        self.refund_no = refund_no

    @transition(
        field=refund_status,
        source=[RefundStatus.NONE, RefundStatus.PENDING],
        target=RefundStatus.SUCCESS,
    )
    def complete_refund(self, refund_no: str):
        """
        Record a refund accepted by the gateway.

        Transition: NONE/PENDING -> SUCCESS
        """
        self.refund_no = refund_no

    @transition(
        field=refund_status,
        source=[RefundStatus.NONE, RefundStatus.PENDING],
        target=RefundStatus.FAILED,
    )
    def fail_refund(self, refund_no: str, failure_code: str):
        """
        Record a refund declined by the gateway.

        Transition: NONE/PENDING -> FAILED

        The failure code is merged into extra; other keys are kept.
        """
        self.refund_no = refund_no
        self.merge_extra({REFUND_FAILED_CODE_KEY: failure_code})
