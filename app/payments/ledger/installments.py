"""
Persistence operations on installment plans and their items.

Plan status follows the boundary items only. Sequence 0 starts the plan
and pays its order; the last sequence finishes it. For a one-item plan
both happen on the same payment.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from core.services import BaseService
from payments.ledger.orders import OrderLedger
from payments.models import InstallmentItem, InstallmentPlan
from payments.state_machines import InstallmentStatus

if TYPE_CHECKING:
    from datetime import datetime

# payment_method recorded on orders paid through a plan
INSTALLMENT_PAYMENT_METHOD = "installment"


@dataclass(frozen=True)
class PlanTransition:
    """Which boundary effects a paid item had on its plan."""

    started: bool = False
    finished: bool = False
    order_paid: bool = False


class InstallmentLedger(BaseService):
    @classmethod
    def find_by_no(cls, no: str, for_update: bool = False) -> InstallmentPlan | None:
        queryset = (
            InstallmentPlan.objects.select_for_update()
            if for_update
            else InstallmentPlan.objects.all()
        )
        return queryset.filter(no=no).first()

    @classmethod
    def find_item(
        cls, plan: InstallmentPlan, sequence: int, for_update: bool = False
    ) -> InstallmentItem | None:
        queryset = (
            InstallmentItem.objects.select_for_update()
            if for_update
            else InstallmentItem.objects.all()
        )
        return queryset.filter(plan=plan, sequence=sequence).first()

    @classmethod
    def find_next_unpaid_item(cls, plan: InstallmentPlan) -> InstallmentItem | None:
        """Unpaid item with the smallest sequence, or None when all are paid."""
        return (
            InstallmentItem.objects.filter(plan=plan, paid_at__isnull=True)
            .order_by("sequence")
            .first()
        )

    @classmethod
    def mark_item_paid(
        cls,
        item: InstallmentItem,
        payment_method: str,
        payment_no: str,
        paid_at: datetime | None = None,
    ) -> bool:
        """
        Record the payment on an unpaid item.

        Returns:
            True if the item was updated, False if it was already paid
        """
        if item.is_paid:
            return False

        item.record_payment(payment_method, payment_no, paid_at=paid_at)
        item.save(update_fields=["paid_at", "payment_method", "payment_no", "updated_at"])
        return True

    @classmethod
    def apply_item_paid(cls, plan: InstallmentPlan, item: InstallmentItem) -> PlanTransition:
        """
        Move the plan (and its order) according to a newly paid item.

        Must run in the transaction that paid the item, with the plan row
        locked. Intermediate sequences leave the plan untouched.
        """
        logger = cls.get_logger()
        started = finished = order_paid = False

        if item.sequence == 0:
            if plan.status == InstallmentStatus.PENDING:
                plan.start_repayment()
                started = True

            order = OrderLedger.find_by_id(plan.order_id, for_update=True)
            if order is not None:
                order_paid = OrderLedger.mark_paid(
                    order,
                    payment_method=INSTALLMENT_PAYMENT_METHOD,
                    payment_no=plan.no,
                    paid_at=item.paid_at,
                )
                # keep the cached relation in step with the row
                plan.order = order

        if item.sequence == plan.last_sequence and not plan.is_finished:
            plan.finish()
            finished = True

        if started or finished:
            plan.save(update_fields=["status", "updated_at"])
            logger.info(
                "Installment plan status changed",
                extra={
                    "plan_no": plan.no,
                    "sequence": item.sequence,
                    "status": plan.status,
                },
            )

        return PlanTransition(started=started, finished=finished, order_paid=order_paid)
