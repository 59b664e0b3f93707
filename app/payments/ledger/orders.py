"""
Persistence operations on single-payment orders.

Usage:
    from payments.ledger import OrderLedger

    with transaction.atomic():
        order = OrderLedger.find_by_no("202610170001", for_update=True)
        if order is not None:
            OrderLedger.mark_paid(order, "stripe", "pi_3Nx...")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django_fsm import TransitionNotAllowed

from core.services import BaseService
from payments.exceptions import InvalidStateTransitionError
from payments.models import Order

if TYPE_CHECKING:
    from datetime import datetime
    from typing import Any


class OrderLedger(BaseService):
    """
    Reads and state changes for Order rows.

    Row-locking lookups (for_update=True) must run inside a transaction;
    the lock is held until it commits.
    """

    @classmethod
    def find_by_no(cls, no: str, for_update: bool = False) -> Order | None:
        queryset = Order.objects.select_for_update() if for_update else Order.objects.all()
        return queryset.filter(no=no).first()

    @classmethod
    def find_by_id(cls, order_id: Any, for_update: bool = False) -> Order | None:
        queryset = Order.objects.select_for_update() if for_update else Order.objects.all()
        return queryset.filter(pk=order_id).first()

    @classmethod
    def mark_paid(
        cls,
        order: Order,
        payment_method: str,
        payment_no: str,
        paid_at: datetime | None = None,
    ) -> bool:
        """
        Record the payment on an unpaid order.

        Returns:
            True if the order was updated, False if it was already paid
        """
        if order.is_paid:
            return False

        order.record_payment(payment_method, payment_no, paid_at=paid_at)
        order.save(update_fields=["paid_at", "payment_method", "payment_no", "updated_at"])

        cls.get_logger().info(
            "Order marked paid",
            extra={
                "order_no": order.no,
                "payment_method": payment_method,
                "payment_no": payment_no,
            },
        )
        return True

    @classmethod
    def begin_refund(cls, order: Order, refund_no: str) -> Order:
        """
        Claim the order for a refund (none -> pending).

        Raises:
            InvalidStateTransitionError: If a refund was already started
        """
        try:
            order.begin_refund(refund_no=refund_no)
        except TransitionNotAllowed as e:
            raise InvalidStateTransitionError(
                f"Cannot begin refund from '{order.refund_status}'",
                details={
                    "order_no": order.no,
                    "current_state": order.refund_status,
                    "transition": "begin_refund",
                },
            ) from e

        order.save(update_fields=["refund_no", "refund_status", "updated_at"])
        return order

    @classmethod
    def mark_refund_result(cls, order: Order, refund_no: str, sub_code: str | None) -> Order:
        """
        Record the gateway's answer to a refund request.

        A sub_code marks the refund failed and is kept in extra under
        "refund_failed_code"; no sub_code marks it successful.

        Raises:
            InvalidStateTransitionError: If the refund already has a result
        """
        transition = "fail_refund" if sub_code else "complete_refund"
        try:
            if sub_code:
                order.fail_refund(refund_no=refund_no, failure_code=sub_code)
            else:
                order.complete_refund(refund_no=refund_no)
        except TransitionNotAllowed as e:
            raise InvalidStateTransitionError(
                f"Cannot record refund result from '{order.refund_status}'",
                details={
                    "order_no": order.no,
                    "current_state": order.refund_status,
                    "transition": transition,
                },
            ) from e

        order.save(update_fields=["refund_no", "refund_status", "extra", "updated_at"])

        log = cls.get_logger().warning if sub_code else cls.get_logger().info
        log(
            "Refund result recorded",
            extra={
                "order_no": order.no,
                "refund_no": refund_no,
                "refund_status": order.refund_status,
                "sub_code": sub_code,
            },
        )
        return order
