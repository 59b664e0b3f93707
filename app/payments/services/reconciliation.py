"""
Reconciliation of gateway notifications and refunds against local records.

The ReconciliationEngine is the only writer of payment state. It applies
each verified gateway notification at most once and acknowledges every
authentic delivery so the gateway stops redelivering:

    applied    the notification changed an order or installment
    duplicate  the targeted record was already paid; nothing changed
    ignored    unknown reference or not a completed payment; nothing changed

Usage:
    from payments.services import ReconciliationEngine

    engine = ReconciliationEngine(gateway=StripeGateway(), events=EventSink())

    result = engine.handle_payment_notification(request.body, signature)
    return result.acknowledgement

    result = engine.refund(order)
    if not result.success:
        print(result.error_code)  # GATEWAY_REFUND_FAILED
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from core.services import BaseService, ServiceResult
from payments.events import EventSink, PaymentSucceeded, RefundSucceeded
from payments.exceptions import InvalidSignatureError, PaymentForbiddenError
from payments.ledger import InstallmentLedger, OrderLedger
from payments.locks import DistributedLock, refund_lock_key
from payments.references import parse_reference
from payments.state_machines import RefundStatus

if TYPE_CHECKING:
    from django.http import HttpResponse

    from payments.adapters import GatewayClient, VerifiedNotification
    from payments.models import InstallmentItem, Order
    from payments.references import PaymentReference


APPLIED = "applied"
DUPLICATE = "duplicate"
IGNORED = "ignored"


@dataclass(frozen=True)
class NotificationResult:
    """
    Outcome of one notification delivery.

    Attributes:
        outcome: APPLIED, DUPLICATE or IGNORED
        reference: Client reference carried by the notification ("" if none)
        record: The Order or InstallmentItem targeted (None when unknown)
        acknowledgement: Gateway success response to return to the gateway
    """

    outcome: str
    reference: str
    record: Order | InstallmentItem | None
    acknowledgement: HttpResponse | None = None


def generate_refund_no() -> str:
    return f"refund_{uuid.uuid4().hex}"


class ReconciliationEngine(BaseService):
    """
    Applies gateway notifications and issues refunds.

    Every lookup and mutation for one notification runs in a single
    transaction holding row locks in the order plan -> item -> order, so
    concurrent deliveries of the same notification serialize and exactly
    one of them applies.
    """

    def __init__(
        self,
        gateway: GatewayClient,
        events: EventSink | None = None,
        orders: type[OrderLedger] = OrderLedger,
        installments: type[InstallmentLedger] = InstallmentLedger,
    ) -> None:
        self.gateway = gateway
        self.events = events or EventSink()
        self.orders = orders
        self.installments = installments

    # =========================================================================
    # Notifications
    # =========================================================================

    def handle_payment_notification(self, payload: bytes, signature: str) -> NotificationResult:
        """
        Verify, apply and acknowledge one gateway notification.

        Raises:
            InvalidSignatureError: Verification failed; nothing was changed
                and no acknowledgement was produced
        """
        logger = self.get_logger()

        notification = self.gateway.verify(payload, signature)
        if notification is None:
            logger.warning(
                "Rejected gateway notification",
                extra={"gateway": self.gateway.name},
            )
            raise InvalidSignatureError(
                "Gateway notification failed verification",
                details={"gateway": self.gateway.name},
            )

        outcome, record = self._apply(notification)

        logger.info(
            f"Gateway notification {outcome}",
            extra={
                "gateway": self.gateway.name,
                "event_id": notification.event_id,
                "event_type": notification.event_type,
                "reference": notification.client_reference,
                "outcome": outcome,
            },
        )

        return NotificationResult(
            outcome=outcome,
            reference=notification.client_reference,
            record=record,
            acknowledgement=self.gateway.acknowledge(),
        )

    def _apply(self, notification: VerifiedNotification) -> tuple[str, Any]:
        if not notification.is_payment:
            return IGNORED, None

        try:
            reference = parse_reference(notification.client_reference)
        except ValueError:
            return IGNORED, None

        with self.atomic():
            if reference.is_installment:
                return self._apply_installment(reference, notification)
            return self._apply_order(reference, notification)

    def _apply_order(
        self, reference: PaymentReference, notification: VerifiedNotification
    ) -> tuple[str, Order | None]:
        order = self.orders.find_by_no(reference.number, for_update=True)
        if order is None:
            self.get_logger().warning(
                "Notification for unknown order",
                extra={"reference": reference.raw},
            )
            return IGNORED, None

        if not self.orders.mark_paid(order, self.gateway.name, notification.transaction_id):
            return DUPLICATE, order

        self.events.publish(PaymentSucceeded(order=order))
        return APPLIED, order

    def _apply_installment(
        self, reference: PaymentReference, notification: VerifiedNotification
    ) -> tuple[str, InstallmentItem | None]:
        logger = self.get_logger()

        plan = self.installments.find_by_no(reference.number, for_update=True)
        if plan is None:
            logger.warning(
                "Notification for unknown installment plan",
                extra={"reference": reference.raw, "plan_no": reference.number},
            )
            return IGNORED, None

        item = self.installments.find_item(plan, reference.sequence, for_update=True)
        if item is None:
            logger.warning(
                "Notification for unknown installment",
                extra={
                    "reference": reference.raw,
                    "plan_no": plan.no,
                    "sequence": reference.sequence,
                },
            )
            return IGNORED, None

        if not self.installments.mark_item_paid(
            item, self.gateway.name, notification.transaction_id
        ):
            return DUPLICATE, item

        transition = self.installments.apply_item_paid(plan, item)
        if transition.order_paid:
            self.events.publish(PaymentSucceeded(order=plan.order))

        return APPLIED, item

    # =========================================================================
    # Refunds
    # =========================================================================

    def refund(self, order: Order) -> ServiceResult[Order]:
        """
        Refund a paid order in full.

        The order is claimed (refund_status pending) before the gateway is
        called, so a second refund for the same order is refused rather
        than sent to the gateway again.

        Returns:
            ServiceResult with the updated order. A gateway decline is
            recorded on the order and returned as a failure with error_code
            GATEWAY_REFUND_FAILED.

        Raises:
            PaymentForbiddenError: Order unpaid, or a refund already exists
            LockAcquisitionError: Another refund of this order is running
        """
        with DistributedLock(refund_lock_key(order.pk), blocking=False):
            return self._refund_with_lock(order)

    def _refund_with_lock(self, order: Order) -> ServiceResult[Order]:
        logger = self.get_logger()

        # Phase 1: claim the order
        with self.atomic():
            locked = self.orders.find_by_id(order.pk, for_update=True)
            if locked is None or not locked.is_paid:
                raise PaymentForbiddenError(
                    "Only paid orders can be refunded",
                    error_code="ORDER_NOT_PAID",
                    details={"order_no": order.no},
                )
            if locked.refund_status != RefundStatus.NONE:
                raise PaymentForbiddenError(
                    "Order has already been refunded",
                    error_code="REFUND_EXISTS",
                    details={"order_no": locked.no, "refund_status": locked.refund_status},
                )

            refund_no = generate_refund_no()
            self.orders.begin_refund(locked, refund_no)

        logger.info(
            "Requesting refund from gateway",
            extra={"order_no": locked.no, "refund_no": refund_no},
        )

        # Phase 2: gateway call outside any transaction
        result = self.gateway.refund(locked.no, locked.total_amount, refund_no)

        # Phase 3: record the answer
        failure_code = None if result.succeeded else result.sub_code
        with self.atomic():
            locked = self.orders.find_by_id(order.pk, for_update=True)
            self.orders.mark_refund_result(locked, refund_no, failure_code)
            if result.succeeded:
                self.events.publish(RefundSucceeded(order=locked))

        if not result.succeeded:
            return ServiceResult.failure(
                f"Refund declined by gateway: {result.sub_code}",
                error_code="GATEWAY_REFUND_FAILED",
                data=locked,
            )

        return ServiceResult.success(locked)
