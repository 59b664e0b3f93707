"""
Payment initiation for orders and installments.

CheckoutService never changes state: it checks that the caller may pay,
then asks the gateway for a charge. State only changes when the gateway
later notifies the ReconciliationEngine.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.services import BaseService
from payments.exceptions import PaymentForbiddenError
from payments.ledger import InstallmentLedger
from payments.references import build_installment_reference

if TYPE_CHECKING:
    from payments.adapters import ChargeResult, GatewayClient
    from payments.models import InstallmentPlan, Order


class CheckoutService(BaseService):
    """
    Creates gateway charges on behalf of an authenticated caller.

    Usage:
        checkout = CheckoutService(gateway=StripeGateway())
        charge = checkout.pay_installment(plan, caller=request.user)
        return Response({"checkout_url": charge.url})
    """

    def __init__(
        self,
        gateway: GatewayClient,
        installments: type[InstallmentLedger] = InstallmentLedger,
    ) -> None:
        self.gateway = gateway
        self.installments = installments

    def pay_installment(self, plan: InstallmentPlan, caller) -> ChargeResult:
        """
        Charge the next unpaid installment of a plan.

        Raises:
            PaymentForbiddenError: Caller is not the plan owner, the order is
                closed, the plan is finished, or nothing is left to pay
        """
        if plan.user_id != caller.pk:
            raise PaymentForbiddenError(
                "You do not have permission to pay this installment plan",
                error_code="NOT_OWNER",
            )
        if plan.order.closed:
            raise PaymentForbiddenError(
                "The order for this installment plan is closed",
                error_code="ORDER_CLOSED",
                details={"plan_no": plan.no},
            )
        if plan.is_finished:
            raise PaymentForbiddenError(
                "This installment plan has been paid off",
                error_code="PLAN_FINISHED",
                details={"plan_no": plan.no},
            )

        item = self.installments.find_next_unpaid_item(plan)
        if item is None:
            raise PaymentForbiddenError(
                "This installment plan has no unpaid installments",
                error_code="NOTHING_TO_PAY",
                details={"plan_no": plan.no},
            )

        reference = build_installment_reference(plan.no, item.sequence)
        charge = self.gateway.create_charge(
            reference,
            item.total,
            f"Installment payment: {reference}",
        )

        self.get_logger().info(
            "Installment charge created",
            extra={"plan_no": plan.no, "sequence": item.sequence, "reference": reference},
        )
        return charge

    def pay_order(self, order: Order, caller) -> ChargeResult:
        """
        Charge a single-payment order in full.

        Raises:
            PaymentForbiddenError: Caller is not the owner, or the order is
                paid or closed
        """
        if order.user_id != caller.pk:
            raise PaymentForbiddenError(
                "You do not have permission to pay this order",
                error_code="NOT_OWNER",
            )
        if order.is_paid or order.closed:
            raise PaymentForbiddenError(
                "This order can no longer be paid",
                error_code="ORDER_NOT_PAYABLE",
                details={"order_no": order.no, "paid": order.is_paid, "closed": order.closed},
            )

        charge = self.gateway.create_charge(
            order.no,
            order.total_amount,
            f"Order payment: {order.no}",
        )

        self.get_logger().info(
            "Order charge created",
            extra={"order_no": order.no, "reference": order.no},
        )
        return charge
