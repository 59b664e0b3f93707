"""
DRF views for payments app.

Endpoints:
    POST /api/v1/payments/orders/<uuid>/pay/ - Start payment of an order
    POST /api/v1/payments/installments/<plan_no>/pay/ - Pay the next installment
    POST /api/v1/payments/notifications/stripe/ - Gateway notifications
        (see payments.webhooks.views)

Security:
    - Checkout endpoints require authentication; the authenticated user is
      the caller whose ownership is checked
    - The notification endpoint verifies the gateway signature instead
"""

from __future__ import annotations

import logging

from django.apps import apps
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from payments.adapters import ChargeResult
from payments.exceptions import PaymentForbiddenError
from payments.models import InstallmentPlan, Order

from .serializers import ChargeSerializer

logger = logging.getLogger(__name__)


class CheckoutView(APIView):
    """
    Base for views that hand the caller a gateway checkout URL.

    Subclasses implement charge() to look up the record and start the
    gateway charge; a refused caller gets a 403 with the error body.
    """

    permission_classes = [IsAuthenticated]

    def charge(self, request, **kwargs) -> ChargeResult:
        raise NotImplementedError

    def post(self, request, **kwargs):
        try:
            charge = self.charge(request, **kwargs)
        except PaymentForbiddenError as e:
            logger.info(
                "Checkout refused",
                extra={"user_id": request.user.pk, "error_code": e.error_code},
            )
            return Response(e.to_dict(), status=status.HTTP_403_FORBIDDEN)

        return Response(ChargeSerializer(charge).data, status=status.HTTP_201_CREATED)


class PayOrderView(CheckoutView):
    """
    Start payment of a single-payment order.

    POST /api/v1/payments/orders/<uuid>/pay/

    Returns:
        {"reference": "202610170001", "checkout_url": "https://checkout.stripe.com/..."}
    """

    def charge(self, request, order_id) -> ChargeResult:
        order = get_object_or_404(Order, pk=order_id)
        return apps.get_app_config("payments").checkout.pay_order(order, caller=request.user)


class PayInstallmentView(CheckoutView):
    """
    Pay the next unpaid installment of a plan.

    POST /api/v1/payments/installments/<plan_no>/pay/

    Returns:
        {"reference": "INS_202610170001_1", "checkout_url": "https://..."}
    """

    def charge(self, request, plan_no) -> ChargeResult:
        plan = get_object_or_404(InstallmentPlan.objects.select_related("order"), no=plan_no)
        return apps.get_app_config("payments").checkout.pay_installment(plan, caller=request.user)
