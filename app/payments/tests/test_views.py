"""
Tests for the payment endpoints.

Views are exercised through the URLconf with the app-level services
pointed at the FakeGateway (see the payments_app fixture).
"""

import uuid

import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from payments.state_machines import InstallmentStatus
from payments.tests.factories import InstallmentPlanFactory


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def authed_client(api_client, user):
    api_client.force_authenticate(user=user)
    return api_client


@pytest.mark.django_db
class TestPaymentNotificationView:
    def post(self, client, payload, signature):
        return client.post(
            reverse("payments:payment_notification"),
            data=payload,
            content_type="application/json",
            HTTP_STRIPE_SIGNATURE=signature,
        )

    def test_applied_notification_returns_ack(self, client, payments_app, gateway, order):
        response = self.post(client, gateway.notification(order.no), gateway.SIGNATURE)

        order.refresh_from_db()
        assert response.status_code == 200
        assert response.content == b"success"
        assert order.is_paid

    def test_unknown_reference_is_still_acknowledged(self, client, payments_app, gateway):
        response = self.post(client, gateway.notification("20990101000000"), gateway.SIGNATURE)

        assert response.status_code == 200
        assert gateway.acknowledgements == 1

    def test_bad_signature_is_rejected(self, client, payments_app, gateway, order):
        response = self.post(client, gateway.notification(order.no), "forged")

        order.refresh_from_db()
        assert response.status_code == 400
        assert not order.is_paid
        assert gateway.acknowledgements == 0

    def test_get_is_not_allowed(self, client, payments_app):
        assert client.get(reverse("payments:payment_notification")).status_code == 405


@pytest.mark.django_db
class TestPayOrderView:
    def url(self, order_id):
        return reverse("payments:pay_order", kwargs={"order_id": order_id})

    def test_owner_gets_checkout_url(self, authed_client, payments_app, order):
        response = authed_client.post(self.url(order.pk))

        assert response.status_code == 201
        assert response.data == {
            "reference": order.no,
            "checkout_url": f"https://pay.example.com/checkout/{order.no}",
        }

    def test_non_owner_is_forbidden(self, api_client, payments_app, gateway, order, other_user):
        api_client.force_authenticate(user=other_user)

        response = api_client.post(self.url(order.pk))

        assert response.status_code == 403
        assert response.data["error_code"] == "NOT_OWNER"
        assert gateway.charges == []

    def test_paid_order_is_forbidden(self, authed_client, payments_app, paid_order):
        response = authed_client.post(self.url(paid_order.pk))

        assert response.status_code == 403
        assert response.data["error_code"] == "ORDER_NOT_PAYABLE"

    def test_missing_order_is_404(self, authed_client, payments_app):
        assert authed_client.post(self.url(uuid.uuid4())).status_code == 404

    def test_anonymous_is_unauthorized(self, api_client, payments_app, order):
        assert api_client.post(self.url(order.pk)).status_code == 401


@pytest.mark.django_db
class TestPayInstallmentView:
    def url(self, plan_no):
        return reverse("payments:pay_installment", kwargs={"plan_no": plan_no})

    def test_owner_gets_next_installment(self, authed_client, payments_app, plan):
        response = authed_client.post(self.url(plan.no))

        assert response.status_code == 201
        assert response.data["reference"] == f"{plan.no}_0"

    def test_finished_plan_is_forbidden(self, authed_client, payments_app, user):
        plan = InstallmentPlanFactory(user=user, status=InstallmentStatus.FINISHED)

        response = authed_client.post(self.url(plan.no))

        assert response.status_code == 403
        assert response.data["error_code"] == "PLAN_FINISHED"

    def test_missing_plan_is_404(self, authed_client, payments_app):
        assert authed_client.post(self.url("INS_00000000")).status_code == 404
