"""
Pytest fixtures for payment tests.

Every test runs against a FakeGateway and a mocked Redis connection, so
no network access is needed.

Usage:
    def test_first_installment_starts_plan(engine, gateway, plan):
        payload = gateway.notification(f"{plan.no}_0")
        engine.handle_payment_notification(payload, gateway.SIGNATURE)
"""

from unittest.mock import MagicMock, patch

import pytest
from django.apps import apps

from authentication.tests.factories import UserFactory
from payments.events import EventSink, payment_succeeded, refund_succeeded
from payments.services import CheckoutService, ReconciliationEngine
from payments.tests.factories import InstallmentPlanFactory, OrderFactory
from payments.tests.fakes import FakeGateway


# =============================================================================
# Infrastructure
# =============================================================================


@pytest.fixture(autouse=True)
def mock_redis():
    """Redis connection used by DistributedLock; lock always available."""
    redis_instance = MagicMock()
    redis_instance.set.return_value = True
    redis_instance.eval.return_value = 1
    with patch("payments.locks.get_redis_connection", return_value=redis_instance):
        yield redis_instance


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def engine(gateway):
    return ReconciliationEngine(gateway=gateway, events=EventSink())


@pytest.fixture
def checkout(gateway):
    return CheckoutService(gateway=gateway)


@pytest.fixture
def payments_app(gateway):
    """Point the app-level services (used by views and tasks) at the fake gateway."""
    config = apps.get_app_config("payments")
    original = config.gateway
    config.configure(gateway)
    yield config
    config.configure(original)


@pytest.fixture
def published():
    """
    Collect events delivered to signal receivers.

    Returns a dict of lists keyed by "payment" and "refund".
    """
    received = {"payment": [], "refund": []}

    def on_payment(sender, event, **kwargs):
        received["payment"].append(event)

    def on_refund(sender, event, **kwargs):
        received["refund"].append(event)

    payment_succeeded.connect(on_payment)
    refund_succeeded.connect(on_refund)
    yield received
    payment_succeeded.disconnect(on_payment)
    refund_succeeded.disconnect(on_refund)


# =============================================================================
# Users
# =============================================================================


@pytest.fixture
def user(db):
    """Owner of the orders and plans below."""
    return UserFactory()


@pytest.fixture
def other_user(db):
    return UserFactory()


# =============================================================================
# Orders and Plans
# =============================================================================


@pytest.fixture
def order(user):
    """Unpaid single-payment order."""
    return OrderFactory(user=user)


@pytest.fixture
def paid_order(user):
    return OrderFactory(user=user, paid=True)


@pytest.fixture
def plan(user):
    """Pending plan with three unpaid installments."""
    return InstallmentPlanFactory(user=user, count=3)


@pytest.fixture
def single_plan(user):
    """Pending plan with one installment."""
    return InstallmentPlanFactory(user=user, count=1)
