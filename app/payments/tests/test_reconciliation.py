"""
Tests for ReconciliationEngine.handle_payment_notification().

The central property: every authentic delivery is acknowledged, and a
notification changes state and publishes PaymentSucceeded at most once no
matter how often it is delivered.
"""

import pytest

from payments.exceptions import InvalidSignatureError
from payments.ledger import INSTALLMENT_PAYMENT_METHOD
from payments.models import InstallmentItem, InstallmentPlan, Order
from payments.services import APPLIED, DUPLICATE, IGNORED
from payments.state_machines import InstallmentStatus


def deliver(engine, gateway, reference, transaction_id="txn_1", **kwargs):
    payload = gateway.notification(reference, transaction_id=transaction_id, **kwargs)
    return engine.handle_payment_notification(payload, gateway.SIGNATURE)


# =============================================================================
# Verification
# =============================================================================


@pytest.mark.django_db
class TestVerification:
    """Notifications that fail verification."""

    def test_invalid_signature_raises_without_ack(self, engine, gateway, order):
        payload = gateway.notification(order.no)

        with pytest.raises(InvalidSignatureError):
            engine.handle_payment_notification(payload, "forged")

        order.refresh_from_db()
        assert order.paid_at is None
        assert gateway.acknowledgements == 0

    def test_invalid_signature_publishes_nothing(
        self, engine, gateway, order, published, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            with pytest.raises(InvalidSignatureError):
                engine.handle_payment_notification(gateway.notification(order.no), "")

        assert callbacks == []
        assert published["payment"] == []


# =============================================================================
# Single-payment orders
# =============================================================================


@pytest.mark.django_db
class TestOrderNotification:
    """Single-payment path."""

    def test_marks_order_paid_and_acknowledges(self, engine, gateway, order):
        result = deliver(engine, gateway, order.no, transaction_id="pi_123")

        order.refresh_from_db()
        assert result.outcome == APPLIED
        assert result.record == order
        assert order.paid_at is not None
        assert order.payment_method == gateway.name
        assert order.payment_no == "pi_123"
        assert result.acknowledgement.status_code == 200
        assert gateway.acknowledgements == 1

    def test_publishes_payment_succeeded_after_commit(
        self, engine, gateway, order, published, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            deliver(engine, gateway, order.no)

        assert [event.order.pk for event in published["payment"]] == [order.pk]

    def test_nothing_published_before_commit(
        self, engine, gateway, order, published, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            deliver(engine, gateway, order.no)

        assert len(callbacks) == 1
        assert published["payment"] == []

    def test_duplicate_delivery_is_acknowledged_noop(
        self, engine, gateway, order, published, django_capture_on_commit_callbacks
    ):
        """Same notification twice: one payment, one event, two acknowledgements."""
        with django_capture_on_commit_callbacks(execute=True):
            first = deliver(engine, gateway, order.no, transaction_id="pi_1")
        order.refresh_from_db()
        paid_at = order.paid_at

        with django_capture_on_commit_callbacks(execute=True):
            second = deliver(engine, gateway, order.no, transaction_id="pi_1")

        order.refresh_from_db()
        assert (first.outcome, second.outcome) == (APPLIED, DUPLICATE)
        assert order.paid_at == paid_at
        assert len(published["payment"]) == 1
        assert gateway.acknowledgements == 2

    def test_redelivery_with_other_transaction_keeps_first_payment(self, engine, gateway, order):
        deliver(engine, gateway, order.no, transaction_id="pi_1")
        deliver(engine, gateway, order.no, transaction_id="pi_2")

        order.refresh_from_db()
        assert order.payment_no == "pi_1"

    def test_unknown_order_is_acknowledged_noop(
        self, engine, gateway, published, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            result = deliver(engine, gateway, "20990101999999")

        assert result.outcome == IGNORED
        assert result.record is None
        assert gateway.acknowledgements == 1
        assert published["payment"] == []
        assert not Order.objects.filter(paid_at__isnull=False).exists()


# =============================================================================
# Non-payment events
# =============================================================================


@pytest.mark.django_db
class TestIgnoredEvents:
    def test_unpaid_notification_is_ignored(self, engine, gateway, order):
        result = deliver(engine, gateway, order.no, paid=False)

        order.refresh_from_db()
        assert result.outcome == IGNORED
        assert order.paid_at is None
        assert gateway.acknowledgements == 1

    def test_event_without_reference_is_ignored(self, engine, gateway):
        result = deliver(engine, gateway, "", event_type="customer.created")

        assert result.outcome == IGNORED
        assert result.acknowledgement is not None


# =============================================================================
# Installments
# =============================================================================


@pytest.mark.django_db
class TestInstallmentNotification:
    """Installment path with a three-item plan."""

    def _item(self, plan, sequence):
        return InstallmentItem.objects.get(plan=plan, sequence=sequence)

    def test_middle_item_alone_moves_nothing(
        self, engine, gateway, plan, published, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            result = deliver(engine, gateway, f"{plan.no}_1", transaction_id="pi_mid")

        plan.refresh_from_db()
        plan.order.refresh_from_db()
        item = self._item(plan, 1)
        assert result.outcome == APPLIED
        assert result.record == item
        assert item.payment_no == "pi_mid"
        assert item.payment_method == gateway.name
        assert plan.status == InstallmentStatus.PENDING
        assert plan.order.paid_at is None
        assert published["payment"] == []

    def test_first_item_starts_plan_and_pays_order(
        self, engine, gateway, plan, published, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            deliver(engine, gateway, f"{plan.no}_0")

        plan.refresh_from_db()
        order = plan.order
        order.refresh_from_db()
        assert plan.status == InstallmentStatus.REPAYING
        assert order.paid_at is not None
        assert order.payment_method == INSTALLMENT_PAYMENT_METHOD
        assert order.payment_no == plan.no
        assert self._item(plan, 1).paid_at is None
        assert self._item(plan, 2).paid_at is None
        assert [event.order.pk for event in published["payment"]] == [order.pk]

    def test_last_item_finishes_plan_with_gap(self, engine, gateway, plan):
        deliver(engine, gateway, f"{plan.no}_0", transaction_id="pi_0")
        deliver(engine, gateway, f"{plan.no}_2", transaction_id="pi_2")

        plan.refresh_from_db()
        assert plan.status == InstallmentStatus.FINISHED
        assert self._item(plan, 1).paid_at is None

    def test_last_item_before_first_still_pays_order_once(
        self, engine, gateway, plan, published, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            deliver(engine, gateway, f"{plan.no}_2", transaction_id="pi_2")

        plan.refresh_from_db()
        assert plan.status == InstallmentStatus.FINISHED
        assert published["payment"] == []

        with django_capture_on_commit_callbacks(execute=True):
            result = deliver(engine, gateway, f"{plan.no}_0", transaction_id="pi_0")

        plan.refresh_from_db()
        order = plan.order
        order.refresh_from_db()
        assert result.outcome == APPLIED
        assert plan.status == InstallmentStatus.FINISHED
        assert order.paid_at is not None
        assert order.payment_no == plan.no
        assert [event.order.pk for event in published["payment"]] == [order.pk]

    def test_single_installment_plan_starts_and_finishes(
        self, engine, gateway, single_plan, published, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            deliver(engine, gateway, f"{single_plan.no}_0")

        single_plan.refresh_from_db()
        single_plan.order.refresh_from_db()
        assert single_plan.status == InstallmentStatus.FINISHED
        assert single_plan.order.paid_at is not None
        assert len(published["payment"]) == 1

    def test_duplicate_installment_delivery(
        self, engine, gateway, plan, published, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            first = deliver(engine, gateway, f"{plan.no}_0", transaction_id="pi_0")
            second = deliver(engine, gateway, f"{plan.no}_0", transaction_id="pi_0")

        plan.refresh_from_db()
        assert (first.outcome, second.outcome) == (APPLIED, DUPLICATE)
        assert plan.status == InstallmentStatus.REPAYING
        assert len(published["payment"]) == 1
        assert gateway.acknowledgements == 2

    def test_unknown_plan_is_acknowledged_noop(self, engine, gateway, plan):
        result = deliver(engine, gateway, "INS_99999999_0")

        assert result.outcome == IGNORED
        assert gateway.acknowledgements == 1
        assert not InstallmentItem.objects.filter(paid_at__isnull=False).exists()

    def test_unknown_sequence_is_acknowledged_noop(self, engine, gateway, plan):
        result = deliver(engine, gateway, f"{plan.no}_7")

        plan.refresh_from_db()
        assert result.outcome == IGNORED
        assert plan.status == InstallmentStatus.PENDING
        assert gateway.acknowledgements == 1

    def test_all_items_paid_in_order(self, engine, gateway, plan):
        for sequence in range(plan.count):
            deliver(engine, gateway, f"{plan.no}_{sequence}", transaction_id=f"pi_{sequence}")

        plan.refresh_from_db()
        assert plan.status == InstallmentStatus.FINISHED
        assert not plan.items.filter(paid_at__isnull=True).exists()
        assert InstallmentPlan.objects.get(pk=plan.pk).order.paid_at is not None


# =============================================================================
# Failure atomicity
# =============================================================================


@pytest.mark.django_db
class TestTransactionFailure:
    def test_error_mid_transition_rolls_back_and_skips_ack(
        self, engine, gateway, plan, mocker
    ):
        """A failure after the item is paid leaves the item unpaid."""
        mocker.patch.object(
            engine.installments,
            "apply_item_paid",
            side_effect=RuntimeError("database went away"),
        )

        with pytest.raises(RuntimeError):
            deliver(engine, gateway, f"{plan.no}_0")

        assert self._item_paid(plan) is False
        assert gateway.acknowledgements == 0

    def _item_paid(self, plan):
        return InstallmentItem.objects.get(plan=plan, sequence=0).paid_at is not None
