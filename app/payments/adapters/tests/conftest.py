"""
Pytest fixtures for Stripe adapter tests.

The Stripe SDK resources used by StripeGateway are patched, so no
network access is needed.

Sections:
    - Mock Stripe Objects
    - Mock Stripe Resource Fixtures
    - Mock Stripe Error Fixtures
"""

import json
from dataclasses import dataclass, field
from typing import Any
from unittest.mock import patch

import pytest
import stripe

from payments.adapters import StripeGateway


# =============================================================================
# Mock Stripe Objects
# =============================================================================


@dataclass
class MockStripeObject:
    """Mock Stripe API object with attribute access."""

    data: dict[str, Any]

    def __getattr__(self, name: str) -> Any:
        if name == "data":
            return self.__dict__["data"]
        return self.data.get(name)


@dataclass
class MockSearchResult:
    """Mock Stripe search result."""

    items: list[MockStripeObject] = field(default_factory=list)

    @property
    def data(self) -> list[MockStripeObject]:
        return self.items


@pytest.fixture
def stripe_gateway(mock_stripe_http_client):
    return StripeGateway()


@pytest.fixture
def checkout_event():
    """Build a signed-payload body for a checkout session event."""

    def _create(
        reference: str = "202610170001",
        event_type: str = "checkout.session.completed",
        payment_status: str = "paid",
        payment_intent: str | None = "pi_test123",
    ) -> bytes:
        return json.dumps(
            {
                "id": "evt_test123",
                "type": event_type,
                "data": {
                    "object": {
                        "id": "cs_test123",
                        "object": "checkout.session",
                        "client_reference_id": reference,
                        "payment_intent": payment_intent,
                        "payment_status": payment_status,
                    }
                },
            }
        ).encode()

    return _create


# =============================================================================
# Mock Stripe Resource Fixtures
# =============================================================================


@pytest.fixture
def mock_stripe_http_client():
    """Mock stripe.http_client.RequestsClient."""
    with patch("stripe.http_client.RequestsClient") as mock:
        yield mock


@pytest.fixture
def mock_stripe_session():
    """Mock stripe.checkout.Session API."""
    with patch("stripe.checkout.Session") as mock:
        mock.create.return_value = MockStripeObject(
            {"id": "cs_test123", "url": "https://checkout.stripe.com/c/pay/cs_test123"}
        )
        yield mock


@pytest.fixture
def mock_stripe_webhook():
    """Mock stripe.Webhook API; every signature verifies."""
    with patch("stripe.Webhook") as mock:
        mock.construct_event.return_value = MockStripeObject({"id": "evt_test123"})
        yield mock


@pytest.fixture
def mock_stripe_payment_intent():
    """Mock stripe.PaymentIntent API; search finds one succeeded intent."""
    with patch("stripe.PaymentIntent") as mock:
        mock.search.return_value = MockSearchResult(
            [MockStripeObject({"id": "pi_test123", "status": "succeeded"})]
        )
        yield mock


@pytest.fixture
def mock_stripe_refund():
    """Mock stripe.Refund API; refunds succeed by default."""
    with patch("stripe.Refund") as mock:
        mock.create.return_value = MockStripeObject(
            {"id": "re_test123", "status": "succeeded", "failure_reason": None}
        )
        yield mock


# =============================================================================
# Mock Stripe Error Fixtures
# =============================================================================


@pytest.fixture
def card_error():
    error = stripe.CardError(
        message="Your card was declined.",
        param=None,
        code="card_declined",
    )
    error.decline_code = "expired_card"
    return error


@pytest.fixture
def invalid_request_error():
    return stripe.InvalidRequestError(
        message="Charge ch_123 has already been refunded.",
        param="payment_intent",
        code="charge_already_refunded",
    )


@pytest.fixture
def rate_limit_error():
    return stripe.RateLimitError(message="Too many requests hit the API too quickly.")


@pytest.fixture
def api_connection_error():
    return stripe.APIConnectionError(message="Could not connect to Stripe.")


@pytest.fixture
def authentication_error():
    return stripe.AuthenticationError(message="Invalid API Key provided.")


@pytest.fixture
def signature_verification_error():
    return stripe.SignatureVerificationError(
        message="Unable to verify webhook signature.",
        sig_header="bad_signature",
    )
