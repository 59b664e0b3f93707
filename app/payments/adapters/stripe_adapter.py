"""
Stripe implementation of the gateway capability.

All Stripe calls go through StripeGateway so that timeouts, error
translation and timing logs are handled in one place.

Configuration (via settings):
- STRIPE_SECRET_KEY: Stripe API secret key
- STRIPE_WEBHOOK_SECRET: Webhook signing secret
- STRIPE_API_TIMEOUT_SECONDS: API call timeout (default: 10)
- PAYMENTS_CURRENCY: Charge currency (default: "usd")
- PAYMENTS_CHECKOUT_SUCCESS_URL / PAYMENTS_CHECKOUT_CANCEL_URL

Usage:
    from payments.adapters import StripeGateway

    gateway = StripeGateway()
    charge = gateway.create_charge("202610170001", Decimal("99.00"), "Order 202610170001")
    redirect(charge.url)

Charges are created as Checkout Sessions. The client reference travels as
the session's client_reference_id and in the PaymentIntent metadata, so
refunds can find the PaymentIntent again from the order number alone.
"""

from __future__ import annotations

import json
import logging
import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import stripe
from django.conf import settings
from django.http import HttpResponse

from payments.adapters.base import ChargeResult, RefundResult, VerifiedNotification
from payments.exceptions import (
    StripeAPIUnavailableError,
    StripeCardDeclinedError,
    StripeError,
    StripeInvalidRequestError,
    StripeRateLimitError,
)

# Checkout events that carry a completed payment
PAYMENT_EVENT_TYPES = frozenset(
    {
        "checkout.session.completed",
        "checkout.session.async_payment_succeeded",
    }
)

REFUND_FAILED_STATUSES = frozenset({"failed", "canceled"})

METADATA_REFERENCE_KEY = "client_reference"


def to_minor_units(amount: Decimal) -> int:
    """Convert a major-unit amount (99.95) to Stripe's minor units (9995)."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class StripeGateway:
    """
    Gateway client backed by the Stripe SDK.

    Safe to share across threads and Celery workers: no per-request state
    is kept on the instance.
    """

    name = "stripe"

    def __init__(self) -> None:
        self._configure_stripe()

    @staticmethod
    def _configure_stripe() -> None:
        """Configure Stripe client with API key and timeout."""
        stripe.api_key = settings.STRIPE_SECRET_KEY
        timeout = getattr(settings, "STRIPE_API_TIMEOUT_SECONDS", 10)
        stripe.default_http_client = stripe.http_client.RequestsClient(timeout=timeout)

    @classmethod
    def get_logger(cls) -> logging.Logger:
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    # =========================================================================
    # Charges
    # =========================================================================

    def create_charge(self, reference: str, amount: Decimal, subject: str) -> ChargeResult:
        """
        Create a Checkout Session for the given reference.

        Raises:
            StripeError: Any Stripe failure, translated by _handle_stripe_error
        """
        logger = self.get_logger()
        log_context = {
            "operation": "create_charge",
            "reference": reference,
            "amount": str(amount),
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            session = stripe.checkout.Session.create(
                mode="payment",
                client_reference_id=reference,
                line_items=[
                    {
                        "quantity": 1,
                        "price_data": {
                            "currency": settings.PAYMENTS_CURRENCY,
                            "unit_amount": to_minor_units(amount),
                            "product_data": {"name": subject},
                        },
                    }
                ],
                payment_intent_data={
                    "description": subject,
                    "metadata": {METADATA_REFERENCE_KEY: reference},
                },
                success_url=settings.PAYMENTS_CHECKOUT_SUCCESS_URL,
                cancel_url=settings.PAYMENTS_CHECKOUT_CANCEL_URL,
            )

            logger.info(
                "Stripe operation completed",
                extra={
                    **log_context,
                    "session_id": session.id,
                    "duration_ms": (time.time() - start_time) * 1000,
                },
            )
            return ChargeResult(reference=reference, url=session.url, gateway_id=session.id)

        except Exception as e:
            self._handle_stripe_error(e, log_context, (time.time() - start_time) * 1000)
            raise

    # =========================================================================
    # Notifications
    # =========================================================================

    def verify(self, payload: bytes, signature: str) -> VerifiedNotification | None:
        """
        Verify a webhook delivery and extract the payment it reports.

        Returns None when the signature or payload is invalid. Verified
        events that are not checkout completions come back with paid=False
        and no client reference.
        """
        logger = self.get_logger()
        try:
            event = stripe.Webhook.construct_event(
                payload,
                signature,
                settings.STRIPE_WEBHOOK_SECRET,
            )
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.warning(
                "Webhook verification failed",
                extra={"error": str(e)},
            )
            return None

        body = json.loads(payload)
        event_type = body.get("type", "")
        event_id = body.get("id", "")

        if event_type not in PAYMENT_EVENT_TYPES:
            return VerifiedNotification(
                event_id=event_id,
                event_type=event_type,
                client_reference="",
                transaction_id="",
                paid=False,
                payload=body,
            )

        session = body.get("data", {}).get("object", {})
        return VerifiedNotification(
            event_id=event_id or getattr(event, "id", ""),
            event_type=event_type,
            client_reference=session.get("client_reference_id") or "",
            transaction_id=session.get("payment_intent") or session.get("id", ""),
            paid=session.get("payment_status") == "paid",
            payload=body,
        )

    def acknowledge(self) -> HttpResponse:
        return HttpResponse("success", status=200, content_type="text/plain")

    # =========================================================================
    # Refunds
    # =========================================================================

    def refund(
        self, order_reference: str, amount: Decimal, refund_reference: str
    ) -> RefundResult:
        """
        Refund the payment made for order_reference.

        Stripe failures are reported through RefundResult.sub_code rather
        than raised, so the caller can record them on the order.
        """
        logger = self.get_logger()
        log_context = {
            "operation": "refund",
            "reference": order_reference,
            "refund_no": refund_reference,
            "amount": str(amount),
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            payment_intent_id = self._find_payment_intent(order_reference)
            if payment_intent_id is None:
                logger.warning("No PaymentIntent for reference", extra=log_context)
                return RefundResult(refund_reference=refund_reference, sub_code="payment_not_found")

            refund = stripe.Refund.create(
                payment_intent=payment_intent_id,
                amount=to_minor_units(amount),
                metadata={METADATA_REFERENCE_KEY: order_reference},
                idempotency_key=refund_reference,
            )

            duration_ms = (time.time() - start_time) * 1000
            logger.info(
                "Stripe operation completed",
                extra={
                    **log_context,
                    "refund_id": refund.id,
                    "status": refund.status,
                    "duration_ms": duration_ms,
                },
            )

            sub_code = None
            if refund.status in REFUND_FAILED_STATUSES:
                sub_code = getattr(refund, "failure_reason", None) or refund.status

            return RefundResult(
                refund_reference=refund_reference,
                sub_code=sub_code,
                gateway_id=refund.id,
                status=refund.status,
            )

        except Exception as e:
            try:
                self._handle_stripe_error(e, log_context, (time.time() - start_time) * 1000)
            except StripeError as translated:
                return RefundResult(
                    refund_reference=refund_reference,
                    sub_code=translated.failure_code,
                    status="error",
                )
            raise

    def _find_payment_intent(self, reference: str) -> str | None:
        result = stripe.PaymentIntent.search(
            query=f"metadata['{METADATA_REFERENCE_KEY}']:'{reference}' AND status:'succeeded'",
            limit=1,
        )
        if not result.data:
            return None
        return result.data[0].id

    # =========================================================================
    # Error Handling
    # =========================================================================

    @classmethod
    def _handle_stripe_error(
        cls,
        error: Exception,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> None:
        """
        Translate Stripe SDK exceptions to domain exceptions.

        Non-Stripe exceptions are logged and returned untouched so the
        caller re-raises them.

        Raises:
            StripeCardDeclinedError: Card was declined
            StripeInvalidRequestError: Invalid parameters or authentication
            StripeRateLimitError: Rate limited
            StripeAPIUnavailableError: Network or Stripe server errors
        """
        logger = cls.get_logger()
        log_context = {**log_context, "duration_ms": duration_ms}

        if isinstance(error, stripe.CardError):
            decline_code = getattr(error, "decline_code", None)
            logger.warning(
                "Card error from Stripe",
                extra={**log_context, "decline_code": decline_code},
            )
            raise StripeCardDeclinedError(
                str(error.user_message or error),
                stripe_code=error.code,
                decline_code=decline_code,
            )

        if isinstance(error, stripe.InvalidRequestError):
            logger.error(
                "Invalid request to Stripe",
                extra={**log_context, "stripe_code": error.code},
            )
            raise StripeInvalidRequestError(str(error), stripe_code=error.code)

        if isinstance(error, stripe.RateLimitError):
            logger.warning("Rate limited by Stripe", extra=log_context)
            raise StripeRateLimitError(
                "Stripe rate limit exceeded. Please retry.",
                stripe_code="rate_limit",
            )

        if isinstance(error, stripe.APIConnectionError):
            logger.error("Connection error to Stripe", extra=log_context, exc_info=True)
            raise StripeAPIUnavailableError(
                "Could not connect to Stripe. Please retry.",
                stripe_code="api_connection_error",
            )

        if isinstance(error, stripe.AuthenticationError):
            logger.critical(
                "Stripe authentication failed - check API key",
                extra=log_context,
            )
            raise StripeInvalidRequestError(
                "Stripe authentication failed",
                stripe_code="authentication_error",
            )

        if isinstance(error, stripe.StripeError):
            logger.error("Stripe API error", extra=log_context, exc_info=True)
            raise StripeAPIUnavailableError(
                "Stripe service error. Please retry.",
                stripe_code="api_error",
            )

        logger.error(
            f"Unexpected error during Stripe operation: {type(error).__name__}",
            extra=log_context,
            exc_info=True,
        )


__all__ = ["StripeGateway", "to_minor_units"]
