"""
Payment-specific exceptions for payment operations.

Exception Hierarchy:
    PaymentError (base for payment domain)
    ├── InvalidSignatureError - Gateway notification failed verification
    └── PaymentProcessingError - Gateway call failures
        └── StripeError - Base for all Stripe errors
            ├── StripeCardDeclinedError - Card declined (permanent)
            ├── StripeInvalidRequestError - Invalid request params (permanent)
            ├── StripeRateLimitError - Rate limited (transient)
            └── StripeAPIUnavailableError - API unavailable (transient)

    PaymentForbiddenError - Caller/record not eligible (inherits PermissionDeniedError)
    LockAcquisitionError - Distributed lock timeout (inherits ConflictError)
    InvalidStateTransitionError - FSM transition not allowed (inherits ConflictError)

Not errors:
    Unknown references and duplicate notifications are reconciliation
    outcomes, not exceptions. They are acknowledged to the gateway.

Usage:
    from payments.exceptions import InvalidSignatureError, PaymentForbiddenError

    if notification is None:
        raise InvalidSignatureError("Notification failed verification")

    if plan.user_id != caller.pk:
        raise PaymentForbiddenError("No permission", error_code="NOT_OWNER")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError, ConflictError, PermissionDeniedError

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Payment Domain Exceptions
# =============================================================================


class PaymentError(BaseApplicationError):
    """
    Base exception for all payment operations.

    Inherits from BaseApplicationError for consistent API error responses.
    """

    default_error_code: str = "PAYMENT_ERROR"


class InvalidSignatureError(PaymentError):
    """
    Raised when a gateway notification fails verification.

    Nothing is mutated and the gateway is NOT acknowledged, so the
    gateway keeps redelivering until an authentic payload arrives.

    Example:
        notification = gateway.verify(payload, signature)
        if notification is None:
            raise InvalidSignatureError("Notification failed verification")
    """

    default_error_code: str = "INVALID_SIGNATURE"


class PaymentProcessingError(PaymentError):
    """
    Raised when a call to the payment gateway fails.
    """

    default_error_code: str = "PAYMENT_PROCESSING_ERROR"


class PaymentForbiddenError(PermissionDeniedError):
    """
    Raised when a payment or refund may not be initiated.

    Use for:
    - Caller does not own the order or plan
    - Order is closed or already paid
    - Plan is already finished
    - Refund already issued or order never paid

    The message is user-facing; the error_code is for clients.

    Example:
        if order.closed:
            raise PaymentForbiddenError(
                "Order is closed",
                error_code="ORDER_CLOSED",
                details={"order_no": order.no},
            )
    """

    default_error_code: str = "PAYMENT_FORBIDDEN"


# =============================================================================
# Stripe-Specific Exceptions
# =============================================================================


class StripeError(PaymentProcessingError):
    """
    Base exception for all Stripe-related errors.

    Attributes:
        stripe_code: Stripe's error code (recorded as refund failure code)
        decline_code: Card decline code (if applicable)
        is_retryable: Whether the operation can be retried
    """

    default_error_code: str = "STRIPE_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        stripe_code: str | None = None,
        decline_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if stripe_code:
            details["stripe_code"] = stripe_code
        if decline_code:
            details["decline_code"] = decline_code
        super().__init__(message, error_code=error_code, details=details)
        self.stripe_code = stripe_code
        self.decline_code = decline_code

    @property
    def failure_code(self) -> str:
        """Most specific code available, for recording on the order."""
        return self.decline_code or self.stripe_code or self.error_code


class StripeCardDeclinedError(StripeError):
    """
    Card or payment method was declined.

    Permanent - do not retry with the same payment method.
    """

    default_error_code: str = "CARD_DECLINED"
    is_retryable: bool = False


class StripeInvalidRequestError(StripeError):
    """
    Invalid request parameters sent to Stripe.

    Permanent - the request will never succeed with the same parameters.
    For refunds this covers "charge already refunded" and amounts larger
    than the captured amount.
    """

    default_error_code: str = "INVALID_STRIPE_REQUEST"
    is_retryable: bool = False


class StripeRateLimitError(StripeError):
    """
    Rate limited by Stripe API.
    """

    default_error_code: str = "STRIPE_RATE_LIMITED"
    is_retryable: bool = True


class StripeAPIUnavailableError(StripeError):
    """
    Stripe API is temporarily unavailable (network, 5xx, timeouts).
    """

    default_error_code: str = "STRIPE_UNAVAILABLE"
    is_retryable: bool = True


# =============================================================================
# Concurrency Control Exceptions
# =============================================================================


class LockAcquisitionError(ConflictError):
    """
    Raised when a distributed lock cannot be acquired.

    Another process holds the lock and it couldn't be acquired within
    the timeout period.

    Note:
        Inherits from ConflictError (HTTP 409) because it represents
        a resource contention conflict.
    """

    default_error_code: str = "LOCK_ACQUISITION_FAILED"


class InvalidStateTransitionError(ConflictError):
    """
    Raised when a state machine transition is not allowed.

    Wraps django-fsm's TransitionNotAllowed to provide our standard
    error format with additional context.

    Example:
        try:
            order.complete_refund()
        except TransitionNotAllowed:
            raise InvalidStateTransitionError(
                f"Cannot complete refund from '{order.refund_status}'",
                details={
                    "current_state": order.refund_status,
                    "transition": "complete_refund",
                },
            )
    """

    default_error_code: str = "INVALID_STATE_TRANSITION"


__all__ = [
    # Payment domain
    "PaymentError",
    "InvalidSignatureError",
    "PaymentProcessingError",
    "PaymentForbiddenError",
    # Stripe-specific
    "StripeError",
    "StripeCardDeclinedError",
    "StripeInvalidRequestError",
    "StripeRateLimitError",
    "StripeAPIUnavailableError",
    # Concurrency control
    "LockAcquisitionError",
    "InvalidStateTransitionError",
]
