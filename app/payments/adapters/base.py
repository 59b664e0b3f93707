"""
Gateway capability used by reconciliation and checkout.

Any payment provider plugs in by implementing GatewayClient. The
production implementation is StripeGateway; tests use an in-memory fake.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from django.http import HttpResponse


@dataclass(frozen=True)
class VerifiedNotification:
    """
    Gateway notification whose signature has been verified.

    Attributes:
        event_id: Gateway event id (for log correlation)
        event_type: Gateway event type
        client_reference: Reference we sent at charge time ("" if absent)
        transaction_id: Gateway transaction id for the payment
        paid: Whether the gateway reports the payment as completed
        payload: Decoded event body
    """

    event_id: str
    event_type: str
    client_reference: str
    transaction_id: str
    paid: bool
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def is_payment(self) -> bool:
        return bool(self.client_reference) and self.paid


@dataclass(frozen=True)
class ChargeResult:
    """
    Charge created at the gateway.

    Attributes:
        reference: Client reference the charge was created with
        url: Checkout URL the payer is sent to
        gateway_id: Gateway's id for the charge session
    """

    reference: str
    url: str
    gateway_id: str = ""


@dataclass(frozen=True)
class RefundResult:
    """
    Outcome of a refund request.

    An empty or missing sub_code means the gateway accepted the refund;
    otherwise it is the gateway's failure code.
    """

    refund_reference: str
    sub_code: str | None = None
    gateway_id: str = ""
    status: str = ""

    @property
    def succeeded(self) -> bool:
        return not self.sub_code


@runtime_checkable
class GatewayClient(Protocol):
    name: str

    def verify(self, payload: bytes, signature: str) -> VerifiedNotification | None: ...

    def create_charge(self, reference: str, amount: Decimal, subject: str) -> ChargeResult: ...

    def refund(
        self, order_reference: str, amount: Decimal, refund_reference: str
    ) -> RefundResult: ...

    def acknowledge(self) -> HttpResponse: ...
