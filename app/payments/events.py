"""
Domain events published after payment state changes commit.

Events:
    PaymentSucceeded: an Order became paid (directly or via its first installment)
    RefundSucceeded: the gateway accepted a refund for an Order

Subscribers connect to the matching Django signal:

    from django.dispatch import receiver
    from payments.events import payment_succeeded

    @receiver(payment_succeeded)
    def on_payment_succeeded(sender, event, **kwargs):
        fulfil_order.delay(str(event.order.id))

Publication happens only once the surrounding transaction commits, so a
subscriber never sees an event for a transition that was rolled back.
Outside a transaction the event is delivered immediately.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.db import transaction
from django.dispatch import Signal

if TYPE_CHECKING:
    from payments.models import Order


logger = logging.getLogger(__name__)


# Sent with keyword argument ``event``
payment_succeeded = Signal()
refund_succeeded = Signal()


@dataclass(frozen=True)
class PaymentSucceeded:
    order: Order


@dataclass(frozen=True)
class RefundSucceeded:
    order: Order


SIGNALS: dict[type, Signal] = {
    PaymentSucceeded: payment_succeeded,
    RefundSucceeded: refund_succeeded,
}


class EventSink:
    """
    Publishes domain events to signal subscribers after commit.

    Fire-and-forget: receiver exceptions are logged and never reach the
    publisher, so a failing subscriber cannot undo or block reconciliation.
    """

    def publish(self, event: PaymentSucceeded | RefundSucceeded) -> None:
        signal = SIGNALS.get(type(event))
        if signal is None:
            raise TypeError(f"Unsupported event type: {type(event).__name__}")

        transaction.on_commit(lambda: self._deliver(signal, event))

    def _deliver(self, signal: Signal, event: PaymentSucceeded | RefundSucceeded) -> None:
        responses = signal.send_robust(sender=type(event), event=event)
        for receiver, response in responses:
            if isinstance(response, Exception):
                logger.error(
                    f"Event subscriber failed: {type(event).__name__}",
                    extra={
                        "receiver": getattr(receiver, "__qualname__", repr(receiver)),
                        "order_no": event.order.no,
                    },
                    exc_info=response,
                )

        logger.info(
            f"Published {type(event).__name__}",
            extra={"order_no": event.order.no, "receivers": len(responses)},
        )
