"""
Client references correlating gateway notifications to local records.

Two shapes are sent to the gateway as the client reference:

    "<order_no>"                  single-payment order
    "<prefix>_<no>_<sequence>"    installment of plan "<prefix>_<no>"

The plan prefix comes from settings.PAYMENTS_INSTALLMENT_NO_PREFIX. Order
numbers may not contain "_" (validated and constrained on Order.no), so an
installment reference never collides with an order number.

Usage:
    from payments.references import build_installment_reference, parse_reference

    reference = build_installment_reference("INS_202610170001", 2)
    # "INS_202610170001_2"

    parsed = parse_reference(reference)
    parsed.is_installment  # True
    parsed.number          # "INS_202610170001"
    parsed.sequence        # 2
"""

from __future__ import annotations

from dataclasses import dataclass

from django.conf import settings

ORDER = "order"
INSTALLMENT = "installment"


@dataclass(frozen=True)
class PaymentReference:
    """
    Parsed client reference.

    Attributes:
        kind: ORDER or INSTALLMENT
        number: Order number or plan number
        sequence: Installment sequence (None for orders)
        raw: The reference as received
    """

    kind: str
    number: str
    sequence: int | None
    raw: str

    @property
    def is_installment(self) -> bool:
        return self.kind == INSTALLMENT


def installment_prefix() -> str:
    return getattr(settings, "PAYMENTS_INSTALLMENT_NO_PREFIX", "INS")


def build_installment_reference(plan_no: str, sequence: int) -> str:
    """Compose the client reference for one installment of a plan."""
    return f"{plan_no}_{sequence}"


def parse_reference(reference: str) -> PaymentReference:
    """
    Split a client reference into its record kind, number and sequence.

    Args:
        reference: The client reference reported by the gateway

    Returns:
        PaymentReference

    Raises:
        ValueError: If the reference is empty
    """
    reference = (reference or "").strip()
    if not reference:
        raise ValueError("Client reference is empty")

    plan_no, sep, tail = reference.rpartition("_")
    if (
        sep
        and tail.isdigit()
        and plan_no.startswith(f"{installment_prefix()}_")
        and len(plan_no) > len(installment_prefix()) + 1
    ):
        return PaymentReference(
            kind=INSTALLMENT,
            number=plan_no,
            sequence=int(tail),
            raw=reference,
        )

    return PaymentReference(kind=ORDER, number=reference, sequence=None, raw=reference)
