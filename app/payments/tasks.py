"""
Celery tasks for payment processing.

Usage:
    from payments.tasks import refund_order

    # Refund off the request path, e.g. when an order is cancelled
    refund_order.delay(str(order.id))
"""

from __future__ import annotations

import logging
from uuid import UUID

from celery import shared_task
from django.apps import apps

from payments.exceptions import PaymentForbiddenError
from payments.ledger import OrderLedger

logger = logging.getLogger(__name__)


@shared_task(acks_late=True)
def refund_order(order_id: str) -> dict:
    """
    Refund an order in full.

    Not retried automatically: a refund that reached the gateway must not
    be requested twice. Failures are recorded on the order.

    Args:
        order_id: UUID of the Order to refund

    Returns:
        Dict with "status" of "succeeded", "failed", "forbidden" or "not_found"
    """
    if isinstance(order_id, str):
        order_id = UUID(order_id)

    order = OrderLedger.find_by_id(order_id)
    if order is None:
        logger.error("Order not found for refund", extra={"order_id": str(order_id)})
        return {"status": "not_found", "order_id": str(order_id)}

    engine = apps.get_app_config("payments").engine

    try:
        result = engine.refund(order)
    except PaymentForbiddenError as e:
        logger.warning(
            "Refund refused",
            extra={"order_no": order.no, "error_code": e.error_code},
        )
        return {"status": "forbidden", "order_id": str(order_id), "error_code": e.error_code}

    response = {
        "status": "succeeded" if result.success else "failed",
        "order_id": str(order_id),
        "refund_no": result.data.refund_no if result.data else None,
    }
    if not result.success:
        response["error_code"] = result.error_code
    return response
