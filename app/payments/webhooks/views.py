"""
Gateway notification endpoint.

Notifications are applied synchronously: the gateway only receives the
acknowledgement once the change has committed, so a crash before commit
leads to a redelivery instead of a lost payment.

Usage:
    # In urls.py
    from payments.webhooks.views import payment_notification

    urlpatterns = [
        path("notifications/stripe/", payment_notification, name="payment_notification"),
    ]
"""

from __future__ import annotations

import logging

from django.apps import apps
from django.http import HttpRequest, HttpResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from payments.exceptions import InvalidSignatureError

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def payment_notification(request: HttpRequest) -> HttpResponse:
    """
    Receive a payment notification from the gateway.

    Returns:
        HttpResponse with status:
        - 200: The gateway's acknowledgement (applied, duplicate or ignored)
        - 400: Signature verification failed

    Any other failure propagates as a 500 so the gateway redelivers.

    Example Stripe-Signature header:
        t=1614556800,v1=xxx,v0=yyy
    """
    engine = apps.get_app_config("payments").engine
    signature = request.headers.get("Stripe-Signature", "")

    try:
        result = engine.handle_payment_notification(request.body, signature)
    except InvalidSignatureError as e:
        logger.warning(
            "Gateway notification rejected",
            extra={"error_code": e.error_code, "remote_addr": request.META.get("REMOTE_ADDR")},
        )
        return HttpResponse("Invalid signature", status=400)

    return result.acknowledgement
