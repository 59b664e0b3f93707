"""
Gateway notification (webhook) endpoint.

Usage:
    from payments.webhooks import payment_notification
"""

from payments.webhooks.views import payment_notification

__all__ = ["payment_notification"]
