"""
Celery configuration for the Django application.

Redis is both the message broker and result backend. Tasks are
auto-discovered from the installed apps; the payments app contributes
the refund task used when orders are cancelled:

    from payments.tasks import refund_order

    refund_order.delay(str(order.id))

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()
