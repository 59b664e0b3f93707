"""
Payments app configuration.

The gateway, reconciliation engine and checkout service are built once
when the app registry is ready and shared by views and tasks:

    from django.apps import apps

    engine = apps.get_app_config("payments").engine
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"

    def ready(self):
        from payments.adapters import StripeGateway

        self.configure(StripeGateway())

    def configure(self, gateway):
        """Wire the services to a gateway. Tests pass a fake gateway here."""
        from payments.events import EventSink
        from payments.services import CheckoutService, ReconciliationEngine

        self.gateway = gateway
        self.engine = ReconciliationEngine(gateway=gateway, events=EventSink())
        self.checkout = CheckoutService(gateway=gateway)
