"""
URL configuration for the payments app.

Routes:
    - POST notifications/stripe/ - Gateway notification endpoint
    - POST orders/<uuid>/pay/ - Start payment of an order
    - POST installments/<plan_no>/pay/ - Pay the next installment of a plan

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.
"""

from django.urls import path

from payments.views import PayInstallmentView, PayOrderView
from payments.webhooks.views import payment_notification

app_name = "payments"

urlpatterns = [
    path("notifications/stripe/", payment_notification, name="payment_notification"),
    path("orders/<uuid:order_id>/pay/", PayOrderView.as_view(), name="pay_order"),
    path(
        "installments/<str:plan_no>/pay/",
        PayInstallmentView.as_view(),
        name="pay_installment",
    ),
]
