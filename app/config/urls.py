"""
URL configuration for the Django application.

URL Structure:
    /admin/                                  - Django admin interface
    /health/                                 - Health check endpoint (load balancers, Docker)
    /api/v1/payments/                        - Payment endpoints
        notifications/stripe/                - Gateway notifications (POST)
        orders/{id}/pay/                     - Start payment of an order (POST)
        installments/{plan_no}/pay/          - Pay the next installment (POST)
"""

from django.contrib import admin
from django.urls import include, path

from core.views import health_check

# All routes here are prefixed with /api/v1/
api_v1_patterns = [
    path("payments/", include("payments.urls")),
]

urlpatterns = [
    path("admin/", admin.site.urls),
    path("health/", health_check, name="health_check"),
    path("api/v1/", include(api_v1_patterns)),
]

admin.site.site_header = "Payments Admin"
admin.site.site_title = "Payments Admin"
admin.site.index_title = "Orders and installment plans"
