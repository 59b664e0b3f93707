"""
Payments app: idempotent reconciliation of gateway notifications.

This app handles:
- Orders and installment plans, and their payment state
- Applying gateway payment notifications exactly once
- Full refunds of paid orders
- Starting payments (gateway checkout) for orders and installments
- Publishing PaymentSucceeded / RefundSucceeded after commit

Related apps:
    - authentication: User model owning orders and plans
    - core: BaseModel, ServiceResult, exception hierarchy

Usage:
    from django.apps import apps

    engine = apps.get_app_config("payments").engine
    engine.handle_payment_notification(payload, signature)
"""
