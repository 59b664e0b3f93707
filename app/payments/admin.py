"""
Payment admin configuration.

Records are read-only here: payment state is only changed by the
reconciliation engine. The one write path is the refund action, which
queues the refund task.
"""

from django.contrib import admin, messages

from payments.models import InstallmentItem, InstallmentPlan, Order
from payments.state_machines import RefundStatus

__all__ = ["OrderAdmin", "InstallmentPlanAdmin"]


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Admin configuration for Order.

    Provides visibility into payment and refund status.
    """

    list_display = [
        "no",
        "user",
        "total_amount",
        "paid_at",
        "closed",
        "payment_method",
        "refund_status",
        "created_at",
    ]
    list_filter = ["refund_status", "closed", "payment_method"]
    search_fields = ["no", "payment_no", "refund_no", "user__email"]
    readonly_fields = [
        "id",
        "paid_at",
        "payment_method",
        "payment_no",
        "refund_no",
        "refund_status",
        "extra",
        "created_at",
        "updated_at",
    ]
    ordering = ["-created_at"]
    actions = ["refund_selected"]

    fieldsets = (
        (None, {"fields": ("id", "no", "user", "total_amount", "closed")}),
        ("Payment", {"fields": ("paid_at", "payment_method", "payment_no")}),
        ("Refund", {"fields": ("refund_no", "refund_status", "extra")}),
        ("Timestamps", {"fields": ("created_at", "updated_at"), "classes": ("collapse",)}),
    )

    @admin.action(description="Refund selected paid orders")
    def refund_selected(self, request, queryset):
        from payments.tasks import refund_order

        eligible = queryset.filter(paid_at__isnull=False, refund_status=RefundStatus.NONE)
        for order in eligible:
            refund_order.delay(str(order.id))

        skipped = queryset.count() - eligible.count()
        self.message_user(request, f"Queued {eligible.count()} refund(s).", messages.SUCCESS)
        if skipped:
            self.message_user(
                request,
                f"Skipped {skipped} order(s) that are unpaid or already refunded.",
                messages.WARNING,
            )


class InstallmentItemInline(admin.TabularInline):
    model = InstallmentItem
    extra = 0
    can_delete = False
    readonly_fields = ["sequence", "total", "paid_at", "payment_method", "payment_no"]


@admin.register(InstallmentPlan)
class InstallmentPlanAdmin(admin.ModelAdmin):
    list_display = ["no", "user", "order", "status", "count", "created_at"]
    list_filter = ["status"]
    search_fields = ["no", "order__no", "user__email"]
    readonly_fields = ["id", "status", "created_at", "updated_at"]
    inlines = [InstallmentItemInline]
