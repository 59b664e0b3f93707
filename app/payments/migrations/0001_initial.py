import uuid

import django.core.validators
import django.db.models.deletion
import django_fsm
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="When this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="When this record was last modified",
                    ),
                ),
                (
                    "extra",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Free-form key-value data (failure diagnostics, etc.)",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "no",
                    models.CharField(
                        help_text="Business order number (gateway client reference)",
                        max_length=64,
                        unique=True,
                        validators=[
                            django.core.validators.RegexValidator(
                                "^[^_]+\\Z",
                                code="invalid_order_no",
                                message="Order numbers may not contain underscores",
                            )
                        ],
                    ),
                ),
                (
                    "total_amount",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Order total in major currency units",
                        max_digits=10,
                    ),
                ),
                (
                    "paid_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the payment was confirmed by the gateway",
                        null=True,
                    ),
                ),
                (
                    "closed",
                    models.BooleanField(
                        default=False,
                        help_text="Closed orders can no longer be paid",
                    ),
                ),
                (
                    "payment_method",
                    models.CharField(
                        blank=True,
                        help_text="Gateway name, or 'installment' for plan-backed orders",
                        max_length=32,
                        null=True,
                    ),
                ),
                (
                    "payment_no",
                    models.CharField(
                        blank=True,
                        help_text="Gateway transaction id, or the installment plan number",
                        max_length=255,
                        null=True,
                    ),
                ),
                (
                    "refund_no",
                    models.CharField(
                        blank=True,
                        help_text="Reference of the refund issued for this order",
                        max_length=64,
                        null=True,
                        unique=True,
                    ),
                ),
                (
                    "refund_status",
                    django_fsm.FSMField(
                        choices=[
                            ("none", "Not Refunded"),
                            ("pending", "Pending"),
                            ("success", "Refunded"),
                            ("failed", "Refund Failed"),
                        ],
                        db_index=True,
                        default="none",
                        help_text="Refund lifecycle (managed by FSM)",
                        max_length=50,
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        help_text="User who placed the order",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Order",
                "verbose_name_plural": "Orders",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["user", "created_at"],
                        name="order_user_created_idx",
                    )
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("total_amount__gt", 0)),
                        name="order_total_amount_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("no__contains", "_"), _negated=True),
                        name="order_no_without_underscore",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="InstallmentPlan",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="When this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="When this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "no",
                    models.CharField(
                        help_text="Plan number, used as the prefix of installment references",
                        max_length=64,
                        unique=True,
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("pending", "Pending"),
                            ("repaying", "Repaying"),
                            ("finished", "Finished"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Plan lifecycle (managed by FSM)",
                        max_length=50,
                    ),
                ),
                (
                    "count",
                    models.PositiveSmallIntegerField(
                        help_text="Number of installments",
                    ),
                ),
                (
                    "order",
                    models.OneToOneField(
                        help_text="Order paid by this plan",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="installment_plan",
                        to="payments.order",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        help_text="User repaying the plan",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="installment_plans",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Installment Plan",
                "verbose_name_plural": "Installment Plans",
                "ordering": ["-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("count__gt", 0)),
                        name="installment_plan_count_positive",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="InstallmentItem",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="When this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="When this record was last modified",
                    ),
                ),
                (
                    "sequence",
                    models.PositiveSmallIntegerField(
                        help_text="Zero-based position within the plan",
                    ),
                ),
                (
                    "total",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Amount due for this installment",
                        max_digits=10,
                    ),
                ),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                (
                    "payment_method",
                    models.CharField(blank=True, max_length=32, null=True),
                ),
                (
                    "payment_no",
                    models.CharField(blank=True, max_length=255, null=True),
                ),
                (
                    "plan",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="payments.installmentplan",
                    ),
                ),
            ],
            options={
                "verbose_name": "Installment Item",
                "verbose_name_plural": "Installment Items",
                "ordering": ["plan", "sequence"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("plan", "sequence"),
                        name="installment_item_unique_sequence",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("total__gt", 0)),
                        name="installment_item_total_positive",
                    ),
                ],
            },
        ),
    ]
