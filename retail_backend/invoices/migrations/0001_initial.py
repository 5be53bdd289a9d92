"""
MIGRATION: CREATE Invoice, InvoicePayment
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("customers", "0001_initial"),
        ("sales", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Invoice",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        primary_key=True,
                        default=uuid.uuid4,
                        editable=False,
                        serialize=False,
                    ),
                ),
                ("invoice_number", models.CharField(max_length=32, unique=True)),
                ("issue_date", models.DateField(default=django.utils.timezone.localdate)),
                ("due_date", models.DateField()),
                ("total_amount", models.DecimalField(max_digits=15, decimal_places=2)),
                (
                    "amount_paid",
                    models.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0")),
                ),
                ("amount_due", models.DecimalField(max_digits=15, decimal_places=2)),
                (
                    "status",
                    models.CharField(
                        max_length=16,
                        choices=[
                            ("DRAFT", "Draft"),
                            ("SENT", "Sent"),
                            ("PARTIALLY_PAID", "Partially Paid"),
                            ("PAID", "Paid"),
                            ("OVERDUE", "Overdue"),
                            ("CANCELLED", "Cancelled"),
                        ],
                        default="DRAFT",
                        db_index=True,
                    ),
                ),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        on_delete=django.db.models.deletion.SET_NULL,
                        null=True,
                        blank=True,
                        related_name="invoices_created",
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        to="customers.customer",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="invoices",
                    ),
                ),
                (
                    "sale",
                    models.OneToOneField(
                        to="sales.sale",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="invoice",
                    ),
                ),
            ],
            options={
                "ordering": ["-issue_date", "-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(amount_due__gte=0),
                        name="chk_invoice_amount_due_gte_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(amount_paid__gte=0),
                        name="chk_invoice_amount_paid_gte_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(amount_paid__lte=models.F("total_amount")),
                        name="chk_invoice_paid_lte_total",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="InvoicePayment",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        primary_key=True,
                        default=uuid.uuid4,
                        editable=False,
                        serialize=False,
                    ),
                ),
                ("receipt_number", models.CharField(max_length=32, unique=True)),
                ("payment_date", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "payment_method",
                    models.CharField(
                        max_length=20,
                        choices=[
                            ("CASH", "Cash"),
                            ("CARD", "Card"),
                            ("MOBILE_MONEY", "Mobile Money"),
                            ("BANK_TRANSFER", "Bank Transfer"),
                            ("CREDIT", "Credit"),
                            ("REFUND_CREDIT", "Refund Credit"),
                        ],
                    ),
                ),
                ("amount", models.DecimalField(max_digits=15, decimal_places=2)),
                ("reference", models.CharField(max_length=128, blank=True, default="")),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "invoice",
                    models.ForeignKey(
                        to="invoices.invoice",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments",
                    ),
                ),
                (
                    "processed_by",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        on_delete=django.db.models.deletion.SET_NULL,
                        null=True,
                        blank=True,
                        related_name="invoice_payments",
                    ),
                ),
            ],
            options={
                "ordering": ["payment_date", "created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(amount__gt=0),
                        name="chk_invoice_payment_amount_gt_zero",
                    ),
                ],
            },
        ),
    ]
