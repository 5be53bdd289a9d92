"""
MIGRATION: CREATE Sale, SaleItem, Refund, RefundItem
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


def _money(**kwargs):
    return models.DecimalField(max_digits=15, decimal_places=2, **kwargs)


def _uuid_pk():
    return models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        serialize=False,
    )


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("customers", "0001_initial"),
        ("products", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Sale",
            fields=[
                ("id", _uuid_pk()),
                (
                    "sale_number",
                    models.CharField(
                        max_length=32,
                        unique=True,
                        help_text="System-generated sequential number (SALE-YYYY-0001)",
                    ),
                ),
                (
                    "sale_date",
                    models.DateTimeField(default=django.utils.timezone.now, db_index=True),
                ),
                ("subtotal", _money(default=Decimal("0"))),
                ("discount_amount", _money(default=Decimal("0"))),
                ("tax_amount", _money(default=Decimal("0"))),
                ("total_amount", _money(default=Decimal("0"))),
                ("total_cost", _money(default=Decimal("0"))),
                ("profit", _money(default=Decimal("0"))),
                (
                    "profit_margin",
                    models.DecimalField(
                        max_digits=9,
                        decimal_places=4,
                        default=Decimal("0"),
                        help_text="profit / (subtotal - discount), as a fraction",
                    ),
                ),
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
                        ],
                        default="CASH",
                    ),
                ),
                ("amount_paid", _money(default=Decimal("0"))),
                ("change_amount", _money(default=Decimal("0"))),
                (
                    "status",
                    models.CharField(
                        max_length=16,
                        choices=[
                            ("COMPLETED", "Completed"),
                            ("VOID", "Void"),
                            ("REFUNDED", "Refunded"),
                        ],
                        default="COMPLETED",
                        db_index=True,
                    ),
                ),
                ("notes", models.TextField(blank=True, default="")),
                ("void_reason", models.TextField(blank=True, default="")),
                ("voided_at", models.DateTimeField(null=True, blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "cashier",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        on_delete=django.db.models.deletion.SET_NULL,
                        null=True,
                        blank=True,
                        related_name="sales",
                        help_text="Cashier / staff who processed the sale",
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        to="customers.customer",
                        on_delete=django.db.models.deletion.PROTECT,
                        null=True,
                        blank=True,
                        related_name="sales",
                    ),
                ),
                (
                    "voided_by",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        on_delete=django.db.models.deletion.SET_NULL,
                        null=True,
                        blank=True,
                        related_name="voided_sales",
                    ),
                ),
            ],
            options={
                "ordering": ["-sale_date", "-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(change_amount__gte=0),
                        name="chk_sale_change_gte_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(amount_paid__gte=0),
                        name="chk_sale_amount_paid_gte_zero",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="SaleItem",
            fields=[
                ("id", _uuid_pk()),
                (
                    "item_type",
                    models.CharField(
                        max_length=16,
                        choices=[
                            ("PRODUCT", "Product"),
                            ("SERVICE", "Service"),
                            ("CUSTOM", "Custom"),
                        ],
                        default="PRODUCT",
                    ),
                ),
                ("description", models.CharField(max_length=255, blank=True, default="")),
                ("quantity", models.DecimalField(max_digits=14, decimal_places=3)),
                ("unit_price", _money()),
                ("unit_cost", _money(default=Decimal("0"))),
                (
                    "tax_rate",
                    models.DecimalField(max_digits=6, decimal_places=4, default=Decimal("0")),
                ),
                ("discount_amount", _money(default=Decimal("0"))),
                ("tax_amount", _money(default=Decimal("0"))),
                (
                    "total_amount",
                    _money(help_text="(quantity * unit_price) - discount + tax"),
                ),
                (
                    "line_profit",
                    _money(
                        default=Decimal("0"),
                        help_text="(quantity * unit_price) - discount - (quantity * unit_cost)",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "batch",
                    models.ForeignKey(
                        to="products.inventorybatch",
                        on_delete=django.db.models.deletion.PROTECT,
                        null=True,
                        blank=True,
                        related_name="sale_items",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        to="products.product",
                        on_delete=django.db.models.deletion.PROTECT,
                        null=True,
                        blank=True,
                        related_name="sale_items",
                    ),
                ),
                (
                    "sale",
                    models.ForeignKey(
                        to="sales.sale",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="items",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(quantity__gt=0),
                        name="chk_saleitem_quantity_gt_zero",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Refund",
            fields=[
                ("id", _uuid_pk()),
                ("refund_number", models.CharField(max_length=32, unique=True)),
                (
                    "refund_type",
                    models.CharField(
                        max_length=16,
                        choices=[("FULL", "Full"), ("PARTIAL", "Partial")],
                    ),
                ),
                ("reason", models.TextField(blank=True, default="")),
                ("refund_amount", _money()),
                ("return_to_inventory", models.BooleanField(default=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "processed_by",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        on_delete=django.db.models.deletion.SET_NULL,
                        null=True,
                        blank=True,
                        related_name="refunds_processed",
                    ),
                ),
                (
                    "sale",
                    models.ForeignKey(
                        to="sales.sale",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="refunds",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(refund_amount__gte=0),
                        name="chk_refund_amount_gte_zero",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="RefundItem",
            fields=[
                ("id", _uuid_pk()),
                ("quantity", models.DecimalField(max_digits=14, decimal_places=3)),
                ("refund_amount", _money(default=Decimal("0"))),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "refund",
                    models.ForeignKey(
                        to="sales.refund",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="items",
                    ),
                ),
                (
                    "sale_item",
                    models.ForeignKey(
                        to="sales.saleitem",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="refund_items",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(quantity__gt=0),
                        name="chk_refunditem_quantity_gt_zero",
                    ),
                ],
            },
        ),
    ]
