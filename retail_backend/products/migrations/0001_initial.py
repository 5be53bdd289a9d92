"""
MIGRATION: CREATE Product, InventoryBatch, StockMovement

- Non-negativity of stock is enforced by CheckConstraints
  (quantity_on_hand >= 0, remaining_quantity >= 0).
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
    ]

    operations = [
        migrations.CreateModel(
            name="Product",
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
                ("sku", models.CharField(max_length=64, unique=True)),
                ("name", models.CharField(max_length=255, db_index=True)),
                ("description", models.TextField(blank=True, default="")),
                (
                    "cost_price",
                    models.DecimalField(
                        max_digits=15,
                        decimal_places=2,
                        null=True,
                        blank=True,
                        default=None,
                    ),
                ),
                ("selling_price", models.DecimalField(max_digits=15, decimal_places=2)),
                (
                    "tax_rate",
                    models.DecimalField(
                        max_digits=6,
                        decimal_places=4,
                        null=True,
                        blank=True,
                        default=None,
                    ),
                ),
                ("is_taxable", models.BooleanField(default=True)),
                (
                    "quantity_on_hand",
                    models.DecimalField(
                        max_digits=14,
                        decimal_places=3,
                        default=Decimal("0"),
                        help_text="Authoritative only for non-batch products (service-managed).",
                    ),
                ),
                (
                    "reorder_level",
                    models.DecimalField(max_digits=14, decimal_places=3, default=Decimal("0")),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["name"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(quantity_on_hand__gte=0),
                        name="chk_product_qoh_gte_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(selling_price__gte=0),
                        name="chk_product_selling_price_gte_zero",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="InventoryBatch",
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
                ("batch_number", models.CharField(max_length=128)),
                ("quantity_received", models.DecimalField(max_digits=14, decimal_places=3)),
                (
                    "remaining_quantity",
                    models.DecimalField(
                        max_digits=14,
                        decimal_places=3,
                        help_text="Remaining quantity (service-managed only)",
                    ),
                ),
                (
                    "unit_cost",
                    models.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0")),
                ),
                ("expiry_date", models.DateField(null=True, blank=True)),
                ("received_date", models.DateField(default=django.utils.timezone.localdate)),
                (
                    "status",
                    models.CharField(
                        max_length=16,
                        choices=[
                            ("ACTIVE", "Active"),
                            ("DEPLETED", "Depleted"),
                            ("EXPIRED", "Expired"),
                            ("QUARANTINED", "Quarantined"),
                        ],
                        default="ACTIVE",
                        db_index=True,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "product",
                    models.ForeignKey(
                        to="products.product",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="batches",
                    ),
                ),
            ],
            options={
                "ordering": ["expiry_date", "received_date", "created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("product", "batch_number"),
                        name="unique_batch_number_per_product",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(quantity_received__gte=0),
                        name="chk_batch_qty_received_gte_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(remaining_quantity__gte=0),
                        name="chk_batch_remaining_gte_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(unit_cost__gte=0),
                        name="chk_batch_unit_cost_gte_zero",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockMovement",
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
                ("movement_number", models.CharField(max_length=32, unique=True)),
                (
                    "movement_type",
                    models.CharField(
                        max_length=20,
                        choices=[
                            ("GOODS_RECEIPT", "Goods Receipt"),
                            ("SALE", "Sale"),
                            ("ADJUSTMENT_IN", "Adjustment In"),
                            ("ADJUSTMENT_OUT", "Adjustment Out"),
                            ("RETURN", "Return"),
                            ("DAMAGE", "Damage"),
                            ("EXPIRY", "Expiry"),
                            ("TRANSFER_IN", "Transfer In"),
                            ("TRANSFER_OUT", "Transfer Out"),
                        ],
                        db_index=True,
                    ),
                ),
                (
                    "quantity",
                    models.DecimalField(
                        max_digits=14,
                        decimal_places=3,
                        help_text="Signed delta: positive adds stock, negative removes it.",
                    ),
                ),
                (
                    "unit_cost",
                    models.DecimalField(
                        max_digits=15,
                        decimal_places=2,
                        null=True,
                        blank=True,
                        default=None,
                        help_text="Cost snapshot at movement time (immutable).",
                    ),
                ),
                (
                    "reference_type",
                    models.CharField(
                        max_length=20,
                        choices=[
                            ("RECEIPT", "Goods Receipt"),
                            ("SALE", "Sale"),
                            ("VOID", "Sale Void"),
                            ("REFUND", "Refund"),
                            ("ADJUSTMENT", "Manual Adjustment"),
                            ("EXPIRY", "Expiry Write-off"),
                            ("TRANSFER", "Transfer"),
                        ],
                    ),
                ),
                ("reference_id", models.CharField(max_length=64, db_index=True)),
                (
                    "line_reference",
                    models.CharField(max_length=64, blank=True, default="", db_index=True),
                ),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "batch",
                    models.ForeignKey(
                        to="products.inventorybatch",
                        on_delete=django.db.models.deletion.PROTECT,
                        null=True,
                        blank=True,
                        related_name="stock_movements",
                    ),
                ),
                (
                    "performed_by",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        on_delete=django.db.models.deletion.SET_NULL,
                        null=True,
                        blank=True,
                        related_name="stock_movements",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        to="products.product",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_movements",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at", "movement_number"],
            },
        ),
    ]
