"""
MIGRATION: CREATE Customer
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Customer",
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
                ("name", models.CharField(max_length=255, db_index=True)),
                ("phone", models.CharField(max_length=32, blank=True, default="")),
                ("email", models.EmailField(max_length=254, blank=True, default="")),
                ("address", models.TextField(blank=True, default="")),
                (
                    "credit_limit",
                    models.DecimalField(
                        max_digits=15,
                        decimal_places=2,
                        default=Decimal("0"),
                        help_text="Maximum outstanding balance allowed (0 = no credit line).",
                    ),
                ),
                (
                    "balance",
                    models.DecimalField(
                        max_digits=15,
                        decimal_places=2,
                        default=Decimal("0"),
                        editable=False,
                        help_text="Outstanding receivables (derived from open invoices).",
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["name"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(credit_limit__gte=0),
                        name="chk_customer_credit_limit_gte_zero",
                    ),
                ],
            },
        ),
    ]
