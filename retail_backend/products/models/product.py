# products/models/product.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q, Sum


class Product(models.Model):
    """
    Represents a sellable catalog entry.

    STOCK MODEL (IMPORTANT):
    - Batch-tracked products: stock lives in InventoryBatch rows.
      quantity_on_hand is a denormalized mirror, re-synced by the batch ledger
      in the same transaction as every batch change.
    - Non-batch products: quantity_on_hand IS the stock (authoritative).

    Products are never deleted, only deactivated.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sku = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=255, db_index=True)
    description = models.TextField(blank=True, default="")

    # Catalog cost. NULL means "unknown": the caller's cost is used at sale time.
    cost_price = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        null=True,
        blank=True,
        default=None,
    )

    selling_price = models.DecimalField(max_digits=15, decimal_places=2)

    # Fraction, e.g. 0.1800 for 18%. NULL means "no catalog rate".
    tax_rate = models.DecimalField(
        max_digits=6,
        decimal_places=4,
        null=True,
        blank=True,
        default=None,
    )
    is_taxable = models.BooleanField(default=True)

    quantity_on_hand = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        default=Decimal("0"),
        help_text="Authoritative only for non-batch products (service-managed).",
    )
    reorder_level = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        default=Decimal("0"),
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity_on_hand__gte=0),
                name="chk_product_qoh_gte_zero",
            ),
            models.CheckConstraint(
                condition=Q(selling_price__gte=0),
                name="chk_product_selling_price_gte_zero",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.sku})"

    def clean(self):
        if self.selling_price is None or Decimal(self.selling_price) < 0:
            raise ValidationError({"selling_price": "selling_price cannot be negative"})

        if self.cost_price is not None and Decimal(self.cost_price) < 0:
            raise ValidationError({"cost_price": "cost_price cannot be negative"})

        if self.tax_rate is not None:
            rate = Decimal(self.tax_rate)
            if rate < 0 or rate > 1:
                raise ValidationError({"tax_rate": "tax_rate is a fraction between 0 and 1"})

    @property
    def effective_tax_rate(self):
        """
        Catalog tax rate for a sale line.
        Zero when the product isn't taxable, None when the catalog has no rate.
        """
        if not self.is_taxable:
            return Decimal("0")
        return self.tax_rate

    @property
    def active_batch_quantity(self) -> Decimal:
        return (
            self.batches.filter(status="ACTIVE", remaining_quantity__gt=0)
            .aggregate(total=Sum("remaining_quantity"))
            .get("total")
            or Decimal("0")
        )

    @property
    def is_low_stock(self) -> bool:
        return self.quantity_on_hand <= self.reorder_level

    def deactivate(self):
        self.is_active = False
        self.save(update_fields=["is_active", "updated_at"])

    def delete(self, *args, **kwargs):
        raise ValidationError("Products are never deleted. Deactivate the product instead.")
