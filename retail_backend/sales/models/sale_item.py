# sales/models/sale_item.py

"""
SALE ITEM (IMMUTABLE SNAPSHOT)

Represents an immutable snapshot of a sold line item.

Notes:
- PRODUCT lines reference a catalog product; SERVICE / CUSTOM lines carry a
  free-text description, no product and zero cost.
- `batch` is the PRIMARY batch the line consumed (first FEFO allocation).
  The full per-batch split lives in the SALE stock movements written for the
  line (StockMovement.line_reference == SaleItem.id).
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from products.models import InventoryBatch, Product

from .sale import Sale


class SaleItem(models.Model):
    class ItemType(models.TextChoices):
        PRODUCT = "PRODUCT", "Product"
        SERVICE = "SERVICE", "Service"
        CUSTOM = "CUSTOM", "Custom"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sale = models.ForeignKey(
        Sale,
        on_delete=models.PROTECT,
        related_name="items",
    )

    item_type = models.CharField(
        max_length=16,
        choices=ItemType.choices,
        default=ItemType.PRODUCT,
    )

    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="sale_items",
    )

    description = models.CharField(max_length=255, blank=True, default="")

    batch = models.ForeignKey(
        InventoryBatch,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="sale_items",
    )

    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    unit_price = models.DecimalField(max_digits=15, decimal_places=2)
    unit_cost = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0"))
    tax_rate = models.DecimalField(max_digits=6, decimal_places=4, default=Decimal("0"))

    discount_amount = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0"))
    tax_amount = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0"))
    total_amount = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        help_text="(quantity * unit_price) - discount + tax",
    )
    line_profit = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        default=Decimal("0"),
        help_text="(quantity * unit_price) - discount - (quantity * unit_cost)",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name="chk_saleitem_quantity_gt_zero",
            ),
        ]

    def clean(self):
        if self.item_type == self.ItemType.PRODUCT and not self.product_id:
            raise ValidationError({"product": "PRODUCT lines require a product"})

        if self.item_type != self.ItemType.PRODUCT and not (self.description or "").strip():
            raise ValidationError({"description": f"{self.item_type} lines require a description"})

    @property
    def display_name(self) -> str:
        if self.product_id:
            return self.product.name
        return self.description

    @property
    def is_inventory_tracked(self) -> bool:
        return self.item_type == self.ItemType.PRODUCT and self.product_id is not None

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("SaleItem records are immutable")

        self.clean()
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("SaleItem records are immutable and cannot be deleted")

    def __str__(self):
        return f"{self.display_name} x {self.quantity}"
