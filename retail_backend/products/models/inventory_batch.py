# products/models/inventory_batch.py

"""
INVENTORY BATCH (RECEIPT LOT)

Represents ONE receipt lot of a product.

CANONICAL MODEL:
- quantity_received, unit_cost, expiry_date and received_date are immutable
- remaining_quantity + status are mutated ONLY via the batch ledger service
- remaining_quantity >= 0 is enforced by the database as well (CheckConstraint),
  so a race that slips past the service check still cannot commit
- Non-deletable once referenced by StockMovement (audit safety)
"""

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone

from .product import Product


class InventoryBatch(models.Model):
    class Status(models.TextChoices):
        ACTIVE = "ACTIVE", "Active"
        DEPLETED = "DEPLETED", "Depleted"
        EXPIRED = "EXPIRED", "Expired"
        QUARANTINED = "QUARANTINED", "Quarantined"

    IMMUTABLE_FIELDS = ("product_id", "quantity_received", "unit_cost", "expiry_date", "received_date")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="batches",
    )

    batch_number = models.CharField(max_length=128)

    quantity_received = models.DecimalField(max_digits=14, decimal_places=3)
    remaining_quantity = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        help_text="Remaining quantity (service-managed only)",
    )

    unit_cost = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0"))

    expiry_date = models.DateField(null=True, blank=True)
    received_date = models.DateField(default=timezone.localdate)

    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.ACTIVE,
        db_index=True,
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["expiry_date", "received_date", "created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "batch_number"],
                name="unique_batch_number_per_product",
            ),
            models.CheckConstraint(
                condition=Q(quantity_received__gte=0),
                name="chk_batch_qty_received_gte_zero",
            ),
            models.CheckConstraint(
                condition=Q(remaining_quantity__gte=0),
                name="chk_batch_remaining_gte_zero",
            ),
            models.CheckConstraint(
                condition=Q(unit_cost__gte=0),
                name="chk_batch_unit_cost_gte_zero",
            ),
        ]

    def __str__(self):
        return f"{self.product.sku} / {self.batch_number}"

    # -------------------------------------------------
    # VALIDATION
    # -------------------------------------------------

    def clean(self):
        if self.remaining_quantity is not None and self.remaining_quantity < 0:
            raise ValidationError(
                {"remaining_quantity": "remaining_quantity cannot be negative"}
            )

        if self.unit_cost is not None and self.unit_cost < 0:
            raise ValidationError({"unit_cost": "unit_cost cannot be negative"})

    @property
    def is_available(self) -> bool:
        return self.status == self.Status.ACTIVE and self.remaining_quantity > 0

    # -------------------------------------------------
    # IMMUTABILITY
    # -------------------------------------------------

    def save(self, *args, **kwargs):
        if not self._state.adding:
            original = InventoryBatch.objects.get(pk=self.pk)
            for field in self.IMMUTABLE_FIELDS:
                if getattr(self, field) != getattr(original, field):
                    raise ValidationError({field: f"{field} is immutable"})

        self.full_clean()
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        from products.models.stock_movement import StockMovement

        if StockMovement.objects.filter(batch=self).exists():
            raise ValidationError(
                "Cannot delete InventoryBatch: it has StockMovement audit history."
            )
        return super().delete(*args, **kwargs)
