# products/models/stock_movement.py

"""
CANONICAL INVENTORY LEDGER

Immutable inventory ledger entry.

GUARANTEES:
- Append-only (no updates, no deletes)
- quantity is a SIGNED delta; its sign must match the movement type
- Every row names its cause (reference_type + reference_id), and SALE rows name
  the sale line they were written for (line_reference), so void/refund can
  restore the exact batches a line consumed
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from .inventory_batch import InventoryBatch
from .product import Product


class StockMovement(models.Model):
    class MovementType(models.TextChoices):
        GOODS_RECEIPT = "GOODS_RECEIPT", "Goods Receipt"
        SALE = "SALE", "Sale"
        ADJUSTMENT_IN = "ADJUSTMENT_IN", "Adjustment In"
        ADJUSTMENT_OUT = "ADJUSTMENT_OUT", "Adjustment Out"
        RETURN = "RETURN", "Return"
        DAMAGE = "DAMAGE", "Damage"
        EXPIRY = "EXPIRY", "Expiry"
        TRANSFER_IN = "TRANSFER_IN", "Transfer In"
        TRANSFER_OUT = "TRANSFER_OUT", "Transfer Out"

    class ReferenceType(models.TextChoices):
        RECEIPT = "RECEIPT", "Goods Receipt"
        SALE = "SALE", "Sale"
        VOID = "VOID", "Sale Void"
        REFUND = "REFUND", "Refund"
        ADJUSTMENT = "ADJUSTMENT", "Manual Adjustment"
        EXPIRY = "EXPIRY", "Expiry Write-off"
        TRANSFER = "TRANSFER", "Transfer"

    INBOUND_TYPES = frozenset(
        {
            MovementType.GOODS_RECEIPT,
            MovementType.ADJUSTMENT_IN,
            MovementType.RETURN,
            MovementType.TRANSFER_IN,
        }
    )
    OUTBOUND_TYPES = frozenset(
        {
            MovementType.SALE,
            MovementType.ADJUSTMENT_OUT,
            MovementType.DAMAGE,
            MovementType.EXPIRY,
            MovementType.TRANSFER_OUT,
        }
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    movement_number = models.CharField(max_length=32, unique=True)

    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="stock_movements",
    )
    batch = models.ForeignKey(
        InventoryBatch,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="stock_movements",
    )

    movement_type = models.CharField(max_length=20, choices=MovementType.choices, db_index=True)

    quantity = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        help_text="Signed delta: positive adds stock, negative removes it.",
    )

    unit_cost = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        null=True,
        blank=True,
        default=None,
        help_text="Cost snapshot at movement time (immutable).",
    )

    reference_type = models.CharField(max_length=20, choices=ReferenceType.choices)
    reference_id = models.CharField(max_length=64, db_index=True)
    line_reference = models.CharField(max_length=64, blank=True, default="", db_index=True)

    notes = models.TextField(blank=True, default="")

    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_movements",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "movement_number"]

    def clean(self):
        if self.quantity is None or self.quantity == 0:
            raise ValidationError("quantity cannot be zero")

        if self.movement_type in self.INBOUND_TYPES and self.quantity < 0:
            raise ValidationError(f"{self.movement_type} requires a positive quantity")

        if self.movement_type in self.OUTBOUND_TYPES and self.quantity > 0:
            raise ValidationError(f"{self.movement_type} requires a negative quantity")

        if self.batch_id and self.product_id:
            batch_product_id = (
                InventoryBatch.objects.filter(id=self.batch_id)
                .values_list("product_id", flat=True)
                .first()
            )
            if batch_product_id and batch_product_id != self.product_id:
                raise ValidationError("Batch does not belong to product")

        if self.movement_type == self.MovementType.SALE and not self.line_reference:
            raise ValidationError("SALE movements must reference a sale line")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("StockMovement records are immutable")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(
            "StockMovement records are immutable and cannot be deleted"
        )

    @property
    def is_inbound(self) -> bool:
        return self.quantity > 0

    @property
    def total_cost(self) -> Decimal:
        unit_cost = self.unit_cost if self.unit_cost is not None else Decimal("0")
        return unit_cost * abs(self.quantity)

    def __str__(self):
        return f"{self.movement_number} | {self.movement_type} | {self.quantity}"
