# sales/models/refund.py

"""
REFUND (APPEND-ONLY)

Purpose:
- Immutable record of money (and optionally stock) given back for a sale.
- RefundItem rows are the single source of truth for how much of each
  SaleItem has been refunded; the sum per SaleItem never exceeds the sold
  quantity (enforced at service layer, under a lock on the sale).
- A sale may accumulate several refunds.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from .sale import Sale
from .sale_item import SaleItem

User = settings.AUTH_USER_MODEL


class Refund(models.Model):
    class RefundType(models.TextChoices):
        FULL = "FULL", "Full"
        PARTIAL = "PARTIAL", "Partial"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    refund_number = models.CharField(max_length=32, unique=True)

    sale = models.ForeignKey(
        Sale,
        on_delete=models.PROTECT,
        related_name="refunds",
    )

    refund_type = models.CharField(max_length=16, choices=RefundType.choices)
    reason = models.TextField(blank=True, default="")
    refund_amount = models.DecimalField(max_digits=15, decimal_places=2)
    return_to_inventory = models.BooleanField(default=True)
    notes = models.TextField(blank=True, default="")

    processed_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="refunds_processed",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(refund_amount__gte=0),
                name="chk_refund_amount_gte_zero",
            ),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Refund records are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Refund records are immutable and cannot be deleted")

    def __str__(self):
        return f"{self.refund_number} | {self.refund_amount}"


class RefundItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    refund = models.ForeignKey(
        Refund,
        on_delete=models.PROTECT,
        related_name="items",
    )

    sale_item = models.ForeignKey(
        SaleItem,
        on_delete=models.PROTECT,
        related_name="refund_items",
    )

    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    refund_amount = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0"))

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name="chk_refunditem_quantity_gt_zero",
            ),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("RefundItem records are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("RefundItem records are immutable and cannot be deleted")

    def __str__(self):
        return f"{self.sale_item_id} x {self.quantity}"
