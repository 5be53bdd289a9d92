# customers/models/customer.py

"""
CUSTOMER

- Walk-in sales have no customer and must be paid in full.
- `balance` is a CACHE of what the customer owes (positive = owes money).
  It is written ONLY by invoices.services.receivables, in the same transaction
  as the invoice change, from the sum of amount_due over open invoices.
"""

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


class Customer(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255, db_index=True)
    phone = models.CharField(max_length=32, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    address = models.TextField(blank=True, default="")

    credit_limit = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        default=Decimal("0"),
        help_text="Maximum outstanding balance allowed (0 = no credit line).",
    )

    balance = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        default=Decimal("0"),
        editable=False,
        help_text="Outstanding receivables (derived from open invoices).",
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=Q(credit_limit__gte=0),
                name="chk_customer_credit_limit_gte_zero",
            ),
        ]

    def __str__(self):
        return self.name

    def clean(self):
        if self.credit_limit is not None and self.credit_limit < 0:
            raise ValidationError({"credit_limit": "credit_limit cannot be negative"})

    @property
    def available_credit(self) -> Decimal:
        return max(Decimal("0"), self.credit_limit - self.balance)
