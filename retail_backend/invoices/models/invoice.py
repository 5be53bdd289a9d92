# invoices/models/invoice.py

"""
INVOICE (RECEIVABLE)

Created ONLY for an underpaid sale with a customer attached; exactly one per
sale (OneToOne).

GUARANTEES:
- amount_due = total_amount - amount_paid, always >= 0
- amount_paid never exceeds total_amount
- Figures change ONLY through invoices.services.receivables, which also
  re-derives the customer's balance in the same transaction
- Open (non-terminal) statuses: DRAFT, SENT, PARTIALLY_PAID, OVERDUE
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

User = settings.AUTH_USER_MODEL


class Invoice(models.Model):
    class Status(models.TextChoices):
        DRAFT = "DRAFT", "Draft"
        SENT = "SENT", "Sent"
        PARTIALLY_PAID = "PARTIALLY_PAID", "Partially Paid"
        PAID = "PAID", "Paid"
        OVERDUE = "OVERDUE", "Overdue"
        CANCELLED = "CANCELLED", "Cancelled"

    OPEN_STATUSES = frozenset({Status.DRAFT, Status.SENT, Status.PARTIALLY_PAID, Status.OVERDUE})
    TERMINAL_STATUSES = frozenset({Status.PAID, Status.CANCELLED})

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    invoice_number = models.CharField(max_length=32, unique=True)

    sale = models.OneToOneField(
        "sales.Sale",
        on_delete=models.PROTECT,
        related_name="invoice",
    )
    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        related_name="invoices",
    )

    issue_date = models.DateField(default=timezone.localdate)
    due_date = models.DateField()

    total_amount = models.DecimalField(max_digits=15, decimal_places=2)
    amount_paid = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0"))
    amount_due = models.DecimalField(max_digits=15, decimal_places=2)

    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.DRAFT,
        db_index=True,
    )

    notes = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="invoices_created",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-issue_date", "-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount_due__gte=0),
                name="chk_invoice_amount_due_gte_zero",
            ),
            models.CheckConstraint(
                condition=Q(amount_paid__gte=0),
                name="chk_invoice_amount_paid_gte_zero",
            ),
            models.CheckConstraint(
                condition=Q(amount_paid__lte=F("total_amount")),
                name="chk_invoice_paid_lte_total",
            ),
        ]

    @property
    def is_open(self) -> bool:
        return self.status in self.OPEN_STATUSES

    def save(self, *args, **kwargs):
        if Decimal(self.amount_due) != Decimal(self.total_amount) - Decimal(self.amount_paid):
            raise ValueError(
                f"Invoice {self.invoice_number} does not balance: "
                f"due {self.amount_due} != total {self.total_amount} - paid {self.amount_paid}"
            )
        if Decimal(self.amount_due) < 0:
            raise ValueError("amount_due cannot be negative")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Invoices are never deleted. Cancel the invoice instead.")

    def __str__(self):
        return f"{self.invoice_number} | due {self.amount_due}"


class InvoicePayment(models.Model):
    class Method(models.TextChoices):
        CASH = "CASH", "Cash"
        CARD = "CARD", "Card"
        MOBILE_MONEY = "MOBILE_MONEY", "Mobile Money"
        BANK_TRANSFER = "BANK_TRANSFER", "Bank Transfer"
        CREDIT = "CREDIT", "Credit"
        REFUND_CREDIT = "REFUND_CREDIT", "Refund Credit"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    receipt_number = models.CharField(max_length=32, unique=True)

    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.PROTECT,
        related_name="payments",
    )

    payment_date = models.DateTimeField(default=timezone.now)
    payment_method = models.CharField(max_length=20, choices=Method.choices)
    amount = models.DecimalField(max_digits=15, decimal_places=2)
    reference = models.CharField(max_length=128, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    processed_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="invoice_payments",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["payment_date", "created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="chk_invoice_payment_amount_gt_zero",
            ),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("InvoicePayment records are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("InvoicePayment records are immutable and cannot be deleted")

    def __str__(self):
        return f"{self.receipt_number} | {self.amount}"
