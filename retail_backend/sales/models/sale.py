# sales/models/sale.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

User = settings.AUTH_USER_MODEL


class Sale(models.Model):
    """
    Represents one recorded POS transaction.

    GUARANTEES:
    - Immutable financial record once created
    - total_amount = subtotal - discount_amount + tax_amount
    - profit       = (subtotal - discount_amount) - total_cost (tax excluded)
    - change_amount >= 0 (also a database constraint)
    - Status only moves forward: COMPLETED -> VOID | REFUNDED (see sale_lifecycle)
    - Stock is mutated ONLY via the batch ledger
    """

    STATUS_COMPLETED = "COMPLETED"
    STATUS_VOID = "VOID"
    STATUS_REFUNDED = "REFUNDED"

    STATUS_CHOICES = [
        (STATUS_COMPLETED, "Completed"),
        (STATUS_VOID, "Void"),
        (STATUS_REFUNDED, "Refunded"),
    ]

    class PaymentMethod(models.TextChoices):
        CASH = "CASH", "Cash"
        CARD = "CARD", "Card"
        MOBILE_MONEY = "MOBILE_MONEY", "Mobile Money"
        BANK_TRANSFER = "BANK_TRANSFER", "Bank Transfer"
        CREDIT = "CREDIT", "Credit"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sale_number = models.CharField(
        max_length=32,
        unique=True,
        help_text="System-generated sequential number (SALE-YYYY-0001)",
    )

    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="sales",
    )

    sale_date = models.DateTimeField(default=timezone.now, db_index=True)

    subtotal = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0"))
    discount_amount = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0"))
    tax_amount = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0"))
    total_amount = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0"))
    total_cost = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0"))
    profit = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0"))
    profit_margin = models.DecimalField(
        max_digits=9,
        decimal_places=4,
        default=Decimal("0"),
        help_text="profit / (subtotal - discount), as a fraction",
    )

    payment_method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        default=PaymentMethod.CASH,
    )
    amount_paid = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0"))
    change_amount = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0"))

    status = models.CharField(
        max_length=16,
        choices=STATUS_CHOICES,
        default=STATUS_COMPLETED,
        db_index=True,
    )

    cashier = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sales",
        help_text="Cashier / staff who processed the sale",
    )

    notes = models.TextField(blank=True, default="")

    void_reason = models.TextField(blank=True, default="")
    voided_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="voided_sales",
    )
    voided_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-sale_date", "-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(change_amount__gte=0),
                name="chk_sale_change_gte_zero",
            ),
            models.CheckConstraint(
                condition=Q(amount_paid__gte=0),
                name="chk_sale_amount_paid_gte_zero",
            ),
        ]

    _IMMUTABLE_FIELDS = (
        "sale_number",
        "customer_id",
        "sale_date",
        "subtotal",
        "discount_amount",
        "tax_amount",
        "total_amount",
        "total_cost",
        "profit",
        "payment_method",
        "amount_paid",
        "change_amount",
        "cashier_id",
    )

    # -------------------------------------------------
    # INVARIANTS
    # -------------------------------------------------

    @property
    def revenue(self) -> Decimal:
        return Decimal(self.subtotal) - Decimal(self.discount_amount)

    @property
    def balance_due(self) -> Decimal:
        return max(Decimal("0"), Decimal(self.total_amount) - Decimal(self.amount_paid))

    def _validate_money_balance(self):
        expected_total = self.revenue + Decimal(self.tax_amount)
        if Decimal(self.total_amount) != expected_total:
            raise ValueError(
                f"Sale total {self.total_amount} does not balance: "
                f"subtotal - discount + tax = {expected_total}"
            )

        expected_profit = self.revenue - Decimal(self.total_cost)
        if Decimal(self.profit) != expected_profit:
            raise ValueError(
                f"Sale profit {self.profit} does not balance: "
                f"(subtotal - discount) - cost = {expected_profit}"
            )

        if Decimal(self.change_amount) < 0:
            raise ValueError("change_amount cannot be negative")

    def _validate_immutable(self, previous: "Sale"):
        if self.status != previous.status:
            from sales.services.sale_lifecycle import can_transition

            if not can_transition(from_status=previous.status, to_status=self.status):
                raise ValueError(
                    f"Sale status change {previous.status} -> {self.status} is not allowed."
                )

        for field in self._IMMUTABLE_FIELDS:
            if getattr(self, field) != getattr(previous, field):
                raise ValueError(
                    f"Sale is immutable once recorded. Field '{field}' cannot be changed."
                )

    def save(self, *args, **kwargs):
        if self._state.adding:
            self._validate_money_balance()
        else:
            previous = Sale.objects.filter(pk=self.pk).first()
            if previous is not None:
                self._validate_immutable(previous)

        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Sales are never deleted. Void the sale instead.")

    def __str__(self):
        return f"{self.sale_number} | {self.total_amount}"
