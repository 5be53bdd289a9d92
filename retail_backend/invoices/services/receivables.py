# invoices/services/receivables.py

"""
RECEIVABLE (INVOICE) RECONCILER

Single source of truth for what a customer owes:

    customer balance = SUM(amount_due) over the customer's OPEN invoices
                       (DRAFT, SENT, PARTIALLY_PAID, OVERDUE)

HARD RULES:
- Every invoice write path ends with sync_customer_balance() in the SAME
  transaction. Nothing else writes Customer.balance.
- amount_due = total_amount - amount_paid, never below zero.
- One invoice per underpaid sale.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from core.money import ZERO, dmin, payment_tolerance, to_decimal
from core.services.concurrency import persistence_guard
from core.services.sequences import next_invoice_number, next_receipt_number
from customers.models import Customer
from invoices.models import Invoice, InvoicePayment
from invoices.services.exceptions import (
    DuplicateReceivableError,
    InvoiceClosedError,
    InvoiceNotFoundError,
    OverpaymentError,
    ReceivableError,
)


logger = logging.getLogger(__name__)


# ============================================================
# BALANCE (DERIVED)
# ============================================================

def open_invoices(customer):
    return Invoice.objects.filter(customer=customer, status__in=Invoice.OPEN_STATUSES)


def customer_outstanding_balance(customer) -> Decimal:
    return open_invoices(customer).aggregate(total=Sum("amount_due")).get("total") or ZERO


def sync_customer_balance(customer) -> Decimal:
    balance = customer_outstanding_balance(customer)
    customer_id = getattr(customer, "pk", customer)
    Customer.objects.filter(pk=customer_id).update(balance=balance, updated_at=timezone.now())
    if isinstance(customer, Customer):
        customer.balance = balance
    return balance


# ============================================================
# HELPERS
# ============================================================

def _locked_invoice(invoice_id) -> Invoice:
    try:
        return Invoice.objects.select_for_update().get(pk=getattr(invoice_id, "pk", invoice_id))
    except (Invoice.DoesNotExist, ValueError, ValidationError) as exc:
        raise InvoiceNotFoundError(invoice_id) from exc


def _status_after_payment(invoice: Invoice) -> str:
    if invoice.amount_due == 0:
        return Invoice.Status.PAID
    if invoice.status == Invoice.Status.OVERDUE:
        return Invoice.Status.OVERDUE
    return Invoice.Status.PARTIALLY_PAID


def _record_payment(*, invoice, amount, method, reference="", notes="", actor=None) -> InvoicePayment:
    return InvoicePayment.objects.create(
        receipt_number=next_receipt_number(),
        invoice=invoice,
        payment_method=method,
        amount=amount,
        reference=reference or "",
        notes=notes or "",
        processed_by=actor,
    )


def open_invoice_for_sale(sale, *, lock: bool = False) -> Invoice | None:
    qs = Invoice.objects.filter(sale=sale, status__in=Invoice.OPEN_STATUSES)
    if lock:
        qs = qs.select_for_update()
    return qs.first()


# ============================================================
# CREATE (UNDERPAID SALE)
# ============================================================

@transaction.atomic
def create_for_shortfall(*, sale, customer, shortfall_amount, actor=None) -> Invoice:
    """
    Create THE receivable for an underpaid sale.

    What was paid at the till is recorded as the invoice's first payment, so
    the invoice opens PARTIALLY_PAID (or DRAFT when nothing was paid).
    """
    shortfall = to_decimal(shortfall_amount, field="shortfall_amount")
    if shortfall <= 0:
        raise ReceivableError("shortfall_amount must be greater than zero")

    if customer is None:
        raise ReceivableError("A customer is required to open a receivable")

    total = Decimal(sale.total_amount)
    if shortfall > total:
        raise ReceivableError(
            f"Shortfall {shortfall} exceeds sale total {total} for {sale.sale_number}"
        )

    if Invoice.objects.filter(sale=sale).exists():
        raise DuplicateReceivableError(f"Sale {sale.sale_number} already has an invoice")

    paid = total - shortfall
    issue_date = timezone.localdate(sale.sale_date)

    invoice = Invoice.objects.create(
        invoice_number=next_invoice_number(),
        sale=sale,
        customer=customer,
        issue_date=issue_date,
        due_date=issue_date + timedelta(days=int(getattr(settings, "INVOICE_DUE_DAYS", 30))),
        total_amount=total,
        amount_paid=paid,
        amount_due=shortfall,
        status=Invoice.Status.PARTIALLY_PAID if paid > 0 else Invoice.Status.DRAFT,
        notes=f"Auto-generated for partial payment on {sale.sale_number}",
        created_by=actor,
    )

    if paid > 0:
        _record_payment(
            invoice=invoice,
            amount=paid,
            method=sale.payment_method,
            reference=sale.sale_number,
            notes="Payment received at sale",
            actor=actor,
        )

    sync_customer_balance(customer)

    logger.info(
        "Receivable created",
        extra={
            "invoice_number": invoice.invoice_number,
            "sale_number": sale.sale_number,
            "customer_id": str(customer.pk),
            "amount_due": str(shortfall),
        },
    )
    return invoice


# ============================================================
# PAYMENTS
# ============================================================

def apply_payment(
    invoice_id,
    amount,
    *,
    payment_method: str = InvoicePayment.Method.CASH,
    reference: str = "",
    notes: str = "",
    actor=None,
) -> InvoicePayment:
    with persistence_guard("apply_payment"):
        return _apply_payment(
            invoice_id,
            amount,
            payment_method=payment_method,
            reference=reference,
            notes=notes,
            actor=actor,
        )


@transaction.atomic
def _apply_payment(invoice_id, amount, *, payment_method, reference, notes, actor) -> InvoicePayment:
    try:
        amount = to_decimal(amount, field="amount")
    except ValueError as exc:
        raise ReceivableError(str(exc)) from exc

    if amount <= 0:
        raise ReceivableError("Payment amount must be greater than zero")

    if payment_method not in InvoicePayment.Method.values or payment_method == InvoicePayment.Method.REFUND_CREDIT:
        raise ReceivableError(f"Invalid payment method: {payment_method}")

    invoice = _locked_invoice(invoice_id)

    if not invoice.is_open:
        raise InvoiceClosedError(
            f"Invoice {invoice.invoice_number} is {invoice.status} and accepts no payments"
        )

    if amount > invoice.amount_due + payment_tolerance():
        logger.warning(
            "Invoice overpayment rejected",
            extra={"invoice_number": invoice.invoice_number, "amount": str(amount)},
        )
        raise OverpaymentError(invoice=invoice, amount=amount)

    # Amounts inside the tolerance settle the invoice exactly.
    applied = dmin(amount, invoice.amount_due)

    invoice.amount_paid = invoice.amount_paid + applied
    invoice.amount_due = invoice.total_amount - invoice.amount_paid
    invoice.status = _status_after_payment(invoice)
    invoice.save(update_fields=["amount_paid", "amount_due", "status", "updated_at"])

    payment = _record_payment(
        invoice=invoice,
        amount=applied,
        method=payment_method,
        reference=reference,
        notes=notes,
        actor=actor,
    )

    sync_customer_balance(invoice.customer_id)

    logger.info(
        "Invoice payment applied",
        extra={
            "invoice_number": invoice.invoice_number,
            "amount": str(applied),
            "amount_due": str(invoice.amount_due),
        },
    )
    return payment


@transaction.atomic
def apply_refund_credit(invoice_id, amount, *, reference: str = "", actor=None) -> InvoicePayment | None:
    """
    Refund path: a refund on a sale with an open invoice first cancels what the
    customer still owes, instead of paying cash out.

    Credits min(amount, amount_due). Returns None when nothing was owed.
    """
    amount = to_decimal(amount, field="amount")
    if amount <= 0:
        return None

    invoice = _locked_invoice(invoice_id)
    if not invoice.is_open:
        return None

    credit = dmin(amount, invoice.amount_due)
    if credit <= 0:
        return None

    invoice.amount_paid = invoice.amount_paid + credit
    invoice.amount_due = invoice.total_amount - invoice.amount_paid
    invoice.status = _status_after_payment(invoice)
    invoice.save(update_fields=["amount_paid", "amount_due", "status", "updated_at"])

    payment = _record_payment(
        invoice=invoice,
        amount=credit,
        method=InvoicePayment.Method.REFUND_CREDIT,
        reference=reference,
        notes="Refund credited against balance",
        actor=actor,
    )

    sync_customer_balance(invoice.customer_id)

    logger.info(
        "Refund credited to invoice",
        extra={
            "invoice_number": invoice.invoice_number,
            "credit": str(credit),
            "amount_due": str(invoice.amount_due),
        },
    )
    return payment


# ============================================================
# CANCEL / OVERDUE
# ============================================================

@transaction.atomic
def cancel_for_sale(sale, *, reason: str = "") -> Invoice | None:
    """
    Void path: the sale no longer exists financially, so its open invoice is
    CANCELLED. Figures are kept for audit; CANCELLED drops out of the balance.
    """
    invoice = open_invoice_for_sale(sale, lock=True)
    if invoice is None:
        return None

    invoice.status = Invoice.Status.CANCELLED
    note = f"Cancelled: sale {sale.sale_number} voided"
    if reason:
        note = f"{note} ({reason})"
    invoice.notes = f"{invoice.notes}\n{note}".strip()
    invoice.save(update_fields=["status", "notes", "updated_at"])

    sync_customer_balance(invoice.customer_id)

    logger.info(
        "Invoice cancelled",
        extra={"invoice_number": invoice.invoice_number, "sale_number": sale.sale_number},
    )
    return invoice


def mark_overdue(*, today=None) -> int:
    """Flip open invoices past their due date to OVERDUE. Balances are unaffected."""
    today = today or timezone.localdate()
    return Invoice.objects.filter(
        status__in=[Invoice.Status.DRAFT, Invoice.Status.SENT, Invoice.Status.PARTIALLY_PAID],
        due_date__lt=today,
        amount_due__gt=0,
    ).update(status=Invoice.Status.OVERDUE, updated_at=timezone.now())
