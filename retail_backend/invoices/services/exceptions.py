# invoices/services/exceptions.py

"""
RECEIVABLE SERVICE ERRORS
"""

from core.exceptions import DomainError


class ReceivableError(DomainError):
    """Base exception for invoice / receivable failures."""

    code = "receivable_error"


class InvoiceNotFoundError(ReceivableError):
    """Raised when a referenced invoice does not exist."""

    code = "invoice_not_found"

    def __init__(self, invoice_id):
        super().__init__(f"Invoice not found: {invoice_id}")
        self.invoice_id = invoice_id


class DuplicateReceivableError(ReceivableError):
    """Raised when a sale already has its receivable."""

    code = "duplicate_receivable"


class InvoiceClosedError(ReceivableError):
    """Raised when money is applied to a PAID or CANCELLED invoice."""

    code = "invoice_closed"


class OverpaymentError(ReceivableError):
    """Raised when a payment exceeds the amount still due."""

    code = "overpayment"

    def __init__(self, *, invoice, amount):
        super().__init__(
            f"Payment {amount} exceeds amount due {invoice.amount_due} "
            f"on invoice {invoice.invoice_number}"
        )
        self.invoice_id = invoice.pk
        self.amount = amount
        self.amount_due = invoice.amount_due
