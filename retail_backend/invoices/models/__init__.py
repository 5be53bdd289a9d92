from .invoice import Invoice, InvoicePayment

__all__ = ["Invoice", "InvoicePayment"]
