from .invoice import (
    InvoicePaymentInputSerializer,
    InvoicePaymentSerializer,
    InvoiceSerializer,
    InvoiceSummarySerializer,
)

__all__ = [
    "InvoicePaymentInputSerializer",
    "InvoicePaymentSerializer",
    "InvoiceSerializer",
    "InvoiceSummarySerializer",
]
