from .invoice import InvoiceViewSet

__all__ = ["InvoiceViewSet"]
