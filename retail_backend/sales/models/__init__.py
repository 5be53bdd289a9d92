# sales/models/__init__.py

"""
SALES MODELS PACKAGE EXPORTS
"""

from .sale import Sale
from .sale_item import SaleItem
from .refund import Refund, RefundItem

__all__ = [
    "Sale",
    "SaleItem",
    "Refund",
    "RefundItem",
]
