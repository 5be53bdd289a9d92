# products/views/__init__.py

from .inventory import InventoryBatchViewSet, StockAdjustmentView, StockMovementViewSet
from .product import ProductViewSet

__all__ = [
    "InventoryBatchViewSet",
    "ProductViewSet",
    "StockAdjustmentView",
    "StockMovementViewSet",
]
