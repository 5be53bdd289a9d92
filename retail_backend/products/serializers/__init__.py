# products/serializers/__init__.py

from .inventory import (
    AllocationQuerySerializer,
    BatchAllocationSerializer,
    BatchReceiptSerializer,
    InventoryBatchSerializer,
    StockAdjustmentInputSerializer,
    StockMovementSerializer,
)
from .product import ProductSerializer

__all__ = [
    "AllocationQuerySerializer",
    "BatchAllocationSerializer",
    "BatchReceiptSerializer",
    "InventoryBatchSerializer",
    "ProductSerializer",
    "StockAdjustmentInputSerializer",
    "StockMovementSerializer",
]
