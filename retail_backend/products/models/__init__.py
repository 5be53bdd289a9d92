from .product import Product
from .inventory_batch import InventoryBatch
from .stock_movement import StockMovement

__all__ = [
    "Product",
    "InventoryBatch",
    "StockMovement",
]
