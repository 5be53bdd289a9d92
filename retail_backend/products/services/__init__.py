from .batch_ledger import (
    BatchAllocation,
    adjust_batch_quantity,
    adjust_product_quantity,
    available_quantity,
    expire_batch,
    receive_batch,
    select_batches_for_quantity,
    sync_product_quantity,
)
from .stock_adjustments import StockAdjustmentRequest, perform_stock_adjustment

__all__ = [
    "BatchAllocation",
    "adjust_batch_quantity",
    "adjust_product_quantity",
    "available_quantity",
    "expire_batch",
    "receive_batch",
    "select_batches_for_quantity",
    "sync_product_quantity",
    "StockAdjustmentRequest",
    "perform_stock_adjustment",
]
