# products/services/exceptions.py

"""
INVENTORY SERVICE ERRORS

Every error names the failing product / batch and the quantities involved,
so the caller can show an actionable message without re-querying.
"""

from decimal import Decimal

from core.exceptions import DomainError


class InventoryError(DomainError):
    """Base exception for inventory failures."""

    code = "inventory_error"


class ProductNotFoundError(InventoryError):
    """Raised when a referenced product does not exist or is inactive."""

    code = "product_not_found"

    def __init__(self, product_id):
        super().__init__(f"Product not found or inactive: {product_id}")
        self.product_id = product_id


class BatchNotFoundError(InventoryError):
    """Raised when a referenced batch does not exist for the product."""

    code = "batch_not_found"

    def __init__(self, batch_id, *, product_id=None):
        msg = f"Inventory batch not found: {batch_id}"
        if product_id is not None:
            msg = f"{msg} (product {product_id})"
        super().__init__(msg)
        self.batch_id = batch_id
        self.product_id = product_id


class InsufficientStockError(InventoryError):
    """Raised when the requested quantity exceeds what is available."""

    code = "insufficient_stock"

    def __init__(self, *, product, requested: Decimal, available: Decimal, batch=None):
        name = getattr(product, "name", None) or str(product)
        sku = getattr(product, "sku", None) or "-"
        scope = f" in batch {batch.batch_number}" if batch is not None else ""
        super().__init__(
            f'Insufficient stock for "{name}" ({sku}){scope}. '
            f"Requested: {requested.normalize():f}, Available: {available.normalize():f}"
        )
        self.product_id = getattr(product, "id", product)
        self.requested = requested
        self.available = available
        self.shortfall = requested - available


class StockAdjustmentError(InventoryError):
    """Raised when a manual stock adjustment cannot be applied."""

    code = "stock_adjustment_error"
