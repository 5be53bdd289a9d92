# sales/services/exceptions.py

"""
SALE SERVICE ERRORS

Centralized domain errors for sale creation, void and refund.

Validation errors (everything here) are rejected before anything is written;
the caller must fix the request. Inventory errors (ProductNotFoundError,
InsufficientStockError) live in products.services.exceptions and are raised
unchanged through the sale flow.
"""

from decimal import Decimal

from core.exceptions import DomainError


class SaleError(DomainError):
    """Base exception for all sale service failures."""

    code = "sale_error"


class InvalidLineItemError(SaleError):
    """Raised when a requested line is malformed (missing product/description, bad quantity)."""

    code = "invalid_line_item"

    def __init__(self, message: str, *, line_index: int | None = None):
        if line_index is not None:
            message = f"Item {line_index + 1}: {message}"
        super().__init__(message)
        self.line_index = line_index


class TotalsMismatchError(SaleError):
    """Raised when client-declared totals disagree with the recomputed ones."""

    code = "totals_mismatch"

    def __init__(self, *, field: str, declared: Decimal, computed: Decimal):
        super().__init__(
            f"Declared {field} {declared} does not match computed {field} {computed}"
        )
        self.field = field
        self.declared = declared
        self.computed = computed


class FullPaymentRequiredError(SaleError):
    """Raised when a walk-in sale (no customer) is underpaid."""

    code = "full_payment_required"

    def __init__(self, *, total: Decimal, amount_paid: Decimal):
        super().__init__(
            "Walk-in customers must pay in full. "
            f"Total: {total}, Paid: {amount_paid}, Short: {total - amount_paid}. "
            "Attach a customer to record a partial payment."
        )
        self.total = total
        self.amount_paid = amount_paid


class InsufficientPermissionError(SaleError):
    """Raised when a credit sale is requested without credit authorization."""

    code = "insufficient_permission"


class SaleNotFoundError(SaleError):
    """Raised when a referenced sale does not exist."""

    code = "sale_not_found"

    def __init__(self, sale_id):
        super().__init__(f"Sale not found: {sale_id}")
        self.sale_id = sale_id


class AlreadyVoidedError(SaleError):
    """Raised when voiding (or refunding) a sale that is already VOID."""

    code = "already_voided"

    def __init__(self, sale):
        super().__init__(f"Sale {sale.sale_number} is already voided")
        self.sale_id = sale.pk


class SaleNotVoidableError(SaleError):
    """Raised when a sale is not in a state that can be voided."""

    code = "sale_not_voidable"


class InvalidRefundError(SaleError):
    """Raised when a refund request is malformed."""

    code = "invalid_refund"


class RefundQuantityExceedsSoldError(SaleError):
    """Raised when cumulative refunds for a sale item would exceed the sold quantity."""

    code = "refund_quantity_exceeds_sold"

    def __init__(self, *, sale_item, requested: Decimal, already_refunded: Decimal):
        sold = sale_item.quantity
        super().__init__(
            f'Refund quantity exceeds sold quantity for "{sale_item.display_name}" '
            f"(item {sale_item.pk}). Sold: {sold.normalize():f}, "
            f"Already refunded: {already_refunded.normalize():f}, "
            f"Requested: {requested.normalize():f}"
        )
        self.sale_item_id = sale_item.pk
        self.sold = sold
        self.requested = requested
        self.already_refunded = already_refunded


class SaleNotRefundableError(SaleError):
    """Raised when refunding a sale whose status does not allow refunds."""

    code = "sale_not_refundable"
