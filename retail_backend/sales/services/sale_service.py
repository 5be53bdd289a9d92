# sales/services/sale_service.py

"""
SALE TRANSACTION ORCHESTRATOR

SINGLE SOURCE OF TRUTH for:
- Sale + SaleItem creation
- Server-side FEFO stock debit (one SALE movement per batch allocation)
- Totals calculation (sales.services.totals)
- Payment policy and the receivable for an underpaid sale

GUARANTEES:
- Validate -> compute -> persist runs as ONE short atomic block
- Stock is re-validated under row locks inside the block that debits it
- A sale never exists without its receivable when one is owed
- Rejected requests leave no trace (no sale, no movement, no number consumed)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from core.money import (
    PRICE_PLACES,
    RATE_PLACES,
    ZERO,
    currency_places,
    currency_rounding,
    dmax,
    dsum,
    payment_tolerance,
    quantize,
    round_qty,
    within_tolerance,
)
from core.services.concurrency import persistence_guard
from core.services.sequences import next_sale_number
from customers.services.credit import check_credit_limit, get_active_customer
from invoices.services.receivables import create_for_shortfall
from products.models import Product, StockMovement
from products.services.batch_ledger import (
    adjust_batch_quantity,
    adjust_product_quantity,
    available_quantity,
    get_product,
    select_batches_for_quantity,
    sync_product_quantity,
)
from products.services.exceptions import InsufficientStockError
from products.services.stock_movements import record_movement
from sales.models import Sale, SaleItem
from sales.services.exceptions import (
    FullPaymentRequiredError,
    InsufficientPermissionError,
    InvalidLineItemError,
    SaleError,
    TotalsMismatchError,
)
from sales.services.requests import SaleLineRequest, SaleRequest
from sales.services.totals import SaleTotals, TotalsLine, calculate_sale_totals


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PricedLine:
    """A requested line after catalog enrichment: the values that get persisted."""

    request: SaleLineRequest
    product: Product | None
    quantity: Decimal
    unit_price: Decimal
    unit_cost: Decimal
    tax_rate: Decimal
    discount: Decimal

    def as_totals_line(self) -> TotalsLine:
        return TotalsLine(
            quantity=self.quantity,
            unit_price=self.unit_price,
            unit_cost=self.unit_cost,
            tax_rate=self.tax_rate,
            discount=self.discount,
        )


# ============================================================
# VALIDATION (before any lookup)
# ============================================================

def validate_sale_request(request: SaleRequest) -> None:
    if not request.items:
        raise InvalidLineItemError("A sale needs at least one item")

    for index, line in enumerate(request.items):
        _validate_line(line, index)

    if request.payment_method not in Sale.PaymentMethod.values:
        raise SaleError(f"Invalid payment method: {request.payment_method}")

    if request.amount_paid < 0:
        raise SaleError("amount_paid cannot be negative")

    if request.cart_discount is not None and request.cart_discount < 0:
        raise SaleError("cart_discount cannot be negative")


def _validate_line(line: SaleLineRequest, index: int) -> None:
    if line.item_type not in SaleItem.ItemType.values:
        raise InvalidLineItemError(f"Unknown item type: {line.item_type}", line_index=index)

    if line.is_inventory_tracked:
        if not line.product_id:
            raise InvalidLineItemError("PRODUCT lines require a product_id", line_index=index)
    else:
        if not line.description:
            raise InvalidLineItemError(
                f"{line.item_type} lines require a description", line_index=index
            )
        if line.unit_price is None:
            raise InvalidLineItemError(
                f"{line.item_type} lines require a unit_price", line_index=index
            )

    if line.quantity <= 0:
        raise InvalidLineItemError(
            f"quantity must be greater than zero (got {line.quantity})", line_index=index
        )

    if round_qty(line.quantity) != line.quantity:
        raise InvalidLineItemError(
            "quantity supports at most 3 decimal places", line_index=index
        )

    for name in ("unit_price", "unit_cost", "tax_rate", "discount_amount"):
        value = getattr(line, name)
        if value is not None and value < 0:
            raise InvalidLineItemError(f"{name} cannot be negative", line_index=index)


# ============================================================
# STOCK VALIDATION (under lock)
# ============================================================

def _lock_products(request: SaleRequest) -> dict:
    """
    Lock every referenced product (ordered by id so concurrent sales can't
    deadlock) and validate aggregated demand against availability.
    """
    demand: dict[str, Decimal] = {}
    for line in request.items:
        if line.is_inventory_tracked:
            key = str(line.product_id)
            demand[key] = demand.get(key, ZERO) + line.quantity

    products = {}
    for key in sorted(demand):
        products[key] = get_product(key, lock=True)

    for key, requested in demand.items():
        product = products[key]
        available = available_quantity(product, lock=True)
        if requested > available:
            raise InsufficientStockError(
                product=product,
                requested=requested,
                available=available,
            )

    return products


# ============================================================
# ENRICHMENT + TOTALS
# ============================================================

def _price_line(line: SaleLineRequest, product: Product | None, index: int) -> PricedLine:
    if product is None:
        unit_price = line.unit_price
        unit_cost = ZERO
        tax_rate = line.tax_rate or ZERO
    else:
        unit_price = line.unit_price if line.unit_price is not None else product.selling_price
        unit_cost = product.cost_price if product.cost_price is not None else (line.unit_cost or ZERO)
        catalog_rate = product.effective_tax_rate
        tax_rate = catalog_rate if catalog_rate is not None else (line.tax_rate or ZERO)

    unit_price = quantize(unit_price, PRICE_PLACES)
    discount = quantize(line.discount_amount, PRICE_PLACES)

    if discount > line.quantity * unit_price:
        raise InvalidLineItemError(
            f"discount {discount} exceeds line subtotal {line.quantity * unit_price}",
            line_index=index,
        )

    return PricedLine(
        request=line,
        product=product,
        quantity=line.quantity,
        unit_price=unit_price,
        unit_cost=quantize(unit_cost, PRICE_PLACES),
        tax_rate=quantize(tax_rate, RATE_PLACES),
        discount=discount,
    )


def price_lines(request: SaleRequest, products: dict) -> list[PricedLine]:
    priced = []
    for index, line in enumerate(request.items):
        product = products[str(line.product_id)] if line.is_inventory_tracked else None
        priced.append(_price_line(line, product, index))
    return priced


def resolve_cart_discount(request: SaleRequest, item_discount: Decimal) -> Decimal:
    """
    Explicit cart_discount wins. Only when it is absent is the cart portion
    inferred from a declared total discount (legacy clients).
    """
    if request.cart_discount is not None:
        return request.cart_discount
    if request.declared_discount is not None:
        return dmax(ZERO, request.declared_discount - item_discount)
    return ZERO


def compute_totals(request: SaleRequest, priced: list[PricedLine]) -> SaleTotals:
    lines = [p.as_totals_line() for p in priced]
    item_discount = dsum(p.discount for p in priced)

    cart_discount = resolve_cart_discount(request, item_discount)
    totals = calculate_sale_totals(lines, cart_discount).rounded(currency_places(), currency_rounding())

    if totals.revenue < 0:
        raise SaleError(
            f"Discount {totals.discount} exceeds subtotal {totals.subtotal}"
        )

    return totals


def check_declared_totals(request: SaleRequest, totals: SaleTotals) -> None:
    declared = (
        ("subtotal", request.declared_subtotal, totals.subtotal),
        ("discount", request.declared_discount, totals.discount),
        ("tax", request.declared_tax, totals.tax),
        ("total", request.declared_total, totals.total),
    )
    for name, value, computed in declared:
        if value is not None and not within_tolerance(value, computed):
            raise TotalsMismatchError(field=name, declared=value, computed=computed)


def preview_totals(request: SaleRequest) -> tuple[list[PricedLine], SaleTotals]:
    """Read-only: what create_sale would charge, without locking or writing."""
    validate_sale_request(request)
    products = {}
    for line in request.items:
        if line.is_inventory_tracked:
            key = str(line.product_id)
            if key not in products:
                products[key] = get_product(key)
    priced = price_lines(request, products)
    return priced, compute_totals(request, priced)


# ============================================================
# PAYMENT POLICY
# ============================================================

def _shortfall(request: SaleRequest, totals: SaleTotals, customer, amount_paid: Decimal) -> Decimal:
    shortfall = totals.total - amount_paid
    if shortfall <= payment_tolerance():
        return ZERO

    if customer is None:
        raise FullPaymentRequiredError(total=totals.total, amount_paid=amount_paid)

    if not request.allow_credit:
        raise InsufficientPermissionError(
            f"Sale is underpaid by {shortfall} and credit is not authorized for this sale"
        )

    if getattr(settings, "ENFORCE_CUSTOMER_CREDIT_LIMIT", False):
        check_credit_limit(customer, shortfall)

    return shortfall


# ============================================================
# ENTRY POINT
# ============================================================

def create_sale(request: SaleRequest, *, actor=None) -> Sale:
    validate_sale_request(request)
    with persistence_guard("create_sale"):
        return _create_sale(request, actor=actor)


@transaction.atomic
def _create_sale(request: SaleRequest, *, actor) -> Sale:
    customer = None
    if request.customer_id:
        customer = get_active_customer(request.customer_id, lock=True)

    products = _lock_products(request)
    priced = price_lines(request, products)
    totals = compute_totals(request, priced)
    check_declared_totals(request, totals)

    # Tendered money is stored at the same precision as every other money field.
    amount_paid = quantize(request.amount_paid, PRICE_PLACES)
    shortfall = _shortfall(request, totals, customer, amount_paid)

    sale = Sale.objects.create(
        sale_number=next_sale_number(),
        customer=customer,
        sale_date=request.sale_date or timezone.now(),
        subtotal=totals.subtotal,
        discount_amount=totals.discount,
        tax_amount=totals.tax,
        total_amount=totals.total,
        total_cost=totals.cost,
        profit=totals.profit,
        profit_margin=totals.profit_margin,
        payment_method=request.payment_method,
        amount_paid=amount_paid,
        change_amount=dmax(ZERO, amount_paid - totals.total),
        status=Sale.STATUS_COMPLETED,
        cashier=actor,
        notes=request.notes,
    )

    for line, line_totals in zip(priced, totals.lines):
        item = SaleItem(
            sale=sale,
            item_type=line.request.item_type,
            product=line.product,
            description=line.request.description,
            quantity=line.quantity,
            unit_price=line.unit_price,
            unit_cost=line.unit_cost,
            tax_rate=line.tax_rate,
            discount_amount=line_totals.discount,
            tax_amount=line_totals.tax,
            total_amount=line_totals.total,
            line_profit=line_totals.profit,
        )
        if line.product is not None:
            item.batch_id = _debit_line(sale=sale, item=item, line=line, actor=actor)
        item.save()

    for product in products.values():
        sync_product_quantity(product.pk)

    if shortfall > 0:
        create_for_shortfall(
            sale=sale,
            customer=customer,
            shortfall_amount=shortfall,
            actor=actor,
        )

    logger.info(
        "Sale created",
        extra={
            "sale_number": sale.sale_number,
            "total_amount": str(sale.total_amount),
            "amount_paid": str(sale.amount_paid),
            "item_count": len(priced),
            "customer_id": str(customer.pk) if customer else None,
        },
    )
    return sale


def _debit_line(*, sale: Sale, item: SaleItem, line: PricedLine, actor):
    """
    Take the line's quantity out of stock; returns the primary batch id (or
    None for a non-batch product).
    """
    product = line.product
    allocations = select_batches_for_quantity(
        product.pk,
        line.quantity,
        lock=True,
        preferred_batch_id=line.request.batch_id,
    )

    def _movement(*, quantity, batch=None, unit_cost=None):
        record_movement(
            product=product,
            batch=batch,
            movement_type=StockMovement.MovementType.SALE,
            quantity=quantity,
            unit_cost=unit_cost,
            reference_type=StockMovement.ReferenceType.SALE,
            reference_id=sale.id,
            line_reference=item.id,
            notes=sale.sale_number,
            actor=actor,
        )

    if not allocations:
        adjust_product_quantity(product, -line.quantity)
        _movement(quantity=-line.quantity, unit_cost=line.unit_cost)
        return None

    for alloc in allocations:
        batch = adjust_batch_quantity(alloc.batch_id, -alloc.quantity, sync=False)
        _movement(quantity=-alloc.quantity, batch=batch, unit_cost=alloc.unit_cost)

    return allocations[0].batch_id
