# sales/services/refund_service.py

"""
REFUND SERVICE

Purpose:
- Give money (and optionally stock) back for some or all of a sale's items
  with an immutable Refund / RefundItem audit trail.
- A sale can accumulate several refunds.

GUARANTEES:
- Cumulative refunded quantity per SaleItem never exceeds the sold quantity
  (checked under a lock on the sale)
- return_to_inventory puts stock back into the ORIGINAL batches of the line
- A refund on a sale with an open invoice is credited against what the
  customer still owes (receivables), never written to Customer.balance directly
- Sale status COMPLETED|REFUNDED -> REFUNDED; VOID sales are rejected
- Default refund amounts come from each line's share of sale.total_amount
  (cart discount included), so refunding everything returns exactly the total
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db import transaction
from django.db.models import Sum

from core.money import ZERO, dmax, dsum, payment_tolerance, round_money
from core.services.concurrency import persistence_guard
from core.services.sequences import next_refund_number
from invoices.services.receivables import apply_refund_credit, open_invoice_for_sale
from products.models import StockMovement
from sales.models import Refund, RefundItem, Sale, SaleItem
from sales.services.exceptions import (
    AlreadyVoidedError,
    InvalidRefundError,
    RefundQuantityExceedsSoldError,
    SaleNotRefundableError,
)
from sales.services.requests import RefundRequest
from sales.services.reversal import (
    get_locked_sale,
    lock_products,
    restore_line_stock,
    sync_products,
)
from sales.services.sale_lifecycle import can_transition


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefundLine:
    sale_item: SaleItem
    quantity: Decimal
    amount: Decimal


# ============================================================
# VALIDATION
# ============================================================

def _validate(request: RefundRequest) -> None:
    if not request.sale_id:
        raise InvalidRefundError("sale_id is required")

    if request.refund_type not in Refund.RefundType.values:
        raise InvalidRefundError(f"Invalid refund type: {request.refund_type}")

    if request.refund_type == Refund.RefundType.PARTIAL and not request.items:
        raise InvalidRefundError("A partial refund needs at least one item")

    seen = set()
    for line in request.items:
        if not line.sale_item_id:
            raise InvalidRefundError("sale_item_id is required on every refund item")
        key = str(line.sale_item_id)
        if key in seen:
            raise InvalidRefundError(f"Sale item {key} appears more than once")
        seen.add(key)
        if line.quantity <= 0:
            raise InvalidRefundError(f"Refund quantity must be greater than zero (item {key})")
        if line.refund_amount is not None and line.refund_amount < 0:
            raise InvalidRefundError(f"refund_amount cannot be negative (item {key})")

    if request.refund_amount is not None and request.refund_amount < 0:
        raise InvalidRefundError("refund_amount cannot be negative")


def refunded_quantities(sale: Sale) -> dict:
    return {item_id: qty for item_id, (qty, _amount) in _refunded_by_item(sale).items()}


def _refunded_by_item(sale: Sale) -> dict:
    rows = (
        RefundItem.objects.filter(sale_item__sale=sale)
        .values("sale_item_id")
        .annotate(refunded_qty=Sum("quantity"), refunded_amount=Sum("refund_amount"))
    )
    return {
        r["sale_item_id"]: (r["refunded_qty"] or ZERO, r["refunded_amount"] or ZERO)
        for r in rows
    }


def line_shares(sale: Sale, items) -> dict:
    """
    What each line actually cost the customer.

    Line totals do not carry the cart discount, so the sale total is spread
    over the lines in proportion to their totals. The last line takes the
    rounding remainder; the shares always add up to sale.total_amount.
    """
    items = sorted(items, key=lambda i: (i.created_at, str(i.id)))
    gross = dsum(i.total_amount for i in items)
    if gross == 0:
        return {i.id: ZERO for i in items}

    shares = {}
    allocated = ZERO
    for index, item in enumerate(items):
        if index == len(items) - 1:
            share = sale.total_amount - allocated
        else:
            share = round_money(item.total_amount * sale.total_amount / gross)
        shares[item.id] = share
        allocated += share
    return shares


def _pro_rata(
    item: SaleItem,
    quantity: Decimal,
    *,
    share: Decimal,
    already_quantity: Decimal,
    already_amount: Decimal,
) -> Decimal:
    # The units that close out a line take whatever is left of its share.
    if already_quantity + quantity == item.quantity:
        return dmax(ZERO, share - already_amount)
    return round_money(share * quantity / item.quantity)


def _resolve_lines(request: RefundRequest, sale: Sale) -> list[RefundLine]:
    items = {str(i.id): i for i in sale.items.select_related("product")}
    shares = line_shares(sale, items.values())
    already = _refunded_by_item(sale)

    def amount_for(item, quantity):
        refunded_qty, refunded_amount = already.get(item.id, (ZERO, ZERO))
        return _pro_rata(
            item,
            quantity,
            share=shares[item.id],
            already_quantity=refunded_qty,
            already_amount=refunded_amount,
        )

    if not request.items:
        lines = []
        for item in items.values():
            left = item.quantity - already.get(item.id, (ZERO, ZERO))[0]
            if left > 0:
                lines.append(RefundLine(sale_item=item, quantity=left, amount=amount_for(item, left)))
        if not lines:
            raise InvalidRefundError(f"Everything on sale {sale.sale_number} is already refunded")
        return lines

    lines = []
    for requested in request.items:
        item = items.get(str(requested.sale_item_id))
        if item is None:
            raise InvalidRefundError(
                f"Sale item {requested.sale_item_id} does not belong to sale {sale.sale_number}"
            )

        refunded = already.get(item.id, (ZERO, ZERO))[0]
        if refunded + requested.quantity > item.quantity:
            raise RefundQuantityExceedsSoldError(
                sale_item=item,
                requested=requested.quantity,
                already_refunded=refunded,
            )

        amount = requested.refund_amount
        if amount is None:
            amount = amount_for(item, requested.quantity)
        lines.append(RefundLine(sale_item=item, quantity=requested.quantity, amount=amount))

    return lines


def _refund_total(request: RefundRequest, sale: Sale, lines: list[RefundLine]) -> Decimal:
    total = request.refund_amount
    if total is None:
        total = dsum(line.amount for line in lines)

    previously = sale.refunds.aggregate(total=Sum("refund_amount")).get("total") or ZERO
    if previously + total > sale.total_amount + payment_tolerance():
        raise InvalidRefundError(
            f"Refund of {total} exceeds what is left to refund on {sale.sale_number}. "
            f"Total: {sale.total_amount}, Already refunded: {previously}"
        )
    return total


# ============================================================
# ENTRY POINT
# ============================================================

def refund_sale(request: RefundRequest, *, actor=None) -> Refund:
    _validate(request)
    with persistence_guard("refund_sale"):
        return _refund_sale(request, actor=actor)


@transaction.atomic
def _refund_sale(request: RefundRequest, *, actor) -> Refund:
    sale = get_locked_sale(request.sale_id)

    if sale.status == Sale.STATUS_VOID:
        raise AlreadyVoidedError(sale)

    if not can_transition(from_status=sale.status, to_status=Sale.STATUS_REFUNDED):
        raise SaleNotRefundableError(f"Sale {sale.sale_number} is {sale.status} and cannot be refunded")

    lines = _resolve_lines(request, sale)
    total = _refund_total(request, sale, lines)

    refund = Refund.objects.create(
        refund_number=next_refund_number(),
        sale=sale,
        refund_type=request.refund_type,
        reason=request.reason,
        refund_amount=total,
        return_to_inventory=request.return_to_inventory,
        notes=request.notes,
        processed_by=actor,
    )

    for line in lines:
        RefundItem.objects.create(
            refund=refund,
            sale_item=line.sale_item,
            quantity=line.quantity,
            refund_amount=line.amount,
        )

    if request.return_to_inventory:
        tracked = [line for line in lines if line.sale_item.product_id]
        products = lock_products(line.sale_item.product_id for line in tracked)
        for line in tracked:
            restore_line_stock(
                line.sale_item,
                line.quantity,
                reference_type=StockMovement.ReferenceType.REFUND,
                reference_id=refund.id,
                actor=actor,
                notes=f"Refund {refund.refund_number}",
            )
        sync_products(products)

    if sale.status != Sale.STATUS_REFUNDED:
        sale.status = Sale.STATUS_REFUNDED
        sale.save(update_fields=["status", "updated_at"])

    invoice = open_invoice_for_sale(sale)
    if invoice is not None and total > 0:
        apply_refund_credit(invoice.pk, total, reference=refund.refund_number, actor=actor)

    logger.info(
        "Sale refunded",
        extra={
            "refund_number": refund.refund_number,
            "sale_number": sale.sale_number,
            "refund_amount": str(total),
            "item_count": len(lines),
            "return_to_inventory": request.return_to_inventory,
        },
    )
    return refund
