# sales/services/void_service.py

"""
SALE VOID

All-or-nothing reversal of a COMPLETED sale:
- every unit goes back to the batch (or product) it was taken from, with a
  compensating RETURN movement (reference VOID)
- the sale's open invoice is CANCELLED
- status COMPLETED -> VOID (terminal)

There is no partial void; use a refund for that.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from core.services.concurrency import persistence_guard
from invoices.services.receivables import cancel_for_sale
from products.models import StockMovement
from sales.models import Sale
from sales.services.exceptions import AlreadyVoidedError, SaleError, SaleNotVoidableError
from sales.services.reversal import (
    get_locked_sale,
    lock_products,
    restore_line_stock,
    sync_products,
)
from sales.services.sale_lifecycle import can_transition


logger = logging.getLogger(__name__)


def void_sale(sale_id, *, reason: str, notes: str = "", actor=None) -> Sale:
    reason = (reason or "").strip()
    if not reason:
        raise SaleError("A reason is required to void a sale")

    with persistence_guard("void_sale"):
        return _void_sale(sale_id, reason=reason, notes=notes, actor=actor)


@transaction.atomic
def _void_sale(sale_id, *, reason: str, notes: str, actor) -> Sale:
    sale = get_locked_sale(sale_id)

    if sale.status == Sale.STATUS_VOID:
        raise AlreadyVoidedError(sale)

    if not can_transition(from_status=sale.status, to_status=Sale.STATUS_VOID):
        raise SaleNotVoidableError(
            f"Sale {sale.sale_number} is {sale.status} and can no longer be voided. "
            "Refund the remaining items instead."
        )

    items = list(sale.items.filter(product__isnull=False))
    products = lock_products(item.product_id for item in items)

    restored = 0
    for item in items:
        restored += len(
            restore_line_stock(
                item,
                item.quantity,
                reference_type=StockMovement.ReferenceType.VOID,
                reference_id=sale.id,
                actor=actor,
                notes=f"Void {sale.sale_number}: {reason}",
            )
        )

    sync_products(products)

    cancel_for_sale(sale, reason=reason)

    sale.status = Sale.STATUS_VOID
    sale.void_reason = reason
    sale.voided_by = actor
    sale.voided_at = timezone.now()
    update_fields = ["status", "void_reason", "voided_by", "voided_at", "updated_at"]
    if notes:
        sale.notes = f"{sale.notes}\n{notes}".strip()
        update_fields.append("notes")
    sale.save(update_fields=update_fields)

    logger.info(
        "Sale voided",
        extra={
            "sale_number": sale.sale_number,
            "reason": reason,
            "return_movements": restored,
        },
    )
    return sale
