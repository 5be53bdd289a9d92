# sales/services/reversal.py

"""
STOCK REVERSAL (VOID + REFUND)

Puts sold stock back into the EXACT batches a sale line consumed, as recorded
by its SALE movements (line_reference == SaleItem.id). Quantities already put
back for the line (earlier refunds) are never returned twice.

Must run inside the caller's transaction; the caller syncs
Product.quantity_on_hand once after all lines are restored.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError

from core.money import ZERO, dmin
from products.models import Product, StockMovement
from products.services.batch_ledger import (
    adjust_batch_quantity,
    adjust_product_quantity,
    sync_product_quantity,
)
from products.services.stock_movements import (
    record_movement,
    returned_quantity_by_batch,
    sale_movements_for_line,
)
from sales.models import Sale
from sales.services.exceptions import SaleNotFoundError


def get_locked_sale(sale_id) -> Sale:
    try:
        return Sale.objects.select_for_update().get(pk=getattr(sale_id, "pk", sale_id))
    except (Sale.DoesNotExist, ValueError, ValidationError) as exc:
        raise SaleNotFoundError(sale_id) from exc


def lock_products(product_ids) -> list[Product]:
    """Row-lock products in id order (same order as sale creation)."""
    ids = sorted({pid for pid in product_ids if pid is not None}, key=str)
    return list(Product.objects.select_for_update().filter(pk__in=ids).order_by("pk"))


def sync_products(products) -> None:
    for product in products:
        sync_product_quantity(product.pk)


def open_allocations(sale_item) -> list[tuple[StockMovement, Decimal]]:
    """
    (SALE movement, quantity still out) pairs for a sale line, in consumption
    order. Earlier RETURN rows for the line are netted per batch.
    """
    returned = returned_quantity_by_batch(sale_item.id)
    result = []
    for movement in sale_movements_for_line(sale_item.id):
        sold = -movement.quantity
        already = dmin(sold, returned.get(movement.batch_id, ZERO))
        returned[movement.batch_id] = returned.get(movement.batch_id, ZERO) - already
        outstanding = sold - already
        if outstanding > 0:
            result.append((movement, outstanding))
    return result


def restore_line_stock(
    sale_item,
    quantity: Decimal,
    *,
    reference_type: str,
    reference_id,
    actor=None,
    notes: str = "",
) -> list[StockMovement]:
    """Return `quantity` units of a sale line to stock, one RETURN row per batch."""
    remaining = quantity
    movements = []

    for sale_movement, outstanding in open_allocations(sale_item):
        if remaining <= 0:
            break

        qty = dmin(remaining, outstanding)
        batch = None
        if sale_movement.batch_id:
            batch = adjust_batch_quantity(sale_movement.batch_id, qty, sync=False)
        else:
            adjust_product_quantity(sale_movement.product_id, qty)

        movements.append(
            record_movement(
                product=sale_movement.product,
                batch=batch,
                movement_type=StockMovement.MovementType.RETURN,
                quantity=qty,
                unit_cost=sale_movement.unit_cost,
                reference_type=reference_type,
                reference_id=reference_id,
                line_reference=sale_item.id,
                notes=notes,
                actor=actor,
            )
        )
        remaining -= qty

    return movements
