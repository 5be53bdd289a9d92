# products/services/stock_movements.py

"""
STOCK MOVEMENT LOG

The ONLY writer of StockMovement rows.

Rules:
- Append-only: rows are never updated or deleted (model-enforced)
- Every row gets a sequential SM-000123 number, issued inside the caller's
  transaction so a rolled-back unit of work never consumes a visible number
- The sign of `quantity` is the direction (positive = into stock)
"""

from __future__ import annotations

from decimal import Decimal

from django.db.models import Sum

from core.money import ZERO
from core.services.sequences import next_movement_number
from products.models import StockMovement


def record_movement(
    *,
    product,
    movement_type: str,
    quantity: Decimal,
    reference_type: str,
    reference_id,
    batch=None,
    line_reference="",
    unit_cost: Decimal | None = None,
    notes: str = "",
    actor=None,
    movement_number: str | None = None,
) -> StockMovement:
    if unit_cost is None and batch is not None:
        unit_cost = batch.unit_cost

    return StockMovement.objects.create(
        movement_number=movement_number or next_movement_number(),
        product=product,
        batch=batch,
        movement_type=movement_type,
        quantity=quantity,
        unit_cost=unit_cost,
        reference_type=reference_type,
        reference_id=str(reference_id),
        line_reference=str(line_reference or ""),
        notes=notes or "",
        performed_by=actor,
    )


def movements_for(*, reference_type: str, reference_id):
    return (
        StockMovement.objects.filter(
            reference_type=reference_type,
            reference_id=str(reference_id),
        )
        .select_related("batch", "product")
        .order_by("created_at", "movement_number")
    )


def sale_movements_for_line(line_reference):
    """SALE rows written for one sale line, in the order the batches were consumed."""
    return (
        StockMovement.objects.filter(
            movement_type=StockMovement.MovementType.SALE,
            line_reference=str(line_reference),
        )
        .select_related("batch", "product")
        .order_by("created_at", "movement_number")
    )


def returned_quantity_by_batch(line_reference) -> dict:
    """
    Quantity already put back for one sale line, keyed by batch id (None for
    non-batch stock). Used to cap repeated partial refunds.
    """
    rows = (
        StockMovement.objects.filter(
            movement_type=StockMovement.MovementType.RETURN,
            line_reference=str(line_reference),
        )
        .values("batch_id")
        .annotate(total=Sum("quantity"))
    )
    return {r["batch_id"]: (r["total"] or ZERO) for r in rows}


def net_quantity(*, product, batch=None) -> Decimal:
    """Sum of signed deltas: the ledger's view of stock, for reconciliation."""
    qs = StockMovement.objects.filter(product=product)
    if batch is not None:
        qs = qs.filter(batch=batch)
    return qs.aggregate(total=Sum("quantity")).get("total") or ZERO
