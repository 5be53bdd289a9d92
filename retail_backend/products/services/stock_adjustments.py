# products/services/stock_adjustments.py

"""
STOCK ADJUSTMENTS SERVICE

Purpose:
- Manual stock corrections (count differences, damage, expiry write-offs,
  customer returns outside a refund) through the same ledger machinery as a
  sale debit.
- Enforce auditability via immutable StockMovement rows.

Rules:
- quantity is a positive amount; the adjustment type decides the direction
    ADJUSTMENT_IN, RETURN                -> adds stock
    ADJUSTMENT_OUT, DAMAGE, EXPIRY       -> removes stock
- explicit batch  -> that batch is adjusted
- outward, no batch, batch-tracked product -> FEFO across ACTIVE batches
- inward, no batch, batch-tracked product  -> new batch "ADJ-<movement number>"
- non-batch product -> quantity_on_hand
- stock can never go below zero
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction

from core.money import ZERO, to_decimal
from core.services.concurrency import persistence_guard
from core.services.sequences import next_movement_number
from products.models import InventoryBatch, Product, StockMovement
from products.services.batch_ledger import (
    adjust_batch_quantity,
    adjust_product_quantity,
    get_product,
    has_active_batches,
    select_batches_for_quantity,
    sync_product_quantity,
)
from products.services.exceptions import BatchNotFoundError, StockAdjustmentError
from products.services.stock_movements import record_movement


logger = logging.getLogger(__name__)

MT = StockMovement.MovementType

INBOUND_ADJUSTMENTS = frozenset({MT.ADJUSTMENT_IN, MT.RETURN})
OUTBOUND_ADJUSTMENTS = frozenset({MT.ADJUSTMENT_OUT, MT.DAMAGE, MT.EXPIRY})
ADJUSTMENT_TYPES = INBOUND_ADJUSTMENTS | OUTBOUND_ADJUSTMENTS


@dataclass(frozen=True)
class StockAdjustmentRequest:
    product_id: object
    adjustment_type: str
    quantity: Decimal
    batch_id: object = None
    reason: str = ""
    notes: str = ""
    unit_cost: Decimal | None = None
    expiry_date: date | None = None


@dataclass(frozen=True)
class AdjustmentResult:
    product: Product
    quantity_delta: Decimal
    movements: tuple = field(default_factory=tuple)
    batches: tuple = field(default_factory=tuple)


def _validate(request: StockAdjustmentRequest) -> Decimal:
    if not request.product_id:
        raise StockAdjustmentError("product_id is required")

    if request.adjustment_type not in ADJUSTMENT_TYPES:
        raise StockAdjustmentError(
            f"Invalid adjustment type: {request.adjustment_type}. "
            f"Allowed: {', '.join(sorted(ADJUSTMENT_TYPES))}"
        )

    try:
        qty = to_decimal(request.quantity, field="quantity")
    except ValueError as exc:
        raise StockAdjustmentError(str(exc)) from exc

    if qty <= 0:
        raise StockAdjustmentError("quantity must be greater than zero")

    return qty


def _notes(request: StockAdjustmentRequest) -> str:
    parts = [p.strip() for p in (request.reason, request.notes) if p and p.strip()]
    return " | ".join(parts)


def _locked_batch_for(product: Product, batch_id) -> InventoryBatch:
    try:
        return InventoryBatch.objects.select_for_update().get(pk=batch_id, product=product)
    except (InventoryBatch.DoesNotExist, ValueError, ValidationError) as exc:
        raise BatchNotFoundError(batch_id, product_id=product.pk) from exc


def perform_stock_adjustment(request: StockAdjustmentRequest, *, actor=None) -> AdjustmentResult:
    qty = _validate(request)
    with persistence_guard("stock_adjustment"):
        return _perform_stock_adjustment(request, qty=qty, actor=actor)


@transaction.atomic
def _perform_stock_adjustment(request: StockAdjustmentRequest, *, qty: Decimal, actor) -> AdjustmentResult:
    product = get_product(request.product_id, lock=True, active_only=False)

    inbound = request.adjustment_type in INBOUND_ADJUSTMENTS
    delta = qty if inbound else -qty
    reference_id = uuid.uuid4()
    notes = _notes(request)

    movements = []
    batches = []

    def _movement(*, quantity, batch=None, movement_number=None):
        return record_movement(
            product=product,
            batch=batch,
            movement_type=request.adjustment_type,
            quantity=quantity,
            reference_type=StockMovement.ReferenceType.ADJUSTMENT,
            reference_id=reference_id,
            notes=notes,
            actor=actor,
            movement_number=movement_number,
        )

    if request.batch_id:
        batch = _locked_batch_for(product, request.batch_id)
        batch = adjust_batch_quantity(batch, delta)
        batches.append(batch)
        movements.append(_movement(quantity=delta, batch=batch))

    elif not inbound and has_active_batches(product.pk):
        allocations = select_batches_for_quantity(product.pk, qty, lock=True)
        for alloc in allocations:
            batch = adjust_batch_quantity(alloc.batch_id, -alloc.quantity, sync=False)
            batches.append(batch)
            movements.append(_movement(quantity=-alloc.quantity, batch=batch))
        sync_product_quantity(product.pk)

    elif inbound and InventoryBatch.objects.filter(product=product).exists():
        movement_number = next_movement_number()
        unit_cost = request.unit_cost
        if unit_cost is None:
            unit_cost = product.cost_price if product.cost_price is not None else ZERO

        batch = InventoryBatch.objects.create(
            product=product,
            batch_number=f"ADJ-{movement_number}",
            quantity_received=qty,
            remaining_quantity=qty,
            unit_cost=to_decimal(unit_cost, field="unit_cost"),
            expiry_date=request.expiry_date,
        )
        batches.append(batch)
        movements.append(_movement(quantity=delta, batch=batch, movement_number=movement_number))
        sync_product_quantity(product.pk)

    else:
        adjust_product_quantity(product, delta)
        movements.append(_movement(quantity=delta))

    product.refresh_from_db()

    logger.info(
        "Stock adjusted",
        extra={
            "product_id": str(product.pk),
            "adjustment_type": request.adjustment_type,
            "quantity_delta": str(delta),
            "movement_count": len(movements),
        },
    )

    return AdjustmentResult(
        product=product,
        quantity_delta=delta,
        movements=tuple(movements),
        batches=tuple(batches),
    )
