# products/services/batch_ledger.py

"""
BATCH INVENTORY LEDGER (FEFO)

Purpose:
- Pick batches for a quantity using FEFO: earliest expiry first, batches with
  no expiry only after every dated batch, then oldest receipt first.
- Apply quantity deltas to a batch (or to a non-batch product) and keep
  Product.quantity_on_hand in sync in the SAME transaction.

AVAILABILITY RULE:
- Product has ACTIVE batches with stock  -> sum of their remaining_quantity
- Otherwise (non-batch product)          -> Product.quantity_on_hand

LOCKING:
- lock=True uses select_for_update and must run inside transaction.atomic.
- Callers that also lock products lock the product row FIRST, then batches.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F, Sum
from django.utils import timezone

from core.money import ZERO, dmin, dsum, to_decimal
from products.models import InventoryBatch, Product, StockMovement
from products.services.exceptions import (
    BatchNotFoundError,
    InsufficientStockError,
    InventoryError,
    ProductNotFoundError,
)
from products.services.stock_movements import record_movement


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchAllocation:
    batch_id: uuid.UUID
    batch_number: str
    quantity: Decimal
    unit_cost: Decimal
    expiry_date: date | None


# ============================================================
# QUERIES
# ============================================================

def fefo_batches(product_id, *, lock: bool = False):
    qs = InventoryBatch.objects.filter(
        product_id=product_id,
        status=InventoryBatch.Status.ACTIVE,
        remaining_quantity__gt=0,
    )
    if lock:
        qs = qs.select_for_update()
    return qs.order_by(
        F("expiry_date").asc(nulls_last=True),
        "received_date",
        "created_at",
    )


def get_product(product_id, *, lock: bool = False, active_only: bool = True) -> Product:
    qs = Product.objects.all()
    if lock:
        qs = qs.select_for_update()
    if active_only:
        qs = qs.filter(is_active=True)
    try:
        return qs.get(pk=product_id)
    except (Product.DoesNotExist, ValueError, ValidationError) as exc:
        raise ProductNotFoundError(product_id) from exc


def has_active_batches(product_id) -> bool:
    return fefo_batches(product_id).exists()


def available_quantity(product: Product, *, lock: bool = False) -> Decimal:
    batches = list(fefo_batches(product.pk, lock=lock))
    if batches:
        return dsum(b.remaining_quantity for b in batches)
    return product.quantity_on_hand


def expiring_batches(*, days: int = 30, today: date | None = None):
    """ACTIVE batches with stock whose expiry falls within the next `days` days."""
    today = today or timezone.localdate()
    return (
        InventoryBatch.objects.filter(
            status=InventoryBatch.Status.ACTIVE,
            remaining_quantity__gt=0,
            expiry_date__isnull=False,
            expiry_date__gte=today,
            expiry_date__lte=today + timedelta(days=days),
        )
        .select_related("product")
        .order_by("expiry_date")
    )


# ============================================================
# FEFO SELECTION
# ============================================================

def _allocate(batches, required: Decimal) -> list[BatchAllocation]:
    allocations: list[BatchAllocation] = []
    demand = required

    for batch in batches:
        if demand <= 0:
            break

        take = dmin(demand, batch.remaining_quantity)
        if take <= 0:
            continue

        allocations.append(
            BatchAllocation(
                batch_id=batch.id,
                batch_number=batch.batch_number,
                quantity=take,
                unit_cost=batch.unit_cost,
                expiry_date=batch.expiry_date,
            )
        )
        demand -= take

    return allocations


def select_batches_for_quantity(
    product_id,
    required_qty,
    *,
    lock: bool = False,
    preferred_batch_id=None,
) -> list[BatchAllocation]:
    """
    FEFO allocation for `required_qty` units of a product.

    - Returns [] when the product has no ACTIVE batches (non-batch product;
      the caller falls back to quantity_on_hand).
    - `preferred_batch_id` is a caller hint: if it names a usable batch of this
      product it is consumed first, FEFO covers the rest.
    - Raises InsufficientStockError when the batches together can't cover it.
    """
    required = to_decimal(required_qty, field="quantity")
    if required <= 0:
        raise InventoryError("quantity must be greater than zero")

    product = get_product(product_id, active_only=False)

    batches = list(fefo_batches(product.pk, lock=lock))
    if not batches:
        return []

    if preferred_batch_id:
        preferred = [b for b in batches if str(b.id) == str(preferred_batch_id)]
        if preferred:
            batches = preferred + [b for b in batches if b is not preferred[0]]

    total = dsum(b.remaining_quantity for b in batches)

    if total < required:
        raise InsufficientStockError(product=product, requested=required, available=total)

    return _allocate(batches, required)


# ============================================================
# MUTATIONS (same-transaction quantity sync)
# ============================================================

def sync_product_quantity(product_id) -> Decimal:
    """
    Re-derive quantity_on_hand of a batch-tracked product from its ACTIVE batches.
    Products that never had a batch keep their own quantity_on_hand.
    """
    if not InventoryBatch.objects.filter(product_id=product_id).exists():
        return Product.objects.filter(pk=product_id).values_list("quantity_on_hand", flat=True).get()

    total = (
        InventoryBatch.objects.filter(
            product_id=product_id,
            status=InventoryBatch.Status.ACTIVE,
        )
        .aggregate(total=Sum("remaining_quantity"))
        .get("total")
        or ZERO
    )
    Product.objects.filter(pk=product_id).update(
        quantity_on_hand=total,
        updated_at=timezone.now(),
    )
    return total


@transaction.atomic
def adjust_batch_quantity(batch, delta, *, sync: bool = True) -> InventoryBatch:
    """
    Apply a signed delta to one batch.

    - Never lets remaining_quantity go below zero
    - ACTIVE -> DEPLETED when it reaches zero
    - DEPLETED -> ACTIVE on a positive delta (EXPIRED / QUARANTINED stay put)
    - Re-syncs Product.quantity_on_hand unless sync=False (caller syncs once
      after several batch writes)
    """
    delta = to_decimal(delta, field="delta")
    if delta == 0:
        raise InventoryError("delta cannot be zero")

    batch_id = getattr(batch, "pk", batch)
    try:
        locked = (
            InventoryBatch.objects.select_for_update().get(pk=batch_id)
        )
    except InventoryBatch.DoesNotExist as exc:
        raise BatchNotFoundError(batch_id) from exc

    new_remaining = locked.remaining_quantity + delta
    if new_remaining < 0:
        raise InsufficientStockError(
            product=locked.product,
            requested=-delta,
            available=locked.remaining_quantity,
            batch=locked,
        )

    locked.remaining_quantity = new_remaining

    if new_remaining == 0 and locked.status == InventoryBatch.Status.ACTIVE:
        locked.status = InventoryBatch.Status.DEPLETED
    elif delta > 0 and locked.status == InventoryBatch.Status.DEPLETED:
        locked.status = InventoryBatch.Status.ACTIVE

    locked.save(update_fields=["remaining_quantity", "status", "updated_at"])

    if sync:
        sync_product_quantity(locked.product_id)

    return locked


@transaction.atomic
def adjust_product_quantity(product, delta) -> Decimal:
    """
    Apply a signed delta to a non-batch product's quantity_on_hand.

    The debit is a conditional UPDATE (quantity_on_hand >= amount), so two
    concurrent debits can't both pass on stale reads.
    """
    delta = to_decimal(delta, field="delta")
    if delta == 0:
        raise InventoryError("delta cannot be zero")

    product_id = getattr(product, "pk", product)
    qs = Product.objects.filter(pk=product_id)

    if delta < 0:
        qs = qs.filter(quantity_on_hand__gte=-delta)

    updated = qs.update(
        quantity_on_hand=F("quantity_on_hand") + delta,
        updated_at=timezone.now(),
    )

    if not updated:
        current = get_product(product_id, active_only=False)
        raise InsufficientStockError(
            product=current,
            requested=-delta,
            available=current.quantity_on_hand,
        )

    return Product.objects.filter(pk=product_id).values_list("quantity_on_hand", flat=True).get()


# ============================================================
# RECEIPT + EXPIRY
# ============================================================

def _generate_batch_number() -> str:
    return f"B-{timezone.localdate():%Y%m%d}-{uuid.uuid4().hex[:6].upper()}"


@transaction.atomic
def receive_batch(
    *,
    product,
    quantity,
    unit_cost,
    expiry_date: date | None = None,
    batch_number: str | None = None,
    received_date: date | None = None,
    reference_id=None,
    actor=None,
    notes: str = "",
) -> InventoryBatch:
    """
    Goods receipt: create a batch and its GOODS_RECEIPT movement.
    """
    qty = to_decimal(quantity, field="quantity")
    if qty <= 0:
        raise InventoryError("quantity must be greater than zero")

    cost = to_decimal(unit_cost, field="unit_cost")
    if cost < 0:
        raise InventoryError("unit_cost cannot be negative")

    product_id = getattr(product, "pk", product)
    locked_product = get_product(product_id, lock=True)

    batch = InventoryBatch.objects.create(
        product=locked_product,
        batch_number=(batch_number or "").strip() or _generate_batch_number(),
        quantity_received=qty,
        remaining_quantity=qty,
        unit_cost=cost,
        expiry_date=expiry_date,
        received_date=received_date or timezone.localdate(),
    )

    record_movement(
        product=locked_product,
        batch=batch,
        movement_type=StockMovement.MovementType.GOODS_RECEIPT,
        quantity=qty,
        unit_cost=cost,
        reference_type=StockMovement.ReferenceType.RECEIPT,
        reference_id=reference_id or batch.id,
        notes=notes,
        actor=actor,
    )

    sync_product_quantity(locked_product.pk)

    logger.info(
        "Batch received",
        extra={
            "product_id": str(locked_product.pk),
            "batch_number": batch.batch_number,
            "quantity": str(qty),
        },
    )
    return batch


@transaction.atomic
def expire_batch(*, batch, actor=None, notes: str = "") -> InventoryBatch:
    """
    Write off whatever is left in a batch and mark it EXPIRED.
    Idempotent: an already-expired batch is returned unchanged.
    """
    batch_id = getattr(batch, "pk", batch)
    try:
        locked = InventoryBatch.objects.select_for_update().get(pk=batch_id)
    except InventoryBatch.DoesNotExist as exc:
        raise BatchNotFoundError(batch_id) from exc

    if locked.status == InventoryBatch.Status.EXPIRED:
        return locked

    remaining = locked.remaining_quantity
    if remaining > 0:
        locked = adjust_batch_quantity(locked, -remaining, sync=False)
        record_movement(
            product=locked.product,
            batch=locked,
            movement_type=StockMovement.MovementType.EXPIRY,
            quantity=-remaining,
            reference_type=StockMovement.ReferenceType.EXPIRY,
            reference_id=locked.id,
            notes=notes or "Batch expired",
            actor=actor,
        )

    locked.status = InventoryBatch.Status.EXPIRED
    locked.save(update_fields=["status", "updated_at"])
    sync_product_quantity(locked.product_id)

    logger.info(
        "Batch expired",
        extra={"batch_id": str(locked.id), "written_off": str(remaining)},
    )
    return locked
