# core/services/sequences.py

"""
DOCUMENT NUMBERING

Human-readable, monotonically increasing document numbers:

- SALE-YYYY-0001  (sales)
- INV-YYYY-0001   (invoices)
- RCP-YYYY-0001   (invoice payment receipts)
- RF-YYYY-0001    (refunds)
- SM-000001       (stock movements, never reset)

Must be called inside the caller's transaction: the counter row stays locked
until that transaction commits, and rolls back with it.
"""

from __future__ import annotations

from datetime import date

from django.db import transaction
from django.utils import timezone

from core.models import DocumentSequence


def _sequence_key(prefix: str, *, year: int | None) -> str:
    prefix = (prefix or "").strip().upper()
    if not prefix:
        raise ValueError("prefix is required")
    return f"{prefix}-{year}" if year else prefix


@transaction.atomic
def next_value(key: str) -> int:
    seq, _ = DocumentSequence.objects.select_for_update().get_or_create(key=key)
    seq.last_value += 1
    seq.save(update_fields=["last_value", "updated_at"])
    return seq.last_value


def next_document_number(
    prefix: str,
    *,
    yearly: bool = True,
    width: int = 4,
    on: date | None = None,
) -> str:
    year = None
    if yearly:
        year = (on or timezone.localdate()).year

    key = _sequence_key(prefix, year=year)
    value = next_value(key)

    return f"{key}-{value:0{width}d}"


def next_sale_number() -> str:
    return next_document_number("SALE")


def next_invoice_number() -> str:
    return next_document_number("INV")


def next_receipt_number() -> str:
    return next_document_number("RCP")


def next_refund_number() -> str:
    return next_document_number("RF")


def next_movement_number() -> str:
    return next_document_number("SM", yearly=False, width=6)
