"""
SALE LIFECYCLE DOMAIN RULES

This module defines the ONLY allowed lifecycle transitions
for Sale entities.

    COMPLETED -> VOID       full reversal, no partial void
    COMPLETED -> REFUNDED   first (partial or full) refund
    REFUNDED  -> REFUNDED   further partial refunds

No database writes, no stock mutation. Sale.save() consults it for every
status change; void / refund consult it before doing any work.
"""

from sales.models import Sale

TERMINAL_STATES = frozenset({Sale.STATUS_VOID})

ALLOWED_TRANSITIONS = {
    Sale.STATUS_COMPLETED: frozenset({Sale.STATUS_VOID, Sale.STATUS_REFUNDED}),
    Sale.STATUS_REFUNDED: frozenset({Sale.STATUS_REFUNDED}),
}


def can_transition(*, from_status: str, to_status: str) -> bool:
    if from_status in TERMINAL_STATES:
        return False
    return to_status in ALLOWED_TRANSITIONS.get(from_status, frozenset())
