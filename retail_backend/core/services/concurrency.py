# core/services/concurrency.py

"""
PERSISTENCE FAILURE TRANSLATION

Sale / void / refund / adjustment each run as ONE short atomic block.
When the database rejects it (a CheckConstraint tripped by a concurrent
debit, a lock timeout, a deadlock) the block has already rolled back, and the
caller gets a retryable PersistenceFailureError instead of a raw driver error.

Usage:

    with persistence_guard("create_sale"):
        sale = _create_sale_atomic(...)

The guard must wrap the atomic block from the OUTSIDE, otherwise the error is
translated before the rollback happened.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager

from django.db import DatabaseError, IntegrityError, OperationalError

from core.exceptions import PersistenceFailureError


logger = logging.getLogger(__name__)


@contextmanager
def persistence_guard(operation: str):
    try:
        yield
    except IntegrityError as exc:
        logger.warning(
            "Unit of work rejected by a database constraint",
            extra={"operation": operation, "error": str(exc)},
        )
        raise PersistenceFailureError(
            f"{operation} failed: a concurrent change violated a stock or balance constraint. "
            "Nothing was saved; the request can be retried.",
            operation=operation,
        ) from exc
    except OperationalError as exc:
        logger.warning(
            "Unit of work aborted by the database",
            extra={"operation": operation, "error": str(exc)},
        )
        raise PersistenceFailureError(
            f"{operation} failed: the database aborted the transaction. "
            "Nothing was saved; the request can be retried.",
            operation=operation,
        ) from exc
    except DatabaseError as exc:
        logger.error(
            "Unit of work failed with a database error",
            extra={"operation": operation, "error": str(exc)},
        )
        raise PersistenceFailureError(
            f"{operation} failed: {exc}",
            operation=operation,
            retryable=False,
        ) from exc
