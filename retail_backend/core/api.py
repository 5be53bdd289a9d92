# core/api.py

"""
DOMAIN ERROR -> HTTP RESPONSE

One mapping for every view that calls a service:

- *_not_found                      -> 404
- stock / state / balance conflicts -> 409 (retryable flag set for
  PersistenceFailureError)
- everything else (bad input)       -> 400
"""

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.response import Response

from core.exceptions import DomainError


logger = logging.getLogger(__name__)

CONFLICT_CODES = frozenset(
    {
        "insufficient_stock",
        "already_voided",
        "sale_not_voidable",
        "sale_not_refundable",
        "refund_quantity_exceeds_sold",
        "credit_limit_exceeded",
        "invoice_closed",
        "overpayment",
        "duplicate_receivable",
        "persistence_failure",
    }
)


def status_for(exc: DomainError) -> int:
    if exc.code.endswith("_not_found"):
        return status.HTTP_404_NOT_FOUND
    if exc.code in CONFLICT_CODES:
        return status.HTTP_409_CONFLICT
    return status.HTTP_400_BAD_REQUEST


def domain_error_response(exc: DomainError) -> Response:
    http_status = status_for(exc)
    logger.info(
        "Request rejected by domain rule",
        extra={"code": exc.code, "status": http_status, "detail": str(exc)},
    )
    return Response(
        {"detail": str(exc), "code": exc.code, "retryable": exc.retryable},
        status=http_status,
    )
