# customers/services/credit.py

"""
CUSTOMER LOOKUP + CREDIT CHECK

Consumed by the sale orchestrator:
- customer existence (active only)
- optional credit-limit check for an underpaid sale
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError

from core.exceptions import DomainError
from customers.models import Customer


class CustomerNotFoundError(DomainError):
    """Raised when a referenced customer does not exist or is inactive."""

    code = "customer_not_found"

    def __init__(self, customer_id):
        super().__init__(f"Customer not found or inactive: {customer_id}")
        self.customer_id = customer_id


class CreditLimitExceededError(DomainError):
    """Raised when a credit sale would push the customer past the credit limit."""

    code = "credit_limit_exceeded"

    def __init__(self, *, customer: Customer, requested: Decimal, reason: str):
        super().__init__(reason)
        self.customer_id = customer.pk
        self.requested = requested


def get_active_customer(customer_id, *, lock: bool = False) -> Customer:
    qs = Customer.objects.filter(is_active=True)
    if lock:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=customer_id)
    except (Customer.DoesNotExist, ValueError, ValidationError) as exc:
        raise CustomerNotFoundError(customer_id) from exc


def check_credit_limit(customer: Customer, amount: Decimal) -> None:
    """
    Reject `amount` of new credit when it doesn't fit the customer's credit line.
    `customer.balance` must be current (the reconciler keeps it in sync).
    """
    if customer.credit_limit <= 0:
        raise CreditLimitExceededError(
            customer=customer,
            requested=amount,
            reason=f"Customer {customer.name} has no credit limit set",
        )

    total_debt = customer.balance + amount
    if total_debt > customer.credit_limit:
        raise CreditLimitExceededError(
            customer=customer,
            requested=amount,
            reason=(
                f"Credit limit exceeded for {customer.name}. "
                f"Current debt: {customer.balance}, Requested: {amount}, "
                f"Credit limit: {customer.credit_limit}"
            ),
        )
