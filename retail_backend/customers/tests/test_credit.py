# customers/tests/test_credit.py

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from core.tests.helpers import make_customer
from customers.services.credit import (
    CreditLimitExceededError,
    CustomerNotFoundError,
    check_credit_limit,
    get_active_customer,
)


class CustomerCreditTests(TestCase):
    """
    GUARANTEES:
    - No credit line means no credit
    - balance + new credit must fit inside the credit limit
    - Inactive customers are not found
    """

    def setUp(self):
        self.customer = make_customer("Emeka", credit_limit="5000")

    def test_within_limit(self):
        check_credit_limit(self.customer, Decimal("5000"))
        self.assertEqual(self.customer.available_credit, Decimal("5000"))

    def test_over_limit(self):
        self.customer.balance = Decimal("3000")

        with self.assertRaises(CreditLimitExceededError) as ctx:
            check_credit_limit(self.customer, Decimal("2001"))

        self.assertEqual(ctx.exception.requested, Decimal("2001"))
        self.assertIn("Credit limit exceeded", str(ctx.exception))

    def test_no_credit_line(self):
        with self.assertRaises(CreditLimitExceededError):
            check_credit_limit(make_customer("Walk-up"), Decimal("1"))

    def test_lookup(self):
        self.assertEqual(get_active_customer(self.customer.pk), self.customer)

        self.customer.is_active = False
        self.customer.save()
        with self.assertRaises(CustomerNotFoundError):
            get_active_customer(self.customer.pk)

        with self.assertRaises(CustomerNotFoundError):
            get_active_customer("bogus")

    def test_negative_credit_limit_invalid(self):
        customer = make_customer("Bad", credit_limit="0")
        customer.credit_limit = Decimal("-1")
        with self.assertRaises(ValidationError):
            customer.full_clean()
