# invoices/tests/test_receivables.py

from datetime import timedelta
from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone

from core.exceptions import DomainError
from core.tests.helpers import line, make_batch, make_customer, make_product, sale_request
from invoices.models import Invoice, InvoicePayment
from invoices.services.exceptions import (
    DuplicateReceivableError,
    InvoiceClosedError,
    InvoiceNotFoundError,
    OverpaymentError,
    ReceivableError,
)
from invoices.services.receivables import (
    apply_payment,
    create_for_shortfall,
    customer_outstanding_balance,
    mark_overdue,
)
from sales.services.sale_service import create_sale
from sales.services.void_service import void_sale

D = Decimal


class ReceivableTests(TestCase):
    """
    GUARANTEES:
    - amount_due = total - paid after every write
    - Customer.balance = SUM(amount_due) of open invoices
    - Payments never exceed what is due (beyond the tolerance)
    - Closed invoices take no payments
    """

    def setUp(self):
        self.product = make_product("NEB-1", selling_price="10000", cost_price="7000")
        make_batch(self.product, "10", batch_number="N1")
        self.customer = make_customer("Ada Obi")
        self.sale = create_sale(
            sale_request(line(self.product, "1"), amount_paid="4000", customer=self.customer)
        )
        self.invoice = Invoice.objects.get(sale=self.sale)

    def test_invoice_terms(self):
        self.assertTrue(self.invoice.invoice_number.startswith("INV-"))
        self.assertEqual(self.invoice.total_amount, D("10000"))
        self.assertEqual(self.invoice.due_date - self.invoice.issue_date, timedelta(days=30))

    def test_partial_then_final_payment(self):
        payment = apply_payment(self.invoice.id, D("2500"), payment_method=InvoicePayment.Method.CARD)

        self.assertTrue(payment.receipt_number.startswith("RCP-"))
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.amount_due, D("3500"))
        self.assertEqual(self.invoice.status, Invoice.Status.PARTIALLY_PAID)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.balance, D("3500"))

        apply_payment(self.invoice.id, D("3500"))

        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.status, Invoice.Status.PAID)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.balance, D("0"))

    def test_payment_within_tolerance_settles_exactly(self):
        payment = apply_payment(self.invoice.id, D("6000.01"))

        self.assertEqual(payment.amount, D("6000"))
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.amount_due, D("0"))

    def test_overpayment_rejected(self):
        with self.assertRaises(OverpaymentError):
            apply_payment(self.invoice.id, D("6001"))

        self.assertEqual(self.invoice.payments.count(), 1)

    def test_invalid_payments(self):
        for amount, method in ((D("0"), "CASH"), (D("-5"), "CASH"), (D("10"), "REFUND_CREDIT"), (D("10"), "CHEQUE")):
            with self.subTest(amount=amount, method=method), self.assertRaises(ReceivableError):
                apply_payment(self.invoice.id, amount, payment_method=method)

    def test_closed_invoice_takes_no_payment(self):
        void_sale(self.sale.id, reason="Cancelled order")

        with self.assertRaises(InvoiceClosedError):
            apply_payment(self.invoice.id, D("100"))

    def test_unknown_invoice(self):
        with self.assertRaises(InvoiceNotFoundError):
            apply_payment("00000000-0000-0000-0000-000000000000", D("1"))

    def test_one_invoice_per_sale(self):
        with self.assertRaises(DuplicateReceivableError):
            create_for_shortfall(sale=self.sale, customer=self.customer, shortfall_amount=D("10"))

    def test_balance_spans_open_invoices(self):
        create_sale(sale_request(line(self.product, "1"), amount_paid="9000", customer=self.customer))

        self.customer.refresh_from_db()
        self.assertEqual(self.customer.balance, D("7000"))
        self.assertEqual(customer_outstanding_balance(self.customer), D("7000"))

    def test_mark_overdue(self):
        later = self.invoice.due_date + timedelta(days=1)

        self.assertEqual(mark_overdue(today=later), 1)
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.status, Invoice.Status.OVERDUE)

        # still owed, still open
        apply_payment(self.invoice.id, D("1000"))
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.status, Invoice.Status.OVERDUE)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.balance, D("5000"))

    def test_not_due_yet(self):
        self.assertEqual(mark_overdue(today=timezone.localdate()), 0)

    def test_errors_are_domain_errors(self):
        self.assertTrue(issubclass(OverpaymentError, DomainError))


class MarkOverdueCommandTests(TestCase):
    def test_command(self):
        product = make_product("CMD-1", selling_price="500")
        make_batch(product, "1", batch_number="C1")
        sale = create_sale(sale_request(line(product, "1"), customer=make_customer("Late Payer")))
        invoice = Invoice.objects.get(sale=sale)
        out = StringIO()

        call_command("mark_overdue_invoices", "--today", str(invoice.due_date + timedelta(days=1)), stdout=out)

        self.assertIn("Invoices marked overdue: 1", out.getvalue())
        invoice.refresh_from_db()
        self.assertEqual(invoice.status, Invoice.Status.OVERDUE)
