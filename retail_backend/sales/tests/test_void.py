# sales/tests/test_void.py

from datetime import date
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import SimpleTestCase, TestCase

from core.tests.helpers import line, make_batch, make_customer, make_product, make_user, sale_request
from invoices.models import Invoice
from products.models import InventoryBatch, Product, StockMovement
from sales.models import Sale
from sales.services.exceptions import (
    AlreadyVoidedError,
    SaleError,
    SaleNotFoundError,
    SaleNotVoidableError,
)
from sales.services.refund_service import refund_sale
from sales.services.requests import RefundLineRequest, RefundRequest
from sales.services.sale_lifecycle import can_transition
from sales.services.sale_service import create_sale
from sales.services.void_service import void_sale

D = Decimal


class VoidSaleTests(TestCase):
    """
    GUARANTEES:
    - Void puts every unit back into the batch it came from
    - Every restored allocation gets a compensating RETURN movement
    - A sale is voided once; refunded sales can't be voided
    - The sale's open invoice is cancelled and drops out of the balance
    """

    def setUp(self):
        self.user = make_user()
        self.product = make_product("AMX-500")
        self.b1 = make_batch(self.product, "5", batch_number="B1", expiry_date=date(2030, 1, 10))
        self.b2 = make_batch(self.product, "5", batch_number="B2", expiry_date=date(2030, 2, 1))
        self.sale = create_sale(sale_request(line(self.product, "8"), amount_paid="8000"))

    def returns(self):
        return StockMovement.objects.filter(
            movement_type=StockMovement.MovementType.RETURN,
            reference_type=StockMovement.ReferenceType.VOID,
        )

    def test_void_restores_original_batches(self):
        sale = void_sale(self.sale.id, reason="Rung up for the wrong customer", actor=self.user)

        self.assertEqual(sale.status, Sale.STATUS_VOID)
        self.assertEqual(sale.void_reason, "Rung up for the wrong customer")
        self.assertEqual(sale.voided_by, self.user)
        self.assertIsNotNone(sale.voided_at)

        self.b1.refresh_from_db()
        self.b2.refresh_from_db()
        self.assertEqual(self.b1.remaining_quantity, D("5"))
        self.assertEqual(self.b1.status, InventoryBatch.Status.ACTIVE)
        self.assertEqual(self.b2.remaining_quantity, D("5"))
        self.assertEqual(Product.objects.get(pk=self.product.pk).quantity_on_hand, D("10"))

        returns = {m.batch_id: m.quantity for m in self.returns()}
        self.assertEqual(returns, {self.b1.id: D("5"), self.b2.id: D("3")})

    def test_second_void_is_rejected(self):
        void_sale(self.sale.id, reason="Duplicate")

        with self.assertRaises(AlreadyVoidedError):
            void_sale(self.sale.id, reason="Duplicate")

        self.assertEqual(self.returns().count(), 2)

    def test_reason_required(self):
        with self.assertRaises(SaleError):
            void_sale(self.sale.id, reason="  ")

        self.assertEqual(Sale.objects.get(pk=self.sale.pk).status, Sale.STATUS_COMPLETED)

    def test_unknown_sale(self):
        with self.assertRaises(SaleNotFoundError):
            void_sale("not-a-uuid", reason="x")

    def test_refunded_sale_cannot_be_voided(self):
        item = self.sale.items.get()
        refund_sale(RefundRequest(sale_id=self.sale.id, items=(RefundLineRequest(sale_item_id=item.id, quantity=D("1")),)))

        with self.assertRaises(SaleNotVoidableError):
            void_sale(self.sale.id, reason="Too late")

    def test_void_cancels_open_invoice(self):
        customer = make_customer("Chidi")
        sale = create_sale(sale_request(line(self.product, "1"), amount_paid="400", customer=customer))
        customer.refresh_from_db()
        self.assertEqual(customer.balance, D("600"))

        void_sale(sale.id, reason="Customer changed mind")

        invoice = Invoice.objects.get(sale=sale)
        self.assertEqual(invoice.status, Invoice.Status.CANCELLED)
        customer.refresh_from_db()
        self.assertEqual(customer.balance, D("0"))

    def test_status_cannot_be_forced_backwards(self):
        void_sale(self.sale.id, reason="Test")
        sale = Sale.objects.get(pk=self.sale.pk)

        sale.status = Sale.STATUS_COMPLETED
        with self.assertRaises(ValueError):
            sale.save()

    def test_sale_is_never_deleted(self):
        with self.assertRaises(ValueError):
            self.sale.delete()

    def test_sale_items_are_immutable(self):
        item = self.sale.items.get()
        with self.assertRaises(ValidationError):
            item.save()


class SaleLifecycleTests(SimpleTestCase):
    def test_transitions(self):
        allowed = [
            (Sale.STATUS_COMPLETED, Sale.STATUS_VOID),
            (Sale.STATUS_COMPLETED, Sale.STATUS_REFUNDED),
            (Sale.STATUS_REFUNDED, Sale.STATUS_REFUNDED),
        ]
        refused = [
            (Sale.STATUS_REFUNDED, Sale.STATUS_VOID),
            (Sale.STATUS_REFUNDED, Sale.STATUS_COMPLETED),
            (Sale.STATUS_VOID, Sale.STATUS_COMPLETED),
            (Sale.STATUS_VOID, Sale.STATUS_VOID),
        ]
        for from_status, to_status in allowed:
            self.assertTrue(can_transition(from_status=from_status, to_status=to_status))
        for from_status, to_status in refused:
            self.assertFalse(can_transition(from_status=from_status, to_status=to_status))
