# sales/tests/test_refunds.py

from datetime import date
from decimal import Decimal

from django.test import TestCase

from core.tests.helpers import line, make_batch, make_customer, make_product, make_user, sale_request
from invoices.models import Invoice, InvoicePayment
from products.models import Product, StockMovement
from sales.models import Refund, Sale, SaleItem
from sales.services.exceptions import (
    AlreadyVoidedError,
    InvalidRefundError,
    RefundQuantityExceedsSoldError,
)
from sales.services.refund_service import refund_sale, refunded_quantities
from sales.services.requests import RefundLineRequest, RefundRequest
from sales.services.sale_service import create_sale
from sales.services.void_service import void_sale

D = Decimal


def partial(sale, *lines, **kwargs):
    return RefundRequest(
        sale_id=sale.id,
        items=tuple(RefundLineRequest(sale_item_id=item.id, quantity=D(qty)) for item, qty in lines),
        **kwargs,
    )


class RefundTests(TestCase):
    """
    GUARANTEES:
    - Cumulative refunded quantity per line never exceeds what was sold
    - Returned stock goes back to the batches the line consumed
    - Sale moves to REFUNDED and can be refunded again
    - Amounts are pro-rata of the line total unless given
    """

    def setUp(self):
        self.user = make_user()
        self.product = make_product("AMX-500")
        self.b1 = make_batch(self.product, "2", batch_number="B1", expiry_date=date(2030, 1, 10))
        self.b2 = make_batch(self.product, "5", batch_number="B2", expiry_date=date(2030, 2, 1))
        self.sale = create_sale(sale_request(line(self.product, "3"), amount_paid="3000"))
        self.item = self.sale.items.get()

    def test_refund_more_than_sold(self):
        with self.assertRaises(RefundQuantityExceedsSoldError) as ctx:
            refund_sale(partial(self.sale, (self.item, "4")))

        self.assertIn(self.product.name, str(ctx.exception))
        self.assertFalse(Refund.objects.exists())

    def test_refund_restores_original_batches(self):
        refund = refund_sale(partial(self.sale, (self.item, "3"), reason="Allergy"), actor=self.user)

        self.assertTrue(refund.refund_number.startswith("RF-"))
        self.assertEqual(refund.refund_amount, D("3000"))
        self.assertEqual(refund.processed_by, self.user)

        returns = {
            m.batch_id: m.quantity
            for m in StockMovement.objects.filter(
                movement_type=StockMovement.MovementType.RETURN,
                reference_id=str(refund.id),
            )
        }
        self.assertEqual(returns, {self.b1.id: D("2"), self.b2.id: D("1")})

        self.b1.refresh_from_db()
        self.assertEqual(self.b1.remaining_quantity, D("2"))
        self.assertEqual(Product.objects.get(pk=self.product.pk).quantity_on_hand, D("7"))
        self.assertEqual(Sale.objects.get(pk=self.sale.pk).status, Sale.STATUS_REFUNDED)

    def test_cumulative_refunds(self):
        first = refund_sale(partial(self.sale, (self.item, "1")))
        self.assertEqual(first.refund_amount, D("1000"))

        refund_sale(partial(self.sale, (self.item, "2")))
        self.assertEqual(refunded_quantities(self.sale), {self.item.id: D("3")})

        with self.assertRaises(RefundQuantityExceedsSoldError):
            refund_sale(partial(self.sale, (self.item, "1")))

        # the second refund came from B1 then B2, nothing returned twice
        self.b1.refresh_from_db()
        self.b2.refresh_from_db()
        self.assertEqual(self.b1.remaining_quantity, D("2"))
        self.assertEqual(self.b2.remaining_quantity, D("5"))

    def test_full_refund_without_items(self):
        refund_sale(partial(self.sale, (self.item, "1")))

        refund = refund_sale(RefundRequest(sale_id=self.sale.id, refund_type=Refund.RefundType.FULL))

        self.assertEqual(refund.items.get().quantity, D("2"))
        self.assertEqual(refund.refund_amount, D("2000"))

        with self.assertRaises(InvalidRefundError):
            refund_sale(RefundRequest(sale_id=self.sale.id, refund_type=Refund.RefundType.FULL))

    def test_no_restock(self):
        refund_sale(partial(self.sale, (self.item, "1"), return_to_inventory=False))

        self.assertFalse(StockMovement.objects.filter(movement_type=StockMovement.MovementType.RETURN).exists())
        self.assertEqual(Product.objects.get(pk=self.product.pk).quantity_on_hand, D("4"))

    def test_refund_amount_cannot_exceed_sale_total(self):
        with self.assertRaises(InvalidRefundError):
            refund_sale(partial(self.sale, (self.item, "1"), refund_amount=D("3500")))

    def test_voided_sale_cannot_be_refunded(self):
        void_sale(self.sale.id, reason="Mistake")

        with self.assertRaises(AlreadyVoidedError):
            refund_sale(partial(self.sale, (self.item, "1")))

    def test_item_from_another_sale(self):
        other = create_sale(sale_request(line(self.product, "1"), amount_paid="1000"))

        with self.assertRaises(InvalidRefundError):
            refund_sale(partial(self.sale, (other.items.get(), "1")))

    def test_request_validation(self):
        cases = [
            RefundRequest(sale_id=self.sale.id),
            partial(self.sale, (self.item, "0")),
            partial(self.sale, (self.item, "1"), (self.item, "1")),
            RefundRequest(sale_id=self.sale.id, refund_type="STORE_CREDIT"),
        ]
        for request in cases:
            with self.subTest(request=request), self.assertRaises(InvalidRefundError):
                refund_sale(request)

    def test_service_line_refund_has_no_stock_effect(self):
        sale = create_sale(
            sale_request(
                line(item_type=SaleItem.ItemType.SERVICE, description="Delivery", unit_price=D("700")),
                amount_paid="700",
            )
        )

        refund = refund_sale(partial(sale, (sale.items.get(), "1")))

        self.assertEqual(refund.refund_amount, D("700"))
        self.assertFalse(StockMovement.objects.filter(movement_type=StockMovement.MovementType.RETURN).exists())


class RefundReceivableTests(TestCase):
    """
    GUARANTEES:
    - A refund on an underpaid sale is credited against the open invoice first
    - Customer balance is re-derived, never written directly
    """

    def setUp(self):
        self.product = make_product("NEB-1", selling_price="2000", cost_price="1500")
        make_batch(self.product, "5", batch_number="N1")
        self.customer = make_customer("Ada Obi")
        self.sale = create_sale(
            sale_request(line(self.product, "5"), amount_paid="4000", customer=self.customer)
        )
        self.item = self.sale.items.get()

    def test_refund_credits_invoice(self):
        refund_sale(partial(self.sale, (self.item, "1")))

        invoice = Invoice.objects.get(sale=self.sale)
        self.assertEqual(invoice.amount_due, D("4000"))
        self.assertEqual(invoice.status, Invoice.Status.PARTIALLY_PAID)
        credit = invoice.payments.get(payment_method=InvoicePayment.Method.REFUND_CREDIT)
        self.assertEqual(credit.amount, D("2000"))

        self.customer.refresh_from_db()
        self.assertEqual(self.customer.balance, D("4000"))

    def test_refund_larger_than_debt_settles_invoice(self):
        refund_sale(partial(self.sale, (self.item, "4")))

        invoice = Invoice.objects.get(sale=self.sale)
        self.assertEqual(invoice.amount_due, D("0"))
        self.assertEqual(invoice.status, Invoice.Status.PAID)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.balance, D("0"))


class DiscountedSaleRefundTests(TestCase):
    """
    GUARANTEES:
    - Refund amounts follow what the customer paid, cart discount included
    - Refunding everything, in one go or in pieces, returns exactly the sale total
    - The units that close out a line take the rounding remainder
    """

    def setUp(self):
        self.first = make_product("CRM-100")
        self.second = make_product("GEL-200")
        make_batch(self.first, "5", batch_number="C1")
        make_batch(self.second, "5", batch_number="G1")

    def discounted_sale(self):
        # 2 x 1000 + 1 x 1000, less 300 at cart level
        return create_sale(
            sale_request(
                line(self.first, "2"),
                line(self.second, "1"),
                amount_paid="2700",
                cart_discount=D("300"),
            )
        )

    def test_full_refund_of_discounted_sale(self):
        sale = create_sale(
            sale_request(line(self.first, "2"), amount_paid="1900", cart_discount=D("100"))
        )

        refund = refund_sale(RefundRequest(sale_id=sale.id, refund_type=Refund.RefundType.FULL))

        self.assertEqual(sale.total_amount, D("1900"))
        self.assertEqual(refund.refund_amount, D("1900"))
        self.assertEqual(refund.items.get().refund_amount, D("1900"))

    def test_partial_refunds_add_up_to_sale_total(self):
        sale = self.discounted_sale()
        first_item = sale.items.get(product=self.first)
        second_item = sale.items.get(product=self.second)

        one = refund_sale(partial(sale, (first_item, "1")))
        two = refund_sale(partial(sale, (second_item, "1")))
        rest = refund_sale(RefundRequest(sale_id=sale.id, refund_type=Refund.RefundType.FULL))

        self.assertEqual(one.refund_amount, D("900"))
        self.assertEqual(two.refund_amount, D("900"))
        self.assertEqual(rest.refund_amount, D("900"))
        self.assertEqual(one.refund_amount + two.refund_amount + rest.refund_amount, sale.total_amount)

    def test_single_unit_refunds_close_out_the_line(self):
        sale = create_sale(
            sale_request(
                line(item_type=SaleItem.ItemType.SERVICE, description="Fitting", quantity="3", unit_price=D("33.33")),
                amount_paid="100",
            )
        )
        item = sale.items.get()
        self.assertEqual(item.total_amount, D("100"))

        amounts = [refund_sale(partial(sale, (item, "1"))).refund_amount for _ in range(3)]

        self.assertEqual(amounts, [D("33"), D("33"), D("34")])
        self.assertEqual(sum(amounts), D("100"))
