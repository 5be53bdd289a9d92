# sales/tests/test_api.py

from datetime import date
from decimal import Decimal

from rest_framework import status
from rest_framework.test import APITestCase

from core.tests.helpers import make_batch, make_customer, make_product, make_user
from products.models import InventoryBatch
from sales.models import Sale

D = Decimal


class SaleApiTests(APITestCase):
    """
    GUARANTEES:
    - Staff-only endpoints
    - Domain errors map to 400 / 404 / 409 with a stable error code
    - Server totals are returned, never echoed from the client
    """

    def setUp(self):
        self.user = make_user()
        self.client.force_authenticate(user=self.user)
        self.product = make_product("AMX-500")
        self.b1 = make_batch(self.product, "5", batch_number="B1", expiry_date=date(2030, 1, 10))
        self.b2 = make_batch(self.product, "5", batch_number="B2", expiry_date=date(2030, 2, 1))

    def payload(self, quantity="8", **extra):
        data = {
            "payment_method": "CASH",
            "amount_paid": "8000",
            "items": [{"product_id": str(self.product.pk), "quantity": quantity}],
        }
        data.update(extra)
        return data

    def create(self, **kwargs):
        return self.client.post("/api/sales/", self.payload(**kwargs), format="json")

    def test_requires_authentication(self):
        self.client.force_authenticate(user=None)

        response = self.client.get("/api/sales/")

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_sale(self):
        response = self.create()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(D(response.data["total_amount"]), D("8000"))
        self.assertEqual(response.data["status"], Sale.STATUS_COMPLETED)
        self.assertIsNone(response.data["invoice"])
        self.assertEqual(response.data["items"][0]["batch_number"], "B1")

    def test_create_sale_on_credit_returns_invoice(self):
        customer = make_customer("Ada Obi")

        response = self.create(amount_paid="3000", customer_id=str(customer.pk))

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(D(response.data["balance_due"]), D("5000"))
        self.assertEqual(D(response.data["invoice"]["amount_due"]), D("5000"))

    def test_insufficient_stock_is_conflict(self):
        response = self.create(quantity="11", amount_paid="11000")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "insufficient_stock")
        self.assertFalse(response.data["retryable"])

    def test_walk_in_underpayment_is_bad_request(self):
        response = self.create(amount_paid="100")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "full_payment_required")
        self.assertFalse(Sale.objects.exists())

    def test_declared_total_mismatch(self):
        response = self.create(total_amount="7000")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "totals_mismatch")

    def test_unknown_product_is_not_found(self):
        response = self.client.post(
            "/api/sales/",
            {"amount_paid": "10", "items": [{"product_id": "00000000-0000-0000-0000-000000000000", "quantity": "1"}]},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["code"], "product_not_found")

    def test_shape_errors_are_rejected_by_serializer(self):
        response = self.client.post("/api/sales/", {"items": []}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("items", response.data)

    def test_preview_totals_writes_nothing(self):
        response = self.client.post("/api/sales/preview-totals/", self.payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(D(response.data["total_amount"]), D("8000"))
        self.assertFalse(Sale.objects.exists())
        self.b1.refresh_from_db()
        self.assertEqual(self.b1.remaining_quantity, D("5"))

    def test_void_and_void_again(self):
        sale_id = self.create().data["id"]

        response = self.client.post(f"/api/sales/{sale_id}/void/", {"reason": "Wrong item"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], Sale.STATUS_VOID)

        self.b1.refresh_from_db()
        self.assertEqual(self.b1.status, InventoryBatch.Status.ACTIVE)

        response = self.client.post(f"/api/sales/{sale_id}/void/", {"reason": "Again"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "already_voided")

        trail = self.client.get(f"/api/sales/{sale_id}/movements/").data
        self.assertEqual([row["movement_type"] for row in trail], ["SALE", "SALE", "RETURN", "RETURN"])

    def test_void_requires_reason(self):
        sale_id = self.create().data["id"]

        response = self.client.post(f"/api/sales/{sale_id}/void/", {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_partial_refund(self):
        created = self.create(quantity="3", amount_paid="3000").data
        item_id = created["items"][0]["id"]

        response = self.client.post(
            f"/api/sales/{created['id']}/refunds/",
            {"items": [{"sale_item_id": item_id, "quantity": "2"}], "reason": "Damaged"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(D(response.data["refund_amount"]), D("2000"))

        response = self.client.post(
            f"/api/sales/{created['id']}/refunds/",
            {"items": [{"sale_item_id": item_id, "quantity": "2"}]},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "refund_quantity_exceeds_sold")

        detail = self.client.get(f"/api/sales/{created['id']}/").data
        self.assertEqual(detail["status"], Sale.STATUS_REFUNDED)
        self.assertEqual(len(detail["refunds"]), 1)

    def test_list_filters(self):
        self.create(quantity="1", amount_paid="1000")
        sale_id = self.create(quantity="1", amount_paid="1000").data["id"]
        self.client.post(f"/api/sales/{sale_id}/void/", {"reason": "x"}, format="json")

        response = self.client.get("/api/sales/", {"status": "VOID"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row["id"] for row in response.data["results"]], [sale_id])


class InvoiceApiTests(APITestCase):
    """
    GUARANTEES:
    - Payments against an open invoice reduce what the customer owes
    - Overpayment is a conflict
    """

    def setUp(self):
        self.client.force_authenticate(user=make_user())
        product = make_product("NEB-1", selling_price="10000")
        make_batch(product, "2", batch_number="N1")
        self.customer = make_customer("Ada Obi")
        response = self.client.post(
            "/api/sales/",
            {
                "amount_paid": "4000",
                "customer_id": str(self.customer.pk),
                "items": [{"product_id": str(product.pk), "quantity": "1"}],
            },
            format="json",
        )
        self.invoice_id = response.data["invoice"]["id"]

    def test_pay_invoice(self):
        response = self.client.post(
            f"/api/invoices/{self.invoice_id}/payments/",
            {"amount": "6000", "payment_method": "MOBILE_MONEY"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        invoice = self.client.get(f"/api/invoices/{self.invoice_id}/").data
        self.assertEqual(invoice["status"], "PAID")
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.balance, D("0"))

    def test_overpayment(self):
        response = self.client.post(
            f"/api/invoices/{self.invoice_id}/payments/",
            {"amount": "6500"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "overpayment")

    def test_refund_credit_is_not_a_payment_method(self):
        response = self.client.post(
            f"/api/invoices/{self.invoice_id}/payments/",
            {"amount": "10", "payment_method": "REFUND_CREDIT"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
