# products/tests/test_batch_ledger.py

from datetime import date
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from core.tests.helpers import make_batch, make_product, stock_non_batch
from products.models import InventoryBatch, Product, StockMovement
from products.services.batch_ledger import (
    adjust_batch_quantity,
    adjust_product_quantity,
    available_quantity,
    expire_batch,
    select_batches_for_quantity,
)
from products.services.exceptions import (
    InsufficientStockError,
    InventoryError,
    ProductNotFoundError,
)
from products.services.stock_movements import net_quantity


class FefoSelectionTests(TestCase):
    """
    FEFO allocation.

    GUARANTEES:
    - Earliest expiry first, undated batches only after every dated one
    - Allocation never touches a batch it doesn't need
    - Shortfall is reported with requested / available
    """

    def setUp(self):
        self.product = make_product("AMX-500")
        self.b1 = make_batch(self.product, "5", batch_number="B1", expiry_date=date(2024, 1, 10))
        self.b2 = make_batch(self.product, "5", batch_number="B2", expiry_date=date(2024, 2, 1))
        self.b3 = make_batch(self.product, "5", batch_number="B3", expiry_date=None)

    def test_quantity_8_takes_5_from_b1_and_3_from_b2(self):
        allocations = select_batches_for_quantity(self.product.pk, Decimal("8"))

        self.assertEqual([a.batch_number for a in allocations], ["B1", "B2"])
        self.assertEqual([a.quantity for a in allocations], [Decimal("5"), Decimal("3")])

    def test_undated_batch_used_last(self):
        allocations = select_batches_for_quantity(self.product.pk, Decimal("12"))

        self.assertEqual([a.batch_number for a in allocations], ["B1", "B2", "B3"])
        self.assertEqual(allocations[-1].quantity, Decimal("2"))

    def test_same_expiry_oldest_receipt_first(self):
        other = make_product("PCM-250")
        late = make_batch(other, "2", batch_number="L", expiry_date=date(2030, 1, 1), received_date=date(2026, 5, 1))
        early = make_batch(other, "2", batch_number="E", expiry_date=date(2030, 1, 1), received_date=date(2026, 1, 1))

        allocations = select_batches_for_quantity(other.pk, Decimal("3"))

        self.assertEqual([a.batch_id for a in allocations], [early.id, late.id])

    def test_preferred_batch_is_consumed_first(self):
        allocations = select_batches_for_quantity(
            self.product.pk, Decimal("6"), preferred_batch_id=self.b3.id
        )

        self.assertEqual([a.batch_number for a in allocations], ["B3", "B1"])
        self.assertEqual(allocations[1].quantity, Decimal("1"))

    def test_insufficient_stock_reports_quantities(self):
        with self.assertRaises(InsufficientStockError) as ctx:
            select_batches_for_quantity(self.product.pk, Decimal("16"))

        exc = ctx.exception
        self.assertEqual(exc.requested, Decimal("16"))
        self.assertEqual(exc.available, Decimal("15"))
        self.assertEqual(exc.shortfall, Decimal("1"))
        self.assertIn("AMX-500", str(exc))

    def test_selection_is_read_only(self):
        select_batches_for_quantity(self.product.pk, Decimal("8"))

        self.b1.refresh_from_db()
        self.assertEqual(self.b1.remaining_quantity, Decimal("5"))

    def test_non_batch_product_returns_empty_allocation(self):
        loose = make_product("LOOSE-1")
        stock_non_batch(loose, "10")

        self.assertEqual(select_batches_for_quantity(loose.pk, Decimal("3")), [])
        self.assertEqual(available_quantity(loose), Decimal("10"))

    def test_unknown_product(self):
        with self.assertRaises(ProductNotFoundError):
            select_batches_for_quantity("00000000-0000-0000-0000-000000000000", Decimal("1"))

    def test_non_positive_quantity_rejected(self):
        with self.assertRaises(InventoryError):
            select_batches_for_quantity(self.product.pk, Decimal("0"))


class BatchQuantityTests(TestCase):
    """
    GUARANTEES:
    - remaining_quantity never below zero
    - ACTIVE <-> DEPLETED follows the remaining quantity
    - Product.quantity_on_hand mirrors ACTIVE batches after every write
    """

    def setUp(self):
        self.product = make_product("IBU-200")
        self.batch = make_batch(self.product, "4", batch_number="IB-1", expiry_date=date(2030, 6, 1))

    def test_receipt_syncs_product_and_writes_movement(self):
        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity_on_hand, Decimal("4"))

        movement = StockMovement.objects.get(batch=self.batch)
        self.assertEqual(movement.movement_type, StockMovement.MovementType.GOODS_RECEIPT)
        self.assertEqual(movement.quantity, Decimal("4"))

    def test_depletes_and_reactivates(self):
        batch = adjust_batch_quantity(self.batch, Decimal("-4"))
        self.assertEqual(batch.status, InventoryBatch.Status.DEPLETED)
        self.assertEqual(Product.objects.get(pk=self.product.pk).quantity_on_hand, Decimal("0"))

        batch = adjust_batch_quantity(self.batch, Decimal("1"))
        self.assertEqual(batch.status, InventoryBatch.Status.ACTIVE)
        self.assertEqual(Product.objects.get(pk=self.product.pk).quantity_on_hand, Decimal("1"))

    def test_cannot_go_negative(self):
        with self.assertRaises(InsufficientStockError):
            adjust_batch_quantity(self.batch, Decimal("-5"))

        self.batch.refresh_from_db()
        self.assertEqual(self.batch.remaining_quantity, Decimal("4"))

    def test_expire_writes_off_remaining(self):
        batch = expire_batch(batch=self.batch)

        self.assertEqual(batch.status, InventoryBatch.Status.EXPIRED)
        self.assertEqual(batch.remaining_quantity, Decimal("0"))
        self.assertEqual(Product.objects.get(pk=self.product.pk).quantity_on_hand, Decimal("0"))
        self.assertEqual(net_quantity(product=self.product, batch=batch), Decimal("0"))

        # idempotent
        expire_batch(batch=batch)
        self.assertEqual(
            StockMovement.objects.filter(movement_type=StockMovement.MovementType.EXPIRY).count(), 1
        )

    def test_immutable_batch_fields(self):
        self.batch.unit_cost = Decimal("1")
        with self.assertRaises(ValidationError):
            self.batch.save()

    def test_non_batch_product_debit_is_conditional(self):
        loose = make_product("LOOSE-2")
        stock_non_batch(loose, "2")

        self.assertEqual(adjust_product_quantity(loose, Decimal("-2")), Decimal("0"))
        with self.assertRaises(InsufficientStockError):
            adjust_product_quantity(loose, Decimal("-1"))
