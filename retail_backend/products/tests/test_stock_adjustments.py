# products/tests/test_stock_adjustments.py

from datetime import date
from decimal import Decimal

from django.test import TestCase

from core.tests.helpers import make_batch, make_product, stock_non_batch
from products.models import InventoryBatch, StockMovement
from products.services.exceptions import (
    BatchNotFoundError,
    InsufficientStockError,
    StockAdjustmentError,
)
from products.services.stock_adjustments import (
    StockAdjustmentRequest,
    perform_stock_adjustment,
)

MT = StockMovement.MovementType


def adjustment(product, adjustment_type, quantity, **kwargs):
    return StockAdjustmentRequest(
        product_id=product.pk,
        adjustment_type=adjustment_type,
        quantity=Decimal(quantity),
        **kwargs,
    )


class StockAdjustmentTests(TestCase):
    """
    GUARANTEES:
    - Adjustment type decides the direction, quantity is always positive
    - Outbound without a batch follows FEFO
    - Every change leaves one movement per touched batch
    - Nothing is written when the adjustment is rejected
    """

    def setUp(self):
        self.product = make_product("ORS-1")
        self.old = make_batch(self.product, "3", batch_number="OLD", expiry_date=date(2027, 1, 1))
        self.new = make_batch(self.product, "10", batch_number="NEW", expiry_date=date(2028, 1, 1))

    def test_damage_without_batch_uses_fefo(self):
        result = perform_stock_adjustment(adjustment(self.product, MT.DAMAGE, "5", reason="Crushed carton"))

        self.assertEqual(result.quantity_delta, Decimal("-5"))
        self.assertEqual(len(result.movements), 2)
        self.assertEqual([m.quantity for m in result.movements], [Decimal("-3"), Decimal("-2")])
        self.assertEqual(result.product.quantity_on_hand, Decimal("8"))

        self.old.refresh_from_db()
        self.assertEqual(self.old.status, InventoryBatch.Status.DEPLETED)

    def test_explicit_batch(self):
        result = perform_stock_adjustment(
            adjustment(self.product, MT.ADJUSTMENT_OUT, "1", batch_id=self.new.id)
        )

        self.assertEqual(result.movements[0].batch_id, self.new.id)
        self.new.refresh_from_db()
        self.assertEqual(self.new.remaining_quantity, Decimal("9"))

    def test_inbound_without_batch_opens_adjustment_batch(self):
        result = perform_stock_adjustment(
            adjustment(self.product, MT.ADJUSTMENT_IN, "4", unit_cost=Decimal("550"))
        )

        batch = result.batches[0]
        self.assertTrue(batch.batch_number.startswith("ADJ-"))
        self.assertEqual(batch.unit_cost, Decimal("550"))
        self.assertEqual(result.product.quantity_on_hand, Decimal("17"))

    def test_outbound_beyond_stock_is_rejected_atomically(self):
        with self.assertRaises(InsufficientStockError):
            perform_stock_adjustment(adjustment(self.product, MT.ADJUSTMENT_OUT, "14"))

        self.assertFalse(StockMovement.objects.filter(movement_type=MT.ADJUSTMENT_OUT).exists())
        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity_on_hand, Decimal("13"))

    def test_sale_is_not_an_adjustment_type(self):
        with self.assertRaises(StockAdjustmentError):
            perform_stock_adjustment(adjustment(self.product, MT.SALE, "1"))

    def test_quantity_must_be_positive(self):
        with self.assertRaises(StockAdjustmentError):
            perform_stock_adjustment(adjustment(self.product, MT.ADJUSTMENT_IN, "0"))

    def test_batch_of_other_product(self):
        other = make_product("ORS-2")
        with self.assertRaises(BatchNotFoundError):
            perform_stock_adjustment(adjustment(other, MT.ADJUSTMENT_OUT, "1", batch_id=self.new.id))

    def test_non_batch_product_counter(self):
        loose = stock_non_batch(make_product("LOOSE-3"), "6")

        result = perform_stock_adjustment(adjustment(loose, MT.ADJUSTMENT_OUT, "2"))

        self.assertEqual(result.product.quantity_on_hand, Decimal("4"))
        self.assertIsNone(result.movements[0].batch_id)
