# products/tests/test_models.py

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from core.tests.helpers import make_batch, make_product
from products.models import Product, StockMovement


class ProductModelTests(TestCase):
    """
    GUARANTEES:
    - Products are deactivated, never deleted
    - Untaxable products report a zero tax rate
    - A missing catalog tax rate stays None
    """

    def test_delete_is_refused(self):
        product = make_product("DEL-1")
        with self.assertRaises(ValidationError):
            product.delete()

        product.deactivate()
        self.assertFalse(Product.objects.get(pk=product.pk).is_active)

    def test_effective_tax_rate(self):
        self.assertEqual(make_product("TX-1", tax_rate="0.075").effective_tax_rate, Decimal("0.075"))
        self.assertEqual(
            make_product("TX-2", tax_rate="0.075", is_taxable=False).effective_tax_rate,
            Decimal("0"),
        )
        self.assertIsNone(make_product("TX-3").effective_tax_rate)

    def test_low_stock_flag(self):
        product = make_product("LOW-1", reorder_level=Decimal("5"))
        make_batch(product, "5", batch_number="L1")
        product.refresh_from_db()

        self.assertTrue(product.is_low_stock)


class StockMovementModelTests(TestCase):
    """
    GUARANTEES:
    - Movements are append-only
    - Direction must match the movement type
    """

    def setUp(self):
        self.product = make_product("MV-1")
        self.batch = make_batch(self.product, "2", batch_number="MV-B1")
        self.movement = StockMovement.objects.get(batch=self.batch)

    def test_cannot_update(self):
        self.movement.notes = "edited"
        with self.assertRaises(ValidationError):
            self.movement.save()

    def test_cannot_delete(self):
        with self.assertRaises(ValidationError):
            self.movement.delete()

    def test_batch_with_history_cannot_be_deleted(self):
        with self.assertRaises(ValidationError):
            self.batch.delete()

    def test_outbound_type_needs_negative_quantity(self):
        movement = StockMovement(
            movement_number="SM-X",
            product=self.product,
            movement_type=StockMovement.MovementType.DAMAGE,
            quantity=Decimal("1"),
            reference_type=StockMovement.ReferenceType.ADJUSTMENT,
            reference_id="x",
        )
        with self.assertRaises(ValidationError):
            movement.full_clean()
