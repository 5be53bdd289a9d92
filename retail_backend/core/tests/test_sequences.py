from datetime import date

from django.test import TestCase

from core.models import DocumentSequence
from core.services.sequences import (
    next_document_number,
    next_movement_number,
    next_sale_number,
)


class DocumentSequenceTests(TestCase):
    """
    GUARANTEES:
    - Numbers are human-readable and strictly increasing per key
    - Yearly sequences restart per year, SM numbers never reset
    """

    def test_yearly_numbers_increment(self):
        on = date(2026, 3, 1)
        self.assertEqual(next_document_number("SALE", on=on), "SALE-2026-0001")
        self.assertEqual(next_document_number("SALE", on=on), "SALE-2026-0002")

    def test_new_year_starts_a_new_sequence(self):
        next_document_number("INV", on=date(2025, 12, 31))
        self.assertEqual(next_document_number("INV", on=date(2026, 1, 1)), "INV-2026-0001")

    def test_movement_numbers_are_not_yearly(self):
        self.assertEqual(next_movement_number(), "SM-000001")
        self.assertEqual(next_movement_number(), "SM-000002")
        self.assertTrue(DocumentSequence.objects.filter(key="SM").exists())

    def test_sale_number_uses_current_year(self):
        number = next_sale_number()
        self.assertRegex(number, r"^SALE-\d{4}-0001$")
