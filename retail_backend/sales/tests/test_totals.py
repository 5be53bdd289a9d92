# sales/tests/test_totals.py

from decimal import ROUND_HALF_EVEN, Decimal

from django.test import SimpleTestCase

from sales.services.totals import TotalsLine, calculate_line, calculate_sale_totals

D = Decimal


class LineTotalsTests(SimpleTestCase):
    """
    GUARANTEES:
    - Tax is charged on the discounted base
    - Profit excludes tax
    """

    def test_tax_on_discounted_base(self):
        result = calculate_line(
            TotalsLine(quantity=D("2"), unit_price=D("1000"), unit_cost=D("600"), tax_rate=D("0.1"), discount=D("200"))
        )

        self.assertEqual(result.subtotal, D("2000"))
        self.assertEqual(result.after_discount, D("1800"))
        self.assertEqual(result.tax, D("180.0"))
        self.assertEqual(result.total, D("1980.0"))
        self.assertEqual(result.cost, D("1200"))
        self.assertEqual(result.profit, D("600"))

    def test_fractional_quantity(self):
        result = calculate_line(TotalsLine(quantity=D("0.5"), unit_price=D("3"), unit_cost=D("1")))

        self.assertEqual(result.total, D("1.5"))
        self.assertEqual(result.profit, D("1.0"))


class SaleTotalsTests(SimpleTestCase):
    """
    GUARANTEES:
    - total = subtotal - discount + tax, after rounding too
    - profit = (subtotal - discount) - cost
    - Cart discount adds to the discount but isn't spread over lines
    - Same input, same output
    """

    def setUp(self):
        self.lines = [
            TotalsLine(quantity=D("3"), unit_price=D("333.33"), unit_cost=D("200"), tax_rate=D("0.075")),
            TotalsLine(quantity=D("1"), unit_price=D("150"), unit_cost=D("90"), discount=D("10")),
        ]

    def test_money_balances(self):
        totals = calculate_sale_totals(self.lines, D("40"))

        self.assertEqual(totals.subtotal, D("1149.99"))
        self.assertEqual(totals.item_discount, D("10"))
        self.assertEqual(totals.cart_discount, D("40"))
        self.assertEqual(totals.discount, D("50"))
        self.assertEqual(totals.total, totals.subtotal - totals.discount + totals.tax)
        self.assertEqual(totals.profit, totals.revenue - totals.cost)
        # line figures ignore the cart discount
        self.assertEqual(totals.lines[1].discount, D("10"))

    def test_rounded_still_balances(self):
        for places in (0, 2):
            totals = calculate_sale_totals(self.lines, D("40")).rounded(places)

            self.assertEqual(totals.total, totals.subtotal - totals.discount + totals.tax)
            self.assertEqual(totals.profit, totals.subtotal - totals.discount - totals.cost)
            for line in totals.lines:
                self.assertEqual(line.total, line.subtotal - line.discount + line.tax)

    def test_rounded_whole_currency(self):
        totals = calculate_sale_totals(self.lines).rounded(0)

        self.assertEqual(totals.subtotal, D("1150"))
        self.assertEqual(totals.tax, D("75"))
        self.assertEqual(totals.total, D("1215"))
        self.assertEqual(totals.profit_margin, D("0.3947"))

    def test_rounded_with_rounding_mode(self):
        lines = [TotalsLine(quantity=D("1"), unit_price=D("2.5"))]

        self.assertEqual(calculate_sale_totals(lines).rounded(0).total, D("3"))
        bankers = calculate_sale_totals(lines).rounded(0, ROUND_HALF_EVEN)
        self.assertEqual(bankers.subtotal, D("2"))
        self.assertEqual(bankers.total, D("2"))
        self.assertEqual(bankers.lines[0].total, D("2"))

    def test_idempotent(self):
        first = calculate_sale_totals(self.lines, D("40")).rounded(2)
        second = calculate_sale_totals(self.lines, D("40")).rounded(2)

        self.assertEqual(first, second)

    def test_zero_revenue_margin_is_zero(self):
        totals = calculate_sale_totals(
            [TotalsLine(quantity=D("1"), unit_price=D("100"), discount=D("100"))]
        ).rounded(2)

        self.assertEqual(totals.total, D("0"))
        self.assertEqual(totals.profit_margin, D("0"))

    def test_empty_sale(self):
        totals = calculate_sale_totals([])

        self.assertEqual(totals.total, D("0"))
        self.assertEqual(totals.lines, ())
