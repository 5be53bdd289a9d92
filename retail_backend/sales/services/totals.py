# sales/services/totals.py

"""
SALE TOTALS CALCULATOR

Pure, deterministic: no database access, no settings lookups, no mutable
module state. Same input -> identical output.

Per line:
    line_subtotal  = quantity * unit_price
    after_discount = line_subtotal - discount
    tax            = after_discount * tax_rate      (tax on the discounted base)
    line_total     = after_discount + tax
    line_cost      = quantity * unit_cost
    line_profit    = after_discount - line_cost     (tax is a liability, not revenue)

Sale:
    discount = SUM(line discounts) + cart_discount  (cart discount is NOT distributed)
    total    = subtotal - discount + tax
    profit   = (subtotal - discount) - cost
    margin   = profit / (subtotal - discount), 0 when the denominator is 0

Everything is full precision until .rounded(places) is called at the
persist/display boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from core.money import MARGIN_PLACES, ZERO, quantize


@dataclass(frozen=True)
class TotalsLine:
    quantity: Decimal
    unit_price: Decimal
    unit_cost: Decimal = ZERO
    tax_rate: Decimal = ZERO
    discount: Decimal = ZERO


@dataclass(frozen=True)
class LineTotals:
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    total: Decimal
    cost: Decimal
    profit: Decimal

    @property
    def after_discount(self) -> Decimal:
        return self.subtotal - self.discount

    def rounded(self, places: int, rounding: str = ROUND_HALF_UP) -> "LineTotals":
        subtotal = quantize(self.subtotal, places, rounding)
        discount = quantize(self.discount, places, rounding)
        tax = quantize(self.tax, places, rounding)
        cost = quantize(self.cost, places, rounding)
        return LineTotals(
            subtotal=subtotal,
            discount=discount,
            tax=tax,
            total=subtotal - discount + tax,
            cost=cost,
            profit=subtotal - discount - cost,
        )


@dataclass(frozen=True)
class SaleTotals:
    lines: tuple
    subtotal: Decimal
    item_discount: Decimal
    cart_discount: Decimal
    discount: Decimal
    tax: Decimal
    total: Decimal
    cost: Decimal
    profit: Decimal
    profit_margin: Decimal

    @property
    def revenue(self) -> Decimal:
        return self.subtotal - self.discount

    def rounded(self, places: int, rounding: str = ROUND_HALF_UP) -> "SaleTotals":
        """
        Round the final figures to `places` decimals using the `rounding` mode.

        Components are rounded individually and the derived figures are
        re-computed from them, so the money-balance identities still hold
        exactly after rounding.
        """
        subtotal = quantize(self.subtotal, places, rounding)
        item_discount = quantize(self.item_discount, places, rounding)
        cart_discount = quantize(self.cart_discount, places, rounding)
        discount = item_discount + cart_discount
        tax = quantize(self.tax, places, rounding)
        cost = quantize(self.cost, places, rounding)
        revenue = subtotal - discount
        profit = revenue - cost

        return SaleTotals(
            lines=tuple(line.rounded(places, rounding) for line in self.lines),
            subtotal=subtotal,
            item_discount=item_discount,
            cart_discount=cart_discount,
            discount=discount,
            tax=tax,
            total=revenue + tax,
            cost=cost,
            profit=profit,
            profit_margin=_margin(profit, revenue),
        )


def _margin(profit: Decimal, revenue: Decimal) -> Decimal:
    if revenue == 0:
        return quantize(ZERO, MARGIN_PLACES)
    return quantize(profit / revenue, MARGIN_PLACES)


def calculate_line(line: TotalsLine) -> LineTotals:
    subtotal = line.quantity * line.unit_price
    after_discount = subtotal - line.discount
    tax = after_discount * line.tax_rate
    cost = line.quantity * line.unit_cost
    return LineTotals(
        subtotal=subtotal,
        discount=line.discount,
        tax=tax,
        total=after_discount + tax,
        cost=cost,
        profit=after_discount - cost,
    )


def calculate_sale_totals(lines, cart_discount: Decimal = ZERO) -> SaleTotals:
    line_totals = tuple(calculate_line(line) for line in lines)

    subtotal = ZERO
    item_discount = ZERO
    tax = ZERO
    cost = ZERO
    for lt in line_totals:
        subtotal += lt.subtotal
        item_discount += lt.discount
        tax += lt.tax
        cost += lt.cost

    discount = item_discount + cart_discount
    revenue = subtotal - discount
    profit = revenue - cost

    return SaleTotals(
        lines=line_totals,
        subtotal=subtotal,
        item_discount=item_discount,
        cart_discount=cart_discount,
        discount=discount,
        tax=tax,
        total=revenue + tax,
        cost=cost,
        profit=profit,
        profit_margin=ZERO if revenue == 0 else profit / revenue,
    )
