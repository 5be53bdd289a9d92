# core/tests/helpers.py

"""
Shared builders for service and API tests.

Stock always enters through receive_batch / perform_stock_adjustment so the
product counter and the movement ledger are consistent from the start.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model

from customers.models import Customer
from products.models import Product, StockMovement
from products.services.batch_ledger import receive_batch
from products.services.stock_adjustments import StockAdjustmentRequest, perform_stock_adjustment
from sales.services.requests import SaleLineRequest, SaleRequest

User = get_user_model()


def make_user(username="cashier", **kwargs):
    return User.objects.create_user(username=username, password="password123", **kwargs)


def make_product(sku="PRD-001", *, name=None, selling_price="1000", cost_price="600", tax_rate=None, **kwargs):
    return Product.objects.create(
        sku=sku,
        name=name or f"Product {sku}",
        selling_price=Decimal(selling_price),
        cost_price=Decimal(cost_price) if cost_price is not None else None,
        tax_rate=Decimal(tax_rate) if tax_rate is not None else None,
        **kwargs,
    )


def make_batch(product, quantity, *, batch_number, expiry_date: date | None = None, unit_cost="600", received_date=None):
    return receive_batch(
        product=product,
        quantity=Decimal(quantity),
        unit_cost=Decimal(unit_cost),
        expiry_date=expiry_date,
        batch_number=batch_number,
        received_date=received_date,
    )


def stock_non_batch(product, quantity):
    """Put stock on a product that is not batch-tracked."""
    perform_stock_adjustment(
        StockAdjustmentRequest(
            product_id=product.pk,
            adjustment_type=StockMovement.MovementType.ADJUSTMENT_IN,
            quantity=Decimal(quantity),
            reason="Opening stock",
        )
    )
    product.refresh_from_db()
    return product


def make_customer(name="Jane Customer", *, credit_limit="0", **kwargs):
    return Customer.objects.create(name=name, credit_limit=Decimal(credit_limit), **kwargs)


def line(product=None, quantity="1", **kwargs) -> SaleLineRequest:
    return SaleLineRequest(
        product_id=product.pk if product is not None else None,
        quantity=Decimal(quantity),
        **kwargs,
    )


def sale_request(*lines, amount_paid="0", customer=None, **kwargs) -> SaleRequest:
    return SaleRequest(
        items=tuple(lines),
        amount_paid=Decimal(amount_paid),
        customer_id=customer.pk if customer is not None else None,
        **kwargs,
    )
