# sales/services/requests.py

"""
SALE / REFUND REQUEST SHAPES

Typed, immutable inputs for the sale and refund services. The HTTP layer (or
any other caller) builds them with from_dict(); amounts must arrive as
Decimal, int or numeric strings, never float.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from core.money import to_decimal
from sales.models import Refund, Sale, SaleItem
from sales.services.exceptions import InvalidLineItemError, InvalidRefundError, SaleError


def _optional_decimal(value, *, field_name: str):
    if value is None or value == "":
        return None
    return to_decimal(value, field=field_name)


# ============================================================
# SALE
# ============================================================

@dataclass(frozen=True)
class SaleLineRequest:
    quantity: Decimal
    item_type: str = SaleItem.ItemType.PRODUCT
    product_id: object = None
    description: str = ""
    unit_price: Decimal | None = None
    unit_cost: Decimal | None = None
    tax_rate: Decimal | None = None
    discount_amount: Decimal = Decimal("0")
    batch_id: object = None

    @property
    def is_inventory_tracked(self) -> bool:
        return self.item_type == SaleItem.ItemType.PRODUCT

    @classmethod
    def from_dict(cls, data: dict, *, index: int = 0) -> "SaleLineRequest":
        try:
            return cls(
                item_type=(data.get("item_type") or SaleItem.ItemType.PRODUCT).upper(),
                product_id=data.get("product_id") or None,
                description=(data.get("description") or "").strip(),
                quantity=to_decimal(data.get("quantity"), field="quantity"),
                unit_price=_optional_decimal(data.get("unit_price"), field_name="unit_price"),
                unit_cost=_optional_decimal(data.get("unit_cost"), field_name="unit_cost"),
                tax_rate=_optional_decimal(data.get("tax_rate"), field_name="tax_rate"),
                discount_amount=to_decimal(
                    data.get("discount_amount"), field="discount_amount", default="0"
                ),
                batch_id=data.get("batch_id") or None,
            )
        except ValueError as exc:
            raise InvalidLineItemError(str(exc), line_index=index) from exc


@dataclass(frozen=True)
class SaleRequest:
    items: tuple
    payment_method: str = Sale.PaymentMethod.CASH
    amount_paid: Decimal = Decimal("0")
    customer_id: object = None
    cart_discount: Decimal | None = None
    declared_subtotal: Decimal | None = None
    declared_discount: Decimal | None = None
    declared_tax: Decimal | None = None
    declared_total: Decimal | None = None
    notes: str = ""
    sale_date: datetime | None = None
    allow_credit: bool = True

    @classmethod
    def from_dict(cls, data: dict) -> "SaleRequest":
        items = tuple(
            SaleLineRequest.from_dict(item, index=i)
            for i, item in enumerate(data.get("items") or [])
        )
        try:
            return cls(
                items=items,
                payment_method=(data.get("payment_method") or Sale.PaymentMethod.CASH).upper(),
                amount_paid=to_decimal(data.get("amount_paid"), field="amount_paid", default="0"),
                customer_id=data.get("customer_id") or None,
                cart_discount=_optional_decimal(data.get("cart_discount"), field_name="cart_discount"),
                declared_subtotal=_optional_decimal(data.get("subtotal"), field_name="subtotal"),
                declared_discount=_optional_decimal(
                    data.get("discount_amount"), field_name="discount_amount"
                ),
                declared_tax=_optional_decimal(data.get("tax_amount"), field_name="tax_amount"),
                declared_total=_optional_decimal(data.get("total_amount"), field_name="total_amount"),
                notes=data.get("notes") or "",
                sale_date=data.get("sale_date"),
                allow_credit=bool(data.get("allow_credit", True)),
            )
        except ValueError as exc:
            raise SaleError(str(exc)) from exc


# ============================================================
# REFUND
# ============================================================

@dataclass(frozen=True)
class RefundLineRequest:
    sale_item_id: object
    quantity: Decimal
    refund_amount: Decimal | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "RefundLineRequest":
        try:
            return cls(
                sale_item_id=data.get("sale_item_id"),
                quantity=to_decimal(data.get("quantity"), field="quantity"),
                refund_amount=_optional_decimal(data.get("refund_amount"), field_name="refund_amount"),
            )
        except ValueError as exc:
            raise InvalidRefundError(str(exc)) from exc


@dataclass(frozen=True)
class RefundRequest:
    """
    items empty + refund_type FULL -> everything not yet refunded.
    refund_amount overrides the computed (pro-rata) total when given.
    """

    sale_id: object
    items: tuple = field(default_factory=tuple)
    refund_type: str = Refund.RefundType.PARTIAL
    reason: str = ""
    return_to_inventory: bool = True
    refund_amount: Decimal | None = None
    notes: str = ""

    @classmethod
    def from_dict(cls, data: dict, *, sale_id=None) -> "RefundRequest":
        items = tuple(RefundLineRequest.from_dict(item) for item in data.get("items") or [])
        try:
            refund_amount = _optional_decimal(data.get("refund_amount"), field_name="refund_amount")
        except ValueError as exc:
            raise InvalidRefundError(str(exc)) from exc

        return cls(
            sale_id=sale_id or data.get("sale_id"),
            items=items,
            refund_type=(data.get("refund_type") or Refund.RefundType.PARTIAL).upper(),
            reason=(data.get("reason") or "").strip(),
            return_to_inventory=bool(data.get("return_to_inventory", True)),
            refund_amount=refund_amount,
            notes=data.get("notes") or "",
        )
