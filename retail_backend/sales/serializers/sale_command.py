# sales/serializers/sale_command.py

"""
SALE COMMAND SERIALIZERS

Validate the SHAPE of a sale request (types, decimals, choices) and turn it
into a SaleRequest. Business rules (stock, payment policy, totals) stay in
sales.services.sale_service.
"""

from rest_framework import serializers

from sales.models import Sale, SaleItem
from sales.services.requests import SaleRequest


class SaleLineInputSerializer(serializers.Serializer):
    item_type = serializers.ChoiceField(
        choices=SaleItem.ItemType.choices,
        default=SaleItem.ItemType.PRODUCT,
    )
    product_id = serializers.UUIDField(required=False, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3)
    unit_price = serializers.DecimalField(max_digits=15, decimal_places=2, required=False, allow_null=True)
    unit_cost = serializers.DecimalField(max_digits=15, decimal_places=2, required=False, allow_null=True)
    tax_rate = serializers.DecimalField(max_digits=6, decimal_places=4, required=False, allow_null=True)
    discount_amount = serializers.DecimalField(max_digits=15, decimal_places=2, required=False, default=0)
    batch_id = serializers.UUIDField(
        required=False,
        allow_null=True,
        help_text="Preferred batch (hint only; the server allocates FEFO)",
    )


class SaleCreateSerializer(serializers.Serializer):
    """
    Declared totals (subtotal, discount_amount, tax_amount, total_amount) are
    only checked against the recomputed ones; they never override them.
    """

    customer_id = serializers.UUIDField(required=False, allow_null=True)
    payment_method = serializers.ChoiceField(
        choices=Sale.PaymentMethod.choices,
        default=Sale.PaymentMethod.CASH,
    )
    amount_paid = serializers.DecimalField(max_digits=15, decimal_places=2, default=0)
    items = SaleLineInputSerializer(many=True, allow_empty=False)
    cart_discount = serializers.DecimalField(max_digits=15, decimal_places=2, required=False, allow_null=True)
    subtotal = serializers.DecimalField(max_digits=15, decimal_places=2, required=False, allow_null=True)
    discount_amount = serializers.DecimalField(max_digits=15, decimal_places=2, required=False, allow_null=True)
    tax_amount = serializers.DecimalField(max_digits=15, decimal_places=2, required=False, allow_null=True)
    total_amount = serializers.DecimalField(max_digits=15, decimal_places=2, required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    sale_date = serializers.DateTimeField(required=False, allow_null=True)
    allow_credit = serializers.BooleanField(default=True)

    def to_request(self) -> SaleRequest:
        return SaleRequest.from_dict(self.validated_data)


class VoidSaleSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class TotalsPreviewLineSerializer(serializers.Serializer):
    product = serializers.UUIDField(allow_null=True)
    description = serializers.CharField()
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3)
    unit_price = serializers.DecimalField(max_digits=15, decimal_places=2)
    tax_rate = serializers.DecimalField(max_digits=6, decimal_places=4)
    discount_amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    tax_amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    total_amount = serializers.DecimalField(max_digits=15, decimal_places=2)


class TotalsPreviewSerializer(serializers.Serializer):
    subtotal = serializers.DecimalField(max_digits=15, decimal_places=2)
    discount_amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    tax_amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    total_amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    profit = serializers.DecimalField(max_digits=15, decimal_places=2)
    profit_margin = serializers.DecimalField(max_digits=9, decimal_places=4)
    items = TotalsPreviewLineSerializer(many=True)
