# sales/serializers/sale.py

"""
SALE READ SERIALIZERS

Receipts / sales history. Everything is read-only: a sale only ever changes
through the sale, void and refund services.
"""

from rest_framework import serializers

from invoices.serializers import InvoiceSummarySerializer
from sales.models import Refund, RefundItem, Sale, SaleItem


class SaleItemSerializer(serializers.ModelSerializer):
    """
    Sale line item serializer (read-only).
    Designed for receipts + UI display.
    """

    name = serializers.CharField(source="display_name", read_only=True)
    sku = serializers.SerializerMethodField()
    batch_number = serializers.SerializerMethodField()

    class Meta:
        model = SaleItem
        fields = [
            "id",
            "item_type",
            "product",
            "name",
            "sku",
            "description",
            "batch",
            "batch_number",
            "quantity",
            "unit_price",
            "unit_cost",
            "tax_rate",
            "discount_amount",
            "tax_amount",
            "total_amount",
            "line_profit",
        ]
        read_only_fields = fields

    def get_sku(self, obj):
        return obj.product.sku if obj.product_id else None

    def get_batch_number(self, obj):
        return obj.batch.batch_number if obj.batch_id else None


class RefundItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = RefundItem
        fields = ["id", "sale_item", "quantity", "refund_amount"]
        read_only_fields = fields


class RefundSerializer(serializers.ModelSerializer):
    sale_number = serializers.CharField(source="sale.sale_number", read_only=True)
    items = RefundItemSerializer(many=True, read_only=True)

    class Meta:
        model = Refund
        fields = [
            "id",
            "refund_number",
            "sale",
            "sale_number",
            "refund_type",
            "reason",
            "refund_amount",
            "return_to_inventory",
            "notes",
            "processed_by",
            "items",
            "created_at",
        ]
        read_only_fields = fields


class SaleSerializer(serializers.ModelSerializer):
    """
    CANONICAL SALE SERIALIZER

    Includes the receivable (when the sale was underpaid) and every refund
    recorded against the sale.
    """

    customer_name = serializers.SerializerMethodField()
    balance_due = serializers.DecimalField(max_digits=15, decimal_places=2, read_only=True)
    items = SaleItemSerializer(many=True, read_only=True)
    refunds = RefundSerializer(many=True, read_only=True)
    invoice = serializers.SerializerMethodField()

    class Meta:
        model = Sale
        fields = [
            "id",
            "sale_number",
            "sale_date",
            "customer",
            "customer_name",
            "subtotal",
            "discount_amount",
            "tax_amount",
            "total_amount",
            "total_cost",
            "profit",
            "profit_margin",
            "payment_method",
            "amount_paid",
            "change_amount",
            "balance_due",
            "status",
            "cashier",
            "notes",
            "void_reason",
            "voided_at",
            "items",
            "refunds",
            "invoice",
            "created_at",
        ]
        read_only_fields = fields

    def get_customer_name(self, obj):
        return obj.customer.name if obj.customer_id else None

    def get_invoice(self, obj):
        if not hasattr(obj, "invoice"):
            return None
        return InvoiceSummarySerializer(obj.invoice).data
