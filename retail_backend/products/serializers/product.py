# products/serializers/product.py

"""
PRODUCT SERIALIZER

Purpose:
- Canonical catalog serializer (staff CRUD).
- quantity_on_hand is read-only: stock changes only through the batch ledger
  (receipts, sales, voids, refunds, adjustments).
"""

from rest_framework import serializers

from products.models import Product


class ProductSerializer(serializers.ModelSerializer):
    available_quantity = serializers.SerializerMethodField(read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "sku",
            "name",
            "description",
            "cost_price",
            "selling_price",
            "tax_rate",
            "is_taxable",
            "quantity_on_hand",
            "available_quantity",
            "reorder_level",
            "is_low_stock",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "quantity_on_hand",
            "available_quantity",
            "is_low_stock",
            "created_at",
            "updated_at",
        ]

    def validate_sku(self, value):
        value = (value or "").strip().upper()
        if not value:
            raise serializers.ValidationError("SKU is required")
        return value

    def validate_selling_price(self, value):
        if value is None or value < 0:
            raise serializers.ValidationError("Selling price must be non-negative")
        return value

    def validate_cost_price(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError("Cost price must be non-negative")
        return value

    def validate_tax_rate(self, value):
        if value is not None and (value < 0 or value > 1):
            raise serializers.ValidationError("Tax rate is a fraction between 0 and 1")
        return value

    def get_available_quantity(self, obj):
        # Batch-tracked: sum of sellable batches; otherwise the product counter.
        batch_qty = obj.active_batch_quantity
        if batch_qty > 0:
            return str(batch_qty)
        return str(obj.quantity_on_hand)
