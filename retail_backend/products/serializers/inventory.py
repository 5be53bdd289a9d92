# products/serializers/inventory.py

"""
INVENTORY SERIALIZERS

Batches, stock movements (read-only ledger rows), FEFO allocation previews,
goods receipts and manual stock adjustments.
"""

from rest_framework import serializers

from products.models import InventoryBatch, StockMovement
from products.services.stock_adjustments import ADJUSTMENT_TYPES, StockAdjustmentRequest


class InventoryBatchSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)

    class Meta:
        model = InventoryBatch
        fields = [
            "id",
            "product",
            "product_name",
            "batch_number",
            "quantity_received",
            "remaining_quantity",
            "unit_cost",
            "expiry_date",
            "received_date",
            "status",
            "created_at",
        ]
        read_only_fields = fields


class StockMovementSerializer(serializers.ModelSerializer):
    batch_number = serializers.CharField(source="batch.batch_number", read_only=True, default=None)

    class Meta:
        model = StockMovement
        fields = [
            "id",
            "movement_number",
            "product",
            "batch",
            "batch_number",
            "movement_type",
            "quantity",
            "unit_cost",
            "reference_type",
            "reference_id",
            "line_reference",
            "notes",
            "performed_by",
            "created_at",
        ]
        read_only_fields = fields


class BatchAllocationSerializer(serializers.Serializer):
    batch_id = serializers.UUIDField()
    batch_number = serializers.CharField()
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3)
    unit_cost = serializers.DecimalField(max_digits=15, decimal_places=2)
    expiry_date = serializers.DateField(allow_null=True)


class AllocationQuerySerializer(serializers.Serializer):
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3)

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError("quantity must be greater than zero")
        return value


class BatchReceiptSerializer(serializers.Serializer):
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3)
    unit_cost = serializers.DecimalField(max_digits=15, decimal_places=2)
    batch_number = serializers.CharField(required=False, allow_blank=True, default="", max_length=128)
    expiry_date = serializers.DateField(required=False, allow_null=True)
    received_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError("quantity must be greater than zero")
        return value


class StockAdjustmentInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    adjustment_type = serializers.ChoiceField(choices=sorted(ADJUSTMENT_TYPES))
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3)
    batch_id = serializers.UUIDField(required=False, allow_null=True)
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    unit_cost = serializers.DecimalField(max_digits=15, decimal_places=2, required=False, allow_null=True)
    expiry_date = serializers.DateField(required=False, allow_null=True)

    def to_request(self) -> StockAdjustmentRequest:
        data = self.validated_data
        return StockAdjustmentRequest(
            product_id=data["product_id"],
            adjustment_type=data["adjustment_type"],
            quantity=data["quantity"],
            batch_id=data.get("batch_id"),
            reason=data.get("reason", ""),
            notes=data.get("notes", ""),
            unit_cost=data.get("unit_cost"),
            expiry_date=data.get("expiry_date"),
        )
