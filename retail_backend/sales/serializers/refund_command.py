# sales/serializers/refund_command.py

from rest_framework import serializers

from sales.models import Refund
from sales.services.requests import RefundRequest


class RefundLineInputSerializer(serializers.Serializer):
    sale_item_id = serializers.UUIDField()
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3)
    refund_amount = serializers.DecimalField(max_digits=15, decimal_places=2, required=False, allow_null=True)

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError("Refund quantity must be greater than zero")
        return value


class RefundCreateSerializer(serializers.Serializer):
    """
    Command serializer for refund requests.

    This serializer does NOT touch the database.
    No items + refund_type FULL refunds everything not yet refunded.
    """

    refund_type = serializers.ChoiceField(
        choices=Refund.RefundType.choices,
        default=Refund.RefundType.PARTIAL,
    )
    items = RefundLineInputSerializer(many=True, required=False)
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=500)
    return_to_inventory = serializers.BooleanField(default=True)
    refund_amount = serializers.DecimalField(max_digits=15, decimal_places=2, required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def to_request(self, *, sale_id) -> RefundRequest:
        return RefundRequest.from_dict(self.validated_data, sale_id=sale_id)
