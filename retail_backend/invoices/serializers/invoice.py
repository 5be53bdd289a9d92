# invoices/serializers/invoice.py

"""
INVOICE SERIALIZERS

Read-only shapes for invoices and their payments, plus the input serializer
for recording a payment. Figures are never writable through the API; they
change only through invoices.services.receivables.
"""

from rest_framework import serializers

from invoices.models import Invoice, InvoicePayment


class InvoicePaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = InvoicePayment
        fields = [
            "id",
            "receipt_number",
            "payment_date",
            "payment_method",
            "amount",
            "reference",
            "notes",
            "processed_by",
            "created_at",
        ]
        read_only_fields = fields


class InvoiceSummarySerializer(serializers.ModelSerializer):
    """Compact invoice view embedded in sale payloads."""

    class Meta:
        model = Invoice
        fields = [
            "id",
            "invoice_number",
            "status",
            "due_date",
            "total_amount",
            "amount_paid",
            "amount_due",
        ]
        read_only_fields = fields


class InvoiceSerializer(serializers.ModelSerializer):
    sale_number = serializers.CharField(source="sale.sale_number", read_only=True)
    customer_name = serializers.CharField(source="customer.name", read_only=True)
    payments = InvoicePaymentSerializer(many=True, read_only=True)

    class Meta:
        model = Invoice
        fields = [
            "id",
            "invoice_number",
            "sale",
            "sale_number",
            "customer",
            "customer_name",
            "issue_date",
            "due_date",
            "total_amount",
            "amount_paid",
            "amount_due",
            "status",
            "notes",
            "payments",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class InvoicePaymentInputSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    payment_method = serializers.ChoiceField(
        choices=[
            choice
            for choice in InvoicePayment.Method.choices
            if choice[0] != InvoicePayment.Method.REFUND_CREDIT
        ],
        default=InvoicePayment.Method.CASH,
    )
    reference = serializers.CharField(required=False, allow_blank=True, default="", max_length=128)
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Payment amount must be greater than zero")
        return value
