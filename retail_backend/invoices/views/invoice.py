# invoices/views/invoice.py

"""
INVOICE VIEWSET

- GET  /api/invoices/                  list (filter: status, customer)
- GET  /api/invoices/<id>/             retrieve with payments
- POST /api/invoices/<id>/payments/    record a customer payment
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.api import domain_error_response
from core.exceptions import DomainError
from invoices.models import Invoice
from invoices.serializers import (
    InvoicePaymentInputSerializer,
    InvoicePaymentSerializer,
    InvoiceSerializer,
)
from invoices.services.receivables import apply_payment


class InvoiceViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = InvoiceSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ["status", "customer"]

    def get_queryset(self):
        return (
            Invoice.objects.all()
            .select_related("sale", "customer")
            .prefetch_related("payments")
            .order_by("-issue_date", "-created_at")
        )

    @extend_schema(
        request=InvoicePaymentInputSerializer,
        responses={201: InvoicePaymentSerializer},
        description="Record a payment against an open invoice.",
    )
    @action(detail=True, methods=["post"], url_path="payments")
    def payments(self, request, pk=None):
        ser = InvoicePaymentInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            payment = apply_payment(
                pk,
                ser.validated_data["amount"],
                payment_method=ser.validated_data["payment_method"],
                reference=ser.validated_data.get("reference", ""),
                notes=ser.validated_data.get("notes", ""),
                actor=request.user,
            )
        except DomainError as exc:
            return domain_error_response(exc)

        return Response(InvoicePaymentSerializer(payment).data, status=status.HTTP_201_CREATED)
