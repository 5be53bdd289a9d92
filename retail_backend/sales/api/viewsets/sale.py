# sales/api/viewsets/sale.py

"""
======================================================
PATH: sales/api/viewsets/sale.py
======================================================
SALE VIEWSET (STAFF)

- POST /api/sales/                   create a sale (FEFO debit, receivable)
- GET  /api/sales/                   sales history (SaleFilter)
- GET  /api/sales/<id>/              receipt payload
- POST /api/sales/<id>/void/         full reversal
- POST /api/sales/<id>/refunds/      full or partial refund
- POST /api/sales/preview-totals/    what the sale would cost (no writes)
- GET  /api/sales/<id>/movements/     stock trail of the sale

Backend is authoritative for totals, stock and payment policy; domain errors
map to 400 / 404 / 409 via core.api.
======================================================
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.api import domain_error_response
from core.exceptions import DomainError
from products.models import StockMovement
from products.serializers import StockMovementSerializer
from products.services.stock_movements import movements_for
from sales.filters import SaleFilter
from sales.models import Sale
from sales.serializers import (
    RefundCreateSerializer,
    RefundSerializer,
    SaleCreateSerializer,
    SaleSerializer,
    TotalsPreviewSerializer,
    VoidSaleSerializer,
)
from sales.services.refund_service import refund_sale
from sales.services.sale_service import create_sale, preview_totals
from sales.services.void_service import void_sale


class SaleViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = SaleSerializer
    permission_classes = [IsAuthenticated]
    filterset_class = SaleFilter

    def get_queryset(self):
        return (
            Sale.objects.all()
            .select_related("customer", "cashier", "invoice")
            .prefetch_related("items__product", "items__batch", "refunds__items")
            .order_by("-sale_date", "-created_at")
        )

    # ======================================================
    # CREATE
    # ======================================================

    @extend_schema(request=SaleCreateSerializer, responses={201: SaleSerializer})
    def create(self, request):
        ser = SaleCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            sale = create_sale(ser.to_request(), actor=request.user)
        except DomainError as exc:
            return domain_error_response(exc)

        sale = self.get_queryset().get(pk=sale.pk)
        return Response(SaleSerializer(sale).data, status=status.HTTP_201_CREATED)

    # ======================================================
    # PREVIEW TOTALS (read-only)
    # ======================================================

    @extend_schema(request=SaleCreateSerializer, responses={200: TotalsPreviewSerializer})
    @action(detail=False, methods=["post"], url_path="preview-totals")
    def preview_totals(self, request):
        ser = SaleCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            priced, totals = preview_totals(ser.to_request())
        except DomainError as exc:
            return domain_error_response(exc)

        payload = {
            "subtotal": totals.subtotal,
            "discount_amount": totals.discount,
            "tax_amount": totals.tax,
            "total_amount": totals.total,
            "profit": totals.profit,
            "profit_margin": totals.profit_margin,
            "items": [
                {
                    "product": line.product.pk if line.product else None,
                    "description": line.product.name if line.product else line.request.description,
                    "quantity": line.quantity,
                    "unit_price": line.unit_price,
                    "tax_rate": line.tax_rate,
                    "discount_amount": line_totals.discount,
                    "tax_amount": line_totals.tax,
                    "total_amount": line_totals.total,
                }
                for line, line_totals in zip(priced, totals.lines)
            ],
        }
        return Response(TotalsPreviewSerializer(payload).data, status=status.HTTP_200_OK)

    # ======================================================
    # VOID
    # ======================================================

    @extend_schema(request=VoidSaleSerializer, responses={200: SaleSerializer})
    @action(detail=True, methods=["post"], url_path="void")
    def void(self, request, pk=None):
        ser = VoidSaleSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            sale = void_sale(
                pk,
                reason=ser.validated_data["reason"],
                notes=ser.validated_data.get("notes", ""),
                actor=request.user,
            )
        except DomainError as exc:
            return domain_error_response(exc)

        sale = self.get_queryset().get(pk=sale.pk)
        return Response(SaleSerializer(sale).data, status=status.HTTP_200_OK)

    # ======================================================
    # STOCK TRAIL (read-only)
    # ======================================================

    @extend_schema(responses={200: StockMovementSerializer(many=True)})
    @action(detail=True, methods=["get"], url_path="movements")
    def movements(self, request, pk=None):
        """Every stock movement caused by this sale, its void and its refunds."""
        sale = self.get_object()
        rows = list(movements_for(reference_type=StockMovement.ReferenceType.SALE, reference_id=sale.id))
        rows += movements_for(reference_type=StockMovement.ReferenceType.VOID, reference_id=sale.id)
        for refund in sale.refunds.all():
            rows += movements_for(reference_type=StockMovement.ReferenceType.REFUND, reference_id=refund.id)
        return Response(StockMovementSerializer(rows, many=True).data)

    # ======================================================
    # REFUND (FULL or PARTIAL)
    # ======================================================

    @extend_schema(request=RefundCreateSerializer, responses={201: RefundSerializer})
    @action(detail=True, methods=["post"], url_path="refunds")
    def refunds(self, request, pk=None):
        ser = RefundCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            refund = refund_sale(ser.to_request(sale_id=pk), actor=request.user)
        except DomainError as exc:
            return domain_error_response(exc)

        return Response(RefundSerializer(refund).data, status=status.HTTP_201_CREATED)
