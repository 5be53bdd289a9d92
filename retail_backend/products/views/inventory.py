# products/views/inventory.py

"""
INVENTORY VIEWS

- GET  /products/batches/                 batch list (filter: product, status)
- POST /products/batches/<id>/expire/     write off + mark EXPIRED
- GET  /products/movements/               stock ledger (read-only)
- POST /products/adjustments/             manual stock correction
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.api import domain_error_response
from core.exceptions import DomainError
from products.models import InventoryBatch, StockMovement
from products.serializers import (
    InventoryBatchSerializer,
    ProductSerializer,
    StockAdjustmentInputSerializer,
    StockMovementSerializer,
)
from products.services.batch_ledger import expire_batch
from products.services.stock_adjustments import perform_stock_adjustment


class InventoryBatchViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = InventoryBatchSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ["product", "status"]

    def get_queryset(self):
        return InventoryBatch.objects.select_related("product").order_by("-received_date", "-created_at")

    @action(detail=True, methods=["post"], url_path="expire")
    def expire(self, request, pk=None):
        batch = self.get_object()
        try:
            batch = expire_batch(batch=batch, actor=request.user, notes=request.data.get("notes", ""))
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(InventoryBatchSerializer(batch).data)


class StockMovementViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = StockMovementSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ["product", "batch", "movement_type", "reference_type", "reference_id"]

    def get_queryset(self):
        return StockMovement.objects.select_related("batch").order_by("-created_at", "-movement_number")


class StockAdjustmentView(APIView):
    """
    STOCK ADJUSTMENT ENDPOINT

    Same ledger machinery as a sale debit, tagged ADJUSTMENT_IN / ADJUSTMENT_OUT /
    DAMAGE / EXPIRY / RETURN.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(request=StockAdjustmentInputSerializer, responses={201: StockMovementSerializer(many=True)})
    def post(self, request):
        ser = StockAdjustmentInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            result = perform_stock_adjustment(ser.to_request(), actor=request.user)
        except DomainError as exc:
            return domain_error_response(exc)

        return Response(
            {
                "product": ProductSerializer(result.product).data,
                "quantity_delta": str(result.quantity_delta),
                "movements": StockMovementSerializer(result.movements, many=True).data,
            },
            status=status.HTTP_201_CREATED,
        )
