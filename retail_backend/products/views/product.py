# products/views/product.py

"""
PRODUCT VIEWSET

Purpose:
- Staff catalog management (CRUD; delete = deactivate)
- Batch inventory views on a product: batches, FEFO allocation preview,
  goods receipt
- Low stock / expiring soon alerts
"""

from django.db.models import F
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.api import domain_error_response
from core.exceptions import DomainError
from products.models import InventoryBatch, Product
from products.serializers import (
    AllocationQuerySerializer,
    BatchAllocationSerializer,
    BatchReceiptSerializer,
    InventoryBatchSerializer,
    ProductSerializer,
)
from products.services.batch_ledger import (
    available_quantity,
    expiring_batches,
    receive_batch,
    select_batches_for_quantity,
)


class ProductViewSet(viewsets.ModelViewSet):
    """
    Product endpoints.

    - CRUD (DELETE deactivates)
    - GET  /products/<id>/allocation/?quantity=   FEFO preview (no writes)
    - GET  /products/<id>/batches/
    - POST /products/<id>/receive/                goods receipt -> new batch
    - GET  /products/low-stock/
    - GET  /products/expiring/?days=30
    """

    serializer_class = ProductSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ["is_active", "is_taxable", "sku"]

    def get_queryset(self):
        return Product.objects.all().order_by("name")

    def perform_destroy(self, instance):
        instance.deactivate()

    @extend_schema(
        parameters=[OpenApiParameter("quantity", str, required=True)],
        responses={200: BatchAllocationSerializer(many=True)},
        description="Batches FEFO would consume for `quantity` units. Read-only preview.",
    )
    @action(detail=True, methods=["get"], url_path="allocation")
    def allocation(self, request, pk=None):
        product = self.get_object()
        query = AllocationQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        quantity = query.validated_data["quantity"]

        try:
            allocations = select_batches_for_quantity(product.pk, quantity)
        except DomainError as exc:
            return domain_error_response(exc)

        return Response(
            {
                "product": str(product.pk),
                "quantity": str(quantity),
                "available": str(available_quantity(product)),
                "batch_tracked": bool(allocations),
                "allocations": BatchAllocationSerializer(allocations, many=True).data,
            }
        )

    @action(detail=True, methods=["get"], url_path="batches")
    def batches(self, request, pk=None):
        product = self.get_object()
        qs = InventoryBatch.objects.filter(product=product).order_by(
            F("expiry_date").asc(nulls_last=True), "received_date"
        )
        return Response(InventoryBatchSerializer(qs, many=True).data)

    @extend_schema(request=BatchReceiptSerializer, responses={201: InventoryBatchSerializer})
    @action(detail=True, methods=["post"], url_path="receive")
    def receive(self, request, pk=None):
        product = self.get_object()
        ser = BatchReceiptSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        try:
            batch = receive_batch(
                product=product,
                quantity=data["quantity"],
                unit_cost=data["unit_cost"],
                expiry_date=data.get("expiry_date"),
                batch_number=data.get("batch_number") or None,
                received_date=data.get("received_date"),
                actor=request.user,
                notes=data.get("notes", ""),
            )
        except DomainError as exc:
            return domain_error_response(exc)

        return Response(InventoryBatchSerializer(batch).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"], url_path="low-stock")
    def low_stock(self, request):
        qs = Product.objects.filter(
            is_active=True,
            quantity_on_hand__lte=F("reorder_level"),
        ).order_by("quantity_on_hand")
        return Response(ProductSerializer(qs, many=True).data)

    @action(detail=False, methods=["get"], url_path="expiring")
    def expiring(self, request):
        try:
            days = int(request.query_params.get("days", 30))
        except (TypeError, ValueError):
            return Response({"detail": "days must be an integer"}, status=status.HTTP_400_BAD_REQUEST)
        return Response(InventoryBatchSerializer(expiring_batches(days=days), many=True).data)
