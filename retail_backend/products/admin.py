# products/admin.py
"""
=====================================================
PATH: products/admin.py
=====================================================

Admin rules (audit-safe stock):

- Products are edited here, but quantity_on_hand is read-only; stock changes
  only through the batch ledger (receipts, sales, adjustments).
- Batches are read-only: quantities move only through the ledger services.
- Stock movements are an append-only ledger: view only.
"""

from __future__ import annotations

from django.contrib import admin

from products.models import InventoryBatch, Product, StockMovement


class ReadOnlyAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class InventoryBatchInline(admin.TabularInline):
    model = InventoryBatch
    extra = 0
    can_delete = False
    fields = (
        "batch_number",
        "quantity_received",
        "remaining_quantity",
        "unit_cost",
        "expiry_date",
        "received_date",
        "status",
    )
    readonly_fields = fields
    ordering = ("expiry_date", "received_date")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = (
        "sku",
        "name",
        "selling_price",
        "cost_price",
        "quantity_on_hand",
        "reorder_level",
        "is_active",
    )
    list_filter = ("is_active", "is_taxable")
    search_fields = ("sku", "name")
    readonly_fields = ("quantity_on_hand", "created_at", "updated_at")
    inlines = [InventoryBatchInline]

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(InventoryBatch)
class InventoryBatchAdmin(ReadOnlyAdmin):
    list_display = (
        "batch_number",
        "product",
        "remaining_quantity",
        "quantity_received",
        "unit_cost",
        "expiry_date",
        "status",
    )
    list_filter = ("status", "expiry_date")
    search_fields = ("batch_number", "product__sku", "product__name")


@admin.register(StockMovement)
class StockMovementAdmin(ReadOnlyAdmin):
    list_display = (
        "movement_number",
        "product",
        "batch",
        "movement_type",
        "quantity",
        "reference_type",
        "reference_id",
        "created_at",
    )
    list_filter = ("movement_type", "reference_type")
    search_fields = ("movement_number", "product__sku", "reference_id")
