# sales/admin.py

from django.contrib import admin

from sales.models import Refund, RefundItem, Sale, SaleItem


class ReadOnlyInline(admin.TabularInline):
    extra = 0
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False


class SaleItemInline(ReadOnlyInline):
    model = SaleItem
    fields = (
        "item_type",
        "product",
        "description",
        "batch",
        "quantity",
        "unit_price",
        "discount_amount",
        "tax_amount",
        "total_amount",
    )
    readonly_fields = fields


class RefundItemInline(ReadOnlyInline):
    model = RefundItem
    fields = ("sale_item", "quantity", "refund_amount")
    readonly_fields = fields


# ======================================================
# SALE ADMIN (view only: sales change through services)
# ======================================================


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    list_display = (
        "sale_number",
        "sale_date",
        "customer",
        "status",
        "total_amount",
        "amount_paid",
        "profit",
    )
    search_fields = ("sale_number", "customer__name")
    list_filter = ("status", "payment_method", "sale_date")
    inlines = [SaleItemInline]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# ======================================================
# REFUND ADMIN
# ======================================================


@admin.register(Refund)
class RefundAdmin(admin.ModelAdmin):
    list_display = (
        "refund_number",
        "sale",
        "refund_type",
        "refund_amount",
        "return_to_inventory",
        "created_at",
    )
    search_fields = ("refund_number", "sale__sale_number")
    list_filter = ("refund_type", "return_to_inventory", "created_at")
    inlines = [RefundItemInline]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
