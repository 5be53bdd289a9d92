# invoices/admin.py

from django.contrib import admin

from invoices.models import Invoice, InvoicePayment


class InvoicePaymentInline(admin.TabularInline):
    model = InvoicePayment
    extra = 0
    can_delete = False
    fields = ("receipt_number", "payment_date", "payment_method", "amount", "reference")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = (
        "invoice_number",
        "customer",
        "sale",
        "status",
        "total_amount",
        "amount_paid",
        "amount_due",
        "due_date",
    )
    list_filter = ("status", "due_date")
    search_fields = ("invoice_number", "customer__name", "sale__sale_number")
    inlines = [InvoicePaymentInline]

    # Figures move only through invoices.services.receivables.
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
