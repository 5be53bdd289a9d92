# customers/admin.py

from django.contrib import admin

from customers.models import Customer


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("name", "phone", "email", "credit_limit", "balance", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "phone", "email")
    # balance is derived from open invoices (invoices.services.receivables)
    readonly_fields = ("balance", "created_at", "updated_at")
