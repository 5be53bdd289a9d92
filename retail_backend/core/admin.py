# core/admin.py

from django.contrib import admin

from core.models import DocumentSequence


@admin.register(DocumentSequence)
class DocumentSequenceAdmin(admin.ModelAdmin):
    list_display = ("key", "last_value", "updated_at")
    readonly_fields = ("key", "last_value", "updated_at")
    search_fields = ("key",)

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
