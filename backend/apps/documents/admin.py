"""
Document admin configuration.
"""

from django.contrib import admin

from .models import Document


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ["name", "owner", "type", "ipfs_hash", "test_date", "created_at"]
    list_filter = ["type", "created_at"]
    search_fields = ["name", "owner__name", "ipfs_hash"]
    readonly_fields = ["id", "ipfs_hash", "created_at"]
    ordering = ["-created_at"]
