"""
Prescription admin configuration.
"""

from django.contrib import admin

from .models import Prescription


@admin.register(Prescription)
class PrescriptionAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "patient",
        "doctor",
        "status",
        "claimed_by",
        "prescription_date",
        "created_at",
    ]
    list_filter = ["status", "prescription_date", "created_at"]
    search_fields = ["patient__name", "doctor__name", "claimed_by__name"]
    readonly_fields = ["id", "created_at", "updated_at"]
    raw_id_fields = ["patient", "doctor", "claimed_by"]
    ordering = ["-created_at"]

    fieldsets = (
        (None, {
            "fields": ("id", "patient", "doctor", "prescription_date", "status", "claimed_by")
        }),
        ("Medications", {
            "fields": ("medications", "photo_hash"),
        }),
        ("Timestamps", {
            "fields": ("created_at", "updated_at"),
        }),
    )
