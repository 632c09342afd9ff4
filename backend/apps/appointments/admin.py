"""
Appointment admin configuration.
"""

from django.contrib import admin

from .models import Appointment


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ["id", "patient", "doctor", "date", "status", "created_at"]
    list_filter = ["status", "date"]
    search_fields = ["patient__name", "doctor__name"]
    readonly_fields = ["id", "created_at", "updated_at"]
    ordering = ["-date"]
