"""
Account admin configuration.
"""

from django.contrib import admin

from .models import Profile


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ["name", "email", "role", "mobile", "public_key", "created_at"]
    list_filter = ["role", "created_at"]
    search_fields = ["name", "email", "mobile", "public_key"]
    readonly_fields = ["id", "public_key", "created_at", "updated_at"]
    ordering = ["name"]
