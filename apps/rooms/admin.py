"""Admin registrations for the room catalogue."""

from __future__ import annotations

from django.contrib import admin

from .models import Room


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "category",
        "price_per_night",
        "capacity",
        "is_available",
        "updated_at",
    )
    list_filter = ("category", "is_available")
    list_editable = ("is_available",)
    search_fields = ("name", "description")
    readonly_fields = ("created_at", "updated_at")
