"""Admin registration for reviews."""

from __future__ import annotations

from django.contrib import admin

from .models import Review


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ("booking", "room", "rating", "author", "created_at")
    list_filter = ("rating", "room")
    search_fields = ("booking__reference", "booking__customer_email", "comment")
    raw_id_fields = ("booking", "author")
    readonly_fields = ("created_at", "updated_at")
