"""Admin registration for notification delivery logs."""

from __future__ import annotations

from django.contrib import admin

from .models import BookingNotification


@admin.register(BookingNotification)
class BookingNotificationAdmin(admin.ModelAdmin):
    list_display = ("booking", "kind", "recipient", "status", "attempts", "sent_at", "created_at")
    list_filter = ("kind", "status")
    search_fields = ("booking__reference", "recipient")
    readonly_fields = ("booking", "kind", "recipient", "status", "attempts", "error", "sent_at", "created_at", "updated_at")
