"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking, RoomNight


class RoomNightInline(admin.TabularInline):
    model = RoomNight
    extra = 0
    can_delete = False
    readonly_fields = ("room", "night")


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "reference",
        "room",
        "customer_name",
        "customer_email",
        "status",
        "payment_status",
        "check_in",
        "check_out",
        "total_price",
        "created_at",
    )
    list_filter = ("status", "payment_status", "check_in", "cancellation_source")
    search_fields = ("reference", "customer_email", "customer_name", "room__name")
    readonly_fields = (
        "reference",
        "nightly_rate",
        "total_price",
        "payment_session_id",
        "payment_reference",
        "confirmed_at",
        "completed_at",
        "cancelled_at",
        "created_at",
        "updated_at",
    )
    inlines = [RoomNightInline]
