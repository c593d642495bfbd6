"""Admin registration for payments."""

from __future__ import annotations

from django.contrib import admin

from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("session_id", "booking", "provider", "status", "amount", "currency", "paid_at", "created_at")
    list_filter = ("provider", "status")
    search_fields = ("session_id", "payment_reference", "booking__reference", "booking__customer_email")
    readonly_fields = ("session_id", "checkout_url", "payment_reference", "metadata", "paid_at", "created_at", "updated_at")
