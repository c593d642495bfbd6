"""Serializers for checkout and verification requests."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.bookings.serializers import BookingAccessSerializer

from .models import Payment


class CheckoutRequestSerializer(BookingAccessSerializer):
    """Booking to pay for plus optional return URLs."""

    success_url = serializers.URLField(required=False, max_length=1000)
    cancel_url = serializers.URLField(required=False, max_length=1000)


class VerifyPaymentSerializer(serializers.Serializer):
    session_id = serializers.CharField(max_length=255)
    booking_id = serializers.IntegerField(min_value=1)


class DemoPaymentSerializer(BookingAccessSerializer):
    pass


class PaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = [
            "id",
            "booking",
            "provider",
            "session_id",
            "amount",
            "currency",
            "status",
            "checkout_url",
            "payment_reference",
            "paid_at",
            "created_at",
        ]
        read_only_fields = fields
