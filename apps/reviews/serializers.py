"""Serializers for reviews.

The write serializer only shapes the payload; eligibility of the booking
is checked in the view once the caller has been matched to it.
"""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.bookings.serializers import BookingAccessSerializer

from .models import Review


class ReviewCreateSerializer(BookingAccessSerializer):
    """Payload for reviewing a completed stay."""

    rating = serializers.IntegerField()
    comment = serializers.CharField(required=False, allow_blank=True, max_length=2000, default="")
    photos = serializers.ListField(
        child=serializers.URLField(max_length=500),
        required=False,
        allow_empty=True,
        max_length=5,
        default=list,
    )

    def validate_rating(self, value: int) -> int:
        if value < 1 or value > 5:
            raise serializers.ValidationError("Rating must be between 1 and 5.")
        return value


class ReviewSerializer(serializers.ModelSerializer):
    """Read serializer for reviews."""

    room_name = serializers.ReadOnlyField(source="room.name")
    booking_reference = serializers.ReadOnlyField(source="booking.reference")
    author_name = serializers.ReadOnlyField(source="booking.customer_name")

    class Meta:
        model = Review
        fields = [
            "id",
            "room",
            "room_name",
            "booking_reference",
            "author_name",
            "rating",
            "comment",
            "photos",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
