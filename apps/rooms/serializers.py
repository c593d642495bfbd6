"""Serializers for the room catalogue."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Room


class RoomSerializer(serializers.ModelSerializer):
    """Public representation of a room."""

    category_display = serializers.ReadOnlyField(source="get_category_display")
    average_rating = serializers.SerializerMethodField()
    review_count = serializers.SerializerMethodField()

    class Meta:
        model = Room
        fields = [
            "id",
            "name",
            "category",
            "category_display",
            "description",
            "price_per_night",
            "capacity",
            "amenities",
            "images",
            "is_available",
            "average_rating",
            "review_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_average_rating(self, obj: Room) -> float | None:
        value = getattr(obj, "average_rating", None)
        return round(float(value), 2) if value is not None else None

    def get_review_count(self, obj: Room) -> int:
        return getattr(obj, "review_count", 0) or 0


class RoomWriteSerializer(serializers.ModelSerializer):
    """Create/update payload used by administrators."""

    amenities = serializers.ListField(
        child=serializers.CharField(max_length=100),
        required=False,
        allow_empty=True,
    )
    images = serializers.ListField(
        child=serializers.CharField(max_length=500),
        required=False,
        allow_empty=True,
    )

    class Meta:
        model = Room
        fields = [
            "name",
            "category",
            "description",
            "price_per_night",
            "capacity",
            "amenities",
            "images",
            "is_available",
        ]

    def validate_price_per_night(self, value):  # type: ignore
        if value < 0:
            raise serializers.ValidationError("Price per night cannot be negative.")
        return value

    def validate_capacity(self, value: int) -> int:
        if value < 1:
            raise serializers.ValidationError("A room must fit at least one guest.")
        return value


class StayQuerySerializer(serializers.Serializer):
    """Query parameters describing a requested stay."""

    check_in = serializers.DateField()
    check_out = serializers.DateField()
    guests = serializers.IntegerField(min_value=1, required=False, default=1)

    def validate(self, attrs):  # type: ignore
        if attrs["check_out"] <= attrs["check_in"]:
            raise serializers.ValidationError({"check_out": "Check-out must be after check-in."})
        return attrs
