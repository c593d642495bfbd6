"""Serializers for the booking domain."""

from __future__ import annotations

import re
from datetime import date

from django.utils import timezone  # type: ignore
from rest_framework import serializers  # type: ignore

from apps.rooms.models import Room

from .models import Booking

MONTH_RE = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


class BookingCreateSerializer(serializers.Serializer):
    """
    Booking request as submitted by the booking form.

    Only shape is validated here; availability, capacity and pricing are
    decided by ``services.create_booking``.
    """

    room = serializers.PrimaryKeyRelatedField(queryset=Room.objects.all())
    check_in = serializers.DateField()
    check_out = serializers.DateField()
    guests = serializers.IntegerField(min_value=1, default=1)
    customer_name = serializers.CharField(min_length=2, max_length=100, required=False)
    customer_email = serializers.EmailField(required=False)
    customer_phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    special_requests = serializers.CharField(required=False, allow_blank=True, max_length=2000)

    def validate(self, attrs):  # type: ignore
        if attrs["check_out"] <= attrs["check_in"]:
            raise serializers.ValidationError({"check_out": "Check-out must be after check-in."})

        user = self.context["request"].user
        if user.is_authenticated:
            attrs.setdefault("customer_name", user.display_name)
            attrs.setdefault("customer_email", user.email)
            attrs.setdefault("customer_phone", user.phone or "")

        errors = {}
        if not attrs.get("customer_name"):
            errors["customer_name"] = "Name is required."
        if not attrs.get("customer_email"):
            errors["customer_email"] = "E-mail is required."
        if errors:
            raise serializers.ValidationError(errors)
        return attrs


class BookingSerializer(serializers.ModelSerializer):
    """Detailed booking representation."""

    room_name = serializers.ReadOnlyField(source="room.name")
    room_category = serializers.ReadOnlyField(source="room.category")
    customer_id = serializers.ReadOnlyField(source="customer.id")
    nights = serializers.ReadOnlyField()
    effective_status = serializers.SerializerMethodField()
    is_review_eligible = serializers.SerializerMethodField()
    can_cancel = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = [
            "id",
            "reference",
            "room",
            "room_name",
            "room_category",
            "customer_id",
            "customer_name",
            "customer_email",
            "customer_phone",
            "check_in",
            "check_out",
            "nights",
            "guests",
            "nightly_rate",
            "total_price",
            "currency",
            "status",
            "effective_status",
            "payment_status",
            "payment_reference",
            "special_requests",
            "is_review_eligible",
            "can_cancel",
            "confirmed_at",
            "completed_at",
            "cancelled_at",
            "cancellation_source",
            "cancellation_reason",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def _today(self) -> date:
        return self.context.get("today") or timezone.localdate()

    def get_effective_status(self, obj: Booking) -> str:
        return obj.effective_status(self._today())

    def get_is_review_eligible(self, obj: Booking) -> bool:
        return obj.is_review_eligible(self._today())

    def get_can_cancel(self, obj: Booking) -> bool:
        return obj.can_self_cancel(self._today())


class GuestLookupSerializer(serializers.Serializer):
    """Reference plus the e-mail used when booking."""

    reference = serializers.CharField(max_length=32)
    email = serializers.EmailField()


class GuestCancelSerializer(GuestLookupSerializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255)


class BookingAccessSerializer(serializers.Serializer):
    """
    How the caller names the booking.

    Guests give the booking reference and the e-mail it was made with.
    Signed-in owners and administrators may give ``booking_id`` instead.
    """

    booking_id = serializers.IntegerField(min_value=1, required=False)
    reference = serializers.CharField(max_length=32, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)

    def validate(self, attrs):  # type: ignore
        attrs = super().validate(attrs)
        if attrs.get("reference"):
            if not attrs.get("email"):
                raise serializers.ValidationError({"email": "E-mail is required with a booking reference."})
        elif not attrs.get("booking_id"):
            raise serializers.ValidationError({"reference": "Booking reference and e-mail are required."})
        return attrs

    def access_kwargs(self) -> dict:
        data = self.validated_data
        return {
            "booking_id": data.get("booking_id"),
            "reference": data.get("reference", ""),
            "email": data.get("email", ""),
        }


class CancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255)


class RescheduleSerializer(serializers.Serializer):
    """Calendar move: any of room, check-in and check-out may change."""

    room = serializers.PrimaryKeyRelatedField(queryset=Room.objects.all(), required=False)
    check_in = serializers.DateField(required=False)
    check_out = serializers.DateField(required=False)

    def validate(self, attrs):  # type: ignore
        if not attrs:
            raise serializers.ValidationError("Nothing to change.")
        if "check_out" in attrs and "check_in" not in attrs:
            raise serializers.ValidationError({"check_in": "Check-in is required when check-out is given."})
        return attrs


class CalendarQuerySerializer(serializers.Serializer):
    """``month=YYYY-MM``; defaults to the current month."""

    month = serializers.CharField(required=False)

    def validate_month(self, value: str) -> str:
        if not MONTH_RE.match(value):
            raise serializers.ValidationError("Use the YYYY-MM format.")
        return value

    def month_window(self) -> tuple[date, date]:
        value = self.validated_data.get("month")
        if value:
            year, month = (int(part) for part in value.split("-"))
        else:
            today = timezone.localdate()
            year, month = today.year, today.month
        start = date(year, month, 1)
        end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
        return start, end


class CalendarEntrySerializer(serializers.ModelSerializer):
    """Compact booking bar for the admin calendar."""

    room_name = serializers.ReadOnlyField(source="room.name")

    class Meta:
        model = Booking
        fields = [
            "id",
            "reference",
            "room",
            "room_name",
            "customer_name",
            "check_in",
            "check_out",
            "guests",
            "status",
            "payment_status",
        ]
        read_only_fields = fields
