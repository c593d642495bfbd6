"""Serializers for user-related API endpoints."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import serializers  # type: ignore

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """Profile of the signed-in user."""

    is_admin = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "full_name",
            "phone",
            "role",
            "is_admin",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "email",
            "role",
            "is_admin",
            "created_at",
            "updated_at",
        ]

    def get_is_admin(self, obj) -> bool:  # type: ignore
        return obj.is_hotel_admin()


class CustomerSerializer(serializers.ModelSerializer):
    """Admin view of a customer with booking totals."""

    total_bookings = serializers.IntegerField(read_only=True)
    total_spent = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "full_name",
            "phone",
            "total_bookings",
            "total_spent",
            "created_at",
        ]
        read_only_fields = fields
