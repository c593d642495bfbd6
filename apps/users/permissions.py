"""Permission classes shared by the hotel API.

Authorization follows one rule everywhere: administrators may act on any
record, an authenticated customer may act on records they own, and an
anonymous guest proves ownership of a booking with its reference plus
the e-mail address used when booking (checked in the bookings service).
"""

from __future__ import annotations

from rest_framework import permissions  # type: ignore


def is_hotel_admin(user) -> bool:
    """True for staff, superusers and users with the admin role."""
    if not user or not user.is_authenticated:
        return False
    if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
        return True
    return hasattr(user, "is_hotel_admin") and user.is_hotel_admin()


class IsHotelAdmin(permissions.BasePermission):
    """Only hotel administrators."""

    def has_permission(self, request, view) -> bool:  # type: ignore
        return is_hotel_admin(request.user)


class IsHotelAdminOrReadOnly(permissions.BasePermission):
    """Anyone can read, administrators can write."""

    def has_permission(self, request, view) -> bool:  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        return is_hotel_admin(request.user)


class IsOwnerOrHotelAdmin(permissions.BasePermission):
    """
    Object-level permission: the record must belong to the user.

    Ownership is read from ``customer_id`` (bookings) or ``author_id``
    (reviews).
    """

    owner_fields = ("customer_id", "author_id")

    def has_object_permission(self, request, view, obj) -> bool:  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False
        if is_hotel_admin(user):
            return True
        for field_name in self.owner_fields:
            if hasattr(obj, field_name):
                return getattr(obj, field_name) == user.id
        return False
