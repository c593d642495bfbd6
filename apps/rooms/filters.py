"""FilterSet definitions for the room catalogue."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Room


class RoomFilterSet(django_filters.FilterSet):
    """Filters used by the public room list and the admin room table."""

    category = django_filters.ChoiceFilter(choices=Room.Category.choices)
    guests = django_filters.NumberFilter(field_name="capacity", lookup_expr="gte")
    price_min = django_filters.NumberFilter(field_name="price_per_night", lookup_expr="gte")
    price_max = django_filters.NumberFilter(field_name="price_per_night", lookup_expr="lte")
    is_available = django_filters.BooleanFilter(field_name="is_available")
    search = django_filters.CharFilter(field_name="name", lookup_expr="icontains")

    class Meta:
        model = Room
        fields = ["category", "is_available"]
