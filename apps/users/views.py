"""User API views."""

from __future__ import annotations

from decimal import Decimal

from django.contrib.auth import get_user_model  # type: ignore
from django.db.models import Count, DecimalField, Q, Sum, Value  # type: ignore
from django.db.models.functions import Coalesce  # type: ignore
from rest_framework import filters, generics, permissions  # type: ignore

from .permissions import IsHotelAdmin
from .serializers import CustomerSerializer, UserSerializer

User = get_user_model()


class MeView(generics.RetrieveUpdateAPIView):
    """Profile of the current user; customers may edit their name and phone."""

    serializer_class = UserSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_object(self):  # type: ignore
        return self.request.user


class CustomerListView(generics.ListAPIView):
    """Customers with their booking count and spend (confirmed and completed stays)."""

    serializer_class = CustomerSerializer
    permission_classes = [IsHotelAdmin]
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ["email", "full_name", "phone"]
    ordering_fields = ["total_bookings", "total_spent", "created_at"]

    def get_queryset(self):  # type: ignore
        from apps.bookings.models import Booking

        revenue_statuses = [Booking.Status.CONFIRMED, Booking.Status.COMPLETED]
        return (
            User.objects.filter(role=User.RoleChoices.CUSTOMER)
            .annotate(
                total_bookings=Count("bookings", distinct=True),
                total_spent=Coalesce(
                    Sum("bookings__total_price", filter=Q(bookings__status__in=revenue_statuses)),
                    Value(Decimal("0.00")),
                    output_field=DecimalField(max_digits=12, decimal_places=2),
                ),
            )
            .order_by("-created_at")
        )
