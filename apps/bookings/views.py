"""API views for the booking domain."""

from __future__ import annotations

import logging

from django.utils import timezone  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.filters import OrderingFilter  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.users.permissions import IsHotelAdmin, IsOwnerOrHotelAdmin, is_hotel_admin

from . import services
from .exceptions import BookingError
from .filters import BookingFilterSet
from .models import Booking
from .serializers import (
    BookingCreateSerializer,
    BookingSerializer,
    CalendarEntrySerializer,
    CalendarQuerySerializer,
    CancelSerializer,
    GuestCancelSerializer,
    GuestLookupSerializer,
    RescheduleSerializer,
)

logger = logging.getLogger(__name__)


def booking_error_response(exc: BookingError) -> Response:
    return Response(exc.as_response_data(), status=exc.http_status)


class BookingViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Bookings for customers, anonymous guests and administrators.

    Customers see their own bookings, administrators see all of them.
    Guests have no list; they reach a booking with its reference and the
    e-mail address it was made with.
    """

    queryset = Booking.objects.select_related("room", "customer").all()
    serializer_class = BookingSerializer
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_class = BookingFilterSet
    ordering_fields = ["created_at", "check_in", "total_price"]

    def get_permissions(self):  # type: ignore
        if self.action in {"create", "lookup", "guest_cancel"}:
            permission_classes = [permissions.AllowAny]
        elif self.action in {"reschedule", "complete", "calendar"}:
            permission_classes = [IsHotelAdmin]
        else:
            permission_classes = [permissions.IsAuthenticated, IsOwnerOrHotelAdmin]
        return [permission() for permission in permission_classes]

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return BookingCreateSerializer
        return BookingSerializer

    def get_queryset(self):  # type: ignore
        user = self.request.user
        qs = super().get_queryset()
        if not user.is_authenticated:
            return qs.none()
        if is_hotel_admin(user):
            return qs
        return qs.filter(customer=user)

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        customer = request.user if request.user.is_authenticated else None
        try:
            booking = services.create_booking(
                room=data["room"],
                check_in=data["check_in"],
                check_out=data["check_out"],
                guests=data["guests"],
                contact=services.GuestContact(
                    name=data["customer_name"],
                    email=data["customer_email"],
                    phone=data.get("customer_phone", ""),
                ),
                customer=customer,
                special_requests=data.get("special_requests", ""),
            )
        except BookingError as exc:
            return booking_error_response(exc)

        read_serializer = BookingSerializer(booking, context=self.get_serializer_context())
        headers = self.get_success_headers(read_serializer.data)
        return Response(read_serializer.data, status=status.HTTP_201_CREATED, headers=headers)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        serializer = CancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        source = (
            Booking.CancellationSource.ADMIN
            if is_hotel_admin(request.user)
            else Booking.CancellationSource.CUSTOMER
        )
        try:
            booking = services.cancel_booking(
                booking,
                source=source,
                reason=serializer.validated_data.get("reason", ""),
            )
        except BookingError as exc:
            return booking_error_response(exc)
        return Response(BookingSerializer(booking, context=self.get_serializer_context()).data)

    @action(detail=False, methods=["post"])
    def lookup(self, request):  # type: ignore
        """Find a booking by reference and booking e-mail."""
        serializer = GuestLookupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            booking = services.find_guest_booking(
                serializer.validated_data["reference"],
                serializer.validated_data["email"],
            )
        except BookingError as exc:
            return booking_error_response(exc)
        return Response(BookingSerializer(booking, context=self.get_serializer_context()).data)

    @action(detail=False, methods=["post"], url_path="guest-cancel")
    def guest_cancel(self, request):  # type: ignore
        serializer = GuestCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            booking = services.cancel_guest_booking(
                serializer.validated_data["reference"],
                serializer.validated_data["email"],
                serializer.validated_data.get("reason", ""),
            )
        except BookingError as exc:
            return booking_error_response(exc)
        return Response(BookingSerializer(booking, context=self.get_serializer_context()).data)

    @action(detail=True, methods=["post"])
    def reschedule(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        serializer = RescheduleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            booking = services.reschedule_booking(booking, **serializer.validated_data)
        except BookingError as exc:
            return booking_error_response(exc)
        return Response(BookingSerializer(booking, context=self.get_serializer_context()).data)

    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        try:
            booking = services.complete_booking(booking, today=timezone.localdate())
        except BookingError as exc:
            return booking_error_response(exc)
        return Response(BookingSerializer(booking, context=self.get_serializer_context()).data)

    @action(detail=False, methods=["get"])
    def calendar(self, request):  # type: ignore
        """Bookings touching the requested month, grouped by room on the client."""
        query = CalendarQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        start, end = query.month_window()
        bookings = services.bookings_in_window(start, end)
        return Response(
            {
                "start": start,
                "end": end,
                "bookings": CalendarEntrySerializer(bookings, many=True).data,
            }
        )
