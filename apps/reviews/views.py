"""API views for reviews."""

from __future__ import annotations

import logging

from django.db import IntegrityError, transaction  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.bookings.exceptions import BookingError
from apps.bookings.services import accessible_booking
from apps.bookings.views import booking_error_response
from apps.users.permissions import IsOwnerOrHotelAdmin

from .models import Review
from .serializers import ReviewCreateSerializer, ReviewSerializer

logger = logging.getLogger(__name__)

ALREADY_REVIEWED = "This booking has already been reviewed."


class ReviewViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """
    Public reviews per room.

    Anyone may read. A review is written for a completed booking by the
    customer who owns it, by an administrator, or by a guest who repeats
    the booking e-mail. Authors and administrators may delete.
    """

    queryset = Review.objects.select_related("room", "booking").all()

    def get_permissions(self):  # type: ignore
        if self.action == "destroy":
            return [permissions.IsAuthenticated(), IsOwnerOrHotelAdmin()]
        return [permissions.AllowAny()]

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return ReviewCreateSerializer
        return ReviewSerializer

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        room_id = self.request.query_params.get("room")
        if room_id:
            qs = qs.filter(room_id=room_id)
        return qs

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = ReviewCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            booking = accessible_booking(user=request.user, **serializer.access_kwargs())
        except BookingError as exc:
            return booking_error_response(exc)

        if not booking.is_review_eligible():
            return Response(
                {"detail": "Reviews can only be left after a completed stay."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        if Review.objects.filter(booking=booking).exists():
            return Response({"detail": ALREADY_REVIEWED}, status=status.HTTP_400_BAD_REQUEST)

        try:
            with transaction.atomic():
                review = Review.objects.create(
                    room_id=booking.room_id,
                    booking=booking,
                    author_id=booking.customer_id,
                    rating=data["rating"],
                    comment=data.get("comment", ""),
                    photos=data.get("photos", []),
                )
        except IntegrityError:
            return Response({"detail": ALREADY_REVIEWED}, status=status.HTTP_400_BAD_REQUEST)

        logger.info(f"Review {review.id} created for booking {booking.reference} (rating {review.rating})")
        return Response(
            ReviewSerializer(review, context=self.get_serializer_context()).data,
            status=status.HTTP_201_CREATED,
        )
