"""Checkout API: open a session, verify its outcome, demo payment."""

from __future__ import annotations

import logging

from rest_framework import status  # type: ignore
from rest_framework.permissions import AllowAny  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.bookings.exceptions import BookingError
from apps.bookings.serializers import BookingSerializer
from apps.bookings.services import accessible_booking

from . import services
from .exceptions import PaymentError
from .serializers import CheckoutRequestSerializer, DemoPaymentSerializer, VerifyPaymentSerializer

logger = logging.getLogger(__name__)


def _error_response(exc: BookingError | PaymentError) -> Response:
    return Response(exc.as_response_data(), status=exc.http_status)


class CheckoutView(APIView):
    """Open a hosted checkout for a pending booking and return its redirect URL."""

    permission_classes = [AllowAny]

    def post(self, request):  # type: ignore
        serializer = CheckoutRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            booking = accessible_booking(user=request.user, **serializer.access_kwargs())
            payment = services.initiate_payment(
                booking,
                success_url=data.get("success_url"),
                cancel_url=data.get("cancel_url"),
            )
        except (BookingError, PaymentError) as exc:
            return _error_response(exc)

        return Response(
            {
                "url": payment.checkout_url,
                "session_id": payment.session_id,
                "provider": payment.provider,
            },
            status=status.HTTP_201_CREATED,
        )


class VerifyPaymentView(APIView):
    """
    Reconcile a checkout session after the provider redirects back.

    The session id itself is the credential here; it has to belong to
    the booking it is presented with.
    """

    permission_classes = [AllowAny]

    def post(self, request):  # type: ignore
        serializer = VerifyPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            outcome = services.reconcile_payment(
                serializer.validated_data["session_id"],
                serializer.validated_data["booking_id"],
            )
        except (BookingError, PaymentError) as exc:
            return _error_response(exc)

        return Response(
            {
                "success": outcome.status == services.OUTCOME_PAID,
                "payment_status": outcome.status,
                "booking": BookingSerializer(outcome.booking, context={"request": request}).data,
            }
        )


class DemoPaymentView(APIView):
    """Pay for a booking through the demo gateway (development only)."""

    permission_classes = [AllowAny]

    def post(self, request):  # type: ignore
        serializer = DemoPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            booking = accessible_booking(user=request.user, **serializer.access_kwargs())
            outcome = services.complete_demo_payment(booking)
        except (BookingError, PaymentError) as exc:
            return _error_response(exc)

        return Response(
            {
                "success": outcome.status == services.OUTCOME_PAID,
                "payment_status": outcome.status,
                "booking": BookingSerializer(outcome.booking, context={"request": request}).data,
            }
        )
