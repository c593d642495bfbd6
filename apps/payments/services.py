"""
Payment orchestration

Opens checkout sessions for pending bookings and folds the provider's
answer back into booking state. Confirmation goes through
``apps.bookings.services.confirm_booking_payment`` so the state machine
rules and the single confirmation event apply to every path, the demo
one included.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

from django.conf import settings  # type: ignore
from django.db import transaction  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings import services as booking_services
from apps.bookings.exceptions import BookingNotFound
from apps.bookings.models import Booking

from .exceptions import (
    PaymentError,
    PaymentGatewayError,
    PaymentInitiationError,
    PaymentSessionMismatch,
    PaymentStatusUnknown,
)
from .gateways import PaymentGateway, get_gateway
from .models import Payment

logger = logging.getLogger(__name__)

# Outcomes reported by reconcile_payment
OUTCOME_PAID = "paid"
OUTCOME_PENDING = "pending"
OUTCOME_FAILED = "failed"
OUTCOME_CANCELLED = "cancelled"


@dataclass(frozen=True)
class PaymentOutcome:
    status: str
    booking: Booking
    newly_confirmed: bool = False


def default_success_url(booking: Booking) -> str:
    return f"{settings.SITE_URL}/booking-success?session_id={{CHECKOUT_SESSION_ID}}&booking_id={booking.pk}"


def default_cancel_url(booking: Booking) -> str:
    return f"{settings.SITE_URL}/booking?roomId={booking.room_id}"


def _ensure_payable(booking: Booking) -> None:
    if booking.status != Booking.Status.PENDING or booking.payment_status == Booking.PaymentStatus.PAID:
        raise PaymentError("This booking is not awaiting payment.")
    amount = booking.total_price
    if amount <= 0:
        raise PaymentError("Payment amount must be positive.")
    if amount > settings.PAYMENT_MAX_AMOUNT:
        raise PaymentError("Payment amount is too large.")


def initiate_payment(
    booking: Booking,
    *,
    success_url: Optional[str] = None,
    cancel_url: Optional[str] = None,
    gateway: Optional[PaymentGateway] = None,
) -> Payment:
    """
    Open a checkout session for ``booking``.

    The booking itself only learns the session id; it stays pending
    whatever happens here.
    """
    _ensure_payable(booking)
    gateway = gateway or get_gateway()
    room_name = booking.room.name

    try:
        session = gateway.create_session(
            amount=booking.total,
            customer_email=booking.customer_email,
            description=f"Hotel Booking - {room_name}",
            details=(
                f"Booking Reference: {booking.reference}\n"
                f"Check-in: {booking.check_in:%Y-%m-%d}\n"
                f"Check-out: {booking.check_out:%Y-%m-%d}"
            ),
            metadata={"bookingId": booking.pk, "bookingReference": booking.reference},
            success_url=success_url or default_success_url(booking),
            cancel_url=cancel_url or default_cancel_url(booking),
        )
    except PaymentGatewayError as e:
        logger.error(
            f"Could not open checkout for booking {booking.reference}: {e}",
            exc_info=True,
        )
        raise PaymentInitiationError() from e

    with transaction.atomic():
        payment = Payment.objects.create(
            booking=booking,
            provider=gateway.name,
            session_id=session.session_id,
            amount=booking.total_price,
            currency=booking.currency,
            checkout_url=session.redirect_url,
            metadata={"booking_reference": booking.reference},
        )
        Booking.objects.filter(pk=booking.pk).update(
            payment_session_id=session.session_id,
            updated_at=timezone.now(),
        )
    booking.payment_session_id = session.session_id

    logger.info(
        f"Checkout {session.session_id} opened for booking {booking.reference} "
        f"via {gateway.name}, amount {booking.total}"
    )
    return payment


def _payment_for_session(session_id: str, booking: Booking) -> Optional[Payment]:
    payment = Payment.objects.filter(session_id=session_id).first()
    if payment is not None and payment.booking_id != booking.pk:
        raise PaymentSessionMismatch()
    if payment is None and booking.payment_session_id != session_id:
        raise PaymentSessionMismatch()
    return payment


def reconcile_payment(
    session_id: str,
    booking_id: int,
    *,
    gateway: Optional[PaymentGateway] = None,
) -> PaymentOutcome:
    """
    Ask the provider how ``session_id`` ended and apply it to the booking.

    Safe to call repeatedly: a booking already confirmed reports ``paid``
    without a second confirmation. A provider that cannot be reached
    raises ``PaymentStatusUnknown`` and changes nothing.
    """
    booking = Booking.objects.select_related("room").filter(pk=booking_id).first()
    if booking is None:
        raise BookingNotFound()
    payment = _payment_for_session(session_id, booking)

    if gateway is None:
        gateway = get_gateway(payment.provider if payment else None)

    try:
        result = gateway.get_session_status(session_id)
    except PaymentGatewayError as e:
        logger.warning(f"Payment status unknown for session {session_id}: {e}")
        raise PaymentStatusUnknown() from e

    if not result.paid:
        if result.expired:
            if payment is not None and payment.is_open:
                payment.mark_failed("expired")
            booking_services.mark_payment_failed(booking.pk)
            booking.refresh_from_db()
            return PaymentOutcome(OUTCOME_FAILED, booking)
        if payment is not None and payment.is_open and result.completed:
            logger.info(f"Session {session_id} for booking {booking.reference} completed without payment")
            payment.mark_unpaid()
        elif result.status == "unpaid":
            logger.info(f"Session {session_id} for booking {booking.reference} not paid yet")
        return PaymentOutcome(OUTCOME_PENDING, booking)

    if payment is not None and payment.status != Payment.Status.PAID:
        payment.mark_paid(result.payment_reference)

    if booking.status == Booking.Status.CANCELLED:
        logger.error(
            f"Paid session {session_id} for cancelled booking {booking.reference}; "
            f"refund required (payment {result.payment_reference or 'n/a'})"
        )
        return PaymentOutcome(OUTCOME_CANCELLED, booking)
    if booking.status == Booking.Status.COMPLETED:
        return PaymentOutcome(OUTCOME_PAID, booking)

    newly_confirmed = booking_services.confirm_booking_payment(
        booking.pk,
        payment_reference=result.payment_reference,
    )
    booking.refresh_from_db()
    return PaymentOutcome(OUTCOME_PAID, booking, newly_confirmed=newly_confirmed)


def complete_demo_payment(booking: Booking) -> PaymentOutcome:
    """
    Demo checkout: wait a moment, then confirm as if the provider said paid.

    Only available while ``DEMO_PAYMENTS_ENABLED`` is on.
    """
    if not settings.DEMO_PAYMENTS_ENABLED:
        raise PaymentError("Demo payments are disabled.")
    _ensure_payable(booking)

    gateway = get_gateway("demo")
    payment = initiate_payment(booking, gateway=gateway)

    delay = settings.DEMO_PAYMENT_DELAY_SECONDS
    if delay:
        time.sleep(delay)

    return reconcile_payment(payment.session_id, booking.pk, gateway=gateway)
