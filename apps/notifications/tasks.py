"""Celery tasks for booking e-mails."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from apps.bookings.models import Booking

from .models import BookingNotification
from .services import send_booking_notification

logger = logging.getLogger(__name__)

RETRY_BASE_DELAY = 60


@shared_task(bind=True, name="notifications.send_booking_notification", max_retries=3)
def send_booking_notification_task(self, booking_id: int, kind: str) -> bool:
    """
    Send the confirmation or cancellation e-mail for a booking.

    A failed delivery is retried with a growing delay; an e-mail that was
    already sent, or is being sent by another worker, is not.
    """
    try:
        booking = Booking.objects.select_related("room").get(id=booking_id)
    except Booking.DoesNotExist:
        logger.error(f"Booking {booking_id} not found for {kind} notification")
        return False

    if send_booking_notification(booking, kind):
        return True
    if not booking.notifications.filter(kind=kind, status=BookingNotification.Status.FAILED).exists():
        return False

    if self.request.retries >= self.max_retries:
        logger.error(
            f"Giving up on {kind} e-mail for booking {booking.reference} "
            f"after {self.request.retries + 1} attempts"
        )
        return False
    countdown = RETRY_BASE_DELAY * 2 ** self.request.retries
    logger.warning(f"{kind} e-mail for booking {booking.reference} failed, retrying in {countdown}s")
    raise self.retry(countdown=countdown)
