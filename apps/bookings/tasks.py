"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore
from django.utils import timezone  # type: ignore

from .exceptions import BookingError
from .models import Booking
from .services import complete_booking

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (run by Celery Beat)
# ============================================================================

@shared_task(name="bookings.complete_finished_bookings")
def complete_finished_bookings() -> dict[str, int]:
    """
    Persist completion of confirmed stays whose check-out date has arrived.

    Reads already report such bookings as completed; this job moves the
    stored status and frees the room nights. Runs hourly.

    Returns:
        dict: {"completed": number of bookings completed}
    """
    today = timezone.localdate()
    completed_count = 0

    bookings_to_complete = Booking.objects.filter(
        status=Booking.Status.CONFIRMED,
        check_out__lte=today,
    )

    for booking in bookings_to_complete:
        try:
            complete_booking(booking, today=today)
            completed_count += 1
        except BookingError as e:
            logger.warning(f"Booking {booking.reference} not completed: {e}")
        except Exception as e:
            logger.error(f"Error completing booking {booking.id}: {e}", exc_info=True)

    if completed_count > 0:
        logger.info(f"Completed {completed_count} bookings")

    return {"completed": completed_count}
