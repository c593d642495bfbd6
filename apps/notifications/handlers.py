"""
Booking event handlers

Registered on the message bus when the app loads. They run after the
booking transaction commits and only queue the e-mail; delivery happens
in the Celery worker.
"""

from __future__ import annotations

import logging

from apps.bookings.domain.events import BookingCancelled, BookingConfirmed
from shared.application.message_bus import MessageBus

from .models import BookingNotification
from .tasks import send_booking_notification_task

logger = logging.getLogger(__name__)


def on_booking_confirmed(event: BookingConfirmed) -> None:
    logger.info(f"Queueing confirmation e-mail for booking {event.reference}")
    send_booking_notification_task.delay(event.booking_id, BookingNotification.Kind.CONFIRMATION.value)


def on_booking_cancelled(event: BookingCancelled) -> None:
    logger.info(f"Queueing cancellation e-mail for booking {event.reference}")
    send_booking_notification_task.delay(event.booking_id, BookingNotification.Kind.CANCELLATION.value)


def register_handlers(bus: MessageBus) -> None:
    bus.register_event_handler(BookingConfirmed, on_booking_confirmed)
    bus.register_event_handler(BookingCancelled, on_booking_cancelled)
