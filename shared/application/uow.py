"""
Unit of Work

A booking write and the events it records travel together: the write
runs inside ``transaction.atomic()`` and the events reach the message
bus only through ``transaction.on_commit``. A write that rolls back
therefore never produces a notification.
"""

from typing import List, Optional
import logging

from django.db import transaction

from shared.domain.base import AggregateRoot, DomainEvent

logger = logging.getLogger(__name__)


class DjangoUnitOfWork:
    """
    Atomic block plus deferred event publishing.

    Nested inside an outer atomic block, publishing waits for the
    outermost commit and is dropped if any enclosing block rolls back.

    Usage:
        with DjangoUnitOfWork() as uow:
            booking = Booking.objects.select_for_update().get(pk=booking_id)
            booking.confirm_payment(payment_reference)
            booking.save()
            uow.collect_events(booking)
    """

    def __init__(self, bus=None):
        self._bus = bus
        self._events: List[DomainEvent] = []
        self._atomic: Optional[transaction.Atomic] = None

    def __enter__(self):
        self._atomic = transaction.atomic()
        self._atomic.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                self._schedule_publish()
            elif self._events:
                logger.warning(
                    f"{exc_type.__name__} inside unit of work, discarding {len(self._events)} events"
                )
        finally:
            self._events = []
            atomic, self._atomic = self._atomic, None
            atomic.__exit__(exc_type, exc_val, exc_tb)

    def collect_events(self, aggregate: AggregateRoot) -> None:
        """Take the events ``aggregate`` recorded so far; the aggregate is left empty."""
        new_events = aggregate.events
        if not new_events:
            return
        self._events.extend(new_events)
        aggregate.clear_events()
        logger.debug(
            f"Collected {len(new_events)} events from "
            f"{aggregate.__class__.__name__} {getattr(aggregate, 'pk', None)}"
        )

    def _schedule_publish(self) -> None:
        if not self._events:
            return
        events = list(self._events)
        transaction.on_commit(lambda: self._publish(events))

    def _publish(self, events: List[DomainEvent]) -> None:
        bus = self._bus
        if bus is None:
            from shared.application.message_bus import message_bus as bus

        logger.info(f"Publishing {len(events)} domain events after commit")
        try:
            bus.publish_events(events)
        except Exception as e:
            # The write is already committed; handlers are best-effort.
            logger.error(f"Error publishing events: {e}", exc_info=True)
