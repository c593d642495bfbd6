"""Tests for event registration and after-commit publishing."""

from __future__ import annotations

from django.db import transaction
from django.test import TestCase

from apps.bookings.domain.events import BookingCancelled, BookingConfirmed
from apps.notifications.handlers import on_booking_cancelled, on_booking_confirmed, register_handlers
from shared.application.message_bus import MessageBus, message_bus
from shared.application.uow import DjangoUnitOfWork
from shared.domain.base import AggregateRoot


class _Recorder(AggregateRoot):
    pk = 7


def _confirmed() -> BookingConfirmed:
    return BookingConfirmed(
        aggregate_id=7,
        booking_id=7,
        reference="HB260101ABCDEF",
        payment_reference="pi_1",
    )


class EventDispatchTests(TestCase):
    def test_handlers_registered_when_app_loads(self) -> None:
        self.assertIn(on_booking_confirmed, message_bus.handlers_for(BookingConfirmed))
        self.assertIn(on_booking_cancelled, message_bus.handlers_for(BookingCancelled))

    def test_registering_twice_keeps_one_handler(self) -> None:
        bus = MessageBus()
        register_handlers(bus)
        register_handlers(bus)

        self.assertEqual(len(bus.handlers_for(BookingConfirmed)), 1)

    def test_failing_handler_does_not_stop_the_others(self) -> None:
        bus = MessageBus()
        seen = []

        def broken(event):
            raise RuntimeError("boom")

        bus.register_event_handler(BookingConfirmed, broken)
        bus.register_event_handler(BookingConfirmed, seen.append)
        event = _confirmed()

        bus.publish_events([event])

        self.assertEqual(seen, [event])

    def test_events_published_only_after_commit(self) -> None:
        bus = MessageBus()
        seen = []
        bus.register_event_handler(BookingConfirmed, seen.append)
        aggregate = _Recorder()
        aggregate.add_event(_confirmed())

        with self.captureOnCommitCallbacks(execute=True):
            with DjangoUnitOfWork(bus=bus) as uow:
                uow.collect_events(aggregate)
                self.assertEqual(seen, [])

        self.assertEqual(len(seen), 1)
        self.assertEqual(aggregate.events, [])

    def test_rolled_back_unit_of_work_publishes_nothing(self) -> None:
        bus = MessageBus()
        seen = []
        bus.register_event_handler(BookingConfirmed, seen.append)
        aggregate = _Recorder()
        aggregate.add_event(_confirmed())

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with self.assertRaises(ValueError):
                with transaction.atomic():
                    with DjangoUnitOfWork(bus=bus) as uow:
                        uow.collect_events(aggregate)
                        raise ValueError("invalid")

        self.assertEqual(callbacks, [])
        self.assertEqual(seen, [])
