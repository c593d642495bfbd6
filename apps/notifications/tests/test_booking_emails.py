"""Tests for confirmation and cancellation e-mails."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from smtplib import SMTPException
from unittest.mock import patch

from celery.exceptions import Retry
from django.core import mail
from django.db import transaction
from django.test import TestCase
from django.utils import timezone

from apps.bookings import services as booking_services
from apps.bookings.models import Booking
from apps.notifications.models import BookingNotification
from apps.notifications.services import send_booking_notification
from apps.notifications.tasks import send_booking_notification_task
from apps.rooms.models import Room


class BookingEmailTests(TestCase):
    def setUp(self) -> None:
        self.room = Room.objects.create(
            name="Deluxe 201",
            price_per_night=Decimal("100.00"),
            capacity=2,
        )
        check_in = timezone.localdate() + timedelta(days=14)
        self.booking = booking_services.create_booking(
            room=self.room,
            check_in=check_in,
            check_out=check_in + timedelta(days=3),
            guests=2,
            contact=booking_services.GuestContact(name="Jane Guest", email="jane@example.com"),
        )

    def _confirm(self) -> bool:
        with self.captureOnCommitCallbacks(execute=True):
            return booking_services.confirm_booking_payment(self.booking.id, payment_reference="pi_1")

    def test_confirmation_email_sent_after_commit(self) -> None:
        self._confirm()

        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.subject, f"Booking Confirmation - {self.booking.reference}")
        self.assertEqual(message.to, ["jane@example.com"])
        self.assertIn("Deluxe 201", message.body)
        self.assertIn("$300.00", message.body)
        html_body, mimetype = message.alternatives[0]
        self.assertEqual(mimetype, "text/html")
        self.assertIn("2:00 PM", html_body)

        log = BookingNotification.objects.get(booking=self.booking)
        self.assertEqual(log.kind, BookingNotification.Kind.CONFIRMATION)
        self.assertEqual(log.status, BookingNotification.Status.SENT)
        self.assertIsNotNone(log.sent_at)

    def test_repeated_confirmation_sends_one_email(self) -> None:
        self.assertTrue(self._confirm())
        self.assertFalse(self._confirm())

        self.assertEqual(len(mail.outbox), 1)

    def test_dispatcher_never_resends_a_sent_email(self) -> None:
        self._confirm()
        self.booking.refresh_from_db()

        self.assertFalse(send_booking_notification(self.booking, BookingNotification.Kind.CONFIRMATION))
        self.assertEqual(len(mail.outbox), 1)

    def test_no_email_for_rolled_back_change(self) -> None:
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with self.assertRaises(RuntimeError):
                with transaction.atomic():
                    booking_services.cancel_booking(self.booking, source=Booking.CancellationSource.GUEST)
                    raise RuntimeError("abort")

        self.assertEqual(callbacks, [])
        self.assertEqual(len(mail.outbox), 0)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.PENDING)

    def test_cancellation_email(self) -> None:
        with self.captureOnCommitCallbacks(execute=True):
            booking_services.cancel_booking(self.booking, source=Booking.CancellationSource.GUEST)

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, f"Booking Cancellation - {self.booking.reference}")
        self.assertTrue(
            BookingNotification.objects.filter(
                booking=self.booking,
                kind=BookingNotification.Kind.CANCELLATION,
                status=BookingNotification.Status.SENT,
            ).exists()
        )

    def test_failed_delivery_keeps_booking_confirmed_and_can_retry(self) -> None:
        with patch("apps.notifications.services.send_mail", side_effect=SMTPException("relay down")):
            with patch.object(send_booking_notification_task, "max_retries", 0):
                self._confirm()

        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.CONFIRMED)
        log = BookingNotification.objects.get(booking=self.booking)
        self.assertEqual(log.status, BookingNotification.Status.FAILED)
        self.assertEqual(log.attempts, 1)
        self.assertEqual(len(mail.outbox), 0)

        self.assertTrue(send_booking_notification(self.booking, BookingNotification.Kind.CONFIRMATION))
        log.refresh_from_db()
        self.assertEqual(log.status, BookingNotification.Status.SENT)
        self.assertEqual(log.attempts, 2)
        self.assertEqual(len(mail.outbox), 1)

    def test_unknown_kind_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            send_booking_notification(self.booking, "reminder")

    def test_task_schedules_retry_after_failed_delivery(self) -> None:
        booking_services.confirm_booking_payment(self.booking.id, payment_reference="pi_1")
        kind = BookingNotification.Kind.CONFIRMATION.value

        with patch("apps.notifications.services.send_mail", side_effect=SMTPException("relay down")):
            with patch.object(send_booking_notification_task, "retry", side_effect=Retry()) as retry:
                with self.assertRaises(Retry):
                    send_booking_notification_task.run(self.booking.id, kind)

        retry.assert_called_once_with(countdown=60)
        log = BookingNotification.objects.get(booking=self.booking)
        self.assertEqual(log.status, BookingNotification.Status.FAILED)
        self.assertEqual(log.attempts, 1)

    def test_task_does_not_retry_a_sent_email(self) -> None:
        booking_services.confirm_booking_payment(self.booking.id, payment_reference="pi_1")
        kind = BookingNotification.Kind.CONFIRMATION.value
        self.assertTrue(send_booking_notification(self.booking, kind))

        with patch.object(send_booking_notification_task, "retry") as retry:
            self.assertFalse(send_booking_notification_task.run(self.booking.id, kind))

        retry.assert_not_called()
        self.assertEqual(len(mail.outbox), 1)
