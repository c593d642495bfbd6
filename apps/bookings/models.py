"""Booking domain models."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.base import AggregateRoot
from shared.domain.value_objects import DateRange, Money

from .domain import lifecycle
from .domain.events import (
    BookingCancelled,
    BookingCompleted,
    BookingConfirmed,
    BookingCreated,
    BookingRescheduled,
)
from .exceptions import InvalidBookingTransition


class Booking(AggregateRoot, models.Model):
    """A room reservation made by a customer or an anonymous guest."""

    class Status(models.TextChoices):
        PENDING = lifecycle.PENDING, _("Pending payment")
        CONFIRMED = lifecycle.CONFIRMED, _("Confirmed")
        COMPLETED = lifecycle.COMPLETED, _("Completed")
        CANCELLED = lifecycle.CANCELLED, _("Cancelled")

    class PaymentStatus(models.TextChoices):
        PENDING = lifecycle.PAYMENT_PENDING, _("Awaiting payment")
        PAID = lifecycle.PAYMENT_PAID, _("Paid")
        FAILED = lifecycle.PAYMENT_FAILED, _("Payment failed")

    class CancellationSource(models.TextChoices):
        CUSTOMER = "customer", _("Customer")
        GUEST = "guest", _("Guest")
        ADMIN = "admin", _("Administrator")
        SYSTEM = "system", _("System")

    reference = models.CharField(max_length=20, unique=True, editable=False)
    room = models.ForeignKey(
        "rooms.Room",
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bookings",
        help_text=_("Empty for guest bookings."),
    )
    customer_name = models.CharField(max_length=100)
    customer_email = models.EmailField()
    customer_phone = models.CharField(max_length=20, blank=True)
    check_in = models.DateField()
    check_out = models.DateField(help_text=_("Departure day; not a booked night."))
    guests = models.PositiveSmallIntegerField(default=1)
    nightly_rate = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text=_("Room price per night at the time of booking."),
    )
    total_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="USD")
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    payment_session_id = models.CharField(max_length=255, blank=True)
    payment_reference = models.CharField(max_length=255, blank=True)
    special_requests = models.TextField(blank=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_source = models.CharField(
        max_length=20,
        choices=CancellationSource.choices,
        blank=True,
    )
    cancellation_reason = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(check_out__gt=models.F("check_in")),
                name="booking_valid_dates",
            ),
            models.CheckConstraint(
                condition=models.Q(guests__gte=1),
                name="booking_at_least_one_guest",
            ),
        ]
        indexes = [
            models.Index(fields=["room", "check_in", "check_out"], name="booking_room_dates_idx"),
            models.Index(fields=["status"], name="booking_status_idx"),
            models.Index(fields=["customer_email"], name="booking_customer_email_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking {self.reference} for room {self.room_id}"

    # --- Derived values ------------------------------------------------------
    @property
    def stay(self) -> DateRange:
        return DateRange(self.check_in, self.check_out)

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    @property
    def total(self) -> Money:
        return lifecycle.to_money(self.total_price, self.currency)

    @property
    def holds_slot(self) -> bool:
        return lifecycle.holds_slot(self.status)

    def effective_status(self, today: date | None = None) -> str:
        return lifecycle.effective_status(self.status, self.check_out, today or timezone.localdate())

    def is_review_eligible(self, today: date | None = None) -> bool:
        return self.effective_status(today) == self.Status.COMPLETED

    def can_self_cancel(self, today: date | None = None) -> bool:
        return lifecycle.self_service_cancellation_allowed(
            self.status, self.check_in, today or timezone.localdate()
        )

    def owned_by_email(self, email: str) -> bool:
        return self.customer_email.strip().lower() == (email or "").strip().lower()

    # --- State transitions -------------------------------------------------
    def record_created(self) -> None:
        self.add_event(
            BookingCreated(
                aggregate_id=self.pk,
                booking_id=self.pk,
                reference=self.reference,
                room_id=self.room_id,
            )
        )

    def confirm_payment(self, payment_reference: str = "") -> None:
        lifecycle.ensure_transition(self.status, self.Status.CONFIRMED)
        self.status = self.Status.CONFIRMED
        self.payment_status = self.PaymentStatus.PAID
        if payment_reference:
            self.payment_reference = payment_reference
        self.confirmed_at = timezone.now()
        self.add_event(
            BookingConfirmed(
                aggregate_id=self.pk,
                booking_id=self.pk,
                reference=self.reference,
                payment_reference=self.payment_reference,
            )
        )

    def cancel(self, source: str, reason: str = "", today: date | None = None) -> None:
        lifecycle.ensure_transition(self.status, self.Status.CANCELLED)
        today = today or timezone.localdate()
        if self.effective_status(today) == self.Status.COMPLETED:
            raise InvalidBookingTransition("Booking is already completed.")
        if source in lifecycle.SELF_SERVICE_SOURCES and not self.can_self_cancel(today):
            raise InvalidBookingTransition("Bookings can only be cancelled before the check-in date.")
        self.status = self.Status.CANCELLED
        self.cancellation_source = source
        self.cancellation_reason = reason[:255]
        self.cancelled_at = timezone.now()
        self.add_event(
            BookingCancelled(
                aggregate_id=self.pk,
                booking_id=self.pk,
                reference=self.reference,
                source=source,
            )
        )

    def complete(self, today: date | None = None) -> None:
        lifecycle.ensure_transition(self.status, self.Status.COMPLETED)
        if not lifecycle.stay_has_ended(self.check_out, today or timezone.localdate()):
            raise InvalidBookingTransition("A booking can only be completed once the stay is over.")
        self.status = self.Status.COMPLETED
        self.completed_at = timezone.now()
        self.add_event(
            BookingCompleted(aggregate_id=self.pk, booking_id=self.pk, reference=self.reference)
        )

    def move(self, room, stay: DateRange, nightly_rate: Decimal) -> None:
        """Assign new room and dates; the caller has checked availability."""
        if not self.holds_slot:
            raise InvalidBookingTransition(f"A {self.status} booking cannot be moved.")
        previous = (self.room_id, self.check_in, self.check_out)
        self.room = room
        self.check_in = stay.start_date
        self.check_out = stay.end_date
        self.nightly_rate = nightly_rate
        self.total_price = lifecycle.stay_total(lifecycle.to_money(nightly_rate, self.currency), stay).amount
        self.add_event(
            BookingRescheduled(
                aggregate_id=self.pk,
                booking_id=self.pk,
                reference=self.reference,
                previous_room_id=previous[0],
                previous_check_in=previous[1],
                previous_check_out=previous[2],
            )
        )


class RoomNight(models.Model):
    """
    One night of a room held by a pending or confirmed booking.

    The unique (room, night) constraint is what finally rules out double
    booking: two transactions that both passed the availability check
    cannot both insert the same night.
    """

    room = models.ForeignKey(
        "rooms.Room",
        on_delete=models.CASCADE,
        related_name="held_nights",
    )
    booking = models.ForeignKey(
        Booking,
        on_delete=models.CASCADE,
        related_name="room_nights",
    )
    night = models.DateField()

    class Meta:
        verbose_name = _("Held room night")
        verbose_name_plural = _("Held room nights")
        ordering = ["room", "night"]
        constraints = [
            models.UniqueConstraint(fields=["room", "night"], name="room_night_unique"),
        ]

    def __str__(self) -> str:
        return f"Room {self.room_id} on {self.night:%Y-%m-%d} ({self.booking_id})"
