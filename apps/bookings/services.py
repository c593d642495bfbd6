"""Domain services for booking workflows.

Every state change runs inside a ``DjangoUnitOfWork``: the booking row
(and, when creating or moving, the room row) is locked where the database
supports it, and the events the booking records are published only once
the transaction commits.

The availability check here is advisory. The ``RoomNight`` unique
constraint is the guarantee; losing that race surfaces as
``BookingConflictError`` just like a failed check.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from django.conf import settings  # type: ignore
from django.db import IntegrityError, transaction  # type: ignore
from django.db.models import Q, QuerySet  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore
from django.utils import timezone  # type: ignore

from apps.rooms.models import Room
from apps.users.permissions import is_hotel_admin
from shared.application.uow import DjangoUnitOfWork
from shared.domain.value_objects import DateRange

from .domain import lifecycle
from .domain.reference import generate_reference, is_well_formed, normalize_reference
from .exceptions import (
    BookingConflictError,
    BookingNotFound,
    BookingValidationError,
    ReferenceGenerationError,
)
from .models import Booking, RoomNight

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GuestContact:
    """Contact details the booking is made under."""

    name: str
    email: str
    phone: str = ""

    def __post_init__(self):
        object.__setattr__(self, "name", self.name.strip())
        object.__setattr__(self, "email", self.email.strip())
        object.__setattr__(self, "phone", (self.phone or "").strip())


def _lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


def _stay_or_error(check_in: date, check_out: date) -> DateRange:
    if check_out <= check_in:
        raise BookingValidationError({"check_out": "Check-out must be after check-in."})
    return DateRange(check_in, check_out)


# ============================================================================
# AVAILABILITY
# ============================================================================

def overlapping_bookings(
    room,
    check_in: date,
    check_out: date,
    *,
    exclude_booking_id: Optional[int] = None,
) -> QuerySet:
    """Pending or confirmed bookings of ``room`` sharing at least one night with the stay."""

    overlapping_filter = Q(check_in__lt=check_out) & Q(check_out__gt=check_in)
    bookings_qs = Booking.objects.filter(
        room=room,
        status__in=lifecycle.SLOT_HOLDING_STATUSES,
    ).filter(overlapping_filter)
    if exclude_booking_id is not None:
        bookings_qs = bookings_qs.exclude(pk=exclude_booking_id)
    return bookings_qs


def is_room_available(
    room,
    check_in: date,
    check_out: date,
    *,
    exclude_booking_id: Optional[int] = None,
) -> bool:
    """Read-only check: no pending or confirmed booking overlaps the stay.

    Check-out is exclusive, so a stay may start on the day another ends.
    The room's manual on/off switch is not considered here.
    """
    _stay_or_error(check_in, check_out)
    return not overlapping_bookings(
        room, check_in, check_out, exclude_booking_id=exclude_booking_id
    ).exists()


def ensure_room_available(
    room,
    check_in: date,
    check_out: date,
    *,
    exclude_booking_id: Optional[int] = None,
) -> None:
    """Raise ``BookingConflictError`` if the room is held for any night of the stay."""

    bookings_qs = _lock_queryset_if_possible(
        overlapping_bookings(room, check_in, check_out, exclude_booking_id=exclude_booking_id)
    )
    if bookings_qs.exists():
        raise BookingConflictError()


def rooms_available_for(check_in: date, check_out: date, *, guests: int = 1) -> QuerySet:
    """Switched-on rooms large enough for ``guests`` with no overlapping booking."""

    _stay_or_error(check_in, check_out)
    busy_room_ids = Booking.objects.filter(
        status__in=lifecycle.SLOT_HOLDING_STATUSES,
        check_in__lt=check_out,
        check_out__gt=check_in,
    ).values("room_id")
    return Room.objects.filter(is_available=True, capacity__gte=guests).exclude(pk__in=busy_room_ids)


# ============================================================================
# ROOM NIGHTS
# ============================================================================

def _hold_nights(booking: Booking) -> None:
    nights = [
        RoomNight(room_id=booking.room_id, booking=booking, night=night)
        for night in booking.stay.nights()
    ]
    try:
        with transaction.atomic():
            RoomNight.objects.bulk_create(nights)
    except IntegrityError as exc:
        logger.warning(
            f"Room {booking.room_id} nights {booking.stay} taken concurrently; "
            f"rejecting booking {booking.reference}"
        )
        raise BookingConflictError() from exc


def _release_nights(booking: Booking) -> None:
    RoomNight.objects.filter(booking=booking).delete()


# ============================================================================
# CREATE
# ============================================================================

def _insert_with_unique_reference(booking: Booking) -> None:
    max_attempts = getattr(settings, "BOOKING_REFERENCE_MAX_ATTEMPTS", 5)
    for attempt in range(1, max_attempts + 1):
        booking.reference = generate_reference(timezone.now().date())
        try:
            with transaction.atomic():
                booking.save(force_insert=True)
            return
        except IntegrityError:
            if not Booking.objects.filter(reference=booking.reference).exists():
                raise
            logger.warning(f"Booking reference collision on attempt {attempt}: {booking.reference}")
    raise ReferenceGenerationError()


def create_booking(
    *,
    room: Room,
    check_in: date,
    check_out: date,
    guests: int,
    contact: GuestContact,
    customer=None,
    special_requests: str = "",
) -> Booking:
    """Reserve ``room`` for the stay. The booking starts pending with payment pending."""

    today = timezone.localdate()
    errors: dict[str, str] = {}
    if check_out <= check_in:
        errors["check_out"] = "Check-out must be after check-in."
    if check_in < today:
        errors["check_in"] = "Check-in cannot be in the past."
    if guests < 1:
        errors["guests"] = "At least one guest is required."
    elif guests > room.capacity:
        errors["guests"] = f"This room accommodates at most {room.capacity} guests."
    if not contact.email:
        errors["customer_email"] = "E-mail is required."
    if not contact.name:
        errors["customer_name"] = "Name is required."
    if errors:
        raise BookingValidationError(errors)

    with DjangoUnitOfWork() as uow:
        room = _lock_queryset_if_possible(Room.objects.filter(pk=room.pk)).get()
        if not room.is_available:
            raise BookingValidationError({"room": "This room is not available for booking."})

        ensure_room_available(room, check_in, check_out)

        currency = settings.PAYMENT_CURRENCY.upper()
        stay = DateRange(check_in, check_out)
        total = lifecycle.stay_total(lifecycle.to_money(room.price_per_night, currency), stay)

        booking = Booking(
            room=room,
            customer=customer,
            customer_name=contact.name,
            customer_email=contact.email,
            customer_phone=contact.phone,
            check_in=check_in,
            check_out=check_out,
            guests=guests,
            nightly_rate=room.price_per_night,
            total_price=total.amount,
            currency=currency,
            special_requests=special_requests,
        )
        _insert_with_unique_reference(booking)
        _hold_nights(booking)
        booking.record_created()
        uow.collect_events(booking)

    logger.info(
        f"Booking {booking.reference} created: room {room.id}, {stay}, "
        f"{booking.nights} nights, total {total}"
    )
    return booking


# ============================================================================
# LOOKUP
# ============================================================================

def find_guest_booking(reference: str, email: str) -> Booking:
    """Booking matching reference and e-mail; a mismatch is reported as not found."""

    normalized = normalize_reference(reference)
    email = (email or "").strip()
    if not email or not is_well_formed(normalized):
        raise BookingNotFound()
    booking = (
        Booking.objects.select_related("room")
        .filter(reference=normalized, customer_email__iexact=email)
        .first()
    )
    if booking is None:
        logger.info(f"Guest lookup failed for reference {normalized}")
        raise BookingNotFound()
    return booking


def accessible_booking(
    *,
    user=None,
    booking_id: Optional[int] = None,
    reference: str = "",
    email: str = "",
) -> Booking:
    """
    Booking the caller may act on.

    Guests, signed in or not, name the booking by reference plus the
    e-mail it was made with. The numeric ``booking_id`` is honoured only
    for administrators and the customer who owns the booking. Every
    refusal looks like a missing booking.
    """
    if reference:
        return find_guest_booking(reference, email)
    if booking_id is None or user is None or not user.is_authenticated:
        raise BookingNotFound()
    booking = Booking.objects.select_related("room").filter(pk=booking_id).first()
    if booking is None:
        raise BookingNotFound()
    if is_hotel_admin(user) or booking.customer_id == user.id:
        return booking
    raise BookingNotFound()


def _locked_booking(booking_id: int) -> Booking:
    try:
        return _lock_queryset_if_possible(
            Booking.objects.select_related("room").filter(pk=booking_id)
        ).get()
    except Booking.DoesNotExist:
        raise BookingNotFound()


# ============================================================================
# STATE TRANSITIONS
# ============================================================================

def confirm_booking_payment(booking_id: int, *, payment_reference: str = "") -> bool:
    """Mark the booking paid and confirmed.

    Returns ``False`` without recording anything when the booking is
    already confirmed and paid, so repeated reconciliation of the same
    session yields exactly one confirmation.
    """

    with DjangoUnitOfWork() as uow:
        booking = _locked_booking(booking_id)
        if (
            booking.status == Booking.Status.CONFIRMED
            and booking.payment_status == Booking.PaymentStatus.PAID
        ):
            return False
        booking.confirm_payment(payment_reference)
        booking.save(
            update_fields=[
                "status",
                "payment_status",
                "payment_reference",
                "confirmed_at",
                "updated_at",
            ]
        )
        uow.collect_events(booking)

    logger.info(f"Booking {booking.reference} confirmed (payment {payment_reference or 'n/a'})")
    return True


def mark_payment_failed(booking_id: int) -> None:
    """Record a failed checkout; the booking stays pending so the guest can retry."""

    with transaction.atomic():
        booking = _locked_booking(booking_id)
        if booking.payment_status == Booking.PaymentStatus.PENDING:
            booking.payment_status = Booking.PaymentStatus.FAILED
            booking.save(update_fields=["payment_status", "updated_at"])


def cancel_booking(booking: Booking, *, source: str, reason: str = "") -> Booking:
    """Cancel a pending or confirmed booking and free its nights.

    Customer and guest cancellations are only accepted before the
    check-in date; administrators and the system may cancel any live
    booking.
    """

    with DjangoUnitOfWork() as uow:
        booking = _locked_booking(booking.pk)
        booking.cancel(source=source, reason=reason or "", today=timezone.localdate())
        booking.save(
            update_fields=[
                "status",
                "cancellation_source",
                "cancellation_reason",
                "cancelled_at",
                "updated_at",
            ]
        )
        _release_nights(booking)
        uow.collect_events(booking)

    logger.info(f"Booking {booking.reference} cancelled by {source}")
    return booking


def cancel_guest_booking(reference: str, email: str, reason: str = "") -> Booking:
    """Guest self-service cancellation; reference and e-mail prove ownership."""

    booking = find_guest_booking(reference, email)
    return cancel_booking(booking, source=Booking.CancellationSource.GUEST, reason=reason)


def complete_booking(booking: Booking, *, today: Optional[date] = None) -> Booking:
    """Persist completion of a confirmed stay whose check-out date has passed."""

    with DjangoUnitOfWork() as uow:
        booking = _locked_booking(booking.pk)
        booking.complete(today or timezone.localdate())
        booking.save(update_fields=["status", "completed_at", "updated_at"])
        _release_nights(booking)
        uow.collect_events(booking)

    logger.info(f"Booking {booking.reference} completed")
    return booking


def reschedule_booking(
    booking: Booking,
    *,
    room: Optional[Room] = None,
    check_in: Optional[date] = None,
    check_out: Optional[date] = None,
) -> Booking:
    """Move a live booking to another room and/or dates (admin calendar).

    Without ``check_out`` the length of stay is kept. A pending booking is
    repriced at the target room's rate; a paid booking keeps its price and
    therefore its number of nights.
    """

    with DjangoUnitOfWork() as uow:
        booking = _locked_booking(booking.pk)
        target_room = room or booking.room
        target_room = _lock_queryset_if_possible(Room.objects.filter(pk=target_room.pk)).get()

        if check_in is None:
            check_in = booking.check_in
        if check_out is None:
            stay = booking.stay.moved_to(check_in)
        else:
            stay = _stay_or_error(check_in, check_out)

        errors: dict[str, str] = {}
        if booking.guests > target_room.capacity:
            errors["room"] = f"This room accommodates at most {target_room.capacity} guests."
        paid = booking.payment_status == Booking.PaymentStatus.PAID
        if paid and len(stay) != booking.nights:
            errors["check_out"] = "A paid booking can be moved but not shortened or extended."
        if errors:
            raise BookingValidationError(errors)

        ensure_room_available(
            target_room,
            stay.start_date,
            stay.end_date,
            exclude_booking_id=booking.pk,
        )

        nightly_rate = booking.nightly_rate if paid else target_room.price_per_night
        booking.move(target_room, stay, nightly_rate)
        booking.save(
            update_fields=[
                "room",
                "check_in",
                "check_out",
                "nightly_rate",
                "total_price",
                "updated_at",
            ]
        )
        _release_nights(booking)
        _hold_nights(booking)
        uow.collect_events(booking)

    logger.info(f"Booking {booking.reference} moved to room {target_room.id}, {stay}")
    return booking


def bookings_in_window(start: date, end: date) -> QuerySet:
    """Bookings (any status except cancelled) touching ``[start, end)``, for the admin calendar."""

    return (
        Booking.objects.select_related("room")
        .exclude(status=Booking.Status.CANCELLED)
        .filter(check_in__lt=end, check_out__gt=start)
        .order_by("room_id", "check_in")
    )
