"""
Booking Lifecycle

The booking state machine as plain data plus a few pure rules. Models
and services consult this module instead of comparing statuses inline.

    pending ──payment──▶ confirmed ──stay over──▶ completed
       │                     │
       └──────cancel─────────┴──────▶ cancelled

Only pending and confirmed bookings hold their room's nights.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from apps.bookings.exceptions import InvalidBookingTransition
from shared.domain.value_objects import DateRange, Money

PENDING = "pending"
CONFIRMED = "confirmed"
COMPLETED = "completed"
CANCELLED = "cancelled"

PAYMENT_PENDING = "pending"
PAYMENT_PAID = "paid"
PAYMENT_FAILED = "failed"

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    PENDING: frozenset({CONFIRMED, CANCELLED}),
    CONFIRMED: frozenset({COMPLETED, CANCELLED}),
    COMPLETED: frozenset(),
    CANCELLED: frozenset(),
}

SLOT_HOLDING_STATUSES = frozenset({PENDING, CONFIRMED})
TERMINAL_STATUSES = frozenset({COMPLETED, CANCELLED})

# Cancellation sources that must respect the before-check-in rule
SELF_SERVICE_SOURCES = frozenset({"customer", "guest"})


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def ensure_transition(current: str, target: str) -> None:
    """Raise ``InvalidBookingTransition`` unless ``current -> target`` is allowed."""
    if can_transition(current, target):
        return
    if current in TERMINAL_STATUSES:
        raise InvalidBookingTransition(f"Booking is already {current}.")
    raise InvalidBookingTransition(f"Cannot move a {current} booking to {target}.")


def holds_slot(status: str) -> bool:
    return status in SLOT_HOLDING_STATUSES


def effective_status(status: str, check_out: date, today: date) -> str:
    """
    Status as the outside world should see it

    A confirmed stay whose check-out date has arrived is completed even
    before the periodic job persists it.
    """
    if status == CONFIRMED and check_out <= today:
        return COMPLETED
    return status


def stay_has_ended(check_out: date, today: date) -> bool:
    return check_out <= today


def self_service_cancellation_allowed(status: str, check_in: date, today: date) -> bool:
    """Customers and guests may cancel live bookings only before the check-in date."""
    return status in SLOT_HOLDING_STATUSES and check_in > today


def stay_total(nightly_rate: Money, stay: DateRange) -> Money:
    """Total price: nights x nightly rate, rounded to cents."""
    return (nightly_rate * len(stay)).quantize()


def to_money(amount: Decimal, currency: str) -> Money:
    return Money(Decimal(amount), currency.upper())
