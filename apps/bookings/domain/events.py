"""
Booking Domain Events

Events that represent things that have happened in the booking domain.
They are published after the transaction that produced them commits.
"""

from dataclasses import dataclass
from datetime import date

from shared.domain.base import DomainEvent


@dataclass(kw_only=True)
class BookingCreated(DomainEvent):
    """A new pending booking now holds the room's nights."""
    booking_id: int
    reference: str
    room_id: int


@dataclass(kw_only=True)
class BookingConfirmed(DomainEvent):
    """
    Payment reconciled as paid (pending -> confirmed)

    Triggers:
    - Confirmation e-mail to the guest
    """
    booking_id: int
    reference: str
    payment_reference: str = ""


@dataclass(kw_only=True)
class BookingCancelled(DomainEvent):
    """
    Booking cancelled; its nights are free again

    Triggers:
    - Cancellation e-mail to the guest
    """
    booking_id: int
    reference: str
    source: str


@dataclass(kw_only=True)
class BookingCompleted(DomainEvent):
    """Stay is over (confirmed -> completed); the booking may be reviewed."""
    booking_id: int
    reference: str


@dataclass(kw_only=True)
class BookingRescheduled(DomainEvent):
    """An administrator moved the booking to other dates or another room."""
    booking_id: int
    reference: str
    previous_room_id: int
    previous_check_in: date
    previous_check_out: date
