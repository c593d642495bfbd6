"""Errors raised by the booking domain.

Each error carries the HTTP status the API answers with, so views can
translate domain failures without a per-view mapping table.
"""

from __future__ import annotations

from typing import Any


class BookingError(Exception):
    """Base class for booking failures."""

    http_status = 400
    default_message = "Booking request failed."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)

    def as_response_data(self) -> dict[str, Any]:
        return {"detail": self.message}


class BookingValidationError(BookingError):
    """Request data violates a booking rule; carries field-level errors."""

    default_message = "Invalid booking request."

    def __init__(self, errors: dict[str, str | list[str]]):
        self.errors = {
            field: value if isinstance(value, list) else [value] for field, value in errors.items()
        }
        first = next(iter(self.errors.values()), [self.default_message])
        super().__init__(first[0])

    def as_response_data(self) -> dict[str, Any]:
        return dict(self.errors)


class BookingConflictError(BookingError):
    """The room is already held for an overlapping stay."""

    http_status = 409
    default_message = "This room is not available for the selected dates."


class InvalidBookingTransition(BookingError):
    """The booking's current status does not allow the requested change."""

    default_message = "This booking cannot be changed in its current state."


class BookingNotFound(BookingError):
    """No booking matches; deliberately vague for guest lookups."""

    http_status = 404
    default_message = "Booking not found."


class ReferenceGenerationError(BookingError):
    """Could not allocate a unique booking reference."""

    http_status = 503
    default_message = "Could not allocate a booking reference. Please try again."
