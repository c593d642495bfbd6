"""Errors raised while talking to the checkout provider."""

from __future__ import annotations

from typing import Any


class PaymentError(Exception):
    """Base class for payment failures."""

    http_status = 400
    default_message = "Payment request failed."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)

    def as_response_data(self) -> dict[str, Any]:
        return {"detail": self.message}


class PaymentGatewayError(PaymentError):
    """The provider was unreachable or answered with an error."""

    http_status = 502
    default_message = "Payment provider error."


class PaymentGatewayTimeout(PaymentGatewayError):
    """The provider did not answer in time; the outcome is unknown."""

    default_message = "Payment provider did not respond in time."


class PaymentInitiationError(PaymentError):
    """No checkout session could be created; the booking is left untouched."""

    http_status = 502
    default_message = "Could not start the payment. Please try again in a moment."


class PaymentStatusUnknown(PaymentError):
    """The session's outcome could not be read; nothing was changed."""

    http_status = 503
    default_message = "Payment status is not known yet. Please retry verification shortly."


class PaymentSessionMismatch(PaymentError):
    """The session does not belong to the booking it was presented with."""

    default_message = "Payment session does not match this booking."
