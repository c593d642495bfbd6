"""Notification services for booking e-mails."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.conf import settings  # type: ignore
from django.core.mail import send_mail  # type: ignore
from django.db import IntegrityError, transaction  # type: ignore
from django.db.models import F  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.html import strip_tags  # type: ignore

from .models import BookingNotification

if TYPE_CHECKING:  # pragma: no cover
    from apps.bookings.models import Booking

logger = logging.getLogger(__name__)


# ============================================================================
# EMAIL DELIVERY
# ============================================================================

def send_email_notification(recipient_email: str, subject: str, html_message: str) -> bool:
    """
    Send one HTML e-mail with a plain-text alternative.

    Returns:
        bool: True if the backend accepted the message
    """
    try:
        send_mail(
            subject=subject,
            message=strip_tags(html_message),
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient_email],
            html_message=html_message,
            fail_silently=False,
        )
        logger.info(f"Email sent successfully to {recipient_email}: {subject}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {recipient_email}: {e}", exc_info=True)
        return False


# ============================================================================
# BOOKING TEMPLATES
# ============================================================================

def _long_date(value) -> str:
    return value.strftime("%a, %b %d, %Y").replace(" 0", " ")


def _details_rows(rows: list[tuple[str, str]]) -> str:
    return "\n".join(
        f'<tr><td style="padding: 8px 0;"><strong>{label}:</strong></td>'
        f'<td style="padding: 8px 0;">{value}</td></tr>'
        for label, value in rows
    )


def render_confirmation_email(booking: "Booking") -> tuple[str, str]:
    subject = f"Booking Confirmation - {booking.reference}"
    rows = _details_rows(
        [
            ("Booking Reference", booking.reference),
            ("Room", booking.room.name),
            ("Check-in", _long_date(booking.check_in)),
            ("Check-out", _long_date(booking.check_out)),
            ("Guests", str(booking.guests)),
            ("Total Amount", f"${booking.total_price:,.2f}"),
        ]
    )
    html_message = f"""
    <html>
    <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
        <h1 style="color: #1a1a1a; border-bottom: 3px solid #d4af37; padding-bottom: 10px;">Booking Confirmed</h1>
        <p>Dear {booking.customer_name},</p>
        <p>Thank you for choosing our hotel! Your reservation has been confirmed.</p>

        <h2>Booking Details</h2>
        <table style="width: 100%; font-size: 14px;">
            {rows}
        </table>

        <p>Check-in time is {settings.HOTEL_CHECK_IN_TIME} and check-out time is {settings.HOTEL_CHECK_OUT_TIME}.<br>
        If you need to modify or cancel your reservation, please use your booking reference.</p>

        <p>We look forward to welcoming you!<br><br><strong>{settings.HOTEL_NAME}</strong></p>
    </body>
    </html>
    """
    return subject, html_message


def render_cancellation_email(booking: "Booking") -> tuple[str, str]:
    subject = f"Booking Cancellation - {booking.reference}"
    rows = _details_rows(
        [
            ("Booking Reference", booking.reference),
            ("Room", booking.room.name),
            ("Check-in", _long_date(booking.check_in)),
            ("Check-out", _long_date(booking.check_out)),
        ]
    )
    html_message = f"""
    <html>
    <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
        <h1 style="color: #1a1a1a; border-bottom: 3px solid #d4af37; padding-bottom: 10px;">Booking Cancelled</h1>
        <p>Dear {booking.customer_name},</p>
        <p>Your reservation has been cancelled.</p>

        <h2>Cancelled Booking Details</h2>
        <table style="width: 100%; font-size: 14px;">
            {rows}
        </table>

        <p>If you cancelled by mistake or would like to make a new reservation, please visit our website.</p>

        <p>We hope to serve you in the future.<br><br><strong>{settings.HOTEL_NAME}</strong></p>
    </body>
    </html>
    """
    return subject, html_message


RENDERERS = {
    BookingNotification.Kind.CONFIRMATION: render_confirmation_email,
    BookingNotification.Kind.CANCELLATION: render_cancellation_email,
}


# ============================================================================
# DISPATCH
# ============================================================================

def _delivery_log(booking: "Booking", kind: str) -> BookingNotification:
    try:
        with transaction.atomic():
            log, _ = BookingNotification.objects.get_or_create(
                booking=booking,
                kind=kind,
                defaults={"recipient": booking.customer_email},
            )
    except IntegrityError:
        log = BookingNotification.objects.get(booking=booking, kind=kind)
    return log


def send_booking_notification(booking: "Booking", kind: str) -> bool:
    """
    Send the ``kind`` e-mail for ``booking`` unless it already went out.

    The delivery row is claimed with a conditional update, so concurrent
    workers cannot both send it. A failed attempt is recorded and may be
    retried; a sent one never is.

    Returns:
        bool: True if the e-mail was sent by this call
    """
    renderer = RENDERERS.get(kind)
    if renderer is None:
        raise ValueError(f"Unknown notification kind: {kind}")

    log = _delivery_log(booking, kind)
    claimed = (
        BookingNotification.objects.filter(
            pk=log.pk,
            status__in=[BookingNotification.Status.PENDING, BookingNotification.Status.FAILED],
        ).update(
            status=BookingNotification.Status.SENDING,
            attempts=F("attempts") + 1,
            updated_at=timezone.now(),
        )
    )
    if not claimed:
        logger.info(f"{kind} e-mail for booking {booking.reference} already handled ({log.status})")
        return False

    subject, html_message = renderer(booking)
    sent = send_email_notification(booking.customer_email, subject, html_message)

    if sent:
        BookingNotification.objects.filter(pk=log.pk).update(
            status=BookingNotification.Status.SENT,
            recipient=booking.customer_email,
            error="",
            sent_at=timezone.now(),
            updated_at=timezone.now(),
        )
    else:
        BookingNotification.objects.filter(pk=log.pk).update(
            status=BookingNotification.Status.FAILED,
            error=f"Delivery to {booking.customer_email} failed",
            updated_at=timezone.now(),
        )
    return sent
