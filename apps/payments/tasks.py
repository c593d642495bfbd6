"""Celery tasks for payments."""

from __future__ import annotations

import logging
from datetime import timedelta

from celery import shared_task  # type: ignore
from django.utils import timezone  # type: ignore

from .exceptions import PaymentError
from .models import Payment
from .services import reconcile_payment

logger = logging.getLogger(__name__)

# Sessions younger than this are most likely still on the checkout page
RECONCILE_AFTER = timedelta(minutes=10)


@shared_task(name="payments.reconcile_open_sessions")
def reconcile_open_sessions() -> dict[str, int]:
    """
    Re-check checkout sessions that never came back through verification.

    Covers guests who paid but closed the tab before the redirect, and
    delayed payment methods whose funds arrive after checkout. Runs every
    ten minutes.

    Returns:
        dict: {"checked": sessions asked about, "confirmed": bookings confirmed}
    """
    cutoff = timezone.now() - RECONCILE_AFTER
    open_payments = Payment.objects.filter(
        status__in=[Payment.Status.PENDING, Payment.Status.UNPAID],
        created_at__lte=cutoff,
    ).select_related("booking")

    checked = 0
    confirmed = 0
    for payment in open_payments:
        checked += 1
        try:
            outcome = reconcile_payment(payment.session_id, payment.booking_id)
            if outcome.newly_confirmed:
                confirmed += 1
        except PaymentError as e:
            logger.warning(f"Session {payment.session_id} not reconciled: {e}")
        except Exception as e:
            logger.error(f"Error reconciling session {payment.session_id}: {e}", exc_info=True)

    if confirmed:
        logger.info(f"Confirmed {confirmed} bookings from {checked} open sessions")

    return {"checked": checked, "confirmed": confirmed}
