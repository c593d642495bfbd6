import os

from celery import Celery
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("hotel_booking")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Persist completion for stays whose check-out date has passed
    "complete-finished-bookings": {
        "task": "bookings.complete_finished_bookings",
        "schedule": crontab(minute=15),  # every hour at :15
    },
    # Re-check checkout sessions the guest never returned from
    "reconcile-open-payment-sessions": {
        "task": "payments.reconcile_open_sessions",
        "schedule": crontab(minute="*/10"),
        "options": {"expires": 540},
    },
}
