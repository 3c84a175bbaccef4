import os

from celery import Celery  # type: ignore
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("court_booking")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Release tentative holds - every minute
    "expire-tentative-bookings": {
        "task": "bookings.expire_tentative_bookings",
        "schedule": 60.0,
        "options": {"expires": 50},
    },
    # Confirmed bookings nobody checked in for
    "mark-no-show-bookings": {
        "task": "bookings.mark_no_show_bookings",
        "schedule": crontab(minute="*/5"),
    },
    # Close in-progress bookings after their end time
    "complete-finished-bookings": {
        "task": "bookings.complete_finished_bookings",
        "schedule": crontab(minute="*/5"),
    },
}

app.conf.timezone = "Asia/Karachi"
