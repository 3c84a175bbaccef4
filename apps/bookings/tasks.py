"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from .application.sweeps import BookingStatusSweeper

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (run by Celery Beat, see config/celery.py)
# ============================================================================

@shared_task(name="bookings.expire_tentative_bookings")
def expire_tentative_bookings() -> dict[str, int]:
    """
    Expire tentative holds whose expiry time has passed.

    Frees the interval for other players. Runs every minute.

    Returns:
        dict: {"expired": number of expired bookings}
    """
    expired = BookingStatusSweeper().expire_holds()
    return {"expired": expired}


@shared_task(name="bookings.mark_no_show_bookings")
def mark_no_show_bookings() -> dict[str, int]:
    """
    Mark confirmed bookings without a check-in as no-show.

    A booking becomes a no-show once the grace period after its start
    (``BOOKING_NO_SHOW_GRACE_MINUTES``) has elapsed.

    Returns:
        dict: {"no_shows": number of bookings marked}
    """
    marked = BookingStatusSweeper().mark_no_shows()
    return {"no_shows": marked}


@shared_task(name="bookings.complete_finished_bookings")
def complete_finished_bookings() -> dict[str, int]:
    """
    Complete in-progress bookings whose end time has passed.

    Returns:
        dict: {"completed": number of completed bookings}
    """
    completed = BookingStatusSweeper().complete_finished()
    return {"completed": completed}
