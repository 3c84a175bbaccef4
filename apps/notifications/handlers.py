"""Message bus subscribers that queue notification delivery.

They run after the booking transaction commits; delivery itself happens
in Celery workers.
"""

from __future__ import annotations

import logging

from shared.application.message_bus import message_bus
from apps.bookings.domain.events import (
    BookingApproved,
    BookingCancelled,
    BookingCreated,
    BookingNoShow,
    BookingRejected,
    BookingRescheduled,
)

from . import tasks

logger = logging.getLogger(__name__)


@message_bus.handles(BookingCreated)
def on_booking_created(event: BookingCreated) -> None:
    # Occurrences of a recurring series are covered by the parent's message
    if event.parent_id is not None:
        return
    tasks.notify_booking_created.delay(str(event.booking_id))


@message_bus.handles(BookingApproved)
def on_booking_approved(event: BookingApproved) -> None:
    tasks.notify_booking_approved.delay(str(event.booking_id))


@message_bus.handles(BookingRejected)
def on_booking_rejected(event: BookingRejected) -> None:
    tasks.notify_booking_rejected.delay(str(event.booking_id))


@message_bus.handles(BookingCancelled)
def on_booking_cancelled(event: BookingCancelled) -> None:
    tasks.notify_booking_cancelled.delay(str(event.booking_id))


@message_bus.handles(BookingRescheduled)
def on_booking_rescheduled(event: BookingRescheduled) -> None:
    tasks.notify_booking_rescheduled.delay(str(event.booking_id))


@message_bus.handles(BookingNoShow)
def on_booking_no_show(event: BookingNoShow) -> None:
    tasks.notify_booking_no_show.delay(str(event.booking_id))
