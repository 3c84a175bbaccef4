"""Celery tasks delivering booking notifications."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from apps.bookings.models import Booking

from .models import Notification
from .services import booking_summary, court_staff, notify_user

logger = logging.getLogger(__name__)

Category = Notification.Category


def _load(booking_id: str) -> Booking | None:
    try:
        return Booking.objects.select_related("user", "court__owner", "venue__owner").get(pk=booking_id)
    except Booking.DoesNotExist:
        logger.warning(f"Booking {booking_id} not found for notification")
        return None


@shared_task(name="notifications.notify_booking_created")
def notify_booking_created(booking_id: str) -> None:
    """Confirmation (or awaiting-approval notice) to the player; approval request to staff."""
    booking = _load(booking_id)
    if booking is None:
        return

    summary = booking_summary(booking)
    if booking.status == Booking.Status.PENDING_CONFIRMATION:
        notify_user(
            booking.user,
            Category.BOOKING_CREATED,
            f"Booking #{booking.booking_number} is awaiting approval",
            f"Your booking request was received and is waiting for the venue to approve it.\n\n{summary}",
            booking,
        )
        for staff in court_staff(booking):
            notify_user(
                staff,
                Category.APPROVAL_REQUIRED,
                f"Approval required: booking #{booking.booking_number}",
                f"{booking.user.display_name} requested a booking.\n\n{summary}",
                booking,
            )
        return

    notify_user(
        booking.user,
        Category.BOOKING_CREATED,
        f"Booking #{booking.booking_number} confirmed!",
        f"Your booking is confirmed.\n\n{summary}",
        booking,
    )


@shared_task(name="notifications.notify_booking_approved")
def notify_booking_approved(booking_id: str) -> None:
    booking = _load(booking_id)
    if booking is None:
        return
    notify_user(
        booking.user,
        Category.BOOKING_APPROVED,
        f"Booking #{booking.booking_number} approved",
        f"The venue approved your booking.\n\n{booking_summary(booking)}",
        booking,
    )


@shared_task(name="notifications.notify_booking_rejected")
def notify_booking_rejected(booking_id: str) -> None:
    booking = _load(booking_id)
    if booking is None:
        return
    notify_user(
        booking.user,
        Category.BOOKING_REJECTED,
        f"Booking #{booking.booking_number} rejected",
        f"The venue rejected your booking.\nReason: {booking.rejection_reason}\n"
        f"You are eligible for a full refund.\n\n{booking_summary(booking)}",
        booking,
    )


@shared_task(name="notifications.notify_booking_cancelled")
def notify_booking_cancelled(booking_id: str) -> None:
    booking = _load(booking_id)
    if booking is None:
        return
    refund = booking.total_amount - booking.cancellation_fee
    notify_user(
        booking.user,
        Category.BOOKING_CANCELLED,
        f"Booking #{booking.booking_number} cancelled",
        f"Your booking was cancelled.\nReason: {booking.cancellation_reason}\n"
        f"Refund: {booking.refund_percentage}% ({refund} {booking.currency})\n\n{booking_summary(booking)}",
        booking,
    )


@shared_task(name="notifications.notify_booking_rescheduled")
def notify_booking_rescheduled(booking_id: str) -> None:
    booking = _load(booking_id)
    if booking is None:
        return
    notify_user(
        booking.user,
        Category.BOOKING_RESCHEDULED,
        f"Booking #{booking.booking_number} updated",
        f"Your booking was changed.\n\n{booking_summary(booking)}",
        booking,
    )


@shared_task(name="notifications.notify_booking_no_show")
def notify_booking_no_show(booking_id: str) -> None:
    booking = _load(booking_id)
    if booking is None:
        return
    notify_user(
        booking.user,
        Category.BOOKING_NO_SHOW,
        f"Missed booking #{booking.booking_number}",
        f"You did not check in for your booking, so it was marked as a no-show.\n\n{booking_summary(booking)}",
        booking,
    )
