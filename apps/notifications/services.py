"""Notification services for sending emails and in-app messages."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Iterable
from zoneinfo import ZoneInfo

from django.conf import settings  # type: ignore
from django.core.mail import send_mail  # type: ignore
from django.utils.html import strip_tags  # type: ignore

if TYPE_CHECKING:  # pragma: no cover
    from apps.bookings.models import Booking
    from apps.users.models import CustomUser

logger = logging.getLogger(__name__)


# ============================================================================
# EMAIL NOTIFICATIONS
# ============================================================================

def send_email_notification(
    recipient_email: str,
    subject: str,
    message: str,
    *,
    html_message: str | None = None,
) -> bool:
    """
    Send one email.

    Args:
        recipient_email: Recipient address
        subject: Subject line
        message: Plain-text body (derived from ``html_message`` when empty)
        html_message: Optional HTML body

    Returns:
        bool: True if the message was handed to the mail backend
    """
    try:
        if html_message and not message:
            message = strip_tags(html_message)

        send_mail(
            subject=subject,
            message=message,
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
# IN-APP NOTIFICATIONS
# ============================================================================

def create_in_app_notification(
    user: "CustomUser",
    category: str,
    title: str,
    message: str,
    booking: "Booking | None" = None,
) -> bool:
    """Store an in-app notification; returns True on success."""
    try:
        from .models import Notification

        Notification.objects.create(
            user=user,
            booking=booking,
            category=category,
            title=title,
            message=message,
        )

        logger.info(f"In-app notification created for {user.email}: {title}")
        return True

    except Exception as e:
        logger.error(f"Failed to create in-app notification for {user.email}: {e}", exc_info=True)
        return False


def notify_user(
    user: "CustomUser",
    category: str,
    title: str,
    message: str,
    booking: "Booking | None" = None,
) -> dict[str, bool]:
    """
    Deliver a notification over every channel the user has.

    Returns:
        dict: Delivery result per channel
    """
    results = {"email": False, "in_app": False}
    if user.email:
        results["email"] = send_email_notification(user.email, title, message)
    results["in_app"] = create_in_app_notification(user, category, title, message, booking)
    return results


# ============================================================================
# BOOKING MESSAGES
# ============================================================================

def court_staff(booking: "Booking") -> Iterable["CustomUser"]:
    """Owners and managers of the booked court and its venue, without duplicates."""
    court, venue = booking.court, booking.venue
    seen = set()
    for user in [court.owner, venue.owner, *court.managers.all(), *venue.managers.all()]:
        if user.pk not in seen:
            seen.add(user.pk)
            yield user


def format_slot(booking: "Booking") -> str:
    """Booked interval in the court's local time, e.g. ``15 Jan 2024, 18:00-19:00``."""
    zone = ZoneInfo(booking.court.timezone)
    start: datetime = booking.start_time.astimezone(zone)
    end: datetime = booking.end_time.astimezone(zone)
    return f"{start:%d %b %Y}, {start:%H:%M}-{end:%H:%M}"


def booking_summary(booking: "Booking") -> str:
    return (
        f"Booking: #{booking.booking_number}\n"
        f"Court: {booking.court.name} ({booking.venue.name})\n"
        f"Time: {format_slot(booking)}\n"
        f"Total: {booking.total_amount} {booking.currency}"
    )
