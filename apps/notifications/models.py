"""Notification model.

In-app messages about booking activity: confirmations, approval requests,
cancellations with refund details, reschedules and no-shows. Each
notification can be marked as read by its recipient.
"""

from __future__ import annotations

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Notification(models.Model):
    """A message sent to a user about some event."""

    class Category(models.TextChoices):
        BOOKING_CREATED = "booking-created", _("Booking created")
        APPROVAL_REQUIRED = "approval-required", _("Approval required")
        BOOKING_APPROVED = "booking-approved", _("Booking approved")
        BOOKING_REJECTED = "booking-rejected", _("Booking rejected")
        BOOKING_CANCELLED = "booking-cancelled", _("Booking cancelled")
        BOOKING_RESCHEDULED = "booking-rescheduled", _("Booking rescheduled")
        BOOKING_NO_SHOW = "booking-no-show", _("No-show")

    user = models.ForeignKey(
        'users.CustomUser', on_delete=models.CASCADE, related_name='notifications'
    )
    booking = models.ForeignKey(
        'bookings.Booking',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='notifications',
    )
    category = models.CharField(max_length=30, choices=Category.choices)
    title = models.CharField(max_length=255)
    message = models.TextField()
    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [models.Index(fields=['user', 'is_read'])]

    def __str__(self) -> str:
        return f"Notification to {self.user_id}: {self.title}"

    def mark_read(self, now) -> bool:
        if self.is_read:
            return False
        self.is_read = True
        self.read_at = now
        self.save(update_fields=['is_read', 'read_at'])
        return True
