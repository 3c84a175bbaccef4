"""Booking persistence models.

Rows are written through ``apps.bookings.repositories`` which maps them to
and from the ``Booking`` aggregate; the admin and read APIs use them
directly.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Booking(models.Model):
    """Reservation of a court for a contiguous interval."""

    class Status(models.TextChoices):
        PENDING_CONFIRMATION = "pending-confirmation", _("Pending confirmation")
        CONFIRMED = "confirmed", _("Confirmed")
        IN_PROGRESS = "in-progress", _("In progress")
        COMPLETED = "completed", _("Completed")
        CANCELLED = "cancelled", _("Cancelled")
        NO_SHOW = "no-show", _("No-show")
        EXPIRED = "expired", _("Expired")

    class BookingType(models.TextChoices):
        SINGLE = "single", _("Single")
        RECURRING = "recurring", _("Recurring")

    class PaymentStatus(models.TextChoices):
        PENDING = "pending", _("Pending")
        PAID = "paid", _("Paid")
        FAILED = "failed", _("Failed")
        REFUNDED = "refunded", _("Refunded")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking_number = models.CharField(max_length=20, unique=True, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    court = models.ForeignKey("courts.Court", on_delete=models.PROTECT, related_name="bookings")
    venue = models.ForeignKey("courts.Venue", on_delete=models.PROTECT, related_name="bookings")
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    duration_minutes = models.PositiveIntegerField(editable=False)
    booking_type = models.CharField(max_length=20, choices=BookingType.choices, default=BookingType.SINGLE)
    status = models.CharField(max_length=32, choices=Status.choices, default=Status.CONFIRMED)

    # Recurring series
    recurring_pattern = models.JSONField(null=True, blank=True)
    parent = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="occurrences",
    )

    # Pricing snapshot
    hourly_rate = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    base_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    discounts = models.JSONField(default=list, blank=True)
    total_discount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    tax = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    service_fee = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="PKR")

    # Payment snapshot (owned by the payment service)
    payment_status = models.CharField(
        max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING
    )
    payment_method = models.CharField(max_length=30, blank=True)
    amount_paid = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    refund_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    # Group
    group_size = models.PositiveSmallIntegerField(default=1)
    participants = models.JSONField(default=list, blank=True)

    # Pricing inputs kept for repricing
    is_early_bird = models.BooleanField(default=False)

    # Approval
    requires_approval = models.BooleanField(default=False)
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True)

    # Check-in / check-out
    checked_in_at = models.DateTimeField(null=True, blank=True)
    check_in_verified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    checked_out_at = models.DateTimeField(null=True, blank=True)
    check_out_verified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    # Cancellation record
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    cancellation_reason = models.TextField(blank=True)
    refund_eligible = models.BooleanField(default=False)
    refund_percentage = models.PositiveSmallIntegerField(default=0)
    cancellation_fee = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    hours_until_booking = models.DecimalField(max_digits=8, decimal_places=1, null=True, blank=True)

    # Tentative hold
    is_tentative = models.BooleanField(default=False)
    tentative_expires_at = models.DateTimeField(null=True, blank=True)

    notes = models.TextField(blank=True)
    special_requests = models.TextField(blank=True)
    source = models.CharField(
        max_length=20,
        default="web",
        help_text=_("Booking channel (web, mobile, admin)."),
    )
    created_at = models.DateTimeField()
    updated_at = models.DateTimeField()

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_time__gt=models.F("start_time")),
                name="booking_end_after_start",
            ),
        ]
        indexes = [
            models.Index(fields=["court", "start_time", "end_time"]),
            models.Index(fields=["court", "status"]),
            models.Index(fields=["user", "status"]),
            models.Index(fields=["status", "start_time"]),
        ]

    def __str__(self) -> str:
        return f"Booking #{self.booking_number} on {self.court_id}"

    def clean(self) -> None:
        if self.start_time and self.end_time and self.start_time >= self.end_time:
            raise ValidationError(_("End time must be after start time."))

    def save(self, *args, **kwargs):  # type: ignore
        if self.start_time and self.end_time:
            self.duration_minutes = int((self.end_time - self.start_time).total_seconds() // 60)
        super().save(*args, **kwargs)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == self.PaymentStatus.PAID


class BookingModification(models.Model):
    """Append-only history of reschedules."""

    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name="modifications")
    modified_at = models.DateTimeField()
    modified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    reason = models.CharField(max_length=500, blank=True)
    changes = models.JSONField(default=dict)

    class Meta:
        ordering = ["modified_at", "id"]

    def __str__(self) -> str:
        return f"{self.booking_id} modified at {self.modified_at:%Y-%m-%d %H:%M}"
