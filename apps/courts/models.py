"""Venue and court models.

A venue groups courts at one physical location. Each court carries its own
rate configuration (base hourly rate, pricing rules, discount rules), its
weekly operating hours with optional breaks, date-specific availability
exceptions and the booking policy enforced by the booking lifecycle.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


DAY_OF_WEEK_CHOICES = [
    (0, _("Sunday")),
    (1, _("Monday")),
    (2, _("Tuesday")),
    (3, _("Wednesday")),
    (4, _("Thursday")),
    (5, _("Friday")),
    (6, _("Saturday")),
]


def default_currency() -> str:
    return getattr(settings, "BOOKING_DEFAULT_CURRENCY", "PKR")


def default_timezone() -> str:
    return settings.TIME_ZONE


class StaffManagedMixin:
    """Owner/manager lookup shared by venues and courts."""

    def is_managed_by(self, user) -> bool:  # type: ignore
        user_id = getattr(user, "pk", user)
        if user_id is None:
            return False
        if self.owner_id == user_id:  # type: ignore[attr-defined]
            return True
        return self.managers.filter(pk=user_id).exists()  # type: ignore[attr-defined]


class Venue(StaffManagedMixin, models.Model):
    """Physical location containing one or more courts."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="owned_venues",
    )
    managers = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name="managed_venues",
        blank=True,
    )
    requires_approval = models.BooleanField(
        default=False,
        help_text=_("Every booking at this venue must be approved by staff."),
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Venue")
        verbose_name_plural = _("Venues")
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Court(StaffManagedMixin, models.Model):
    """A single bookable court within a venue."""

    class Status(models.TextChoices):
        ACTIVE = "active", _("Active")
        INACTIVE = "inactive", _("Inactive")
        MAINTENANCE = "maintenance", _("Maintenance")
        TEMPORARILY_CLOSED = "temporarily-closed", _("Temporarily closed")

    class SportType(models.TextChoices):
        CRICKET = "cricket", _("Cricket")
        FOOTBALL = "football", _("Football")
        FUTSAL = "futsal", _("Futsal")
        TENNIS = "tennis", _("Tennis")
        BADMINTON = "badminton", _("Badminton")
        SQUASH = "squash", _("Squash")
        PADEL = "padel", _("Padel")
        BASKETBALL = "basketball", _("Basketball")
        VOLLEYBALL = "volleyball", _("Volleyball")
        OTHER = "other", _("Other")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    venue = models.ForeignKey(Venue, on_delete=models.CASCADE, related_name="courts")
    name = models.CharField(max_length=255)
    court_number = models.CharField(max_length=20, blank=True)
    sport_type = models.CharField(max_length=20, choices=SportType.choices, default=SportType.OTHER)
    description = models.TextField(blank=True)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="owned_courts",
    )
    managers = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name="managed_courts",
        blank=True,
    )
    base_hourly_rate = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    currency = models.CharField(max_length=3, default=default_currency)
    timezone = models.CharField(
        max_length=64,
        default=default_timezone,
        help_text=_("IANA zone used to evaluate opening hours and pricing windows."),
    )
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)

    # Booking policy
    min_booking_duration = models.PositiveIntegerField(
        default=60, validators=[MinValueValidator(15)], help_text=_("Minutes.")
    )
    max_booking_duration = models.PositiveIntegerField(
        default=180, validators=[MaxValueValidator(24 * 60)], help_text=_("Minutes.")
    )
    booking_interval = models.PositiveIntegerField(
        default=30,
        validators=[MinValueValidator(15), MaxValueValidator(180)],
        help_text=_("Slot granularity in minutes."),
    )
    advance_booking_days = models.PositiveIntegerField(default=30)
    same_day_cutoff = models.PositiveIntegerField(
        default=120, help_text=_("Minimum minutes between now and a same-day booking's start.")
    )
    buffer_time = models.PositiveIntegerField(
        default=0, help_text=_("Minutes kept free between consecutive bookings.")
    )
    max_concurrent_bookings_per_user = models.PositiveIntegerField(default=3)
    allow_recurring_bookings = models.BooleanField(default=True)
    requires_approval = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Court")
        verbose_name_plural = _("Courts")
        ordering = ["venue__name", "name"]
        indexes = [
            models.Index(fields=["venue", "status"]),
            models.Index(fields=["sport_type", "status"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(max_booking_duration__gte=models.F("min_booking_duration")),
                name="court_max_duration_gte_min",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.venue.name})"

    def is_managed_by(self, user) -> bool:  # type: ignore
        return super().is_managed_by(user) or self.venue.is_managed_by(user)


class PricingRule(models.Model):
    """Time/date-scoped override of the court's base hourly rate."""

    class Category(models.TextChoices):
        PEAK = "peak", _("Peak")
        OFF_PEAK = "off-peak", _("Off-peak")
        WEEKEND = "weekend", _("Weekend")
        WEEKDAY = "weekday", _("Weekday")
        SEASONAL = "seasonal", _("Seasonal")
        HOLIDAY = "holiday", _("Holiday")
        PROMOTIONAL = "promotional", _("Promotional")
        EARLY_BIRD = "early-bird", _("Early bird")
        LAST_MINUTE = "last-minute", _("Last minute")

    court = models.ForeignKey(Court, on_delete=models.CASCADE, related_name="pricing_rules")
    name = models.CharField(max_length=100)
    category = models.CharField(max_length=20, choices=Category.choices)
    rate = models.DecimalField(
        max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal("0"))]
    )
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    days_of_week = models.JSONField(
        default=list, blank=True, help_text=_("0=Sunday ... 6=Saturday; empty means every day.")
    )
    start_time = models.TimeField(null=True, blank=True)
    end_time = models.TimeField(null=True, blank=True)
    priority = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    position = models.PositiveIntegerField(default=0, help_text=_("Declaration order."))
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["position", "id"]

    def __str__(self) -> str:
        return f"{self.name} ({self.rate})"


class DiscountRule(models.Model):
    """Conditional reduction applied after the hourly rate is resolved."""

    class Category(models.TextChoices):
        MEMBERSHIP = "membership", _("Membership")
        LOYALTY = "loyalty", _("Loyalty")
        GROUP = "group", _("Group")
        EARLY_BIRD = "early-bird", _("Early bird")
        LAST_MINUTE = "last-minute", _("Last minute")
        BULK = "bulk", _("Bulk")
        PROMOTIONAL = "promotional", _("Promotional")

    class Kind(models.TextChoices):
        PERCENTAGE = "percentage", _("Percentage")
        FIXED = "fixed", _("Fixed amount")

    court = models.ForeignKey(Court, on_delete=models.CASCADE, related_name="discount_rules")
    name = models.CharField(max_length=100, blank=True)
    category = models.CharField(max_length=20, choices=Category.choices)
    kind = models.CharField(max_length=20, choices=Kind.choices, default=Kind.PERCENTAGE)
    value = models.DecimalField(
        max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal("0"))]
    )
    membership_tier = models.CharField(max_length=50, blank=True)
    min_group_size = models.PositiveIntegerField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    position = models.PositiveIntegerField(default=0, help_text=_("Declaration order."))

    class Meta:
        ordering = ["position", "id"]

    def __str__(self) -> str:
        return f"{self.category} {self.value} ({self.kind})"


class OperatingHours(models.Model):
    """Weekly opening window of a court for one day of the week."""

    court = models.ForeignKey(Court, on_delete=models.CASCADE, related_name="operating_hours")
    day_of_week = models.PositiveSmallIntegerField(choices=DAY_OF_WEEK_CHOICES)
    open_time = models.TimeField(null=True, blank=True)
    close_time = models.TimeField(null=True, blank=True)
    is_closed = models.BooleanField(default=False)

    class Meta:
        ordering = ["day_of_week"]
        constraints = [
            models.UniqueConstraint(fields=["court", "day_of_week"], name="unique_court_day_of_week"),
        ]

    def __str__(self) -> str:
        if self.is_closed:
            return f"{self.get_day_of_week_display()}: closed"
        return f"{self.get_day_of_week_display()}: {self.open_time}-{self.close_time}"


class BreakWindow(models.Model):
    """Recurring pause within a day's opening hours."""

    operating_hours = models.ForeignKey(
        OperatingHours, on_delete=models.CASCADE, related_name="breaks"
    )
    start_time = models.TimeField()
    end_time = models.TimeField()
    reason = models.CharField(max_length=255, blank=True)

    class Meta:
        ordering = ["start_time"]


class AvailabilityException(models.Model):
    """Calendar-date override of a court's normal availability."""

    class Category(models.TextChoices):
        HOLIDAY = "holiday", _("Holiday")
        MAINTENANCE = "maintenance", _("Maintenance")
        SPECIAL_EVENT = "special-event", _("Special event")
        BLACKOUT = "blackout", _("Blackout")
        CUSTOM = "custom", _("Custom")

    court = models.ForeignKey(Court, on_delete=models.CASCADE, related_name="availability_exceptions")
    date = models.DateField()
    category = models.CharField(max_length=20, choices=Category.choices, default=Category.CUSTOM)
    is_available = models.BooleanField(
        default=False,
        help_text=_("When true the court stays bookable, optionally with custom hours."),
    )
    custom_open_time = models.TimeField(null=True, blank=True)
    custom_close_time = models.TimeField(null=True, blank=True)
    reason = models.CharField(max_length=255, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["date"]
        indexes = [models.Index(fields=["court", "date"])]

    def __str__(self) -> str:
        return f"{self.court_id} {self.date} ({self.category})"
