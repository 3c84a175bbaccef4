"""Booking lifecycle settings read from Django settings."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings  # type: ignore


@dataclass(frozen=True)
class LifecycleSettings:
    tax_rate: Decimal = Decimal("0.05")
    service_fee: Decimal = Decimal("0")
    check_in_window_minutes: int = 15
    no_show_grace_minutes: int = 30
    reschedule_cutoff_hours: int = 2
    tentative_hold_minutes: int = 15
    max_recurring_occurrences: int = 52
    enforce_closing_time: bool = True


def lifecycle_settings() -> LifecycleSettings:
    """Current values; read on every call so ``override_settings`` applies."""
    return LifecycleSettings(
        tax_rate=Decimal(str(getattr(settings, "BOOKING_TAX_RATE", "0.05"))),
        service_fee=Decimal(str(getattr(settings, "BOOKING_SERVICE_FEE", "0"))),
        check_in_window_minutes=getattr(settings, "BOOKING_CHECK_IN_WINDOW_MINUTES", 15),
        no_show_grace_minutes=getattr(settings, "BOOKING_NO_SHOW_GRACE_MINUTES", 30),
        reschedule_cutoff_hours=getattr(settings, "BOOKING_RESCHEDULE_CUTOFF_HOURS", 2),
        tentative_hold_minutes=getattr(settings, "BOOKING_TENTATIVE_HOLD_MINUTES", 15),
        max_recurring_occurrences=getattr(settings, "BOOKING_MAX_RECURRING_OCCURRENCES", 52),
        enforce_closing_time=getattr(settings, "BOOKING_ENFORCE_CLOSING_TIME", True),
    )
