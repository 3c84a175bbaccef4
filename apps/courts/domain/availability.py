"""
Availability Checker

Decides whether a court can structurally host a booking for an interval,
based only on the court's own state: status, weekly opening hours, breaks
and date exceptions. Other bookings are the conflict detector's concern.

Checks run in order and the first failure wins:
1. court status must be active
2. the day must have an opening window; a start after midnight may belong
   to the previous day's overnight window
3. the interval must fall inside that window and outside breaks
4. no blocking exception may exist for the opening day or the start date
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Tuple

from shared.domain.value_objects import TimeRange
from apps.courts.domain.entities import Court

REASON_INACTIVE = 'Court is not active'
REASON_CLOSED = 'Court is closed on this day'
REASON_OUTSIDE_HOURS = 'Outside operating hours'
REASON_BREAK = 'During scheduled break'
REASON_EXCEPTION = 'Court is unavailable on this date'


@dataclass(frozen=True)
class AvailabilityResult:
    available: bool
    reason: Optional[str] = None

    @classmethod
    def ok(cls) -> 'AvailabilityResult':
        return cls(True)

    @classmethod
    def blocked(cls, reason: str) -> 'AvailabilityResult':
        return cls(False, reason)

    def __bool__(self):
        return self.available


@dataclass(frozen=True)
class DayWindow:
    """Opening window of a court on one calendar date, in local time"""
    opens_at: datetime
    closes_at: datetime
    breaks: Tuple[TimeRange, ...] = ()


def operating_window(court: Court, day: date) -> Optional[DayWindow]:
    """
    Resolve the opening window for ``day``

    An available exception with custom hours replaces the weekly entry.
    A closing time at or before the opening time means the court closes
    after midnight.
    """
    exception = court.exception_for(day)
    if exception is not None and exception.is_available and exception.has_custom_hours:
        return _window(court, day, exception.custom_open_time, exception.custom_close_time)

    hours = court.hours_for(day)
    if hours is None or not hours.is_open:
        return None
    breaks = tuple(
        TimeRange(court.local_datetime(day, item.start_time), court.local_datetime(day, item.end_time))
        for item in hours.breaks
        if item.start_time < item.end_time
    )
    return _window(court, day, hours.open_time, hours.close_time, breaks)


def _window(court, day, open_time, close_time, breaks=()) -> DayWindow:
    opens_at = court.local_datetime(day, open_time)
    close_day = day if close_time > open_time else day + timedelta(days=1)
    return DayWindow(opens_at, court.local_datetime(close_day, close_time), breaks)


def window_for(court: Court, local_start: datetime) -> Tuple[date, Optional[DayWindow]]:
    """
    The opening day and window a local start time belongs to

    Before the day's own opening, a start that falls inside the previous
    day's overnight window belongs to that window.
    """
    day = local_start.date()
    window = operating_window(court, day)
    if window is None or local_start < window.opens_at:
        previous_day = day - timedelta(days=1)
        previous = operating_window(court, previous_day)
        if previous is not None and previous.opens_at <= local_start < previous.closes_at:
            return previous_day, previous
    return day, window


def check_availability(
    court: Court,
    start_time: datetime,
    end_time: datetime,
    *,
    enforce_closing_time: bool = True,
) -> AvailabilityResult:
    if not court.is_active:
        return AvailabilityResult.blocked(REASON_INACTIVE)

    local_start = court.to_local(start_time)
    day, window = window_for(court, local_start)
    if window is None:
        return AvailabilityResult.blocked(REASON_CLOSED)

    if local_start < window.opens_at or local_start >= window.closes_at:
        return AvailabilityResult.blocked(REASON_OUTSIDE_HOURS)
    if enforce_closing_time and end_time > window.closes_at:
        return AvailabilityResult.blocked(REASON_OUTSIDE_HOURS)

    requested = TimeRange(start_time, end_time)
    for pause in window.breaks:
        if requested.overlaps_with(pause):
            return AvailabilityResult.blocked(REASON_BREAK)

    # Both the opening day and the calendar date of the start can be blocked
    for blocked_day in sorted({day, local_start.date()}):
        exception = court.exception_for(blocked_day)
        if exception is not None and not exception.is_available:
            return AvailabilityResult.blocked(exception.reason or REASON_EXCEPTION)

    return AvailabilityResult.ok()
