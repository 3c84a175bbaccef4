"""
Common Value Objects

Value objects used across multiple domains:
- TimeRange: Represents a half-open interval of time (start to end)
- quantize_amount: Rounds currency amounts to cents
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP

from shared.domain.base import ValueObject

CENT = Decimal('0.01')


def quantize_amount(amount: Decimal) -> Decimal:
    """Round a currency amount to two decimal places (half up)."""
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class TimeRange(ValueObject):
    """
    Time range value object

    Represents the interval [start, end): start is inclusive, end is exclusive.
    Used for bookings, slots and break windows.
    """
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time ({self.start}) must be before end time ({self.end})")

    def overlaps_with(self, other: 'TimeRange') -> bool:
        """
        Check if this range overlaps with another

        Adjacent ranges don't overlap because the end is exclusive.

        Examples:
            - [10:00, 12:00) overlaps with [11:00, 13:00) -> True
            - [10:00, 12:00) overlaps with [12:00, 13:00) -> False (adjacent)
        """
        if not isinstance(other, TimeRange):
            raise TypeError("Can only check overlap with another TimeRange")
        return overlaps(self.start, self.end, other.start, other.end)

    def padded(self, minutes: int) -> 'TimeRange':
        """Widen the range by ``minutes`` on both sides."""
        if not minutes:
            return self
        delta = timedelta(minutes=minutes)
        return TimeRange(self.start - delta, self.end + delta)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def duration_minutes(self) -> int:
        return int(self.duration.total_seconds() // 60)

    def __str__(self):
        return f"{self.start.isoformat()} - {self.end.isoformat()}"

    def __repr__(self):
        return f"TimeRange({self.start!r}, {self.end!r})"


def overlaps(start_a, end_a, start_b, end_b) -> bool:
    """Half-open interval overlap: [a) and [b) share at least one instant."""
    return start_a < end_b and start_b < end_a
