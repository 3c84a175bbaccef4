"""
Slot Enumerator

Builds the grid of fixed-width candidate slots for a court on one day and
marks each one available or not. Read-only: nothing is created or locked.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, List

from shared.domain.exceptions import ValidationError
from shared.domain.value_objects import TimeRange, overlaps
from apps.courts.domain.availability import operating_window
from apps.courts.domain.entities import Court

MIN_INTERVAL = 15
MAX_INTERVAL = 180


@dataclass(frozen=True)
class Slot:
    start_time: datetime
    end_time: datetime
    available: bool

    def to_dict(self) -> dict:
        return {
            'startTime': self.start_time.isoformat(),
            'endTime': self.end_time.isoformat(),
            'available': self.available,
        }


def validate_interval(interval_minutes: int) -> int:
    if not MIN_INTERVAL <= interval_minutes <= MAX_INTERVAL:
        raise ValidationError(
            f"Interval must be between {MIN_INTERVAL} and {MAX_INTERVAL} minutes",
            field='interval',
        )
    return interval_minutes


def enumerate_slots(
    court: Court,
    day: date,
    interval_minutes: int,
    occupied: Iterable[TimeRange] = (),
) -> List[Slot]:
    """
    Slots of ``interval_minutes`` from opening to closing time on ``day``

    Trailing slots that would run past closing time are dropped. A slot is
    unavailable when it overlaps an occupied interval (widened by the
    court's buffer), a scheduled break, or when the whole day is blocked
    by an exception or the court is not active.
    """
    validate_interval(interval_minutes)
    window = operating_window(court, day)
    if window is None:
        return []

    exception = court.exception_for(day)
    day_blocked = not court.is_active or (exception is not None and not exception.is_available)
    busy = [interval.padded(court.policy.buffer_time) for interval in occupied]
    busy.extend(window.breaks)

    step = timedelta(minutes=interval_minutes)
    slots = []
    cursor = window.opens_at
    while cursor + step <= window.closes_at:
        slot_end = cursor + step
        taken = any(overlaps(cursor, slot_end, item.start, item.end) for item in busy)
        slots.append(Slot(cursor, slot_end, not (day_blocked or taken)))
        cursor = slot_end
    return slots
