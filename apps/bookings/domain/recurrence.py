"""
Recurring Series Expansion

Turns a parent booking's start time and a recurrence pattern into the
start/end times of its occurrences. Dates are generated with
``dateutil.rrule`` in the court's local wall-clock time, so a weekly 18:00
game stays at 18:00 across DST changes.

Day-of-week filters (0=Sunday) are part of the rule itself for daily and
weekly series, which means the next matching day is computed directly and
no week is skipped. Monthly series keep the parent's day of month and drop
months where that date falls on an excluded weekday.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from itertools import islice
from typing import Iterator, List, Optional, Tuple

from dateutil import rrule

from shared.domain.exceptions import ValidationError
from apps.courts.domain.entities import day_of_week

MAX_OCCURRENCES = 52

# Safety bound on candidates inspected while filtering monthly series
MAX_CANDIDATES = 1000


class Frequency(Enum):
    DAILY = 'daily'
    WEEKLY = 'weekly'
    MONTHLY = 'monthly'


RRULE_FREQUENCIES = {
    Frequency.DAILY: rrule.DAILY,
    Frequency.WEEKLY: rrule.WEEKLY,
    Frequency.MONTHLY: rrule.MONTHLY,
}

# Indexed by our day-of-week numbering (0=Sunday)
RRULE_WEEKDAYS = (rrule.SU, rrule.MO, rrule.TU, rrule.WE, rrule.TH, rrule.FR, rrule.SA)


@dataclass(frozen=True)
class RecurringPattern:
    frequency: Frequency
    interval: int = 1
    days_of_week: Tuple[int, ...] = ()
    end_date: Optional[date] = None
    occurrences: Optional[int] = None

    def validate(self, max_occurrences: int = MAX_OCCURRENCES) -> 'RecurringPattern':
        if self.end_date is None and self.occurrences is None:
            raise ValidationError(
                "Invalid recurring pattern. Must specify frequency and either endDate or occurrences",
                field='recurringPattern',
            )
        if self.interval < 1:
            raise ValidationError("Interval must be at least 1", field='recurringPattern.interval')
        if self.occurrences is not None and not 1 <= self.occurrences <= max_occurrences:
            raise ValidationError(
                f"Occurrences must be between 1 and {max_occurrences}",
                field='recurringPattern.occurrences',
            )
        if any(not 0 <= day <= 6 for day in self.days_of_week):
            raise ValidationError(
                "Day of week must be between 0 and 6", field='recurringPattern.daysOfWeek'
            )
        return self

    def to_dict(self) -> dict:
        return {
            'frequency': self.frequency.value,
            'interval': self.interval,
            'daysOfWeek': list(self.days_of_week),
            'endDate': self.end_date.isoformat() if self.end_date else None,
            'occurrences': self.occurrences,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'RecurringPattern':
        end_date = data.get('endDate')
        if isinstance(end_date, str):
            end_date = date.fromisoformat(end_date)
        return cls(
            frequency=Frequency(data['frequency']),
            interval=data.get('interval') or 1,
            days_of_week=tuple(data.get('daysOfWeek') or ()),
            end_date=end_date,
            occurrences=data.get('occurrences'),
        )


def occurrence_limit(pattern: RecurringPattern, max_occurrences: int = MAX_OCCURRENCES) -> int:
    return min(pattern.occurrences or max_occurrences, max_occurrences)


def iter_occurrences(
    pattern: RecurringPattern,
    local_start: datetime,
    duration: timedelta,
) -> Iterator[Tuple[datetime, datetime]]:
    """
    Lazily yield start/end pairs of the candidate dates after ``local_start``

    ``local_start`` must be aware and expressed in the court's zone. The
    parent itself is not yielded. Generation stops at ``end_date`` or after
    ``MAX_CANDIDATES`` rule dates, never at the occurrence count, so callers
    that skip some dates keep drawing until they have enough.
    """
    tzinfo = local_start.tzinfo
    naive_start = local_start.replace(tzinfo=None)

    options = {
        'freq': RRULE_FREQUENCIES[pattern.frequency],
        'interval': pattern.interval,
        'dtstart': naive_start,
    }
    if pattern.end_date is not None:
        options['until'] = datetime.combine(pattern.end_date, time.max)
    filter_monthly = pattern.frequency == Frequency.MONTHLY and bool(pattern.days_of_week)
    if pattern.days_of_week and not filter_monthly:
        options['byweekday'] = [RRULE_WEEKDAYS[day] for day in sorted(set(pattern.days_of_week))]

    for candidate in islice(rrule.rrule(**options), MAX_CANDIDATES):
        if candidate <= naive_start:
            continue
        if filter_monthly and day_of_week(candidate.date()) not in pattern.days_of_week:
            continue
        start = candidate.replace(tzinfo=tzinfo)
        yield start, start + duration


def expand_occurrences(
    pattern: RecurringPattern,
    local_start: datetime,
    duration: timedelta,
    max_occurrences: int = MAX_OCCURRENCES,
) -> List[Tuple[datetime, datetime]]:
    """The first ``occurrence_limit`` candidates, fewer if ``end_date`` comes first"""
    limit = occurrence_limit(pattern, max_occurrences)
    return list(islice(iter_occurrences(pattern, local_start, duration), limit))
