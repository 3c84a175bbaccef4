"""
Court Domain Entities

Read-only snapshot of a court's configuration as used by the pricing
resolver, the availability checker, the slot enumerator and the booking
lifecycle:
- Court: the bookable resource with its rate table and calendar
- PricingRule / DiscountRule: rate overrides and reductions
- OperatingHours / BreakWindow: weekly opening table
- AvailabilityException: date-specific override
- BookingPolicy: per-court booking limits

Days of the week are numbered 0=Sunday ... 6=Saturday throughout.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from functools import cached_property
from typing import Dict, FrozenSet, Optional, Tuple
from uuid import UUID
from zoneinfo import ZoneInfo

from shared.domain.base import Entity, ValueObject


def day_of_week(value: date) -> int:
    """Weekday number with Sunday as 0."""
    return value.isoweekday() % 7


class CourtStatus(Enum):
    ACTIVE = 'active'
    INACTIVE = 'inactive'
    MAINTENANCE = 'maintenance'
    TEMPORARILY_CLOSED = 'temporarily-closed'


class DiscountKind(Enum):
    PERCENTAGE = 'percentage'
    FIXED = 'fixed'


@dataclass(frozen=True)
class PricingRule(ValueObject):
    """Rate override selected by priority when all of its filters match"""
    name: str
    category: str
    rate: Decimal
    priority: int = 0
    is_active: bool = True
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    days_of_week: Tuple[int, ...] = ()
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    def applies_to(self, local_start: datetime) -> bool:
        """
        Check the rule's filters against the booking's local start

        Date range and time window are inclusive at both ends.
        """
        if not self.is_active:
            return False
        day = local_start.date()
        if self.start_date and day < self.start_date:
            return False
        if self.end_date and day > self.end_date:
            return False
        if self.days_of_week and day_of_week(day) not in self.days_of_week:
            return False
        clock = local_start.time().replace(tzinfo=None)
        if self.start_time and clock < self.start_time:
            return False
        if self.end_time and clock > self.end_time:
            return False
        return True


@dataclass(frozen=True)
class DiscountRule(ValueObject):
    """Reduction applied to the running total when its condition matches"""
    category: str
    kind: DiscountKind
    value: Decimal
    name: str = ''
    is_active: bool = True
    membership_tier: str = ''
    min_group_size: Optional[int] = None


@dataclass(frozen=True)
class BreakWindow(ValueObject):
    start_time: time
    end_time: time
    reason: str = ''


@dataclass(frozen=True)
class OperatingHours(ValueObject):
    """Opening window for one day of the week"""
    day_of_week: int
    open_time: Optional[time] = None
    close_time: Optional[time] = None
    is_closed: bool = False
    breaks: Tuple[BreakWindow, ...] = ()

    @property
    def is_open(self) -> bool:
        return not self.is_closed and self.open_time is not None and self.close_time is not None


@dataclass(frozen=True)
class AvailabilityException(ValueObject):
    """Override for a single calendar date"""
    date: date
    category: str = 'custom'
    is_available: bool = False
    custom_open_time: Optional[time] = None
    custom_close_time: Optional[time] = None
    reason: str = ''

    @property
    def has_custom_hours(self) -> bool:
        return self.custom_open_time is not None and self.custom_close_time is not None


@dataclass(frozen=True)
class BookingPolicy(ValueObject):
    """Per-court booking limits; durations and offsets in minutes"""
    min_duration: int = 60
    max_duration: int = 180
    interval: int = 30
    advance_booking_days: int = 30
    same_day_cutoff: int = 120
    buffer_time: int = 0
    max_concurrent_per_user: int = 3
    allow_recurring: bool = True
    requires_approval: bool = False


@dataclass(kw_only=True, eq=False)
class Court(Entity):
    """
    Court snapshot

    Loaded through the court repository; booking operations read it but
    never modify it.
    """
    venue_id: UUID
    name: str = ''
    base_hourly_rate: Decimal = Decimal('0')
    currency: str = 'PKR'
    timezone: str = 'UTC'
    status: CourtStatus = CourtStatus.ACTIVE
    pricing_rules: Tuple[PricingRule, ...] = ()
    discount_rules: Tuple[DiscountRule, ...] = ()
    operating_hours: Dict[int, OperatingHours] = field(default_factory=dict)
    exceptions: Tuple[AvailabilityException, ...] = ()
    policy: BookingPolicy = field(default_factory=BookingPolicy)
    owner_id: Optional[int] = None
    manager_ids: FrozenSet[int] = frozenset()
    venue_owner_id: Optional[int] = None
    venue_manager_ids: FrozenSet[int] = frozenset()
    venue_requires_approval: bool = False

    def __post_init__(self):
        if self.base_hourly_rate < 0:
            raise ValueError("Base hourly rate cannot be negative")

    @cached_property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def to_local(self, moment: datetime) -> datetime:
        """Express an aware datetime in the court's local time"""
        return moment.astimezone(self.tzinfo)

    def local_datetime(self, day: date, clock: time) -> datetime:
        return datetime.combine(day, clock, tzinfo=self.tzinfo)

    @property
    def is_active(self) -> bool:
        return self.status == CourtStatus.ACTIVE

    @property
    def requires_approval(self) -> bool:
        return self.policy.requires_approval or self.venue_requires_approval

    def hours_for(self, day: date) -> Optional[OperatingHours]:
        return self.operating_hours.get(day_of_week(day))

    def exception_for(self, day: date) -> Optional[AvailabilityException]:
        for exception in self.exceptions:
            if exception.date == day:
                return exception
        return None

    def is_managed_by(self, user_id: Optional[int]) -> bool:
        if user_id is None:
            return False
        return (
            user_id in (self.owner_id, self.venue_owner_id)
            or user_id in self.manager_ids
            or user_id in self.venue_manager_ids
        )
