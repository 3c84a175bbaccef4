"""
Read-side booking queries

Availability checks, slot grids and price quotes. Nothing here writes or
locks; many callers may run these concurrently.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import List, Optional
from uuid import UUID
import logging

from shared.domain.exceptions import ValidationError
from shared.domain.value_objects import TimeRange
from apps.bookings.conf import lifecycle_settings
from apps.bookings.domain.conflicts import ConflictDetector
from apps.bookings.domain.entities import Booking
from apps.bookings.repositories import booking_repository
from apps.courts.domain.availability import check_availability
from apps.courts.domain.pricing import PriceOptions, PriceQuote, quote_price
from apps.courts.domain.slots import Slot, enumerate_slots, validate_interval
from apps.courts.repositories import court_repository

logger = logging.getLogger(__name__)


@dataclass
class SlotCheck:
    available: bool
    reason: Optional[str] = None
    conflicts: List[Booking] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = {
            'available': self.available,
            'conflicts': [
                {
                    'bookingNumber': booking.booking_number,
                    'startTime': booking.start_time.isoformat(),
                    'endTime': booking.end_time.isoformat(),
                    'status': booking.status.value,
                }
                for booking in self.conflicts
            ],
        }
        if self.reason:
            data['reason'] = self.reason
        return data


class BookingQueries:
    def __init__(self, booking_repo=None, court_repo=None):
        self.booking_repo = booking_repo or booking_repository
        self.court_repo = court_repo or court_repository
        self.conflicts = ConflictDetector(self.booking_repo)

    def check_slot(self, court_id: UUID, start_time: datetime, end_time: datetime) -> SlotCheck:
        """Structural availability first, then existing bookings"""
        if end_time <= start_time:
            raise ValidationError("End time must be after start time", field='endTime')
        court = self.court_repo.get(court_id)
        settings = lifecycle_settings()

        result = check_availability(
            court, start_time, end_time,
            enforce_closing_time=settings.enforce_closing_time,
        )
        if not result.available:
            return SlotCheck(available=False, reason=result.reason)

        padded = TimeRange(start_time, end_time).padded(court.policy.buffer_time)
        conflicts = self.conflicts.find_conflicts(court.id, padded.start, padded.end)
        if conflicts:
            return SlotCheck(
                available=False,
                reason='Time slot conflicts with existing booking',
                conflicts=conflicts,
            )
        return SlotCheck(available=True)

    def available_slots(self, court_id: UUID, day: date, interval_minutes: Optional[int] = None) -> List[Slot]:
        court = self.court_repo.get(court_id)
        interval = validate_interval(interval_minutes or court.policy.interval)

        # Overnight windows and buffers can reach into the next day
        margin = timedelta(minutes=court.policy.buffer_time)
        day_start = court.local_datetime(day, datetime.min.time())
        occupied = self.booking_repo.find_occupying(
            court.id,
            day_start - margin,
            day_start + timedelta(days=2) + margin,
        )
        slots = enumerate_slots(court, day, interval, [booking.time_range for booking in occupied])
        logger.debug(f"Enumerated {len(slots)} slots for court {court.id} on {day}")
        return slots

    def quote(self, court_id: UUID, start_time: datetime, end_time: datetime,
              options: Optional[PriceOptions] = None) -> PriceQuote:
        if end_time <= start_time:
            raise ValidationError("End time must be after start time", field='endTime')
        court = self.court_repo.get(court_id)
        return quote_price(court, start_time, end_time, options)


booking_queries = BookingQueries()
