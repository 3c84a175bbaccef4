"""
Conflict Detector

A booking conflicts with a requested interval when it is in an occupying
status and the two half-open intervals overlap. The single predicate
``start_a < end_b and start_b < end_a`` covers every way two intervals
can intersect; touching boundaries do not conflict.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Protocol
from uuid import UUID

from shared.domain.value_objects import overlaps
from apps.bookings.domain.entities import OCCUPYING_STATUSES, Booking


class BookingSource(Protocol):
    def find_occupying(
        self,
        court_id: UUID,
        start_time: datetime,
        end_time: datetime,
        *,
        exclude_booking_id: Optional[UUID] = None,
        lock: bool = False,
    ) -> List[Booking]:
        ...


def find_conflicts(
    bookings: Iterable[Booking],
    start_time: datetime,
    end_time: datetime,
    exclude_booking_id: Optional[UUID] = None,
) -> List[Booking]:
    """Filter ``bookings`` down to those blocking [start_time, end_time)"""
    return [
        booking
        for booking in bookings
        if booking.status in OCCUPYING_STATUSES
        and booking.id != exclude_booking_id
        and overlaps(start_time, end_time, booking.start_time, booking.end_time)
    ]


class ConflictDetector:
    """Runs ``find_conflicts`` against a court's stored bookings"""

    def __init__(self, bookings: BookingSource):
        self.bookings = bookings

    def find_conflicts(
        self,
        court_id: UUID,
        start_time: datetime,
        end_time: datetime,
        exclude_booking_id: Optional[UUID] = None,
        *,
        lock: bool = False,
    ) -> List[Booking]:
        candidates = self.bookings.find_occupying(
            court_id,
            start_time,
            end_time,
            exclude_booking_id=exclude_booking_id,
            lock=lock,
        )
        return find_conflicts(candidates, start_time, end_time, exclude_booking_id)
