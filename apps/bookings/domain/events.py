"""
Booking Domain Events

Events that represent things that have happened in the booking domain.
These are published after successful transaction commits.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from shared.domain.base import DomainEvent


@dataclass(kw_only=True)
class BookingEvent(DomainEvent):
    """Fields shared by every booking event"""
    booking_id: UUID
    booking_number: str
    user_id: int
    court_id: UUID
    start_time: datetime
    end_time: datetime

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            'booking_id': str(self.booking_id),
            'booking_number': self.booking_number,
            'user_id': self.user_id,
            'court_id': str(self.court_id),
            'start_time': self.start_time.isoformat(),
            'end_time': self.end_time.isoformat(),
        })
        return data


@dataclass(kw_only=True)
class BookingCreated(BookingEvent):
    """
    Event: A new booking was created

    Triggers:
    - Confirmation (or awaiting-approval) message to the player
    - Alert to court staff when approval is required
    """
    status: str
    total_amount: Decimal
    currency: str
    parent_id: Optional[UUID] = None


@dataclass(kw_only=True)
class BookingApproved(BookingEvent):
    """Event: Staff approved a pending booking (PENDING -> CONFIRMED)"""
    approved_by: Optional[int] = None


@dataclass(kw_only=True)
class BookingRejected(BookingEvent):
    """Event: Staff rejected a pending booking (PENDING -> CANCELLED)"""
    reason: str
    rejected_by: Optional[int] = None


@dataclass(kw_only=True)
class BookingCancelled(BookingEvent):
    """
    Event: Booking was cancelled

    Triggers:
    - Cancellation notice with refund details to the player
    - Refund processing by the payment collaborator
    """
    reason: str
    old_status: str
    refund_percentage: int
    refund_amount: Decimal
    cancelled_by: Optional[int] = None


@dataclass(kw_only=True)
class BookingRescheduled(BookingEvent):
    """Event: Booking moved to a new interval"""
    old_start_time: datetime
    old_end_time: datetime


@dataclass(kw_only=True)
class BookingCheckedIn(BookingEvent):
    """Event: Player checked in (CONFIRMED -> IN_PROGRESS)"""
    verified_by: Optional[int] = None


@dataclass(kw_only=True)
class BookingCompleted(BookingEvent):
    """Event: Booking finished (IN_PROGRESS -> COMPLETED)"""


@dataclass(kw_only=True)
class BookingExpired(BookingEvent):
    """Event: Tentative hold lapsed before it was confirmed"""


@dataclass(kw_only=True)
class BookingNoShow(BookingEvent):
    """Event: Player did not check in within the grace period"""
