"""
Booking Domain Entities

Core business entities for the booking domain:
- Booking: Main aggregate representing a court reservation
- BookingStatus: FSM states for the booking lifecycle
- PricingSnapshot / PaymentSnapshot / CancellationRecord / ModificationEntry:
  value objects carried by the aggregate
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from shared.domain.base import Aggregate
from shared.domain.exceptions import StateConflict, ValidationError
from shared.domain.value_objects import TimeRange, quantize_amount
from apps.bookings.domain.recurrence import RecurringPattern
from apps.bookings.domain.refunds import RefundQuote, calculate_refund


class BookingStatus(Enum):
    """
    Booking Status Finite State Machine

    State transitions:
    - PENDING_CONFIRMATION -> CONFIRMED (approved by court staff)
    - PENDING_CONFIRMATION -> CANCELLED (rejected, or cancelled)
    - CONFIRMED -> IN_PROGRESS (checked in)
    - CONFIRMED -> CANCELLED (cancelled by player, staff or admin)
    - CONFIRMED -> NO_SHOW (no check-in within the grace period)
    - IN_PROGRESS -> COMPLETED (checked out)
    - PENDING_CONFIRMATION / CONFIRMED -> EXPIRED (tentative hold lapsed)
    """
    PENDING_CONFIRMATION = 'pending-confirmation'
    CONFIRMED = 'confirmed'
    IN_PROGRESS = 'in-progress'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'
    NO_SHOW = 'no-show'
    EXPIRED = 'expired'


TRANSITIONS: Dict[BookingStatus, frozenset] = {
    BookingStatus.PENDING_CONFIRMATION: frozenset({
        BookingStatus.CONFIRMED,
        BookingStatus.CANCELLED,
        BookingStatus.EXPIRED,
    }),
    BookingStatus.CONFIRMED: frozenset({
        BookingStatus.IN_PROGRESS,
        BookingStatus.CANCELLED,
        BookingStatus.NO_SHOW,
        BookingStatus.EXPIRED,
    }),
    BookingStatus.IN_PROGRESS: frozenset({BookingStatus.COMPLETED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.NO_SHOW: frozenset(),
    BookingStatus.EXPIRED: frozenset(),
}

# Statuses that block the booked interval for everybody else
OCCUPYING_STATUSES = frozenset({
    BookingStatus.PENDING_CONFIRMATION,
    BookingStatus.CONFIRMED,
    BookingStatus.IN_PROGRESS,
})

TERMINAL_STATUSES = frozenset(status for status, targets in TRANSITIONS.items() if not targets)

# Statuses counted against the per-user concurrent booking cap
ACTIVE_STATUSES = frozenset({BookingStatus.PENDING_CONFIRMATION, BookingStatus.CONFIRMED})

RESCHEDULABLE_STATUSES = frozenset({BookingStatus.PENDING_CONFIRMATION, BookingStatus.CONFIRMED})


def can_transition(source: BookingStatus, target: BookingStatus) -> bool:
    return target in TRANSITIONS[source]


class BookingType(Enum):
    SINGLE = 'single'
    RECURRING = 'recurring'


class PaymentStatus(Enum):
    PENDING = 'pending'
    PAID = 'paid'
    FAILED = 'failed'
    REFUNDED = 'refunded'


@dataclass(frozen=True)
class PricingSnapshot:
    """Price fixed at creation or reschedule time"""
    base_price: Decimal
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    currency: str = 'PKR'
    discounts: Tuple[dict, ...] = ()
    total_discount: Decimal = Decimal('0')
    service_fee: Decimal = Decimal('0')
    hourly_rate: Optional[Decimal] = None

    @classmethod
    def from_quote(cls, quote, tax_rate: Decimal, service_fee: Decimal = Decimal('0')) -> 'PricingSnapshot':
        subtotal = quote.total
        tax = quantize_amount(subtotal * tax_rate)
        fee = quantize_amount(service_fee)
        return cls(
            base_price=quote.base_price,
            discounts=tuple(item.to_dict() for item in quote.discounts),
            total_discount=quote.total_discount,
            subtotal=subtotal,
            tax=tax,
            service_fee=fee,
            total=quantize_amount(subtotal + tax + fee),
            currency=quote.currency,
            hourly_rate=quote.hourly_rate,
        )


@dataclass(frozen=True)
class PaymentSnapshot:
    """Payment state as reported by the payment collaborator"""
    amount: Decimal = Decimal('0')
    status: PaymentStatus = PaymentStatus.PENDING
    method: str = ''
    refund_amount: Optional[Decimal] = None

    @property
    def is_paid(self) -> bool:
        return self.status == PaymentStatus.PAID


@dataclass(frozen=True)
class CancellationRecord:
    cancelled_at: datetime
    cancelled_by: Optional[int]
    reason: str
    refund_eligible: bool
    refund_percentage: int
    refund_amount: Decimal
    cancellation_fee: Decimal
    hours_until_booking: Optional[Decimal] = None


@dataclass(frozen=True)
class ModificationEntry:
    """Append-only history record of a reschedule"""
    modified_at: datetime
    modified_by: Optional[int]
    reason: str
    changes: dict


@dataclass(kw_only=True, eq=False)
class Booking(Aggregate):
    """
    Booking Aggregate Root

    A player's reservation of one court for a contiguous interval.

    Key invariants:
    - start_time < end_time, duration is always derived from them
    - status only moves along TRANSITIONS
    - a cancellation record exists only for cancelled bookings
    - modification history is append-only
    """

    booking_number: str
    user_id: int
    court_id: UUID
    venue_id: UUID
    time_range: TimeRange
    pricing: PricingSnapshot

    status: BookingStatus = BookingStatus.CONFIRMED
    booking_type: BookingType = BookingType.SINGLE
    recurring_pattern: Optional[RecurringPattern] = None
    parent_id: Optional[UUID] = None
    occurrence_ids: List[UUID] = field(default_factory=list)

    payment: PaymentSnapshot = field(default_factory=PaymentSnapshot)

    group_size: int = 1
    participants: List[dict] = field(default_factory=list)
    is_early_bird: bool = False

    requires_approval: bool = False
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejection_reason: str = ''

    checked_in_at: Optional[datetime] = None
    check_in_verified_by: Optional[int] = None
    checked_out_at: Optional[datetime] = None
    check_out_verified_by: Optional[int] = None

    cancellation: Optional[CancellationRecord] = None
    modifications: List[ModificationEntry] = field(default_factory=list)

    is_tentative: bool = False
    tentative_expires_at: Optional[datetime] = None

    notes: str = ''
    special_requests: str = ''
    source: str = 'web'

    # Persistence bookkeeping, set by the repository when loading
    persisted_status: Optional[BookingStatus] = None
    persisted_modifications: int = 0

    def __post_init__(self):
        if self.group_size < 1:
            raise ValidationError("Group size must be at least 1", field='groupSize')

    # ----- derived values -------------------------------------------------

    @property
    def start_time(self) -> datetime:
        return self.time_range.start

    @property
    def end_time(self) -> datetime:
        return self.time_range.end

    @property
    def duration_minutes(self) -> int:
        return self.time_range.duration_minutes

    @property
    def is_occupying(self) -> bool:
        return self.status in OCCUPYING_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_new(self) -> bool:
        return self.persisted_status is None

    @property
    def new_modifications(self) -> List[ModificationEntry]:
        return self.modifications[self.persisted_modifications:]

    # ----- transitions ----------------------------------------------------

    def record_created(self):
        """Raise ``BookingCreated`` once the booking number is assigned"""
        from apps.bookings.domain.events import BookingCreated
        self.add_event(BookingCreated(
            **self._event_fields(),
            status=self.status.value,
            total_amount=self.pricing.total,
            currency=self.pricing.currency,
            parent_id=self.parent_id,
        ))

    def _transition(self, target: BookingStatus, action: str):
        if not can_transition(self.status, target):
            raise StateConflict(
                f"Cannot {action} booking {self.booking_number} "
                f"in status {self.status.value}"
            )
        old_status = self.status
        self.status = target
        return old_status

    def approve(self, approver_id: Optional[int], now: datetime):
        """PENDING_CONFIRMATION -> CONFIRMED"""
        if self.status != BookingStatus.PENDING_CONFIRMATION:
            raise StateConflict(
                f"Booking {self.booking_number} is not pending confirmation "
                f"(status: {self.status.value})"
            )
        self._transition(BookingStatus.CONFIRMED, 'approve')
        self.approved_by = approver_id
        self.approved_at = now
        self.updated_at = now

        from apps.bookings.domain.events import BookingApproved
        self.add_event(BookingApproved(**self._event_fields(), approved_by=approver_id))

    def reject(self, approver_id: Optional[int], reason: str, now: datetime):
        """
        PENDING_CONFIRMATION -> CANCELLED

        Rejections are always fully refundable.
        """
        if self.status != BookingStatus.PENDING_CONFIRMATION:
            raise StateConflict(
                f"Booking {self.booking_number} is not pending confirmation "
                f"(status: {self.status.value})"
            )
        if not reason or not reason.strip():
            raise ValidationError("Rejection reason is required", field='reason')

        self._transition(BookingStatus.CANCELLED, 'reject')
        self.rejection_reason = reason
        self.cancellation = CancellationRecord(
            cancelled_at=now,
            cancelled_by=approver_id,
            reason=reason,
            refund_eligible=True,
            refund_percentage=100,
            refund_amount=self.pricing.total,
            cancellation_fee=Decimal('0.00'),
        )
        self._record_refund(self.pricing.total)
        self.updated_at = now

        from apps.bookings.domain.events import BookingRejected
        self.add_event(BookingRejected(**self._event_fields(), reason=reason, rejected_by=approver_id))

    def quote_refund(self, now: datetime) -> RefundQuote:
        return calculate_refund(now, self.start_time, self.pricing.total)

    def cancel(self, actor_id: Optional[int], reason: str, now: datetime) -> RefundQuote:
        """
        Cancel a not-yet-started booking

        Refund percentage depends on how far ahead of the start the
        cancellation happens (see ``refunds.REFUND_TIERS``).
        """
        if self.is_terminal:
            raise StateConflict(
                f"Booking {self.booking_number} is already {self.status.value}"
            )
        if not reason or not reason.strip():
            raise ValidationError("Cancellation reason is required", field='reason')
        if self.start_time <= now:
            raise ValidationError("Cannot cancel a booking that has already started", field='startTime')

        quote = self.quote_refund(now)
        old_status = self._transition(BookingStatus.CANCELLED, 'cancel')
        self.cancellation = CancellationRecord(
            cancelled_at=now,
            cancelled_by=actor_id,
            reason=reason,
            refund_eligible=quote.eligible,
            refund_percentage=quote.percentage,
            refund_amount=quote.refund_amount,
            cancellation_fee=quote.cancellation_fee,
            hours_until_booking=quote.hours_until_start,
        )
        self._record_refund(quote.refund_amount)
        self.updated_at = now

        from apps.bookings.domain.events import BookingCancelled
        self.add_event(BookingCancelled(
            **self._event_fields(),
            reason=reason,
            cancelled_by=actor_id,
            refund_percentage=quote.percentage,
            refund_amount=quote.refund_amount,
            old_status=old_status.value,
        ))
        return quote

    def _record_refund(self, amount: Decimal):
        if self.payment.is_paid:
            self.payment = replace(self.payment, refund_amount=amount)

    def check_in(self, verifier_id: Optional[int], now: datetime, window_minutes: int = 15):
        """
        CONFIRMED -> IN_PROGRESS

        Allowed from ``window_minutes`` before the start until the end.
        """
        if self.status != BookingStatus.CONFIRMED:
            raise StateConflict(
                f"Cannot check in booking {self.booking_number} "
                f"in status {self.status.value}"
            )
        if now < self.start_time - timedelta(minutes=window_minutes):
            raise ValidationError(
                f"Check-in opens {window_minutes} minutes before the start time",
                field='startTime',
            )
        if now >= self.end_time:
            raise ValidationError("Booking time has already ended", field='endTime')

        self._transition(BookingStatus.IN_PROGRESS, 'check in')
        self.checked_in_at = now
        self.check_in_verified_by = verifier_id
        self.updated_at = now

        from apps.bookings.domain.events import BookingCheckedIn
        self.add_event(BookingCheckedIn(**self._event_fields(), verified_by=verifier_id))

    def check_out(self, verifier_id: Optional[int], now: datetime):
        """IN_PROGRESS -> COMPLETED"""
        if self.status != BookingStatus.IN_PROGRESS:
            raise StateConflict(
                f"Cannot check out booking {self.booking_number} "
                f"in status {self.status.value}"
            )
        self._transition(BookingStatus.COMPLETED, 'check out')
        self.checked_out_at = now
        self.check_out_verified_by = verifier_id
        self.updated_at = now

        from apps.bookings.domain.events import BookingCompleted
        self.add_event(BookingCompleted(**self._event_fields()))

    # ----- background sweeps ----------------------------------------------

    def is_hold_expired(self, now: datetime) -> bool:
        return (
            self.is_tentative
            and self.tentative_expires_at is not None
            and self.tentative_expires_at <= now
            and can_transition(self.status, BookingStatus.EXPIRED)
        )

    def expire(self, now: datetime):
        if not self.is_hold_expired(now):
            raise StateConflict(f"Booking {self.booking_number} hold has not expired")
        self._transition(BookingStatus.EXPIRED, 'expire')
        self.updated_at = now

        from apps.bookings.domain.events import BookingExpired
        self.add_event(BookingExpired(**self._event_fields()))

    def is_no_show(self, now: datetime, grace_minutes: int = 30) -> bool:
        return (
            self.status == BookingStatus.CONFIRMED
            and self.checked_in_at is None
            and self.start_time + timedelta(minutes=grace_minutes) <= now
        )

    def mark_no_show(self, now: datetime, grace_minutes: int = 30):
        if not self.is_no_show(now, grace_minutes):
            raise StateConflict(f"Booking {self.booking_number} is not a no-show")
        self._transition(BookingStatus.NO_SHOW, 'mark as no-show')
        self.updated_at = now

        from apps.bookings.domain.events import BookingNoShow
        self.add_event(BookingNoShow(**self._event_fields()))

    def complete_if_finished(self, now: datetime) -> bool:
        """Close an in-progress booking whose end time has passed"""
        if self.status != BookingStatus.IN_PROGRESS or self.end_time >= now:
            return False
        self.check_out(None, now)
        return True

    # ----- modification ---------------------------------------------------

    def ensure_reschedulable(self, now: datetime, cutoff_hours: int = 2):
        if self.status not in RESCHEDULABLE_STATUSES:
            raise StateConflict(
                f"Cannot modify booking {self.booking_number} in status {self.status.value}"
            )
        if now > self.start_time - timedelta(hours=cutoff_hours):
            raise ValidationError(
                f"Bookings can only be modified at least {cutoff_hours} hours before start time",
                field='startTime',
            )

    def reschedule(
        self,
        new_range: TimeRange,
        new_pricing: PricingSnapshot,
        actor_id: Optional[int],
        reason: str,
        now: datetime,
    ):
        """Move the booking to ``new_range``; price and history follow"""
        old_range, old_pricing = self.time_range, self.pricing
        self.time_range = new_range
        self.pricing = new_pricing
        self.modifications.append(ModificationEntry(
            modified_at=now,
            modified_by=actor_id,
            reason=reason or 'Rescheduled',
            changes={
                'startTime': {'from': old_range.start.isoformat(), 'to': new_range.start.isoformat()},
                'endTime': {'from': old_range.end.isoformat(), 'to': new_range.end.isoformat()},
                'price': {'from': str(old_pricing.total), 'to': str(new_pricing.total)},
            },
        ))
        self.updated_at = now

        from apps.bookings.domain.events import BookingRescheduled
        self.add_event(BookingRescheduled(
            **self._event_fields(),
            old_start_time=old_range.start,
            old_end_time=old_range.end,
        ))

    def update_details(self, *, notes=None, special_requests=None, group_size=None):
        if notes is not None:
            self.notes = notes
        if special_requests is not None:
            self.special_requests = special_requests
        if group_size is not None:
            if group_size < 1:
                raise ValidationError("Group size must be at least 1", field='groupSize')
            self.group_size = group_size

    # ----- helpers --------------------------------------------------------

    def _event_fields(self) -> dict:
        return {
            'aggregate_id': self.id,
            'booking_id': self.id,
            'booking_number': self.booking_number,
            'user_id': self.user_id,
            'court_id': self.court_id,
            'start_time': self.start_time,
            'end_time': self.end_time,
        }

    def __str__(self):
        return f"Booking {self.booking_number} ({self.status.value})"

    def __repr__(self):
        return (
            f"Booking(id={self.id}, booking_number={self.booking_number}, "
            f"status={self.status.value}, time_range={self.time_range})"
        )
