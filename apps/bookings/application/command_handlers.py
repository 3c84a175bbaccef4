"""
Booking Command Handlers

These are the use cases for the booking domain.
They orchestrate domain operations within transactions.

Commands:
- CreateBookingCommand: Create a booking (and its recurring occurrences)
- RescheduleBookingCommand: Move a booking and/or update its details
- CancelBookingCommand: Cancel with a time-dependent refund
- ApproveBookingCommand / RejectBookingCommand: Staff decision on a pending booking
- CheckInBookingCommand / CheckOutBookingCommand: On-site status changes
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID, uuid4
import logging

from django.contrib.auth import get_user_model
from django.utils import timezone

from shared.application.clock import system_clock
from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import (
    BookingLimitReached,
    Conflict,
    NotAvailable,
    ValidationError,
)
from shared.domain.value_objects import TimeRange
from apps.bookings.conf import lifecycle_settings
from apps.bookings.domain.conflicts import ConflictDetector
from apps.bookings.domain.entities import (
    Booking,
    BookingStatus,
    BookingType,
    PricingSnapshot,
)
from apps.bookings.domain.numbering import generate_booking_number
from apps.bookings.domain.recurrence import RecurringPattern, iter_occurrences, occurrence_limit
from apps.bookings.repositories import DuplicateBookingNumber, booking_repository
from apps.courts.domain.availability import check_availability
from apps.courts.domain.entities import Court
from apps.courts.domain.pricing import PriceOptions, quote_price
from apps.courts.repositories import court_repository
from apps.users.authorization import Actor, BookingAction, booking_authorizer

logger = logging.getLogger(__name__)

NUMBER_INSERT_ATTEMPTS = 3


# ===== Commands =====

@dataclass
class CreateBookingCommand:
    """
    Command to create a new booking

    This is the primary entry point for creating bookings.
    """
    actor: Actor
    court_id: UUID
    start_time: datetime
    end_time: datetime
    booking_type: BookingType = BookingType.SINGLE
    recurring_pattern: Optional[RecurringPattern] = None
    group_size: int = 1
    participants: List[dict] = field(default_factory=list)
    is_early_bird: bool = False
    is_tentative: bool = False
    notes: str = ''
    special_requests: str = ''
    source: str = 'web'


@dataclass
class CreateBookingResult:
    booking: Booking
    occurrences: List[Booking] = field(default_factory=list)


@dataclass
class RescheduleBookingCommand:
    """Command to move a booking and/or change its details"""
    actor: Actor
    booking_id: UUID
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    reason: str = ''
    notes: Optional[str] = None
    special_requests: Optional[str] = None
    group_size: Optional[int] = None


@dataclass
class CancelBookingCommand:
    """Command to cancel a booking"""
    actor: Actor
    booking_id: UUID
    reason: str


@dataclass
class ApproveBookingCommand:
    """Command to approve a pending booking"""
    actor: Actor
    booking_id: UUID


@dataclass
class RejectBookingCommand:
    """Command to reject a pending booking"""
    actor: Actor
    booking_id: UUID
    reason: str


@dataclass
class CheckInBookingCommand:
    """Command to check a player in"""
    actor: Actor
    booking_id: UUID


@dataclass
class CheckOutBookingCommand:
    """Command to check a player out"""
    actor: Actor
    booking_id: UUID


# ===== Shared handler plumbing =====

class BookingHandler:
    """Collaborators shared by all booking handlers"""

    def __init__(self, booking_repo=None, court_repo=None, clock=None, authorizer=None):
        self.booking_repo = booking_repo or booking_repository
        self.court_repo = court_repo or court_repository
        self.clock = clock or system_clock
        self.authorizer = authorizer or booking_authorizer
        self.conflicts = ConflictDetector(self.booking_repo)
        self.settings = lifecycle_settings()

    # -- validation ------------------------------------------------------

    def _validate_interval(self, court: Court, start_time: datetime, end_time: datetime, now: datetime):
        if timezone.is_naive(start_time) or timezone.is_naive(end_time):
            raise ValidationError("Start and end times must include a timezone offset", field='startTime')
        if end_time <= start_time:
            raise ValidationError("End time must be after start time", field='endTime')

        policy = court.policy
        duration = int((end_time - start_time).total_seconds() // 60)
        if duration < policy.min_duration:
            raise ValidationError(
                f"Minimum booking duration is {policy.min_duration} minutes", field='endTime'
            )
        if duration > policy.max_duration:
            raise ValidationError(
                f"Maximum booking duration is {policy.max_duration} minutes", field='endTime'
            )

        if start_time <= now:
            raise ValidationError("Booking start time must be in the future", field='startTime')
        if start_time > now + timedelta(days=policy.advance_booking_days):
            raise ValidationError(
                f"Bookings can be made at most {policy.advance_booking_days} days in advance",
                field='startTime',
            )
        same_day = court.to_local(start_time).date() == court.to_local(now).date()
        if same_day and start_time - now < timedelta(minutes=policy.same_day_cutoff):
            raise ValidationError(
                f"Same-day bookings must start at least {policy.same_day_cutoff} minutes from now",
                field='startTime',
            )

    def _ensure_available(self, court: Court, start_time: datetime, end_time: datetime):
        result = check_availability(
            court, start_time, end_time,
            enforce_closing_time=self.settings.enforce_closing_time,
        )
        if not result.available:
            raise NotAvailable(result.reason)

    def _find_conflicts(self, court: Court, requested: TimeRange, exclude_booking_id=None):
        # Callers hold the court row lock
        checked = requested.padded(court.policy.buffer_time)
        return self.conflicts.find_conflicts(court.id, checked.start, checked.end, exclude_booking_id)

    def _ensure_no_conflicts(self, court: Court, requested: TimeRange, exclude_booking_id=None):
        conflicts = self._find_conflicts(court, requested, exclude_booking_id)
        if conflicts:
            logger.warning(
                f"Booking conflict on court {court.id} for {requested}: "
                f"{', '.join(b.booking_number for b in conflicts)}"
            )
            raise Conflict(conflicts)

    # -- pricing -------------------------------------------------------------

    def _pricing(self, court: Court, requested: TimeRange, options: PriceOptions) -> PricingSnapshot:
        quote = quote_price(court, requested.start, requested.end, options)
        return PricingSnapshot.from_quote(quote, self.settings.tax_rate, self.settings.service_fee)

    @staticmethod
    def _membership_tier(user_id: int) -> str:
        tier = get_user_model().objects.filter(pk=user_id).values_list('membership_tier', flat=True).first()
        return tier or ''

    # -- status transitions ------------------------------------------------

    def _transition(self, booking_id: UUID, actor: Actor, action: BookingAction, apply) -> Booking:
        """Load with lock, authorize, mutate, save conditionally, publish on commit"""
        with DjangoUnitOfWork() as uow:
            booking = self.booking_repo.get(booking_id, lock=True)
            court = self.court_repo.get(booking.court_id)
            self.authorizer.authorize(actor, action, court, booking)

            apply(booking, self.clock.now())

            self.booking_repo.save(booking)
            uow.collect_events(booking)
        return booking


# ===== Command Handlers =====

class CreateBookingHandler(BookingHandler):
    """
    Handler for CreateBooking command

    Double booking prevention:
    1. Start database transaction (atomic)
    2. Lock the court row (SELECT FOR UPDATE) so writers on one court queue up
    3. Structural availability (status, hours, breaks, exceptions)
    4. Conflict detection against occupying bookings
    5. Per-user cap, pricing snapshot, booking number
    6. Insert; recurring occurrences follow inside the same transaction
    7. Events are published after commit
    """

    def handle(self, command: CreateBookingCommand) -> CreateBookingResult:
        logger.info(
            f"Creating booking on court {command.court_id} for user {command.actor.user_id}, "
            f"{command.start_time} - {command.end_time}"
        )
        now = self.clock.now()

        with DjangoUnitOfWork() as uow:
            court = self.court_repo.get(command.court_id, lock=True)
            self.authorizer.authorize(command.actor, BookingAction.CREATE, court)

            self._validate_interval(court, command.start_time, command.end_time, now)
            pattern = self._validate_recurrence(court, command)
            requested = TimeRange(command.start_time, command.end_time)

            self._ensure_available(court, requested.start, requested.end)
            self._ensure_no_conflicts(court, requested)

            user_id = command.actor.user_id
            active = self.booking_repo.count_active_for_user(user_id, court.id)
            if active >= court.policy.max_concurrent_per_user:
                raise BookingLimitReached(
                    f"Maximum {court.policy.max_concurrent_per_user} concurrent bookings "
                    f"allowed per user for this court",
                    field='court',
                )

            options = PriceOptions(
                membership_tier=command.actor.membership_tier or None,
                group_size=command.group_size,
                is_early_bird=command.is_early_bird,
            )
            status = (
                BookingStatus.PENDING_CONFIRMATION if court.requires_approval
                else BookingStatus.CONFIRMED
            )
            booking = self._new_booking(
                command, court, requested, status,
                pricing=self._pricing(court, requested, options),
                pattern=pattern,
                now=now,
            )
            self._insert(booking, now)
            booking.record_created()
            uow.collect_events(booking)

            occurrences = []
            if pattern is not None:
                occurrences = self._create_occurrences(command, court, booking, pattern, options, now)
                for occurrence in occurrences:
                    uow.collect_events(occurrence)

        logger.info(
            f"Booking created successfully: {booking.booking_number} "
            f"(ID: {booking.id}, status: {booking.status.value}, "
            f"occurrences: {len(occurrences)})"
        )
        return CreateBookingResult(booking, occurrences)

    def _validate_recurrence(self, court: Court, command: CreateBookingCommand) -> Optional[RecurringPattern]:
        if command.booking_type != BookingType.RECURRING:
            return None
        if not court.policy.allow_recurring:
            raise ValidationError(
                "Recurring bookings are not allowed for this court", field='bookingType'
            )
        if command.recurring_pattern is None:
            raise ValidationError(
                "Invalid recurring pattern. Must specify frequency and either endDate or occurrences",
                field='recurringPattern',
            )
        return command.recurring_pattern.validate(self.settings.max_recurring_occurrences)

    def _new_booking(self, command, court, requested, status, *, pricing, pattern=None,
                     parent_id=None, now) -> Booking:
        hold_expires = None
        if command.is_tentative:
            hold_expires = now + timedelta(minutes=self.settings.tentative_hold_minutes)
        return Booking(
            id=uuid4(),
            created_at=now,
            updated_at=now,
            booking_number='',
            user_id=command.actor.user_id,
            court_id=court.id,
            venue_id=court.venue_id,
            time_range=requested,
            pricing=pricing,
            status=status,
            booking_type=command.booking_type,
            recurring_pattern=pattern,
            parent_id=parent_id,
            group_size=command.group_size,
            participants=list(command.participants),
            is_early_bird=command.is_early_bird,
            requires_approval=court.requires_approval,
            is_tentative=command.is_tentative,
            tentative_expires_at=hold_expires,
            notes=command.notes,
            special_requests=command.special_requests,
            source=command.source,
        )

    def _next_number(self, now: datetime) -> str:
        day = timezone.localdate(now)
        return generate_booking_number(
            day,
            self.booking_repo.count_numbered_on(day),
            self.booking_repo.number_exists,
            now,
        )

    def _insert(self, booking: Booking, now: datetime):
        """Insert, drawing a fresh number if a concurrent writer took ours"""
        for attempt in range(1, NUMBER_INSERT_ATTEMPTS + 1):
            booking.booking_number = self._next_number(now)
            try:
                self.booking_repo.save(booking)
                return
            except DuplicateBookingNumber:
                logger.warning(
                    f"Booking number {booking.booking_number} already taken "
                    f"(attempt {attempt}/{NUMBER_INSERT_ATTEMPTS})"
                )
        raise DuplicateBookingNumber(booking.booking_number)

    def _create_occurrences(self, command, court, parent, pattern, options, now) -> List[Booking]:
        """
        Persist each generated occurrence that is available and conflict-free

        Blocked dates are skipped and the series draws further dates until
        the requested count is reached, ``end_date`` passes or the rule runs
        out of candidates. The returned list shows what was actually created.
        """
        created = []
        limit = occurrence_limit(pattern, self.settings.max_recurring_occurrences)
        candidates = iter_occurrences(
            pattern,
            court.to_local(parent.start_time),
            parent.time_range.duration,
        )
        for start_time, end_time in candidates:
            if len(created) >= limit:
                break
            requested = TimeRange(start_time, end_time)
            availability = check_availability(
                court, start_time, end_time,
                enforce_closing_time=self.settings.enforce_closing_time,
            )
            if not availability.available:
                logger.info(f"Skipping occurrence {requested} of {parent.booking_number}: {availability.reason}")
                continue
            if self._find_conflicts(court, requested):
                logger.info(f"Skipping occurrence {requested} of {parent.booking_number}: conflict")
                continue

            occurrence = self._new_booking(
                command, court, requested, parent.status,
                pricing=self._pricing(court, requested, options),
                parent_id=parent.id,
                now=now,
            )
            self._insert(occurrence, now)
            occurrence.record_created()
            parent.occurrence_ids.append(occurrence.id)
            created.append(occurrence)
        return created


class RescheduleBookingHandler(BookingHandler):
    """Handler for moving a booking to a new interval"""

    def handle(self, command: RescheduleBookingCommand) -> Booking:
        logger.info(f"Rescheduling booking {command.booking_id}")
        now = self.clock.now()

        with DjangoUnitOfWork() as uow:
            # Court row first, then the booking, the same order as creation
            court_id = self.booking_repo.get(command.booking_id).court_id
            court = self.court_repo.get(court_id, lock=True)
            booking = self.booking_repo.get(command.booking_id, lock=True)
            self.authorizer.authorize(command.actor, BookingAction.RESCHEDULE, court, booking)
            booking.ensure_reschedulable(now, self.settings.reschedule_cutoff_hours)

            new_start = command.start_time or booking.start_time
            new_end = command.end_time or (new_start + booking.time_range.duration)
            time_changed = (new_start, new_end) != (booking.start_time, booking.end_time)
            group_changed = command.group_size is not None and command.group_size != booking.group_size

            if not (time_changed or group_changed or command.notes is not None
                    or command.special_requests is not None):
                raise ValidationError("No changes supplied")

            booking.update_details(
                notes=command.notes,
                special_requests=command.special_requests,
                group_size=command.group_size,
            )

            if time_changed or group_changed:
                if time_changed:
                    self._validate_interval(court, new_start, new_end, now)
                    requested = TimeRange(new_start, new_end)
                    self._ensure_no_conflicts(court, requested, exclude_booking_id=booking.id)
                    self._ensure_available(court, new_start, new_end)
                else:
                    requested = booking.time_range

                options = PriceOptions(
                    membership_tier=self._membership_tier(booking.user_id) or None,
                    group_size=booking.group_size,
                    is_early_bird=booking.is_early_bird,
                )
                booking.reschedule(
                    requested,
                    self._pricing(court, requested, options),
                    command.actor.user_id,
                    command.reason,
                    now,
                )
            else:
                booking.updated_at = now

            self.booking_repo.save(booking)
            uow.collect_events(booking)

        logger.info(f"Booking {booking.booking_number} updated successfully")
        return booking


class CancelBookingHandler(BookingHandler):
    """Handler for cancelling booking"""

    def handle(self, command: CancelBookingCommand) -> Booking:
        logger.info(f"Cancelling booking {command.booking_id}, reason: {command.reason}")
        booking = self._transition(
            command.booking_id,
            command.actor,
            BookingAction.CANCEL,
            lambda booking, now: booking.cancel(command.actor.user_id, command.reason, now),
        )
        logger.info(
            f"Booking {booking.booking_number} cancelled successfully "
            f"(refund {booking.cancellation.refund_percentage}%)"
        )
        return booking


class ApproveBookingHandler(BookingHandler):
    """Handler for approving a pending booking"""

    def handle(self, command: ApproveBookingCommand) -> Booking:
        logger.info(f"Approving booking {command.booking_id}")
        booking = self._transition(
            command.booking_id,
            command.actor,
            BookingAction.APPROVE,
            lambda booking, now: booking.approve(command.actor.user_id, now),
        )
        logger.info(f"Booking {booking.booking_number} approved successfully")
        return booking


class RejectBookingHandler(BookingHandler):
    """Handler for rejecting a pending booking"""

    def handle(self, command: RejectBookingCommand) -> Booking:
        logger.info(f"Rejecting booking {command.booking_id}, reason: {command.reason}")
        booking = self._transition(
            command.booking_id,
            command.actor,
            BookingAction.REJECT,
            lambda booking, now: booking.reject(command.actor.user_id, command.reason, now),
        )
        logger.info(f"Booking {booking.booking_number} rejected")
        return booking


class CheckInBookingHandler(BookingHandler):
    """Handler for checking in a player"""

    def handle(self, command: CheckInBookingCommand) -> Booking:
        logger.info(f"Checking in booking {command.booking_id}")
        window = self.settings.check_in_window_minutes
        booking = self._transition(
            command.booking_id,
            command.actor,
            BookingAction.CHECK_IN,
            lambda booking, now: booking.check_in(command.actor.user_id, now, window),
        )
        logger.info(f"Booking {booking.booking_number} checked in successfully")
        return booking


class CheckOutBookingHandler(BookingHandler):
    """Handler for checking out a player"""

    def handle(self, command: CheckOutBookingCommand) -> Booking:
        logger.info(f"Checking out booking {command.booking_id}")
        booking = self._transition(
            command.booking_id,
            command.actor,
            BookingAction.CHECK_OUT,
            lambda booking, now: booking.check_out(command.actor.user_id, now),
        )
        logger.info(f"Booking {booking.booking_number} checked out successfully")
        return booking
