"""Booking lifecycle tests against the database."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from shared.domain.exceptions import (
    BookingLimitReached,
    Conflict,
    Forbidden,
    NotAvailable,
    StateConflict,
    ValidationError,
)
from apps.bookings.application.command_handlers import (
    ApproveBookingCommand,
    ApproveBookingHandler,
    CancelBookingCommand,
    CancelBookingHandler,
    CheckInBookingCommand,
    CheckInBookingHandler,
    CheckOutBookingCommand,
    CheckOutBookingHandler,
    CreateBookingCommand,
    CreateBookingHandler,
    RejectBookingCommand,
    RejectBookingHandler,
    RescheduleBookingCommand,
    RescheduleBookingHandler,
)
from apps.bookings.domain.entities import BookingStatus, BookingType
from apps.bookings.domain.recurrence import Frequency, RecurringPattern
from apps.bookings.models import Booking as BookingRow
from apps.bookings.repositories import DjangoBookingRepository, booking_repository
from apps.courts.models import AvailabilityException, DiscountRule
from apps.courts.repositories import DjangoCourtRepository
from apps.users.authorization import Actor

PKT = ZoneInfo("Asia/Karachi")

pytestmark = pytest.mark.django_db


def at(day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 3, day, hour, minute, tzinfo=PKT)


def create(clock, user, court, start, end, **extra):
    command = CreateBookingCommand(
        actor=Actor.from_user(user),
        court_id=court.id,
        start_time=start,
        end_time=end,
        **extra,
    )
    return CreateBookingHandler(clock=clock).handle(command)


# ----- create ----------------------------------------------------------------

def test_create_confirmed_booking(clock, player, court_row):
    result = create(clock, player, court_row, at(2, 18), at(2, 19, 30))

    booking = result.booking
    assert booking.status == BookingStatus.CONFIRMED
    assert booking.booking_number.startswith("BK260301")
    assert result.occurrences == []

    row = BookingRow.objects.get(pk=booking.id)
    assert row.duration_minutes == 90
    assert row.duration_minutes == (row.end_time - row.start_time).total_seconds() / 60
    assert row.base_price == Decimal("1500.00")
    assert row.tax == Decimal("75.00")
    assert row.total_amount == Decimal("1575.00")
    assert row.venue_id == court_row.venue_id


def test_overlapping_request_is_rejected_and_existing_booking_untouched(clock, player, other_player, court_row):
    first = create(clock, player, court_row, at(2, 18), at(2, 19)).booking
    before = BookingRow.objects.values().get(pk=first.id)

    with pytest.raises(Conflict) as excinfo:
        create(clock, other_player, court_row, at(2, 18, 30), at(2, 19, 30))

    assert [b.booking_number for b in excinfo.value.conflicts] == [first.booking_number]
    assert BookingRow.objects.count() == 1
    assert BookingRow.objects.values().get(pk=first.id) == before


def test_touching_bookings_are_allowed(clock, player, other_player, court_row):
    create(clock, player, court_row, at(2, 18), at(2, 19))
    create(clock, other_player, court_row, at(2, 19), at(2, 20))

    assert BookingRow.objects.count() == 2


def test_buffer_time_separates_bookings(clock, player, other_player, court_row):
    court_row.buffer_time = 15
    court_row.save()
    create(clock, player, court_row, at(2, 16), at(2, 17))

    with pytest.raises(Conflict):
        create(clock, other_player, court_row, at(2, 17), at(2, 18))


def test_unavailable_court_is_reported_separately_from_conflicts(clock, player, court_row):
    AvailabilityException.objects.create(court=court_row, date=date(2026, 3, 2), reason="Ground maintenance")

    with pytest.raises(NotAvailable) as excinfo:
        create(clock, player, court_row, at(2, 10), at(2, 11))

    assert excinfo.value.reason == "Ground maintenance"


def test_outside_operating_hours(clock, player, court_row):
    with pytest.raises(NotAvailable):
        create(clock, player, court_row, at(2, 19), at(2, 21))


@pytest.mark.parametrize(
    "start, end",
    [
        (at(2, 18), at(2, 18, 30)),  # shorter than minimum
        (at(2, 8), at(2, 12)),  # longer than maximum
        (at(1, 10), at(1, 11)),  # in the past
        (at(1, 13), at(1, 14)),  # inside the same-day cutoff
        (at(2, 19), at(2, 18)),  # end before start
    ],
)
def test_invalid_intervals(clock, player, court_row, start, end):
    with pytest.raises(ValidationError):
        create(clock, player, court_row, start, end)


def test_advance_booking_window(clock, player, court_row):
    start = clock.now() + timedelta(days=31)

    with pytest.raises(ValidationError):
        create(clock, player, court_row, start, start + timedelta(hours=1))


def test_per_user_cap(clock, player, court_row):
    court_row.max_concurrent_bookings_per_user = 2
    court_row.save()
    create(clock, player, court_row, at(2, 10), at(2, 11))
    create(clock, player, court_row, at(2, 12), at(2, 13))

    with pytest.raises(BookingLimitReached):
        create(clock, player, court_row, at(2, 14), at(2, 15))


def test_tentative_hold_expiry(clock, player, court_row):
    booking = create(clock, player, court_row, at(2, 10), at(2, 11), is_tentative=True).booking

    assert booking.tentative_expires_at == clock.now() + timedelta(minutes=15)


def test_distinct_booking_numbers(clock, player, court_row):
    court_row.max_concurrent_bookings_per_user = 20
    court_row.save()

    numbers = {
        create(clock, player, court_row, at(2, hour), at(2, hour + 1)).booking.booking_number
        for hour in range(8, 20)
    }

    assert len(numbers) == 12


def test_membership_discount_from_actor(clock, player, court_row):
    player.membership_tier = "gold"
    player.save()
    DiscountRule.objects.create(
        court=court_row, category="membership", kind="percentage", value=Decimal("10"), membership_tier="gold"
    )

    booking = create(clock, player, court_row, at(2, 10), at(2, 11)).booking

    assert booking.pricing.subtotal == Decimal("900.00")
    assert booking.pricing.total == Decimal("945.00")


# ----- recurring ---------------------------------------------------------------

def test_recurring_series_skips_conflicting_occurrences(clock, player, other_player, court_row):
    create(clock, other_player, court_row, at(16, 18), at(16, 19))

    result = create(
        clock, player, court_row, at(2, 18), at(2, 19),
        booking_type=BookingType.RECURRING,
        recurring_pattern=RecurringPattern(Frequency.WEEKLY, occurrences=3),
    )

    # the taken 16th is replaced by the next free week
    starts = [occurrence.start_time for occurrence in result.occurrences]
    assert starts == [at(9, 18), at(23, 18), at(30, 18)]
    assert all(o.parent_id == result.booking.id for o in result.occurrences)
    assert result.booking.occurrence_ids == [o.id for o in result.occurrences]
    assert len({o.booking_number for o in result.occurrences} | {result.booking.booking_number}) == 4

    parent = booking_repository.get(result.booking.id)
    assert sorted(parent.occurrence_ids) == sorted(o.id for o in result.occurrences)


def test_recurring_not_allowed_on_court(clock, player, court_row):
    court_row.allow_recurring_bookings = False
    court_row.save()

    with pytest.raises(ValidationError):
        create(
            clock, player, court_row, at(2, 18), at(2, 19),
            booking_type=BookingType.RECURRING,
            recurring_pattern=RecurringPattern(Frequency.WEEKLY, occurrences=3),
        )


def test_recurring_requires_pattern(clock, player, court_row):
    with pytest.raises(ValidationError):
        create(clock, player, court_row, at(2, 18), at(2, 19), booking_type=BookingType.RECURRING)


# ----- approval ------------------------------------------------------------------

def test_approval_flow(clock, player, owner, court_row):
    court_row.requires_approval = True
    court_row.save()
    booking = create(clock, player, court_row, at(2, 18), at(2, 19)).booking
    assert booking.status == BookingStatus.PENDING_CONFIRMATION

    with pytest.raises(Forbidden):
        ApproveBookingHandler(clock=clock).handle(ApproveBookingCommand(Actor.from_user(player), booking.id))

    approved = ApproveBookingHandler(clock=clock).handle(ApproveBookingCommand(Actor.from_user(owner), booking.id))
    assert approved.status == BookingStatus.CONFIRMED
    assert BookingRow.objects.get(pk=booking.id).approved_by == owner

    with pytest.raises(StateConflict):
        ApproveBookingHandler(clock=clock).handle(ApproveBookingCommand(Actor.from_user(owner), booking.id))


def test_venue_level_approval(clock, player, court_row):
    court_row.venue.requires_approval = True
    court_row.venue.save()

    booking = create(clock, player, court_row, at(2, 18), at(2, 19)).booking

    assert booking.status == BookingStatus.PENDING_CONFIRMATION


def test_reject(clock, player, owner, court_row):
    court_row.requires_approval = True
    court_row.save()
    booking = create(clock, player, court_row, at(2, 18), at(2, 19)).booking

    rejected = RejectBookingHandler(clock=clock).handle(
        RejectBookingCommand(Actor.from_user(owner), booking.id, "Reserved for coaching")
    )

    row = BookingRow.objects.get(pk=booking.id)
    assert rejected.status == BookingStatus.CANCELLED
    assert row.rejection_reason == "Reserved for coaching"
    assert row.refund_percentage == 100
    assert row.cancellation_fee == Decimal("0.00")


# ----- cancel ------------------------------------------------------------------

def test_cancel_by_player(clock, player, court_row):
    booking = create(clock, player, court_row, at(2, 18), at(2, 19)).booking
    clock.advance(hours=12)

    cancelled = CancelBookingHandler(clock=clock).handle(
        CancelBookingCommand(Actor.from_user(player), booking.id, "Team could not make it")
    )

    # 18 hours before start
    row = BookingRow.objects.get(pk=booking.id)
    assert cancelled.status == BookingStatus.CANCELLED
    assert row.refund_percentage == 75
    assert row.cancellation_fee == Decimal("262.50")
    assert row.hours_until_booking == Decimal("18.0")
    assert row.cancelled_by == player


def test_cancelled_interval_is_free_again(clock, player, other_player, court_row):
    booking = create(clock, player, court_row, at(2, 18), at(2, 19)).booking
    CancelBookingHandler(clock=clock).handle(
        CancelBookingCommand(Actor.from_user(player), booking.id, "Team could not make it")
    )

    create(clock, other_player, court_row, at(2, 18), at(2, 19))


def test_stranger_cannot_cancel(clock, player, other_player, court_row):
    booking = create(clock, player, court_row, at(2, 18), at(2, 19)).booking

    with pytest.raises(Forbidden):
        CancelBookingHandler(clock=clock).handle(
            CancelBookingCommand(Actor.from_user(other_player), booking.id, "Not my booking")
        )


def test_stale_transition_loses_the_race(clock, player, court_row):
    booking = create(clock, player, court_row, at(2, 18), at(2, 19)).booking
    first = booking_repository.get(booking.id)
    second = booking_repository.get(booking.id)

    first.cancel(player.pk, "Team could not make it", clock.now())
    booking_repository.save(first)

    second.check_in(player.pk, at(2, 17, 50))
    with pytest.raises(StateConflict):
        booking_repository.save(second)

    assert BookingRow.objects.get(pk=booking.id).status == BookingStatus.CANCELLED.value


# ----- reschedule ----------------------------------------------------------------

def test_reschedule_moves_and_reprices(clock, player, court_row):
    booking = create(clock, player, court_row, at(2, 18), at(2, 19)).booking

    moved = RescheduleBookingHandler(clock=clock).handle(
        RescheduleBookingCommand(
            Actor.from_user(player), booking.id,
            start_time=at(3, 10), end_time=at(3, 12), reason="Moved to Tuesday",
        )
    )

    row = BookingRow.objects.get(pk=booking.id)
    assert (moved.start_time, moved.end_time) == (at(3, 10), at(3, 12))
    assert row.duration_minutes == 120
    assert row.total_amount == Decimal("2100.00")
    [entry] = row.modifications.all()
    assert entry.reason == "Moved to Tuesday"
    assert entry.changes["price"] == {"from": "1050.00", "to": "2100.00"}


def test_reschedule_ignores_own_interval_but_not_others(clock, player, other_player, court_row):
    mine = create(clock, player, court_row, at(2, 10), at(2, 11)).booking
    create(clock, other_player, court_row, at(2, 12), at(2, 13))
    handler = RescheduleBookingHandler(clock=clock)

    handler.handle(RescheduleBookingCommand(Actor.from_user(player), mine.id, start_time=at(2, 10, 30)))

    with pytest.raises(Conflict):
        handler.handle(RescheduleBookingCommand(Actor.from_user(player), mine.id, start_time=at(2, 12)))


def test_group_size_change_reprices(clock, player, court_row):
    DiscountRule.objects.create(
        court=court_row, category="group", kind="fixed", value=Decimal("100"), min_group_size=4
    )
    booking = create(clock, player, court_row, at(2, 18), at(2, 19)).booking

    updated = RescheduleBookingHandler(clock=clock).handle(
        RescheduleBookingCommand(Actor.from_user(player), booking.id, group_size=6)
    )

    assert updated.group_size == 6
    assert updated.pricing.total == Decimal("945.00")
    assert len(updated.modifications) == 1


class LockLog(list):
    """Shared record of the row locks taken, in order"""


class RecordingBookingRepository(DjangoBookingRepository):
    def __init__(self, log: LockLog):
        self.log = log

    def get(self, booking_id, *, lock=False):
        if lock:
            self.log.append("booking")
        return super().get(booking_id, lock=lock)

    def find_occupying(self, *args, lock=False, **kwargs):
        if lock:
            self.log.append("occupying")
        return super().find_occupying(*args, lock=lock, **kwargs)


class RecordingCourtRepository(DjangoCourtRepository):
    def __init__(self, log: LockLog):
        self.log = log

    def get(self, court_id, *, lock=False):
        if lock:
            self.log.append("court")
        return super().get(court_id, lock=lock)


def test_create_and_reschedule_lock_the_court_first(clock, player, court_row):
    log = LockLog()
    repos = {"booking_repo": RecordingBookingRepository(log), "court_repo": RecordingCourtRepository(log)}
    command = CreateBookingCommand(Actor.from_user(player), court_row.id, at(2, 18), at(2, 19))
    booking = CreateBookingHandler(clock=clock, **repos).handle(command).booking

    assert log == ["court"]

    log.clear()
    RescheduleBookingHandler(clock=clock, **repos).handle(
        RescheduleBookingCommand(Actor.from_user(player), booking.id, start_time=at(2, 16))
    )

    assert log == ["court", "booking"]


def test_reschedule_keeps_early_bird_discount(clock, player, court_row):
    DiscountRule.objects.create(
        court=court_row, category="early-bird", kind="percentage", value=Decimal("20")
    )
    booking = create(clock, player, court_row, at(2, 18), at(2, 19), is_early_bird=True).booking
    assert booking.pricing.total == Decimal("840.00")
    handler = RescheduleBookingHandler(clock=clock)

    moved = handler.handle(
        RescheduleBookingCommand(Actor.from_user(player), booking.id, start_time=at(3, 10), end_time=at(3, 12))
    )
    regrouped = handler.handle(RescheduleBookingCommand(Actor.from_user(player), booking.id, group_size=4))

    assert moved.pricing.total == Decimal("1680.00")
    assert regrouped.pricing.total == Decimal("1680.00")
    assert BookingRow.objects.get(pk=booking.id).is_early_bird


def test_reschedule_inside_cutoff(clock, player, court_row):
    booking = create(clock, player, court_row, at(2, 18), at(2, 19)).booking
    clock.advance(days=1, hours=5)

    with pytest.raises(ValidationError):
        RescheduleBookingHandler(clock=clock).handle(
            RescheduleBookingCommand(Actor.from_user(player), booking.id, start_time=at(3, 18))
        )


def test_reschedule_without_changes(clock, player, court_row):
    booking = create(clock, player, court_row, at(2, 18), at(2, 19)).booking

    with pytest.raises(ValidationError):
        RescheduleBookingHandler(clock=clock).handle(RescheduleBookingCommand(Actor.from_user(player), booking.id))


# ----- check-in / check-out ------------------------------------------------------

def test_check_in_and_out(clock, player, owner, court_row):
    booking = create(clock, player, court_row, at(2, 18), at(2, 19)).booking

    with pytest.raises(ValidationError):
        CheckInBookingHandler(clock=clock).handle(CheckInBookingCommand(Actor.from_user(owner), booking.id))

    clock.advance(days=1, hours=5, minutes=50)
    checked_in = CheckInBookingHandler(clock=clock).handle(CheckInBookingCommand(Actor.from_user(owner), booking.id))
    assert checked_in.status == BookingStatus.IN_PROGRESS

    clock.advance(hours=1, minutes=10)
    checked_out = CheckOutBookingHandler(clock=clock).handle(CheckOutBookingCommand(Actor.from_user(player), booking.id))

    row = BookingRow.objects.get(pk=booking.id)
    assert checked_out.status == BookingStatus.COMPLETED
    assert row.check_in_verified_by == owner
    assert row.check_out_verified_by == player
