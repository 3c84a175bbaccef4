"""Booking aggregate state machine tests."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta
from decimal import Decimal
from uuid import uuid4
from zoneinfo import ZoneInfo

import pytest

from shared.domain.exceptions import StateConflict, ValidationError
from shared.domain.value_objects import TimeRange
from apps.bookings.domain.entities import (
    TERMINAL_STATUSES,
    TRANSITIONS,
    Booking,
    BookingStatus,
    PaymentSnapshot,
    PaymentStatus,
    PricingSnapshot,
)
from apps.bookings.domain.events import (
    BookingApproved,
    BookingCancelled,
    BookingCheckedIn,
    BookingCompleted,
    BookingExpired,
    BookingNoShow,
    BookingRejected,
    BookingRescheduled,
)

PKT = ZoneInfo("Asia/Karachi")
START = datetime(2026, 3, 2, 18, tzinfo=PKT)
END = START + timedelta(hours=1)

PRICING = PricingSnapshot(
    base_price=Decimal("2000.00"),
    subtotal=Decimal("2000.00"),
    tax=Decimal("100.00"),
    total=Decimal("2100.00"),
)


def make_booking(status: BookingStatus = BookingStatus.CONFIRMED, **overrides) -> Booking:
    values = dict(
        booking_number="BK2603020001",
        user_id=1,
        court_id=uuid4(),
        venue_id=uuid4(),
        time_range=TimeRange(START, END),
        pricing=PRICING,
        status=status,
    )
    values.update(overrides)
    return Booking(**values)


def event_types(booking: Booking) -> list:
    return [type(event) for event in booking.events]


def test_terminal_statuses_have_no_exits():
    assert TERMINAL_STATUSES == {
        BookingStatus.COMPLETED,
        BookingStatus.CANCELLED,
        BookingStatus.NO_SHOW,
        BookingStatus.EXPIRED,
    }
    assert all(not TRANSITIONS[status] for status in TERMINAL_STATUSES)


def test_duration_is_derived():
    booking = make_booking(time_range=TimeRange(START, START + timedelta(minutes=90)))

    assert booking.duration_minutes == 90


def test_approve_pending_booking():
    booking = make_booking(BookingStatus.PENDING_CONFIRMATION)
    now = START - timedelta(days=1)

    booking.approve(7, now)

    assert booking.status == BookingStatus.CONFIRMED
    assert (booking.approved_by, booking.approved_at) == (7, now)
    assert event_types(booking) == [BookingApproved]


def test_approving_confirmed_booking_is_a_state_conflict():
    with pytest.raises(StateConflict):
        make_booking().approve(7, START - timedelta(days=1))


def test_reject_is_fully_refundable():
    booking = make_booking(BookingStatus.PENDING_CONFIRMATION)

    booking.reject(7, "Court reserved for a tournament", START - timedelta(hours=1))

    assert booking.status == BookingStatus.CANCELLED
    assert booking.rejection_reason == "Court reserved for a tournament"
    assert booking.cancellation.refund_percentage == 100
    assert booking.cancellation.refund_amount == Decimal("2100.00")
    assert booking.cancellation.refund_eligible
    assert event_types(booking) == [BookingRejected]


def test_reject_requires_reason():
    with pytest.raises(ValidationError):
        make_booking(BookingStatus.PENDING_CONFIRMATION).reject(7, "  ", START - timedelta(days=1))


@pytest.mark.parametrize(
    "hours_before, percentage, refund",
    [(48, 100, Decimal("2100.00")), (18, 75, Decimal("1575.00")), (1, 0, Decimal("0.00"))],
)
def test_cancel_records_refund_tier(hours_before, percentage, refund):
    booking = make_booking()

    booking.cancel(1, "Change of plans for the team", START - timedelta(hours=hours_before))

    assert booking.status == BookingStatus.CANCELLED
    assert booking.cancellation.refund_percentage == percentage
    assert booking.cancellation.refund_amount == refund
    assert booking.cancellation.cancellation_fee == Decimal("2100.00") - refund
    assert booking.cancellation.refund_eligible is (percentage > 0)
    assert event_types(booking) == [BookingCancelled]


def test_cancel_sets_payment_refund_when_paid():
    booking = make_booking(payment=PaymentSnapshot(amount=Decimal("2100.00"), status=PaymentStatus.PAID))

    booking.cancel(1, "Change of plans for the team", START - timedelta(hours=18))

    assert booking.payment.refund_amount == Decimal("1575.00")


def test_cancel_unpaid_booking_leaves_payment_alone():
    booking = make_booking()

    booking.cancel(1, "Change of plans for the team", START - timedelta(hours=18))

    assert booking.payment.refund_amount is None


@pytest.mark.parametrize("status", sorted(TERMINAL_STATUSES, key=lambda s: s.value))
def test_cannot_cancel_terminal_booking(status):
    with pytest.raises(StateConflict):
        make_booking(status).cancel(1, "Change of plans", START - timedelta(days=1))


def test_cannot_cancel_started_booking():
    with pytest.raises(ValidationError):
        make_booking().cancel(1, "Too late to cancel", START + timedelta(minutes=5))


def test_check_in_window():
    booking = make_booking()

    with pytest.raises(ValidationError):
        booking.check_in(9, START - timedelta(minutes=16))

    booking.check_in(9, START - timedelta(minutes=15))

    assert booking.status == BookingStatus.IN_PROGRESS
    assert booking.check_in_verified_by == 9
    assert event_types(booking) == [BookingCheckedIn]


def test_check_in_after_end_is_rejected():
    with pytest.raises(ValidationError):
        make_booking().check_in(9, END)


def test_check_in_requires_confirmed():
    with pytest.raises(StateConflict):
        make_booking(BookingStatus.PENDING_CONFIRMATION).check_in(9, START)


def test_check_out():
    booking = make_booking(BookingStatus.IN_PROGRESS)

    booking.check_out(9, END)

    assert booking.status == BookingStatus.COMPLETED
    assert booking.check_out_verified_by == 9
    assert event_types(booking) == [BookingCompleted]

    with pytest.raises(StateConflict):
        booking.check_out(9, END)


def test_expire_tentative_hold():
    now = START - timedelta(days=1)
    booking = make_booking(is_tentative=True, tentative_expires_at=now - timedelta(minutes=1))

    booking.expire(now)

    assert booking.status == BookingStatus.EXPIRED
    assert event_types(booking) == [BookingExpired]


def test_hold_not_yet_expired():
    now = START - timedelta(days=1)
    booking = make_booking(is_tentative=True, tentative_expires_at=now + timedelta(minutes=5))

    assert not booking.is_hold_expired(now)
    with pytest.raises(StateConflict):
        booking.expire(now)


def test_no_show_after_grace_period():
    booking = make_booking()

    assert not booking.is_no_show(START + timedelta(minutes=29))
    booking.mark_no_show(START + timedelta(minutes=30))

    assert booking.status == BookingStatus.NO_SHOW
    assert event_types(booking) == [BookingNoShow]


def test_complete_if_finished():
    booking = make_booking(BookingStatus.IN_PROGRESS)

    assert not booking.complete_if_finished(END)
    assert booking.complete_if_finished(END + timedelta(minutes=1))
    assert booking.status == BookingStatus.COMPLETED


def test_reschedule_appends_history():
    booking = make_booking()
    new_range = TimeRange(START + timedelta(days=1), END + timedelta(days=1))
    new_pricing = replace(PRICING, total=Decimal("1575.00"))
    now = START - timedelta(days=2)

    booking.ensure_reschedulable(now)
    booking.reschedule(new_range, new_pricing, 1, "", now)

    assert booking.time_range == new_range
    assert booking.pricing.total == Decimal("1575.00")
    [entry] = booking.modifications
    assert entry.reason == "Rescheduled"
    assert entry.changes["price"] == {"from": "2100.00", "to": "1575.00"}
    assert entry.changes["startTime"]["from"] == START.isoformat()
    assert event_types(booking) == [BookingRescheduled]


def test_reschedule_cutoff_and_status():
    with pytest.raises(ValidationError):
        make_booking().ensure_reschedulable(START - timedelta(hours=1))
    with pytest.raises(StateConflict):
        make_booking(BookingStatus.IN_PROGRESS).ensure_reschedulable(START - timedelta(days=1))


def test_group_size_must_be_positive():
    with pytest.raises(ValidationError):
        make_booking(group_size=0)
