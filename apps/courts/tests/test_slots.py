"""Slot enumerator tests."""

from __future__ import annotations

from datetime import date, datetime, time
from zoneinfo import ZoneInfo

import pytest

from shared.domain.exceptions import ValidationError
from shared.domain.value_objects import TimeRange
from apps.courts.domain.entities import (
    AvailabilityException,
    BookingPolicy,
    BreakWindow,
    CourtStatus,
    OperatingHours,
)
from apps.courts.domain.slots import enumerate_slots

PKT = ZoneInfo("Asia/Karachi")
MONDAY = date(2026, 3, 2)


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 3, 2, hour, minute, tzinfo=PKT)


def unavailable(slots) -> list:
    return [(slot.start_time.hour, slot.start_time.minute) for slot in slots if not slot.available]


def test_one_booking_blocks_exactly_its_slot(make_court):
    slots = enumerate_slots(make_court(), MONDAY, 60, [TimeRange(at(10), at(11))])

    assert len(slots) == 12
    assert slots[0].start_time == at(8)
    assert slots[-1].end_time == at(20)
    assert unavailable(slots) == [(10, 0)]


def test_partial_trailing_slot_is_dropped(make_court):
    hours = {1: OperatingHours(day_of_week=1, open_time=time(8), close_time=time(10, 30))}

    slots = enumerate_slots(make_court(operating_hours=hours), MONDAY, 60)

    assert [(s.start_time, s.end_time) for s in slots] == [(at(8), at(9)), (at(9), at(10))]


def test_closed_day_has_no_slots(make_court):
    hours = {1: OperatingHours(day_of_week=1, is_closed=True)}

    assert enumerate_slots(make_court(operating_hours=hours), MONDAY, 60) == []


def test_overlapping_booking_blocks_every_touched_slot(make_court):
    slots = enumerate_slots(make_court(), MONDAY, 30, [TimeRange(at(10, 15), at(11, 15))])

    assert unavailable(slots) == [(10, 0), (10, 30), (11, 0)]


def test_buffer_pads_occupied_intervals(make_court):
    court = make_court(policy=BookingPolicy(buffer_time=15))

    slots = enumerate_slots(court, MONDAY, 60, [TimeRange(at(10), at(11))])

    assert unavailable(slots) == [(9, 0), (10, 0), (11, 0)]


def test_breaks_are_unavailable(make_court):
    hours = {
        1: OperatingHours(
            day_of_week=1,
            open_time=time(8),
            close_time=time(20),
            breaks=(BreakWindow(time(13), time(14)),),
        )
    }

    slots = enumerate_slots(make_court(operating_hours=hours), MONDAY, 60)

    assert unavailable(slots) == [(13, 0)]


def test_blocked_exception_day_marks_every_slot_unavailable(make_court):
    court = make_court(exceptions=(AvailabilityException(date=MONDAY, category="maintenance"),))

    slots = enumerate_slots(court, MONDAY, 60)

    assert len(slots) == 12
    assert not any(slot.available for slot in slots)


def test_inactive_court_marks_every_slot_unavailable(make_court):
    slots = enumerate_slots(make_court(status=CourtStatus.INACTIVE), MONDAY, 60)

    assert slots and not any(slot.available for slot in slots)


@pytest.mark.parametrize("interval", [10, 181])
def test_interval_bounds(make_court, interval):
    with pytest.raises(ValidationError):
        enumerate_slots(make_court(), MONDAY, interval)


def test_slot_wire_format(make_court):
    slot = enumerate_slots(make_court(), MONDAY, 60)[0]

    assert slot.to_dict() == {
        "startTime": "2026-03-02T08:00:00+05:00",
        "endTime": "2026-03-02T09:00:00+05:00",
        "available": True,
    }
