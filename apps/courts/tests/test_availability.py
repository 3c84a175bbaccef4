"""Availability checker tests."""

from __future__ import annotations

from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from apps.courts.domain.availability import (
    REASON_BREAK,
    REASON_CLOSED,
    REASON_EXCEPTION,
    REASON_INACTIVE,
    REASON_OUTSIDE_HOURS,
    check_availability,
    operating_window,
)
from apps.courts.domain.entities import (
    AvailabilityException,
    BreakWindow,
    CourtStatus,
    OperatingHours,
)

PKT = ZoneInfo("Asia/Karachi")
MONDAY = date(2026, 3, 2)


def at(hour: int, minute: int = 0, day: date = MONDAY) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=PKT)


def test_open_interval_is_available(make_court):
    result = check_availability(make_court(), at(10), at(11))

    assert result.available
    assert result.reason is None


def test_inactive_court_is_checked_first(make_court):
    court = make_court(status=CourtStatus.MAINTENANCE, operating_hours={})

    result = check_availability(court, at(10), at(11))

    assert not result
    assert result.reason == REASON_INACTIVE


def test_closed_day(make_court):
    hours = {1: OperatingHours(day_of_week=1, is_closed=True)}

    result = check_availability(make_court(operating_hours=hours), at(10), at(11))

    assert result.reason == REASON_CLOSED


def test_missing_day_counts_as_closed(make_court):
    result = check_availability(make_court(operating_hours={}), at(10), at(11))

    assert result.reason == REASON_CLOSED


def test_start_outside_hours(make_court):
    assert check_availability(make_court(), at(7), at(8)).reason == REASON_OUTSIDE_HOURS
    assert check_availability(make_court(), at(20), at(21)).reason == REASON_OUTSIDE_HOURS


def test_end_past_closing_time(make_court):
    court = make_court()

    assert check_availability(court, at(19), at(21)).reason == REASON_OUTSIDE_HOURS
    assert check_availability(court, at(19), at(21), enforce_closing_time=False).available
    assert check_availability(court, at(19), at(20)).available


def test_break_blocks_overlapping_interval(make_court):
    hours = {
        1: OperatingHours(
            day_of_week=1,
            open_time=time(8),
            close_time=time(20),
            breaks=(BreakWindow(time(13), time(14), "Prayer break"),),
        )
    }
    court = make_court(operating_hours=hours)

    assert check_availability(court, at(12, 30), at(13, 30)).reason == REASON_BREAK
    assert check_availability(court, at(12), at(13)).available
    assert check_availability(court, at(14), at(15)).available


def test_blocking_exception_makes_whole_day_unavailable(make_court):
    closed = AvailabilityException(date=MONDAY, category="holiday", reason="Public holiday")
    court = make_court(exceptions=(closed,))

    for hour in (8, 12, 18):
        result = check_availability(court, at(hour), at(hour + 1))
        assert result.reason == "Public holiday"

    next_day = date(2026, 3, 3)
    assert check_availability(court, at(10, day=next_day), at(11, day=next_day)).available


def test_exception_without_reason_uses_default(make_court):
    court = make_court(exceptions=(AvailabilityException(date=MONDAY),))

    assert check_availability(court, at(10), at(11)).reason == REASON_EXCEPTION


def test_custom_hours_exception_replaces_weekly_window(make_court):
    short_day = AvailabilityException(
        date=MONDAY,
        category="special-event",
        is_available=True,
        custom_open_time=time(12),
        custom_close_time=time(16),
    )
    court = make_court(exceptions=(short_day,))

    assert check_availability(court, at(10), at(11)).reason == REASON_OUTSIDE_HOURS
    assert check_availability(court, at(12), at(13)).available
    assert check_availability(court, at(15), at(17)).reason == REASON_OUTSIDE_HOURS


def test_window_past_midnight(make_court):
    hours = {1: OperatingHours(day_of_week=1, open_time=time(18), close_time=time(2))}
    court = make_court(operating_hours=hours)

    window = operating_window(court, MONDAY)

    assert window.opens_at == at(18)
    assert window.closes_at == at(2, day=date(2026, 3, 3))
    assert check_availability(court, at(23), at(1, day=date(2026, 3, 3))).available


def test_after_midnight_start_uses_previous_days_window(make_court):
    # Monday 18:00 to 02:00, Tuesday closed
    hours = {
        1: OperatingHours(day_of_week=1, open_time=time(18), close_time=time(2)),
        2: OperatingHours(day_of_week=2, is_closed=True),
    }
    court = make_court(operating_hours=hours)
    tuesday = date(2026, 3, 3)

    assert check_availability(court, at(0, 30, day=tuesday), at(1, 30, day=tuesday)).available
    assert check_availability(court, at(1, 30, day=tuesday), at(2, 30, day=tuesday)).reason == REASON_OUTSIDE_HOURS
    assert check_availability(court, at(3, day=tuesday), at(4, day=tuesday)).reason == REASON_CLOSED


def test_after_midnight_start_before_own_opening(make_court):
    hours = {
        1: OperatingHours(day_of_week=1, open_time=time(18), close_time=time(2)),
        2: OperatingHours(day_of_week=2, open_time=time(8), close_time=time(20)),
    }
    court = make_court(operating_hours=hours)
    tuesday = date(2026, 3, 3)

    assert check_availability(court, at(1, day=tuesday), at(2, day=tuesday)).available
    assert check_availability(court, at(5, day=tuesday), at(6, day=tuesday)).reason == REASON_OUTSIDE_HOURS


def test_blocked_date_closes_the_overnight_tail(make_court):
    hours = {1: OperatingHours(day_of_week=1, open_time=time(18), close_time=time(2))}
    tuesday = date(2026, 3, 3)
    court = make_court(
        operating_hours=hours,
        exceptions=(AvailabilityException(date=tuesday, reason="Floodlight repair"),),
    )

    assert check_availability(court, at(22), at(23)).available
    assert check_availability(court, at(0, 30, day=tuesday), at(1, 30, day=tuesday)).reason == "Floodlight repair"
