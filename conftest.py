"""Shared pytest fixtures.

Times are expressed in Asia/Karachi (UTC+5, no DST). 2026-03-02 is a
Monday; the fixed clock sits on the Sunday before it.
"""

from __future__ import annotations

from datetime import datetime, time
from decimal import Decimal
from uuid import uuid4
from zoneinfo import ZoneInfo

import pytest

from shared.application.clock import FixedClock
from apps.courts.domain.entities import BookingPolicy, Court, CourtStatus, OperatingHours

PKT = ZoneInfo("Asia/Karachi")


def local(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=PKT)


def open_every_day(open_time: time = time(8), close_time: time = time(20), **extra) -> dict:
    return {
        day: OperatingHours(day_of_week=day, open_time=open_time, close_time=close_time, **extra)
        for day in range(7)
    }


def build_court(**overrides) -> Court:
    values = {
        "id": uuid4(),
        "venue_id": uuid4(),
        "name": "Court 1",
        "base_hourly_rate": Decimal("1000"),
        "currency": "PKR",
        "timezone": "Asia/Karachi",
        "status": CourtStatus.ACTIVE,
        "operating_hours": open_every_day(),
        "policy": BookingPolicy(),
    }
    values.update(overrides)
    return Court(**values)


@pytest.fixture
def make_court():
    return build_court


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(local(2026, 3, 1, 12))


# ----- database fixtures ---------------------------------------------------

@pytest.fixture
def owner(db):
    from apps.users.models import User

    return User.objects.create_user(
        email="owner@example.com",
        password="OwnerPass123",
        role=User.RoleChoices.OWNER,
    )


@pytest.fixture
def player(db):
    from apps.users.models import User

    return User.objects.create_user(email="player@example.com", password="PlayerPass123")


@pytest.fixture
def other_player(db):
    from apps.users.models import User

    return User.objects.create_user(email="second@example.com", password="PlayerPass123")


@pytest.fixture
def venue(owner):
    from apps.courts.models import Venue

    return Venue.objects.create(name="Model Town Sports Complex", city="Lahore", owner=owner)


@pytest.fixture
def court_row(venue, owner):
    from apps.courts.models import Court, OperatingHours

    court = Court.objects.create(
        venue=venue,
        name="Futsal A",
        sport_type=Court.SportType.FUTSAL,
        owner=owner,
        base_hourly_rate=Decimal("1000.00"),
        currency="PKR",
        timezone="Asia/Karachi",
    )
    OperatingHours.objects.bulk_create([
        OperatingHours(court=court, day_of_week=day, open_time=time(8), close_time=time(20))
        for day in range(7)
    ])
    return court
