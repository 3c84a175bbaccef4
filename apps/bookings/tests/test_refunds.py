"""Refund tier tests."""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from apps.bookings.domain.refunds import calculate_refund, refund_percentage

NOW = datetime(2026, 3, 1, 12, tzinfo=ZoneInfo("Asia/Karachi"))
TOTAL = Decimal("2100")


@pytest.mark.parametrize(
    "hours, percentage, refund",
    [
        (48, 100, Decimal("2100.00")),
        (18, 75, Decimal("1575.00")),
        (1, 0, Decimal("0.00")),
    ],
)
def test_reference_tiers(hours, percentage, refund):
    quote = calculate_refund(NOW, NOW + timedelta(hours=hours), TOTAL)

    assert quote.percentage == percentage
    assert quote.refund_amount == refund
    assert quote.cancellation_fee == TOTAL - refund


@pytest.mark.parametrize(
    "hours, expected",
    [(24, 100), (23.9, 75), (12, 75), (6, 50), (5.99, 25), (2, 25), (1.99, 0), (0, 0)],
)
def test_tier_boundaries(hours, expected):
    assert refund_percentage(hours) == expected


def test_quote_records_hours_and_eligibility():
    quote = calculate_refund(NOW, NOW + timedelta(hours=6, minutes=20), Decimal("1050"))

    assert quote.hours_until_start == Decimal("6.3")
    assert quote.percentage == 50
    assert quote.refund_amount == Decimal("525.00")
    assert quote.eligible

    assert not calculate_refund(NOW, NOW + timedelta(minutes=30), TOTAL).eligible
