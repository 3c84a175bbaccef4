"""Pricing resolver tests."""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from apps.courts.domain.entities import DiscountKind, DiscountRule, PricingRule
from apps.courts.domain.pricing import PriceOptions, quote_price, resolve_price, select_pricing_rule

PKT = ZoneInfo("Asia/Karachi")


def at(hour: int, minute: int = 0, day: int = 2) -> datetime:
    # 2026-03-02 is a Monday
    return datetime(2026, 3, day, hour, minute, tzinfo=PKT)


PEAK = PricingRule(
    name="Peak Hours",
    category="peak",
    rate=Decimal("1500"),
    priority=10,
    start_time=time(17),
    end_time=time(21),
)


def test_peak_rule_applies_to_evening_request(make_court):
    court = make_court(pricing_rules=(PEAK,))

    assert resolve_price(court, at(18), at(20)) == Decimal("3000.00")


def test_base_rate_outside_rule_window(make_court):
    court = make_court(pricing_rules=(PEAK,))

    quote = quote_price(court, at(10), at(11, 30))

    assert quote.hourly_rate == Decimal("1000")
    assert quote.total == Decimal("1500.00")
    assert quote.rule_name is None


def test_rule_window_is_evaluated_in_court_local_time(make_court):
    court = make_court(pricing_rules=(PEAK,))
    utc = ZoneInfo("UTC")

    # 13:00 UTC is 18:00 in Karachi
    start = datetime(2026, 3, 2, 13, tzinfo=utc)
    end = datetime(2026, 3, 2, 14, tzinfo=utc)

    assert resolve_price(court, start, end) == Decimal("1500.00")


def test_highest_priority_wins(make_court):
    weekend = PricingRule(
        name="Weekend", category="weekend", rate=Decimal("2000"), priority=20, days_of_week=(0, 6)
    )
    court = make_court(pricing_rules=(PEAK, weekend))

    # Saturday evening: both match, weekend has the higher priority
    assert resolve_price(court, at(18, day=7), at(19, day=7)) == Decimal("2000.00")
    # Monday evening: only peak matches
    assert resolve_price(court, at(18), at(19)) == Decimal("1500.00")


def test_priority_tie_goes_to_first_declared_rule():
    first = PricingRule(name="First", category="promotional", rate=Decimal("800"), priority=5)
    second = PricingRule(name="Second", category="promotional", rate=Decimal("700"), priority=5)

    assert select_pricing_rule((first, second), at(12)) is first
    assert select_pricing_rule((second, first), at(12)) is second


def test_inactive_and_out_of_range_rules_are_ignored(make_court):
    inactive = PricingRule(name="Off", category="peak", rate=Decimal("5000"), priority=99, is_active=False)
    seasonal = PricingRule(
        name="Summer",
        category="seasonal",
        rate=Decimal("4000"),
        priority=50,
        start_date=date(2026, 6, 1),
        end_date=date(2026, 8, 31),
    )
    court = make_court(pricing_rules=(inactive, seasonal))

    assert resolve_price(court, at(12), at(13)) == Decimal("1000.00")


def test_rule_window_bounds_are_inclusive():
    assert PEAK.applies_to(at(17))
    assert PEAK.applies_to(at(21))
    assert not PEAK.applies_to(at(21, 1))


def test_discounts_apply_cumulatively_in_declaration_order(make_court):
    discounts = (
        DiscountRule(category="membership", kind=DiscountKind.PERCENTAGE, value=Decimal("10"), membership_tier="gold"),
        DiscountRule(category="group", kind=DiscountKind.FIXED, value=Decimal("200"), min_group_size=4),
        DiscountRule(category="early-bird", kind=DiscountKind.PERCENTAGE, value=Decimal("50")),
    )
    court = make_court(base_hourly_rate=Decimal("2000"), discount_rules=discounts)

    quote = quote_price(court, at(10), at(11), PriceOptions(membership_tier="gold", group_size=6))

    assert [d.amount for d in quote.discounts] == [Decimal("200.00"), Decimal("200.00")]
    assert quote.base_price == Decimal("2000.00")
    assert quote.total == Decimal("1600.00")
    assert quote.total_discount == Decimal("400.00")


def test_discount_conditions_must_match(make_court):
    discounts = (
        DiscountRule(category="membership", kind=DiscountKind.PERCENTAGE, value=Decimal("10"), membership_tier="gold"),
        DiscountRule(category="group", kind=DiscountKind.FIXED, value=Decimal("200"), min_group_size=4),
    )
    court = make_court(discount_rules=discounts)

    quote = quote_price(court, at(10), at(11), PriceOptions(membership_tier="silver", group_size=3))

    assert quote.discounts == ()
    assert quote.total == Decimal("1000.00")


def test_price_is_floored_at_zero(make_court):
    court = make_court(
        discount_rules=(DiscountRule(category="early-bird", kind=DiscountKind.FIXED, value=Decimal("5000")),)
    )

    assert resolve_price(court, at(10), at(11), PriceOptions(is_early_bird=True)) == Decimal("0.00")


def test_pricing_is_idempotent(make_court):
    court = make_court(pricing_rules=(PEAK,))

    first = quote_price(court, at(16, 30), at(18))
    second = quote_price(court, at(16, 30), at(18))

    assert first == second


def test_end_before_start_is_rejected(make_court):
    with pytest.raises(ValueError):
        quote_price(make_court(), at(11), at(10))
