"""
Pricing Resolver

Computes what a court costs for a requested interval:
1. pick the hourly rate (highest-priority matching pricing rule, else the
   court's base rate),
2. multiply by the fractional duration in hours,
3. apply the matching discount rules cumulatively in declaration order,
4. never go below zero.

Pure functions of their inputs: no clock, no database.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from operator import attrgetter
from typing import Iterable, Optional, Tuple

from shared.domain.value_objects import quantize_amount
from apps.courts.domain.entities import Court, DiscountKind, DiscountRule, PricingRule

SECONDS_PER_HOUR = Decimal('3600')
ZERO = Decimal('0')
HUNDRED = Decimal('100')


@dataclass(frozen=True)
class PriceOptions:
    """Caller attributes that unlock discounts"""
    membership_tier: Optional[str] = None
    group_size: Optional[int] = None
    is_early_bird: bool = False


@dataclass(frozen=True)
class AppliedDiscount:
    category: str
    kind: str
    value: Decimal
    amount: Decimal
    name: str = ''

    def to_dict(self) -> dict:
        return {
            'category': self.category,
            'kind': self.kind,
            'value': str(self.value),
            'amount': str(self.amount),
            'name': self.name,
        }


@dataclass(frozen=True)
class PriceQuote:
    """Breakdown of a resolved price"""
    hourly_rate: Decimal
    duration_hours: Decimal
    base_price: Decimal
    discounts: Tuple[AppliedDiscount, ...]
    total: Decimal
    currency: str
    rule_name: Optional[str] = None

    @property
    def total_discount(self) -> Decimal:
        return quantize_amount(sum((d.amount for d in self.discounts), ZERO))


def select_pricing_rule(rules: Iterable[PricingRule], local_start: datetime) -> Optional[PricingRule]:
    """
    Highest-priority rule whose filters match ``local_start``

    ``max`` keeps the first of equally ranked candidates, so ties go to the
    rule declared first.
    """
    matching = [rule for rule in rules if rule.applies_to(local_start)]
    if not matching:
        return None
    return max(matching, key=attrgetter('priority'))


def discount_applies(rule: DiscountRule, options: PriceOptions) -> bool:
    if not rule.is_active:
        return False
    if rule.category == 'membership':
        return bool(options.membership_tier) and rule.membership_tier == options.membership_tier
    if rule.category == 'group':
        return (
            options.group_size is not None
            and rule.min_group_size is not None
            and options.group_size >= rule.min_group_size
        )
    if rule.category == 'early-bird':
        return options.is_early_bird
    return False


def quote_price(
    court: Court,
    start_time: datetime,
    end_time: datetime,
    options: Optional[PriceOptions] = None,
) -> PriceQuote:
    if end_time <= start_time:
        raise ValueError("End time must be after start time")
    options = options or PriceOptions()

    seconds = Decimal(int((end_time - start_time).total_seconds()))
    hours = seconds / SECONDS_PER_HOUR

    rule = select_pricing_rule(court.pricing_rules, court.to_local(start_time))
    rate = rule.rate if rule else court.base_hourly_rate
    raw_total = rate * seconds / SECONDS_PER_HOUR

    running = raw_total
    applied = []
    for discount in court.discount_rules:
        if not discount_applies(discount, options):
            continue
        if discount.kind == DiscountKind.PERCENTAGE:
            reduction = running * discount.value / HUNDRED
        else:
            reduction = discount.value
        reduction = min(reduction, running)
        running -= reduction
        applied.append(AppliedDiscount(
            category=discount.category,
            kind=discount.kind.value,
            value=discount.value,
            amount=quantize_amount(reduction),
            name=discount.name,
        ))

    return PriceQuote(
        hourly_rate=rate,
        duration_hours=hours,
        base_price=quantize_amount(raw_total),
        discounts=tuple(applied),
        total=quantize_amount(max(running, ZERO)),
        currency=court.currency,
        rule_name=rule.name if rule else None,
    )


def resolve_price(
    court: Court,
    start_time: datetime,
    end_time: datetime,
    options: Optional[PriceOptions] = None,
) -> Decimal:
    """Effective price of the interval; see ``quote_price`` for the breakdown."""
    return quote_price(court, start_time, end_time, options).total
