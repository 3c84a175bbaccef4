"""
Refund Policy

Step function from hours-before-start to refund percentage. A pure
function of (now, start time, total) so it is reproducible with a fixed
clock.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from shared.domain.value_objects import quantize_amount

# (minimum hours before start, refund percentage), checked top-down
REFUND_TIERS = (
    (24, 100),
    (12, 75),
    (6, 50),
    (2, 25),
)


@dataclass(frozen=True)
class RefundQuote:
    hours_until_start: Decimal
    percentage: int
    refund_amount: Decimal
    cancellation_fee: Decimal

    @property
    def eligible(self) -> bool:
        return self.percentage > 0


def refund_percentage(hours_until_start: float) -> int:
    for min_hours, percentage in REFUND_TIERS:
        if hours_until_start >= min_hours:
            return percentage
    return 0


def calculate_refund(now: datetime, start_time: datetime, total_amount: Decimal) -> RefundQuote:
    hours = (start_time - now).total_seconds() / 3600
    percentage = refund_percentage(hours)
    total = Decimal(total_amount)
    refund = quantize_amount(total * percentage / 100)
    return RefundQuote(
        hours_until_start=Decimal(str(hours)).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP),
        percentage=percentage,
        refund_amount=refund,
        cancellation_fee=quantize_amount(total - refund),
    )
