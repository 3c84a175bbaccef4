"""
Time Source

Injectable "now" provider used by command handlers and background sweeps so
that refund tiers, check-in windows and expiry rules can be exercised in
tests without depending on the wall clock.
"""

from datetime import datetime, timedelta

from django.utils import timezone  # type: ignore


class SystemClock:
    """Current time from Django (timezone-aware, UTC)"""

    def now(self) -> datetime:
        return timezone.now()


class FixedClock:
    """Clock frozen at a given instant; ``advance`` moves it forward"""

    def __init__(self, now: datetime):
        if timezone.is_naive(now):
            raise ValueError("FixedClock requires a timezone-aware datetime")
        self._now = now

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs) -> datetime:
        self._now = self._now + timedelta(**kwargs)
        return self._now


system_clock = SystemClock()
