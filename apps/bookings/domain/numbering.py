"""
Booking Number Generation

Numbers look like ``BK2610180042``: ``BK`` + YYMMDD + a sequence. The
sequence is today's booking count plus a random offset, re-drawn while the
candidate is taken, so concurrent workers rarely pick the same value and
never depend on a shared in-process counter. The unique column on the
booking table is the final guard.
"""

import random
import secrets
from datetime import date, datetime
from typing import Callable

MAX_ATTEMPTS = 5
RANDOM_SPREAD = 99


def format_booking_number(day: date, sequence: int) -> str:
    return f"BK{day:%y%m%d}{sequence:04d}"


def fallback_booking_number(day: date, now: datetime) -> str:
    millis = int(now.timestamp() * 1000) % 10000
    return f"BK{day:%y%m%d}{millis:04d}{secrets.token_hex(2).upper()}"


def generate_booking_number(
    day: date,
    created_today: int,
    is_taken: Callable[[str], bool],
    now: datetime,
    rng: random.Random = random,
) -> str:
    for _ in range(MAX_ATTEMPTS):
        candidate = format_booking_number(day, created_today + rng.randint(0, RANDOM_SPREAD) + 1)
        if not is_taken(candidate):
            return candidate
    return fallback_booking_number(day, now)
