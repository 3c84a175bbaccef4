"""
Booking Status Sweeps

Time-driven transitions run periodically by Celery beat:
- tentative holds past their expiry -> EXPIRED
- confirmed bookings never checked in -> NO_SHOW after the grace period
- in-progress bookings past their end time -> COMPLETED

Each booking is handled in its own transaction so one failure does not
hold back the rest. A booking that changed under our feet is skipped.
"""

from dataclasses import dataclass
from datetime import timedelta
import logging

from shared.application.clock import system_clock
from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import DomainError
from apps.bookings.conf import lifecycle_settings
from apps.bookings.domain.entities import BookingStatus
from apps.bookings.repositories import booking_repository

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    expired: int = 0
    no_shows: int = 0
    completed: int = 0

    def to_dict(self) -> dict:
        return {'expired': self.expired, 'no_shows': self.no_shows, 'completed': self.completed}


class BookingStatusSweeper:
    def __init__(self, booking_repo=None, clock=None):
        self.booking_repo = booking_repo or booking_repository
        self.clock = clock or system_clock
        self.settings = lifecycle_settings()

    def run(self) -> SweepResult:
        return SweepResult(
            expired=self.expire_holds(),
            no_shows=self.mark_no_shows(),
            completed=self.complete_finished(),
        )

    def expire_holds(self) -> int:
        now = self.clock.now()
        candidates = self.booking_repo.query(
            statuses=[BookingStatus.PENDING_CONFIRMATION, BookingStatus.CONFIRMED],
            is_tentative=True,
            expires_lte=now,
        )
        count = self._apply(candidates, 'expire', lambda booking: booking.expire(now))
        if count:
            logger.info(f"Expired {count} tentative bookings")
        return count

    def mark_no_shows(self) -> int:
        now = self.clock.now()
        grace = self.settings.no_show_grace_minutes
        candidates = self.booking_repo.query(
            statuses=[BookingStatus.CONFIRMED],
            checked_in=False,
            start_lte=now - timedelta(minutes=grace),
        )
        count = self._apply(candidates, 'mark no-show', lambda booking: booking.mark_no_show(now, grace))
        if count:
            logger.info(f"Marked {count} bookings as no-show")
        return count

    def complete_finished(self) -> int:
        now = self.clock.now()
        candidates = self.booking_repo.query(
            statuses=[BookingStatus.IN_PROGRESS],
            end_lt=now,
        )
        count = self._apply(candidates, 'complete', lambda booking: booking.complete_if_finished(now))
        if count:
            logger.info(f"Completed {count} finished bookings")
        return count

    def _apply(self, candidates, action: str, mutate) -> int:
        done = 0
        for candidate in candidates:
            try:
                with DjangoUnitOfWork() as uow:
                    booking = self.booking_repo.get(candidate.id, lock=True)
                    mutate(booking)
                    self.booking_repo.save(booking)
                    uow.collect_events(booking)
                done += 1
                logger.info(f"Booking {booking.booking_number}: {action} -> {booking.status.value}")
            except DomainError as e:
                logger.warning(f"Skipped {action} for booking {candidate.booking_number}: {e.message}")
            except Exception as e:
                logger.error(f"Error during {action} of booking {candidate.id}: {e}", exc_info=True)
        return done
