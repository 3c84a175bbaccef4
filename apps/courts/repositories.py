"""Persistence collaborator for courts.

Translates ``apps.courts.models`` rows into the immutable court snapshot
used by the pricing, availability and slot logic.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from uuid import UUID

from django.utils import timezone  # type: ignore

from shared.domain.exceptions import NotFound
from shared.infrastructure.db import lock_queryset_if_possible

from .domain.entities import (
    AvailabilityException,
    BookingPolicy,
    BreakWindow,
    Court,
    CourtStatus,
    DiscountKind,
    DiscountRule,
    OperatingHours,
    PricingRule,
)
from . import models

logger = logging.getLogger(__name__)


class DjangoCourtRepository:
    """Loads and stores courts through the Django ORM."""

    def get_model(self, court_id: UUID | str, *, lock: bool = False) -> models.Court:
        queryset = models.Court.objects.select_related("venue").filter(pk=court_id)
        if lock:
            queryset = lock_queryset_if_possible(queryset)
        court = queryset.first()
        if court is None:
            raise NotFound(f"Court {court_id} not found")
        return court

    def get(self, court_id: UUID | str, *, lock: bool = False) -> Court:
        """Court snapshot; ``lock`` serializes writers on this court row."""
        return self.to_domain(self.get_model(court_id, lock=lock))

    def save(self, court: Court) -> None:
        """Persist the court's own scalar settings (rules are managed separately)."""
        policy = court.policy
        updated = models.Court.objects.filter(pk=court.id).update(
            name=court.name,
            base_hourly_rate=court.base_hourly_rate,
            currency=court.currency,
            timezone=court.timezone,
            status=court.status.value,
            min_booking_duration=policy.min_duration,
            max_booking_duration=policy.max_duration,
            booking_interval=policy.interval,
            advance_booking_days=policy.advance_booking_days,
            same_day_cutoff=policy.same_day_cutoff,
            buffer_time=policy.buffer_time,
            max_concurrent_bookings_per_user=policy.max_concurrent_per_user,
            allow_recurring_bookings=policy.allow_recurring,
            requires_approval=policy.requires_approval,
            updated_at=timezone.now(),
        )
        if not updated:
            raise NotFound(f"Court {court.id} not found")
        logger.info(f"Court {court.id} saved (status={court.status.value})")

    @staticmethod
    def to_domain(court: models.Court) -> Court:
        venue = court.venue
        hours = {}
        for entry in court.operating_hours.prefetch_related("breaks"):
            hours[entry.day_of_week] = OperatingHours(
                day_of_week=entry.day_of_week,
                open_time=entry.open_time,
                close_time=entry.close_time,
                is_closed=entry.is_closed,
                breaks=tuple(
                    BreakWindow(item.start_time, item.end_time, item.reason)
                    for item in entry.breaks.all()
                ),
            )

        return Court(
            id=court.id,
            created_at=court.created_at,
            updated_at=court.updated_at,
            venue_id=venue.id,
            name=court.name,
            base_hourly_rate=Decimal(court.base_hourly_rate),
            currency=court.currency,
            timezone=court.timezone,
            status=CourtStatus(court.status),
            pricing_rules=tuple(
                PricingRule(
                    name=rule.name,
                    category=rule.category,
                    rate=Decimal(rule.rate),
                    priority=rule.priority,
                    is_active=rule.is_active,
                    start_date=rule.start_date,
                    end_date=rule.end_date,
                    days_of_week=tuple(rule.days_of_week or ()),
                    start_time=rule.start_time,
                    end_time=rule.end_time,
                )
                for rule in court.pricing_rules.all()
            ),
            discount_rules=tuple(
                DiscountRule(
                    category=rule.category,
                    kind=DiscountKind(rule.kind),
                    value=Decimal(rule.value),
                    name=rule.name,
                    is_active=rule.is_active,
                    membership_tier=rule.membership_tier,
                    min_group_size=rule.min_group_size,
                )
                for rule in court.discount_rules.all()
            ),
            operating_hours=hours,
            exceptions=tuple(
                AvailabilityException(
                    date=item.date,
                    category=item.category,
                    is_available=item.is_available,
                    custom_open_time=item.custom_open_time,
                    custom_close_time=item.custom_close_time,
                    reason=item.reason,
                )
                for item in court.availability_exceptions.all()
            ),
            policy=BookingPolicy(
                min_duration=court.min_booking_duration,
                max_duration=court.max_booking_duration,
                interval=court.booking_interval,
                advance_booking_days=court.advance_booking_days,
                same_day_cutoff=court.same_day_cutoff,
                buffer_time=court.buffer_time,
                max_concurrent_per_user=court.max_concurrent_bookings_per_user,
                allow_recurring=court.allow_recurring_bookings,
                requires_approval=court.requires_approval,
            ),
            owner_id=court.owner_id,
            manager_ids=frozenset(court.managers.values_list("pk", flat=True)),
            venue_owner_id=venue.owner_id,
            venue_manager_ids=frozenset(venue.managers.values_list("pk", flat=True)),
            venue_requires_approval=venue.requires_approval,
        )


court_repository = DjangoCourtRepository()
