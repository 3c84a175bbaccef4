"""Persistence collaborator for bookings.

Maps ``apps.bookings.models.Booking`` rows to the ``Booking`` aggregate and
back. Writes of existing bookings are conditional on the status the
aggregate was loaded with, so two concurrent transitions cannot both
succeed.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, Optional
from uuid import UUID

from django.db import IntegrityError, transaction  # type: ignore

from shared.domain.exceptions import NotFound, StateConflict
from shared.domain.value_objects import TimeRange
from shared.infrastructure.db import lock_queryset_if_possible

from .domain.entities import (
    ACTIVE_STATUSES,
    OCCUPYING_STATUSES,
    Booking,
    BookingStatus,
    BookingType,
    CancellationRecord,
    ModificationEntry,
    PaymentSnapshot,
    PaymentStatus,
    PricingSnapshot,
)
from .domain.recurrence import RecurringPattern
from . import models

logger = logging.getLogger(__name__)


class DuplicateBookingNumber(Exception):
    """Raised when another writer took the booking number first."""


def _values(statuses: Iterable[BookingStatus]) -> List[str]:
    return [status.value for status in statuses]


class DjangoBookingRepository:
    """Loads, queries and stores bookings through the Django ORM."""

    def _queryset(self):
        return models.Booking.objects.prefetch_related("modifications", "occurrences")

    def get(self, booking_id: UUID | str, *, lock: bool = False) -> Booking:
        queryset = self._queryset().filter(pk=booking_id)
        if lock:
            queryset = lock_queryset_if_possible(queryset)
        row = queryset.first()
        if row is None:
            raise NotFound(f"Booking {booking_id} not found")
        return self.to_domain(row)

    def get_by_number(self, booking_number: str) -> Booking:
        row = self._queryset().filter(booking_number=booking_number).first()
        if row is None:
            raise NotFound(f"Booking {booking_number} not found")
        return self.to_domain(row)

    def find_occupying(
        self,
        court_id: UUID,
        start_time: datetime,
        end_time: datetime,
        *,
        exclude_booking_id: Optional[UUID] = None,
        lock: bool = False,
    ) -> List[Booking]:
        """Occupying bookings on ``court_id`` overlapping [start_time, end_time)."""
        queryset = models.Booking.objects.filter(
            court_id=court_id,
            status__in=_values(OCCUPYING_STATUSES),
            start_time__lt=end_time,
            end_time__gt=start_time,
        ).order_by("start_time")
        if exclude_booking_id is not None:
            queryset = queryset.exclude(pk=exclude_booking_id)
        if lock:
            queryset = lock_queryset_if_possible(queryset)
        return [self.to_domain(row, with_history=False) for row in queryset]

    def query(
        self,
        *,
        statuses: Optional[Iterable[BookingStatus]] = None,
        court_id: Optional[UUID] = None,
        user_id: Optional[int] = None,
        start_lte: Optional[datetime] = None,
        end_lt: Optional[datetime] = None,
        is_tentative: Optional[bool] = None,
        expires_lte: Optional[datetime] = None,
        checked_in: Optional[bool] = None,
        lock: bool = False,
    ) -> List[Booking]:
        queryset = self._filter(
            statuses=statuses,
            court_id=court_id,
            user_id=user_id,
            start_lte=start_lte,
            end_lt=end_lt,
            is_tentative=is_tentative,
            expires_lte=expires_lte,
            checked_in=checked_in,
        ).order_by("start_time")
        if lock:
            queryset = lock_queryset_if_possible(queryset)
        return [self.to_domain(row, with_history=False) for row in queryset]

    def count(self, **filters) -> int:
        return self._filter(**filters).count()

    def _filter(
        self,
        *,
        statuses=None,
        court_id=None,
        user_id=None,
        start_lte=None,
        end_lt=None,
        is_tentative=None,
        expires_lte=None,
        checked_in=None,
    ):
        queryset = models.Booking.objects.all()
        if statuses is not None:
            queryset = queryset.filter(status__in=_values(statuses))
        if court_id is not None:
            queryset = queryset.filter(court_id=court_id)
        if user_id is not None:
            queryset = queryset.filter(user_id=user_id)
        if start_lte is not None:
            queryset = queryset.filter(start_time__lte=start_lte)
        if end_lt is not None:
            queryset = queryset.filter(end_time__lt=end_lt)
        if is_tentative is not None:
            queryset = queryset.filter(is_tentative=is_tentative)
        if expires_lte is not None:
            queryset = queryset.filter(tentative_expires_at__lte=expires_lte)
        if checked_in is not None:
            queryset = queryset.filter(checked_in_at__isnull=not checked_in)
        return queryset

    def count_active_for_user(self, user_id: int, court_id: UUID) -> int:
        return self.count(statuses=ACTIVE_STATUSES, user_id=user_id, court_id=court_id)

    def count_numbered_on(self, day: date) -> int:
        return models.Booking.objects.filter(booking_number__startswith=f"BK{day:%y%m%d}").count()

    def number_exists(self, booking_number: str) -> bool:
        return models.Booking.objects.filter(booking_number=booking_number).exists()

    # ----- writes -----------------------------------------------------------

    def save(self, booking: Booking) -> None:
        """
        Insert a new booking or update an existing one

        Updates only apply if the stored status still equals the status the
        aggregate was loaded with; otherwise ``StateConflict`` is raised.
        """
        fields = self._fields(booking)
        if booking.is_new:
            try:
                with transaction.atomic():
                    models.Booking.objects.create(id=booking.id, created_at=booking.created_at, **fields)
            except IntegrityError as exc:
                if self.number_exists(booking.booking_number):
                    raise DuplicateBookingNumber(booking.booking_number) from exc
                raise
        else:
            updated = models.Booking.objects.filter(
                pk=booking.id,
                status=booking.persisted_status.value,
            ).update(**fields)
            if not updated:
                logger.warning(
                    f"Concurrent update detected for booking {booking.booking_number} "
                    f"(expected status {booking.persisted_status.value})"
                )
                raise StateConflict(
                    f"Booking {booking.booking_number} was changed by another request"
                )

        new_entries = booking.new_modifications
        if new_entries:
            models.BookingModification.objects.bulk_create([
                models.BookingModification(
                    booking_id=booking.id,
                    modified_at=entry.modified_at,
                    modified_by_id=entry.modified_by,
                    reason=entry.reason,
                    changes=entry.changes,
                )
                for entry in new_entries
            ])

        booking.persisted_status = booking.status
        booking.persisted_modifications = len(booking.modifications)

    @staticmethod
    def _fields(booking: Booking) -> dict:
        pricing = booking.pricing
        payment = booking.payment
        cancellation = booking.cancellation
        return {
            "booking_number": booking.booking_number,
            "user_id": booking.user_id,
            "court_id": booking.court_id,
            "venue_id": booking.venue_id,
            "start_time": booking.start_time,
            "end_time": booking.end_time,
            "duration_minutes": booking.duration_minutes,
            "booking_type": booking.booking_type.value,
            "status": booking.status.value,
            "recurring_pattern": booking.recurring_pattern.to_dict() if booking.recurring_pattern else None,
            "parent_id": booking.parent_id,
            "hourly_rate": pricing.hourly_rate,
            "base_price": pricing.base_price,
            "discounts": list(pricing.discounts),
            "total_discount": pricing.total_discount,
            "subtotal": pricing.subtotal,
            "tax": pricing.tax,
            "service_fee": pricing.service_fee,
            "total_amount": pricing.total,
            "currency": pricing.currency,
            "payment_status": payment.status.value,
            "payment_method": payment.method,
            "amount_paid": payment.amount,
            "refund_amount": payment.refund_amount,
            "group_size": booking.group_size,
            "participants": booking.participants,
            "is_early_bird": booking.is_early_bird,
            "requires_approval": booking.requires_approval,
            "approved_by_id": booking.approved_by,
            "approved_at": booking.approved_at,
            "rejection_reason": booking.rejection_reason,
            "checked_in_at": booking.checked_in_at,
            "check_in_verified_by_id": booking.check_in_verified_by,
            "checked_out_at": booking.checked_out_at,
            "check_out_verified_by_id": booking.check_out_verified_by,
            "cancelled_at": cancellation.cancelled_at if cancellation else None,
            "cancelled_by_id": cancellation.cancelled_by if cancellation else None,
            "cancellation_reason": cancellation.reason if cancellation else "",
            "refund_eligible": cancellation.refund_eligible if cancellation else False,
            "refund_percentage": cancellation.refund_percentage if cancellation else 0,
            "cancellation_fee": cancellation.cancellation_fee if cancellation else Decimal("0.00"),
            "hours_until_booking": cancellation.hours_until_booking if cancellation else None,
            "is_tentative": booking.is_tentative,
            "tentative_expires_at": booking.tentative_expires_at,
            "notes": booking.notes,
            "special_requests": booking.special_requests,
            "source": booking.source,
            "updated_at": booking.updated_at,
        }

    @staticmethod
    def to_domain(row: models.Booking, *, with_history: bool = True) -> Booking:
        status = BookingStatus(row.status)
        cancellation = None
        if row.cancelled_at is not None:
            cancellation = CancellationRecord(
                cancelled_at=row.cancelled_at,
                cancelled_by=row.cancelled_by_id,
                reason=row.cancellation_reason,
                refund_eligible=row.refund_eligible,
                refund_percentage=row.refund_percentage,
                refund_amount=Decimal(row.total_amount) - Decimal(row.cancellation_fee),
                cancellation_fee=Decimal(row.cancellation_fee),
                hours_until_booking=row.hours_until_booking,
            )
        modifications = []
        occurrence_ids = []
        if with_history:
            modifications = [
                ModificationEntry(
                    modified_at=entry.modified_at,
                    modified_by=entry.modified_by_id,
                    reason=entry.reason,
                    changes=entry.changes,
                )
                for entry in row.modifications.all()
            ]
            occurrence_ids = [child.pk for child in row.occurrences.all()]

        return Booking(
            id=row.pk,
            created_at=row.created_at,
            updated_at=row.updated_at,
            booking_number=row.booking_number,
            user_id=row.user_id,
            court_id=row.court_id,
            venue_id=row.venue_id,
            time_range=TimeRange(row.start_time, row.end_time),
            pricing=PricingSnapshot(
                base_price=Decimal(row.base_price),
                discounts=tuple(row.discounts or ()),
                total_discount=Decimal(row.total_discount),
                subtotal=Decimal(row.subtotal),
                tax=Decimal(row.tax),
                service_fee=Decimal(row.service_fee),
                total=Decimal(row.total_amount),
                currency=row.currency,
                hourly_rate=row.hourly_rate,
            ),
            status=status,
            booking_type=BookingType(row.booking_type),
            recurring_pattern=(
                RecurringPattern.from_dict(row.recurring_pattern) if row.recurring_pattern else None
            ),
            parent_id=row.parent_id,
            occurrence_ids=occurrence_ids,
            payment=PaymentSnapshot(
                amount=Decimal(row.amount_paid),
                status=PaymentStatus(row.payment_status),
                method=row.payment_method,
                refund_amount=row.refund_amount,
            ),
            group_size=row.group_size,
            participants=list(row.participants or []),
            is_early_bird=row.is_early_bird,
            requires_approval=row.requires_approval,
            approved_by=row.approved_by_id,
            approved_at=row.approved_at,
            rejection_reason=row.rejection_reason,
            checked_in_at=row.checked_in_at,
            check_in_verified_by=row.check_in_verified_by_id,
            checked_out_at=row.checked_out_at,
            check_out_verified_by=row.check_out_verified_by_id,
            cancellation=cancellation,
            modifications=modifications,
            is_tentative=row.is_tentative,
            tentative_expires_at=row.tentative_expires_at,
            notes=row.notes,
            special_requests=row.special_requests,
            source=row.source,
            persisted_status=status,
            persisted_modifications=len(modifications),
        )


booking_repository = DjangoBookingRepository()
