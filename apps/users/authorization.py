"""Authorization decisions for booking operations.

The booking lifecycle asks a single question before it changes anything:
may this actor perform this action on this court/booking? Role rules live
here so that command handlers stay free of them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from shared.domain.exceptions import Forbidden

if TYPE_CHECKING:  # pragma: no cover
    from apps.bookings.domain.entities import Booking
    from apps.courts.domain.entities import Court

logger = logging.getLogger(__name__)


class BookingAction(str, Enum):
    CREATE = "create"
    VIEW = "view"
    RESCHEDULE = "reschedule"
    CANCEL = "cancel"
    APPROVE = "approve"
    REJECT = "reject"
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"


@dataclass(frozen=True)
class Actor:
    """The acting user as seen by the booking core."""

    user_id: Optional[int]
    role: str = "user"
    is_admin: bool = False
    membership_tier: str = ""

    @classmethod
    def from_user(cls, user: Any) -> "Actor":
        if user is None or not getattr(user, "is_authenticated", False):
            return cls(user_id=None)
        return cls(
            user_id=user.pk,
            role=getattr(user, "role", "user"),
            is_admin=user.is_platform_admin() if hasattr(user, "is_platform_admin") else bool(user.is_staff),
            membership_tier=getattr(user, "membership_tier", "") or "",
        )

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


class BookingAuthorizer:
    """Answers (actor, action, resource) questions for the booking core."""

    STAFF_ACTIONS = {BookingAction.APPROVE, BookingAction.REJECT}

    def is_allowed(
        self,
        actor: Actor,
        action: BookingAction,
        court: "Court",
        booking: "Booking | None" = None,
    ) -> bool:
        if not actor.is_authenticated:
            return False
        if actor.is_admin:
            return True
        if action == BookingAction.CREATE:
            return True

        is_booker = booking is not None and booking.user_id == actor.user_id
        is_staff = court.is_managed_by(actor.user_id)

        if action in self.STAFF_ACTIONS:
            return is_staff
        if action == BookingAction.RESCHEDULE:
            return is_booker
        return is_booker or is_staff

    def authorize(
        self,
        actor: Actor,
        action: BookingAction,
        court: "Court",
        booking: "Booking | None" = None,
    ) -> None:
        if not self.is_allowed(actor, action, court, booking):
            target = booking.booking_number if booking is not None else f"court {court.id}"
            logger.warning(f"Actor {actor.user_id} denied '{action.value}' on {target}")
            raise Forbidden(f"You are not allowed to {action.value.replace('_', '-')} this booking.")


booking_authorizer = BookingAuthorizer()
