"""
Domain Errors

Typed business outcomes raised by the domain and application layers.
The HTTP boundary maps each category to its own response
(see ``shared.infrastructure.exception_handler``); anything that is not a
``DomainError`` is treated as an internal failure.
"""

from typing import Any, Dict, Iterable, List, Optional


class DomainError(Exception):
    """Base class for expected business errors"""

    code = 'domain_error'
    default_message = 'Request could not be processed.'

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def detail(self) -> Dict[str, Any]:
        """Extra payload merged into the error response"""
        return {}


class NotFound(DomainError):
    """Referenced court, venue or booking does not exist"""

    code = 'not_found'
    default_message = 'Resource not found.'


class ValidationError(DomainError):
    """Malformed input; carries field-level messages"""

    code = 'validation_error'
    default_message = 'Invalid input.'

    def __init__(self, message: Optional[str] = None, *, field: Optional[str] = None,
                 errors: Optional[Dict[str, List[str]]] = None):
        super().__init__(message)
        self.errors = dict(errors or {})
        if field:
            self.errors.setdefault(field, []).append(self.message)

    def detail(self) -> Dict[str, Any]:
        return {'errors': self.errors} if self.errors else {}


class BookingLimitReached(ValidationError):
    """User already holds the maximum number of active bookings for a court"""

    code = 'booking_limit_reached'


class NotAvailable(DomainError):
    """Court is closed, inactive or blocked for the requested interval"""

    code = 'not_available'
    default_message = 'Court is not available for the requested time.'

    @property
    def reason(self) -> str:
        return self.message


class Conflict(DomainError):
    """Requested interval overlaps existing occupying bookings"""

    code = 'booking_conflict'
    default_message = 'Time slot conflicts with existing booking.'

    def __init__(self, conflicts: Iterable[Any], message: Optional[str] = None):
        super().__init__(message)
        self.conflicts = list(conflicts)

    def detail(self) -> Dict[str, Any]:
        return {
            'conflicts': [
                {
                    'bookingNumber': booking.booking_number,
                    'startTime': booking.start_time.isoformat(),
                    'endTime': booking.end_time.isoformat(),
                    'status': booking.status.value,
                }
                for booking in self.conflicts
            ]
        }


class StateConflict(DomainError):
    """Transition is invalid for the current status or lost a concurrent race"""

    code = 'state_conflict'
    default_message = 'Booking state has changed; the operation is no longer allowed.'


class Forbidden(DomainError):
    """Actor is not permitted to perform the action"""

    code = 'forbidden'
    default_message = 'You do not have permission to perform this action.'
