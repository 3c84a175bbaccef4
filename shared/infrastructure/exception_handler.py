"""DRF exception handler translating domain errors into HTTP responses."""

from __future__ import annotations

import logging

from rest_framework import status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import exception_handler as drf_exception_handler  # type: ignore

from shared.domain.exceptions import (
    Conflict,
    DomainError,
    Forbidden,
    NotAvailable,
    NotFound,
    StateConflict,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = (
    (NotFound, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotAvailable, status.HTTP_400_BAD_REQUEST),
    (Conflict, status.HTTP_409_CONFLICT),
    (StateConflict, status.HTTP_409_CONFLICT),
    (Forbidden, status.HTTP_403_FORBIDDEN),
)


def status_for(exc: DomainError) -> int:
    for error_type, http_status in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return http_status
    return status.HTTP_400_BAD_REQUEST


def domain_exception_handler(exc, context):
    """Render ``DomainError`` subclasses; defer everything else to DRF."""

    if not isinstance(exc, DomainError):
        return drf_exception_handler(exc, context)

    http_status = status_for(exc)
    view = context.get("view")
    log = logger.warning if http_status == status.HTTP_409_CONFLICT else logger.info
    log(f"{exc.code} in {view.__class__.__name__ if view else 'unknown view'}: {exc.message}")

    payload = {"success": False, "code": exc.code, "message": exc.message}
    payload.update(exc.detail())
    return Response(payload, status=http_status)
