"""
DRF exception handler for domain exceptions.

Services raise core.exceptions subclasses; this handler turns them into the
same JSON body everywhere: {"error", "error_code", "details"}. Anything that
is not a BaseApplicationError falls through to DRF's default handler.

Status mapping:
    ValidationError     -> 400
    NotFoundError       -> 404
    ConflictError       -> 409 (includes LockAcquisitionError and OverBudgetWarning)
    StorageError        -> 503
    other               -> 400

Usage (settings.py):
    REST_FRAMEWORK = {
        "EXCEPTION_HANDLER": "core.exception_handler.application_exception_handler",
    }
"""

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    NotFoundError,
    StorageError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_EXCEPTION: list[tuple[type[BaseApplicationError], int]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (StorageError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def status_for(exc: BaseApplicationError) -> int:
    """Return the HTTP status code for a domain exception."""
    for exc_class, code in STATUS_BY_EXCEPTION:
        if isinstance(exc, exc_class):
            return code
    return status.HTTP_400_BAD_REQUEST


def application_exception_handler(exc, context):
    """Convert BaseApplicationError to a JSON response, else defer to DRF."""
    if isinstance(exc, BaseApplicationError):
        code = status_for(exc)
        view = context.get("view")
        logger.info(
            "Request rejected by domain rule",
            extra={
                "error_code": exc.error_code,
                "status_code": code,
                "view": view.__class__.__name__ if view is not None else None,
            },
        )
        return Response(exc.to_dict(), status=code)

    return exception_handler(exc, context)
