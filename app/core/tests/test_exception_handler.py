"""
Tests for the DRF exception handler.
"""

import pytest
from rest_framework import status
from rest_framework.exceptions import NotAuthenticated

from core.exception_handler import application_exception_handler, status_for
from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    LockAcquisitionError,
    NotFoundError,
    StorageError,
    ValidationError,
)


class TestStatusFor:
    """Tests for status_for()."""

    @pytest.mark.parametrize(
        "exc,expected",
        [
            (ValidationError("bad"), status.HTTP_400_BAD_REQUEST),
            (NotFoundError("missing"), status.HTTP_404_NOT_FOUND),
            (ConflictError("state"), status.HTTP_409_CONFLICT),
            (LockAcquisitionError("held"), status.HTTP_409_CONFLICT),
            (StorageError("db"), status.HTTP_503_SERVICE_UNAVAILABLE),
            (BaseApplicationError("other"), status.HTTP_400_BAD_REQUEST),
        ],
    )
    def test_mapping(self, exc, expected):
        assert status_for(exc) == expected


class TestApplicationExceptionHandler:
    """Tests for application_exception_handler()."""

    def test_domain_error_body(self):
        exc = ConflictError(
            "Transaction already reversed",
            error_code="INVALID_TRANSACTION_STATE",
            details={"transaction_id": "abc"},
        )

        response = application_exception_handler(exc, {"view": None})

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data == {
            "error": "Transaction already reversed",
            "error_code": "INVALID_TRANSACTION_STATE",
            "details": {"transaction_id": "abc"},
        }

    def test_details_omitted_when_empty(self):
        response = application_exception_handler(ValidationError("Amount must be positive"), {})

        assert response.data == {"error": "Amount must be positive", "error_code": "VALIDATION_ERROR"}

    def test_drf_exceptions_fall_through(self):
        response = application_exception_handler(NotAuthenticated(), {})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_unknown_exceptions_return_none(self):
        assert application_exception_handler(RuntimeError("x"), {}) is None
