"""
Base exception classes for application-wide error handling.

This module provides a standardized exception hierarchy that enables:
- Consistent error responses across the application
- Machine-readable error codes for client handling
- Detailed error information for debugging

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Malformed input (rejected before any write)
    ├── NotFoundError - Unknown id or cross-ledger reference
    ├── ConflictError - State conflicts (double reversal, concurrent modification)
    │   └── LockAcquisitionError - Distributed lock could not be acquired
    └── StorageError - Commit/transaction failure in the database layer

Usage:
    from core.exceptions import ValidationError, NotFoundError

    # Raise with message only
    raise ValidationError("Amount must be positive")

    # Raise with error code for client handling
    raise ConflictError("Transaction already reversed", error_code="ALREADY_REVERSED")

    # Raise with additional details
    raise NotFoundError(
        "Account not found",
        error_code="ACCOUNT_NOT_FOUND",
        details={"account_id": str(account_id)},
    )

    # Convert to dict for API response
    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=400)

Note:
    These exceptions are for domain/business logic errors.
    DRF handles API-layer exceptions (serialization, authentication, etc.).
    core.exception_handler maps these classes to HTTP status codes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Provides a consistent interface for error handling across the application.
    All custom exceptions should inherit from this class.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, metadata, etc.)

    Example:
        try:
            account = AccountService.get_account(ledger_id, account_id)
        except NotFoundError as e:
            logger.warning(f"Account not found: {e.error_code}")
            return Response(e.to_dict(), status=404)
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code (defaults to class default)
            details: Additional error context
        """
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Returns:
            Dict with error, error_code, and details keys

        Example:
            {
                "error": "Account not found",
                "error_code": "ACCOUNT_NOT_FOUND",
                "details": {"account_id": "..."}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails.

    Use for:
    - Non-positive amounts
    - Identical debit and credit accounts
    - Missing required fields
    - Postings against non-postable accounts (category groups)

    Nothing is persisted when this is raised; validation always runs
    before the first write of an operation.

    Example:
        raise ValidationError(
            "Amount must be a positive integer number of cents",
            error_code="INVALID_AMOUNT",
            details={"amount": amount},
        )
    """

    default_error_code: str = "VALIDATION_ERROR"


class NotFoundError(BaseApplicationError):
    """
    Raised when a requested resource is not found.

    Use for:
    - Unknown UUIDs
    - References to rows that belong to a different ledger or user

    Example:
        raise NotFoundError(
            f"Ledger {ledger_id} not found",
            error_code="LEDGER_NOT_FOUND",
            details={"ledger_id": str(ledger_id)},
        )
    """

    default_error_code: str = "NOT_FOUND"


class ConflictError(BaseApplicationError):
    """
    Raised when operation conflicts with current resource state.

    Use for:
    - Reversing an already reversed or deleted transaction
    - Materializing a recurring occurrence that is not the current one
    - Deleting accounts that still carry postings
    - Concurrent modification conflicts

    Existing state is unchanged; the caller may retry with fresh state.

    Example:
        if original.status != TransactionStatus.ACTIVE:
            raise ConflictError(
                f"Cannot reverse transaction in {original.status} status",
                error_code="INVALID_STATE_TRANSITION",
                details={"current_status": original.status, "action": "reverse"},
            )

    Note:
        HTTP 409 Conflict is the appropriate status for these errors.
    """

    default_error_code: str = "CONFLICT"


class LockAcquisitionError(ConflictError):
    """
    Raised when a distributed lock cannot be acquired within its timeout.

    Periodic sweeps (recurring materialization, statement generation) hold
    a Redis lock; a second worker hitting this error simply skips its run.
    """

    default_error_code: str = "LOCK_ACQUISITION_FAILED"


class StorageError(BaseApplicationError):
    """
    Raised when the underlying database transaction fails to commit.

    The original database exception is logged by the raiser. Because every
    write operation runs inside a single atomic block, nothing has been
    partially applied when this surfaces.

    Example:
        try:
            with transaction.atomic():
                ...
        except DatabaseError as e:
            logger.exception("Ledger write failed")
            raise StorageError("Ledger write failed") from e
    """

    default_error_code: str = "STORAGE_ERROR"
