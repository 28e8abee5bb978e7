"""
Credit card exceptions.

Exception Hierarchy:
    NotFoundError (core)
    ├── StatementNotFound
    ├── ScheduledPaymentNotFound
    ├── InstallmentPlanNotFound
    └── InstallmentNotFound
    ValidationError (core)
    └── NotACreditCard - Card operation on any other account
    ConflictError (core)
    ├── StatementPeriodClosed - Statement requested inside an already billed period
    ├── InvalidPaymentState - Cancelling or processing a payment that is not scheduled
    └── InvalidInstallmentState - Changing a finished plan or processing out of turn
"""

from __future__ import annotations

from core.exceptions import ConflictError, NotFoundError, ValidationError


class StatementNotFound(NotFoundError):
    default_error_code: str = "STATEMENT_NOT_FOUND"


class ScheduledPaymentNotFound(NotFoundError):
    default_error_code: str = "SCHEDULED_PAYMENT_NOT_FOUND"


class NotACreditCard(ValidationError):
    """Raised when a credit card operation targets a non-card account."""

    default_error_code: str = "NOT_A_CREDIT_CARD"


class StatementPeriodClosed(ConflictError):
    """The as-of date falls on or before the current statement's period end."""

    default_error_code: str = "STATEMENT_PERIOD_CLOSED"


class InvalidPaymentState(ConflictError):
    default_error_code: str = "INVALID_PAYMENT_STATE"


class InstallmentPlanNotFound(NotFoundError):
    default_error_code: str = "INSTALLMENT_PLAN_NOT_FOUND"


class InstallmentNotFound(NotFoundError):
    default_error_code: str = "INSTALLMENT_NOT_FOUND"


class InvalidInstallmentState(ConflictError):
    default_error_code: str = "INVALID_INSTALLMENT_STATE"
