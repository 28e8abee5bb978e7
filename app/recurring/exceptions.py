"""
Recurring transaction exceptions.

Exception Hierarchy:
    NotFoundError (core)
    └── RecurringTransactionNotFound
    ConflictError (core)
    ├── TemplateDisabled - Materializing or skipping a disabled template
    └── OccurrenceNotDue - Materializing out of sequence or ahead of time
"""

from __future__ import annotations

from core.exceptions import ConflictError, NotFoundError


class RecurringTransactionNotFound(NotFoundError):
    default_error_code: str = "RECURRING_NOT_FOUND"


class TemplateDisabled(ConflictError):
    default_error_code: str = "TEMPLATE_DISABLED"


class OccurrenceNotDue(ConflictError):
    """
    The requested occurrence cannot be posted yet.

    error_code is NOT_YET_DUE when the date is in the future, and
    OUT_OF_SEQUENCE when it is not the template's next_date.
    """

    default_error_code: str = "NOT_YET_DUE"
