"""
Base service layer patterns for business logic encapsulation.

This module provides the foundation every domain service builds on:
- BaseService: logger lookup and a storage-aware transaction boundary

Service Layer Philosophy:
    Services encapsulate business logic separate from views and models.
    Views handle HTTP concerns, models handle data, services handle logic.
    Every service method takes its scope explicitly (ledger id, account id,
    user) as arguments; there is no ambient per-request state.

Error Handling:
    Expected failures (bad input, state conflicts, unknown ids) are raised as
    core.exceptions subclasses. Database failures during a write surface as
    StorageError after the atomic block has rolled back.

Usage:
    from core.services import BaseService

    class EnvelopeService(BaseService):
        @classmethod
        def move_money(cls, ledger_id, from_id, to_id, amount):
            with cls.atomic():
                # All postings in this block commit together or not at all
                ...

            cls.get_logger().info(
                "Moved money",
                extra={"ledger_id": str(ledger_id), "amount": amount},
            )

Related:
    - core.exceptions: Exception hierarchy raised by services
    - core.locks: Distributed locks for periodic sweeps
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

from django.db import DatabaseError, transaction

from core.exceptions import StorageError

if TYPE_CHECKING:
    from collections.abc import Generator


class BaseService:
    """
    Base class for service layer classes.

    Provides common utilities for services:
    - Logging setup per service
    - Database transaction management with StorageError translation

    Usage:
        class LedgerService(BaseService):
            @classmethod
            def post(cls, ...):
                with cls.atomic():
                    transaction = Transaction.objects.create(...)
                    ActionHistory.objects.create(...)
                return transaction

    Design Notes:
        - Use @staticmethod or @classmethod (no instance state)
        - Services should be stateless
        - Raise core.exceptions subclasses for expected failures
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Get logger for this service.

        Returns a logger named after the service class for
        easy filtering in logs.

        Returns:
            Logger instance for this service
        """
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        All database operations within this context manager are
        wrapped in a transaction. If any operation fails, all
        changes are rolled back.

        Database errors raised inside the block are logged with their
        traceback and re-raised as StorageError. Domain exceptions pass
        through unchanged (after the rollback).

        Yields:
            None

        Raises:
            StorageError: If the database rejects a write or the commit

        Example:
            with cls.atomic():
                debit_leg = Transaction.objects.create(...)
                credit_leg = Transaction.objects.create(...)
                # If the second create fails, the first is rolled back too
        """
        try:
            with transaction.atomic():
                yield
        except DatabaseError as exc:
            cls.get_logger().exception(
                "Database transaction failed",
                extra={"service": cls.__name__},
            )
            raise StorageError(
                "The operation could not be saved",
                details={"service": cls.__name__},
            ) from exc
