"""
Celery tasks for recurring transactions.

The beat schedule is created by migration 0002_add_recurring_schedule.
"""

from __future__ import annotations

import logging
from datetime import date

from celery import shared_task

from core.exceptions import LockAcquisitionError
from core.locks import DistributedLock
from recurring.services import RecurringService

logger = logging.getLogger(__name__)

PROCESS_LOCK_KEY = "recurring:process_due"
PROCESS_LOCK_TTL = 900


@shared_task(bind=True)
def process_recurring_transactions(self, as_of: str | None = None) -> dict:
    """
    Post every due auto_create recurring transaction.

    Runs hourly via celery-beat. Materialization is idempotent per due date,
    so a run that overlaps a manual materialize posts nothing twice.

    Returns:
        Dict with status and templates/created/failed counts
    """
    day = date.fromisoformat(as_of) if as_of else None
    try:
        with DistributedLock(PROCESS_LOCK_KEY, ttl=PROCESS_LOCK_TTL, blocking=False):
            results = RecurringService.process_due(as_of=day)
    except LockAcquisitionError:
        logger.info("Recurring transaction processing already running, skipping")
        return {"status": "skipped", "templates": 0, "created": 0, "failed": 0}

    logger.info("Processed recurring transactions", extra=results)
    return {"status": "completed", **results}
