"""
Celery tasks for the ledger.

This module provides the periodic action history retention sweep. The beat
schedule is created by migration 0002_add_action_history_purge_schedule.

Usage:
    from ledger.tasks import purge_action_history

    purge_action_history.delay()
"""

from __future__ import annotations

import logging

from celery import shared_task

from core.exceptions import LockAcquisitionError
from core.locks import DistributedLock
from ledger.services import LedgerService

logger = logging.getLogger(__name__)

PURGE_LOCK_KEY = "ledger:purge_action_history"
PURGE_LOCK_TTL = 600


@shared_task(bind=True)
def purge_action_history(self, older_than_days: int | None = None) -> dict:
    """
    Delete action history rows past the retention window.

    Runs daily via celery-beat. A second worker picking up an overlapping
    tick skips instead of waiting.

    Returns:
        Dict with status and deleted count
    """
    try:
        with DistributedLock(PURGE_LOCK_KEY, ttl=PURGE_LOCK_TTL, blocking=False):
            deleted = LedgerService.purge_action_history(older_than_days=older_than_days)
    except LockAcquisitionError:
        logger.info("Action history purge already running, skipping")
        return {"status": "skipped", "deleted": 0}

    return {"status": "completed", "deleted": deleted}
