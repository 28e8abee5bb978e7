"""
Celery tasks for credit cards.

Four daily sweeps, scheduled by migrations 0002_add_credit_card_schedules and
0004_add_installment_schedule:

    generate_due_statements     close the cycle of every card whose statement day is today
    accrue_daily_interest       charge interest on every interest-bearing card
    process_scheduled_payments  post scheduled payments that are due
    process_due_installments    charge installment plan slices that are due

Each sweep runs under a DistributedLock so overlapping beat ticks skip, and
one failing card never stops the rest.

Usage:
    from credit_cards.tasks import accrue_daily_interest

    accrue_daily_interest.delay("2024-03-15")
"""

from __future__ import annotations

import logging
from datetime import date

from celery import shared_task
from django.utils import timezone

from core.exceptions import BaseApplicationError, LockAcquisitionError
from core.locks import DistributedLock
from credit_cards.installments import InstallmentService
from credit_cards.services import CreditCardService

logger = logging.getLogger(__name__)

SWEEP_LOCK_TTL = 900


def _as_date(value: str | date | None) -> date:
    if value is None:
        return timezone.localdate()
    if isinstance(value, str):
        return date.fromisoformat(value)
    return value


@shared_task(bind=True)
def generate_due_statements(self, as_of: str | None = None) -> dict:
    """
    Generate statements for cards whose cycle closes on as_of (default today).

    Returns:
        Dict with status and generated/failed counts
    """
    day = _as_date(as_of)
    generated = failed = 0
    try:
        with DistributedLock("credit_cards:generate_due_statements", ttl=SWEEP_LOCK_TTL, blocking=False):
            for card in CreditCardService.cards_closing_on(day):
                try:
                    CreditCardService.generate_statement(card.id, day)
                    generated += 1
                except BaseApplicationError as exc:
                    failed += 1
                    logger.warning(
                        "Statement generation failed",
                        extra={"account_id": str(card.id), "error_code": exc.error_code},
                    )
    except LockAcquisitionError:
        logger.info("Statement generation already running, skipping")
        return {"status": "skipped", "generated": 0, "failed": 0}

    logger.info("Statement sweep finished", extra={"as_of": day.isoformat(), "generated": generated})
    return {"status": "completed", "generated": generated, "failed": failed}


@shared_task(bind=True)
def accrue_daily_interest(self, as_of: str | None = None) -> dict:
    """
    Accrue interest for every card with a positive APR.

    Accruals are idempotent per card and day, so rerunning a day is safe.

    Returns:
        Dict with status and accrued/skipped/failed counts
    """
    day = _as_date(as_of)
    counts = {"accrued": 0, "skipped": 0, "failed": 0}
    try:
        with DistributedLock("credit_cards:accrue_daily_interest", ttl=SWEEP_LOCK_TTL, blocking=False):
            for card in CreditCardService.interest_bearing_cards():
                try:
                    result = CreditCardService.accrue_interest(card.id, day)
                except BaseApplicationError as exc:
                    counts["failed"] += 1
                    logger.warning(
                        "Interest accrual failed",
                        extra={"account_id": str(card.id), "error_code": exc.error_code},
                    )
                    continue
                counts["accrued" if result.accrued else "skipped"] += 1
    except LockAcquisitionError:
        logger.info("Interest accrual already running, skipping")
        return {"status": "skipped", "accrued": 0, "skipped": 0, "failed": 0}

    return {"status": "completed", **counts}


@shared_task(bind=True)
def process_scheduled_payments(self, as_of: str | None = None) -> dict:
    """
    Post every scheduled payment due on or before as_of.

    Returns:
        Dict with status and completed/failed counts
    """
    day = _as_date(as_of)
    try:
        with DistributedLock("credit_cards:process_scheduled_payments", ttl=SWEEP_LOCK_TTL, blocking=False):
            results = CreditCardService.process_due_payments(as_of=day)
    except LockAcquisitionError:
        logger.info("Scheduled payment processing already running, skipping")
        return {"status": "skipped", "completed": 0, "failed": 0}

    return {"status": "completed", **results}


@shared_task(bind=True)
def process_due_installments(self, as_of: str | None = None) -> dict:
    """
    Charge every installment due on or before as_of to its category.

    Installments are idempotent per plan and number, so rerunning is safe.

    Returns:
        Dict with status and processed/failed counts
    """
    day = _as_date(as_of)
    try:
        with DistributedLock("credit_cards:process_due_installments", ttl=SWEEP_LOCK_TTL, blocking=False):
            results = InstallmentService.process_due(as_of=day)
    except LockAcquisitionError:
        logger.info("Installment processing already running, skipping")
        return {"status": "skipped", "processed": 0, "failed": 0}

    logger.info("Installment sweep finished", extra={"as_of": day.isoformat(), **results})
    return {"status": "completed", **results}
