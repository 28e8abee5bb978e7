"""
Recurring transaction service.

Materialization is idempotent per (template, due_date): the occurrence row
is unique on that pair and is written in the same atomic block as the
posting, with the template row locked. Asking for an occurrence that was
already posted returns its transaction instead of posting again.

Posting direction:

    outflow: debit category (or Unassigned), credit account
    inflow:  debit account, credit category (or Income)

Card accounts go through the normal credit card routing in LedgerService.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from django.conf import settings
from django.utils import timezone

from core.exceptions import BaseApplicationError, ValidationError
from core.services import BaseService
from ledger.choices import AccountType, ActionType, SystemRole
from ledger.exceptions import InvalidAccountForOperation
from ledger.services import AccountService, LedgerService, record_action
from ledger.types import validate_amount
from recurring.choices import Frequency, RecurringTransactionType
from recurring.exceptions import OccurrenceNotDue, RecurringTransactionNotFound, TemplateDisabled
from recurring.models import RecurringOccurrence, RecurringTransaction
from recurring.schedule import next_occurrence

if TYPE_CHECKING:
    from datetime import date
    from typing import Any

    from django.db.models import QuerySet

    from ledger.models import Transaction

UPDATABLE_FIELDS = frozenset(
    {"description", "amount", "category_id", "end_date", "auto_create", "enabled", "next_date"}
)


def template_snapshot(template: RecurringTransaction) -> dict[str, Any]:
    return {
        "description": template.description,
        "amount": template.amount,
        "frequency": template.frequency,
        "next_date": template.next_date.isoformat(),
        "enabled": template.enabled,
    }


class RecurringService(BaseService):
    """Service for recurring transaction templates and their occurrences."""

    # ==========================================================================
    # Templates
    # ==========================================================================

    @classmethod
    def get_template(cls, template_id: uuid.UUID) -> RecurringTransaction:
        template = RecurringTransaction.objects.filter(id=template_id).first()
        if template is None:
            raise RecurringTransactionNotFound(
                f"Recurring transaction {template_id} not found",
                details={"template_id": str(template_id)},
            )
        return template

    @classmethod
    def _validate_accounts(cls, ledger_id: uuid.UUID, account_id: uuid.UUID, category_id: uuid.UUID | None) -> None:
        account = AccountService.get_account(account_id, ledger_id=ledger_id)
        if account.type not in (AccountType.ASSET, AccountType.LIABILITY):
            raise InvalidAccountForOperation(
                "Recurring transactions move money through a bank or card account",
                details={"account_id": str(account.id)},
            )
        if category_id is not None:
            category = AccountService.get_account(category_id, ledger_id=ledger_id)
            if not category.is_category:
                raise InvalidAccountForOperation(
                    f"{category.name!r} is not a budget category",
                    details={"category_id": str(category.id)},
                )

    @classmethod
    def create_template(
        cls,
        ledger_id: uuid.UUID,
        description: str,
        amount: int,
        frequency: str,
        start_date: date,
        account_id: uuid.UUID,
        transaction_type: str,
        category_id: uuid.UUID | None = None,
        end_date: date | None = None,
        auto_create: bool = True,
    ) -> RecurringTransaction:
        """
        Create a template whose first occurrence is due on start_date.

        Raises:
            ValidationError: Bad amount, frequency, type or end date
            InvalidAccountForOperation: account is a category, or category is not one
        """
        validate_amount(amount)
        if frequency not in Frequency.values:
            raise ValidationError(
                f"Invalid frequency: {frequency}",
                error_code="INVALID_FREQUENCY",
                details={"frequency": frequency},
            )
        if transaction_type not in RecurringTransactionType.values:
            raise ValidationError(
                f"Invalid transaction_type: {transaction_type}",
                error_code="INVALID_TRANSACTION_TYPE",
                details={"transaction_type": transaction_type},
            )
        if end_date is not None and end_date < start_date:
            raise ValidationError(
                "end_date must not be before start_date",
                error_code="INVALID_END_DATE",
                details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            )
        AccountService.get_ledger(ledger_id)
        cls._validate_accounts(ledger_id, account_id, category_id)

        template = RecurringTransaction.objects.create(
            ledger_id=ledger_id,
            description=description,
            amount=amount,
            frequency=frequency,
            next_date=start_date,
            end_date=end_date,
            anchor_day=start_date.day,
            account_id=account_id,
            category_id=category_id,
            transaction_type=transaction_type,
            auto_create=auto_create,
        )
        cls.get_logger().info(
            "Created recurring transaction",
            extra={"template_id": str(template.id), "ledger_id": str(ledger_id), "frequency": frequency},
        )
        return template

    @classmethod
    def update_template(cls, template_id: uuid.UUID, **changes: Any) -> RecurringTransaction:
        """
        Update a template.

        next_date may only move forward; moving it resets anchor_day.

        Raises:
            ValidationError: Unknown field, bad amount, or next_date moved backwards
            ConflictError: Enabling a template that is past its end date
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Cannot update: {', '.join(sorted(unknown))}",
                error_code="INVALID_FIELD",
                details={"fields": sorted(unknown)},
            )

        with cls.atomic():
            template = RecurringTransaction.objects.select_for_update().filter(id=template_id).first()
            if template is None:
                raise RecurringTransactionNotFound(
                    f"Recurring transaction {template_id} not found",
                    details={"template_id": str(template_id)},
                )
            if "amount" in changes:
                validate_amount(changes["amount"])
            if "category_id" in changes:
                cls._validate_accounts(template.ledger_id, template.account_id, changes["category_id"])
            if "next_date" in changes:
                if changes["next_date"] < template.next_date:
                    raise ValidationError(
                        "next_date can only move forward",
                        error_code="NEXT_DATE_BACKWARDS",
                        details={"next_date": template.next_date.isoformat()},
                    )
                template.anchor_day = changes["next_date"].day

            for field, value in changes.items():
                setattr(template, field, value)

            if template.end_date is not None and template.next_date > template.end_date:
                if "enabled" in changes and template.enabled:
                    raise TemplateDisabled(
                        "Template is past its end date",
                        error_code="TEMPLATE_ENDED",
                        details={"end_date": template.end_date.isoformat()},
                    )
                template.enabled = False
            template.save()
        return template

    @classmethod
    def delete_template(cls, template_id: uuid.UUID) -> None:
        """Delete a template; transactions it already posted stay in the ledger."""
        template = cls.get_template(template_id)
        template.delete()
        cls.get_logger().info("Deleted recurring transaction", extra={"template_id": str(template_id)})

    @staticmethod
    def templates(ledger_id: uuid.UUID) -> QuerySet:
        return RecurringTransaction.objects.filter(ledger_id=ledger_id).select_related("account", "category")

    @staticmethod
    def due_transactions(ledger_id: uuid.UUID, as_of_date: date) -> QuerySet:
        """Enabled templates of the ledger with next_date on or before as_of_date."""
        return RecurringTransaction.objects.filter(
            ledger_id=ledger_id,
            enabled=True,
            next_date__lte=as_of_date,
        ).select_related("account", "category")

    # ==========================================================================
    # Occurrences
    # ==========================================================================

    @staticmethod
    def _advance(template: RecurringTransaction) -> None:
        """Move next_date one step; disable the template once it passes end_date."""
        template.next_date = next_occurrence(template.next_date, template.frequency, template.anchor_day)
        if template.end_date is not None and template.next_date > template.end_date:
            template.enabled = False

    @classmethod
    def _posting_accounts(cls, template: RecurringTransaction) -> tuple[uuid.UUID, uuid.UUID]:
        """(debit_id, credit_id) for one occurrence."""
        if template.transaction_type == RecurringTransactionType.OUTFLOW:
            category_id = template.category_id or AccountService.system_account(
                template.ledger_id, SystemRole.UNASSIGNED
            ).id
            return category_id, template.account_id
        category_id = template.category_id or AccountService.system_account(template.ledger_id, SystemRole.INCOME).id
        return template.account_id, category_id

    @classmethod
    def materialize(
        cls,
        template_id: uuid.UUID,
        due_date: date | None = None,
        as_of: date | None = None,
        user: Any = None,
    ) -> Transaction:
        """
        Post the occurrence of a template due on due_date (default next_date).

        Returns:
            The posted transaction, or the existing one when that due date
            was already materialized

        Raises:
            RecurringTransactionNotFound: Unknown template
            TemplateDisabled: The template is disabled
            OccurrenceNotDue: due_date is not next_date, or is after as_of (default today)
        """
        as_of = as_of or timezone.localdate()

        with cls.atomic():
            template = RecurringTransaction.objects.select_for_update().filter(id=template_id).first()
            if template is None:
                raise RecurringTransactionNotFound(
                    f"Recurring transaction {template_id} not found",
                    details={"template_id": str(template_id)},
                )
            due_date = due_date or template.next_date

            existing = (
                RecurringOccurrence.objects.select_related("transaction")
                .filter(template=template, due_date=due_date)
                .first()
            )
            if existing is not None:
                return existing.transaction

            if not template.enabled:
                raise TemplateDisabled(
                    f"{template.description!r} is disabled",
                    details={"template_id": str(template.id)},
                )
            if due_date != template.next_date:
                raise OccurrenceNotDue(
                    f"Next occurrence of {template.description!r} is {template.next_date}",
                    error_code="OUT_OF_SEQUENCE",
                    details={"due_date": due_date.isoformat(), "next_date": template.next_date.isoformat()},
                )
            if due_date > as_of:
                raise OccurrenceNotDue(
                    f"{template.description!r} is not due until {due_date}",
                    details={"due_date": due_date.isoformat(), "as_of": as_of.isoformat()},
                )

            debit_id, credit_id = cls._posting_accounts(template)
            txn = LedgerService.post(
                ledger_id=template.ledger_id,
                debit_account_id=debit_id,
                credit_account_id=credit_id,
                amount=template.amount,
                date=due_date,
                description=template.description,
                idempotency_key=f"recurring:{template.id}:{due_date.isoformat()}",
                user=user,
                action_type=ActionType.MATERIALIZE,
            )
            RecurringOccurrence.objects.create(template=template, due_date=due_date, transaction=txn)
            cls._advance(template)
            template.save(update_fields=["next_date", "enabled", "updated_at"])

        cls.get_logger().info(
            "Materialized recurring transaction",
            extra={
                "template_id": str(template.id),
                "due_date": due_date.isoformat(),
                "transaction_id": str(txn.id),
                "next_date": template.next_date.isoformat(),
            },
        )
        return txn

    @classmethod
    def skip(cls, template_id: uuid.UUID, user: Any = None) -> RecurringTransaction:
        """
        Skip the next occurrence without posting.

        Raises:
            TemplateDisabled: The template is disabled
        """
        with cls.atomic():
            template = RecurringTransaction.objects.select_for_update().filter(id=template_id).first()
            if template is None:
                raise RecurringTransactionNotFound(
                    f"Recurring transaction {template_id} not found",
                    details={"template_id": str(template_id)},
                )
            if not template.enabled:
                raise TemplateDisabled(
                    f"{template.description!r} is disabled",
                    details={"template_id": str(template.id)},
                )
            old_data = template_snapshot(template)
            cls._advance(template)
            template.save(update_fields=["next_date", "enabled", "updated_at"])
            record_action(
                template.ledger_id,
                ActionType.SKIP_OCCURRENCE,
                "recurring_transaction",
                template.id,
                user=user,
                old_data=old_data,
                new_data=template_snapshot(template),
            )

        cls.get_logger().info(
            "Skipped recurring occurrence",
            extra={"template_id": str(template.id), "skipped": old_data["next_date"]},
        )
        return template

    @classmethod
    def process_due(cls, as_of: date | None = None) -> dict[str, int]:
        """
        Materialize every due auto_create template, catching up missed dates.

        Each template posts at most RECURRING_MAX_CATCH_UP_OCCURRENCES per run;
        the rest is picked up by the next run. A failing template is logged
        and skipped.

        Returns:
            Counts of templates seen, transactions created and failed templates
        """
        as_of = as_of or timezone.localdate()
        max_catch_up = settings.RECURRING_MAX_CATCH_UP_OCCURRENCES
        template_ids = list(
            RecurringTransaction.objects.filter(
                enabled=True,
                auto_create=True,
                next_date__lte=as_of,
            ).values_list("id", flat=True)
        )
        results = {"templates": len(template_ids), "created": 0, "failed": 0}

        for template_id in template_ids:
            posted = 0
            try:
                while posted < max_catch_up:
                    template = RecurringTransaction.objects.get(id=template_id)
                    if not template.enabled or template.next_date > as_of:
                        break
                    cls.materialize(template_id, as_of=as_of)
                    posted += 1
            except BaseApplicationError as exc:
                results["failed"] += 1
                cls.get_logger().warning(
                    "Recurring transaction failed",
                    extra={"template_id": str(template_id), "error_code": exc.error_code},
                )
            if posted == max_catch_up:
                cls.get_logger().warning(
                    "Recurring catch-up limit reached",
                    extra={"template_id": str(template_id), "limit": max_catch_up},
                )
            results["created"] += posted

        return results
