"""
Installment plans for credit card purchases.

A plan puts the whole purchase on the card at once and spreads its budget
impact over a schedule of installments:

    Plan created (purchase_date):
        debit Off-budget,  credit card          full amount; the card owes it all
    Each installment processed (due date):
        debit category,    credit CC Payment    one slice (kind installment)

So the spending category only shows one slice per installment, and the CC
Payment category sets aside money for the card one slice at a time. Once
every installment is processed the category has been charged the whole
purchase and the payment category holds all of it.

Amounts are split evenly in whole cents; the last installment absorbs the
remainder. Due dates step weekly, every two weeks or monthly from
start_date, monthly steps keeping start_date's day of month.

Processing is idempotent per plan and installment number (key
"installment:<plan>:<n>") and runs in installment order.

Usage:
    from credit_cards.installments import InstallmentService

    plan = InstallmentService.create_plan(
        card.id, electronics.id, 120000, date(2024, 3, 5), "Laptop", number_of_installments=6
    )
    InstallmentService.process_due(as_of=date(2024, 4, 5))
"""

from __future__ import annotations

import uuid
from datetime import timedelta
from typing import TYPE_CHECKING

from django.utils import timezone

from budgeting.exceptions import NotABudgetCategory
from core.exceptions import BaseApplicationError, ValidationError
from core.services import BaseService
from credit_cards.choices import InstallmentFrequency, InstallmentPlanStatus, InstallmentStatus
from credit_cards.exceptions import InstallmentNotFound, InstallmentPlanNotFound, InvalidInstallmentState
from credit_cards.models import Installment, InstallmentPlan
from credit_cards.services import CreditCardService
from ledger.choices import AccountKind, AccountType, ActionType, SystemRole, TransactionKind
from ledger.models import Account
from ledger.services import AccountService, LedgerService, record_action
from ledger.types import validate_amount
from recurring.schedule import next_occurrence

if TYPE_CHECKING:
    from datetime import date
    from typing import Any

    from django.db.models import QuerySet

MIN_INSTALLMENTS = 2
MAX_INSTALLMENTS = 36


def split_amount(total: int, count: int) -> list[int]:
    """Even installments in cents; the last one takes the remainder."""
    base = total // count
    return [base] * (count - 1) + [total - base * (count - 1)]


def due_dates(start: date, frequency: str, count: int) -> list[date]:
    dates = [start]
    while len(dates) < count:
        dates.append(next_occurrence(dates[-1], frequency, anchor_day=start.day))
    return dates


def plan_snapshot(plan: InstallmentPlan) -> dict[str, Any]:
    return {
        "credit_card": str(plan.credit_card_id),
        "category": str(plan.category_id),
        "purchase_amount": plan.purchase_amount,
        "description": plan.description,
        "number_of_installments": plan.number_of_installments,
        "installment_amount": plan.installment_amount,
        "frequency": plan.frequency,
        "status": plan.status,
        "completed_installments": plan.completed_installments,
    }


class InstallmentService(BaseService):
    """Create, reschedule, cancel and process card installment plans."""

    # ==========================================================================
    # Lookups
    # ==========================================================================

    @staticmethod
    def get_plan(plan_id: uuid.UUID) -> InstallmentPlan:
        plan = (
            InstallmentPlan.objects.select_related("credit_card", "category", "purchase_transaction")
            .filter(id=plan_id)
            .first()
        )
        if plan is None:
            raise InstallmentPlanNotFound(
                f"Installment plan {plan_id} not found",
                details={"plan_id": str(plan_id)},
            )
        return plan

    @staticmethod
    def get_installment(installment_id: uuid.UUID) -> Installment:
        installment = Installment.objects.select_related("plan").filter(id=installment_id).first()
        if installment is None:
            raise InstallmentNotFound(
                f"Installment {installment_id} not found",
                details={"installment_id": str(installment_id)},
            )
        return installment

    @staticmethod
    def plans(ledger_id: uuid.UUID, account_id: uuid.UUID | None = None) -> QuerySet:
        """Plans of a ledger (optionally one card), newest first."""
        plans = InstallmentPlan.objects.filter(credit_card__ledger_id=ledger_id)
        if account_id is not None:
            plans = plans.filter(credit_card_id=account_id)
        return plans.select_related("credit_card", "category")

    @staticmethod
    def schedule(
        ledger_id: uuid.UUID,
        plan_id: uuid.UUID | None = None,
        status: str | None = None,
        upcoming_days: int | None = None,
        as_of: date | None = None,
    ) -> QuerySet:
        """
        Installments of a ledger by due date.

        upcoming_days limits the result to scheduled installments due within
        that many days of as_of (default today).
        """
        installments = Installment.objects.filter(plan__credit_card__ledger_id=ledger_id)
        if plan_id is not None:
            installments = installments.filter(plan_id=plan_id)
        if status:
            installments = installments.filter(status=status)
        if upcoming_days is not None:
            start = as_of or timezone.localdate()
            installments = installments.filter(
                status=InstallmentStatus.SCHEDULED,
                due_date__range=(start, start + timedelta(days=upcoming_days)),
            )
        return installments.select_related("plan", "plan__category", "plan__credit_card").order_by(
            "due_date", "number"
        )

    @staticmethod
    def _spending_category(ledger_id: uuid.UUID, category_id: uuid.UUID) -> Account:
        category = AccountService.get_account(category_id, ledger_id=ledger_id)
        if (
            category.type != AccountType.EQUITY
            or category.is_group
            or category.is_system
            or category.kind != AccountKind.PLAIN
        ):
            raise NotABudgetCategory(
                f"{category.name!r} cannot be charged installments",
                details={"account_id": str(category.id)},
            )
        return category

    # ==========================================================================
    # Plans
    # ==========================================================================

    @classmethod
    def create_plan(
        cls,
        account_id: uuid.UUID,
        category_id: uuid.UUID,
        purchase_amount: int,
        purchase_date: date,
        description: str,
        number_of_installments: int,
        frequency: str = InstallmentFrequency.MONTHLY,
        start_date: date | None = None,
        notes: str = "",
        user: Any = None,
        idempotency_key: str | None = None,
    ) -> InstallmentPlan:
        """
        Put a purchase on a card and schedule its installments.

        start_date (the first due date) defaults to purchase_date. A retry
        with the same idempotency_key returns the plan created first.

        Raises:
            NotACreditCard: account_id is not a card
            NotABudgetCategory: category_id is not a spending category
            ValidationError: Bad amount, count, frequency or start date
        """
        card = CreditCardService.get_card(account_id)
        category = cls._spending_category(card.ledger_id, category_id)
        validate_amount(purchase_amount, "purchase_amount")
        if not MIN_INSTALLMENTS <= number_of_installments <= MAX_INSTALLMENTS:
            raise ValidationError(
                f"number_of_installments must be between {MIN_INSTALLMENTS} and {MAX_INSTALLMENTS}",
                error_code="INVALID_INSTALLMENT_COUNT",
                details={"number_of_installments": number_of_installments},
            )
        if purchase_amount < number_of_installments:
            raise ValidationError(
                "Every installment must be at least one cent",
                error_code="INVALID_INSTALLMENT_COUNT",
                details={"purchase_amount": purchase_amount, "number_of_installments": number_of_installments},
            )
        if frequency not in InstallmentFrequency.values:
            raise ValidationError(
                f"Invalid frequency: {frequency}",
                error_code="INVALID_FREQUENCY",
                details={"frequency": frequency},
            )
        start_date = start_date or purchase_date
        if start_date < purchase_date:
            raise ValidationError(
                "Installments cannot start before the purchase",
                error_code="INVALID_START_DATE",
                details={"start_date": start_date.isoformat(), "purchase_date": purchase_date.isoformat()},
            )

        amounts = split_amount(purchase_amount, number_of_installments)
        with cls.atomic():
            off_budget = AccountService.system_account(card.ledger_id, SystemRole.OFF_BUDGET)
            purchase = LedgerService.post(
                ledger_id=card.ledger_id,
                debit_account_id=off_budget.id,
                credit_account_id=card.id,
                amount=purchase_amount,
                date=purchase_date,
                description=description,
                idempotency_key=idempotency_key,
                user=user,
            )
            existing = InstallmentPlan.objects.filter(purchase_transaction=purchase).first()
            if existing is not None:
                return existing

            plan = InstallmentPlan.objects.create(
                credit_card=card,
                category=category,
                purchase_transaction=purchase,
                purchase_amount=purchase_amount,
                purchase_date=purchase_date,
                description=description,
                number_of_installments=number_of_installments,
                installment_amount=amounts[0],
                frequency=frequency,
                start_date=start_date,
                notes=notes,
            )
            Installment.objects.bulk_create(
                Installment(plan=plan, number=number, due_date=due_date, amount=amount)
                for number, (due_date, amount) in enumerate(
                    zip(due_dates(start_date, frequency, number_of_installments), amounts), start=1
                )
            )
            record_action(
                card.ledger_id,
                ActionType.CREATE_INSTALLMENT_PLAN,
                "installment_plan",
                plan.id,
                user=user,
                new_data=plan_snapshot(plan),
            )

        cls.get_logger().info(
            "Created installment plan",
            extra={
                "plan_id": str(plan.id),
                "account_id": str(card.id),
                "purchase_amount": purchase_amount,
                "installments": number_of_installments,
            },
        )
        return plan

    @classmethod
    def _lock_plan(cls, plan_id: uuid.UUID) -> InstallmentPlan:
        plan = (
            InstallmentPlan.objects.select_for_update(of=("self",))
            .select_related("credit_card")
            .filter(id=plan_id)
            .first()
        )
        if plan is None:
            raise InstallmentPlanNotFound(
                f"Installment plan {plan_id} not found",
                details={"plan_id": str(plan_id)},
            )
        return plan

    @staticmethod
    def _ensure_active(plan: InstallmentPlan, action: str) -> None:
        if plan.status != InstallmentPlanStatus.ACTIVE:
            raise InvalidInstallmentState(
                f"Cannot {action} a {plan.status} plan",
                details={"plan_id": str(plan.id), "status": plan.status},
            )

    @classmethod
    def update_plan(
        cls,
        plan_id: uuid.UUID,
        description: str | None = None,
        notes: str | None = None,
        category_id: uuid.UUID | None = None,
        remaining_installments: int | None = None,
        user: Any = None,
    ) -> InstallmentPlan:
        """
        Edit an active plan.

        remaining_installments re-splits what is still scheduled over a new
        number of installments, starting at the next due date. Processed
        installments are never touched.

        Raises:
            InvalidInstallmentState: The plan is completed or cancelled
            ValidationError: The new count is out of range
        """
        with cls.atomic():
            plan = cls._lock_plan(plan_id)
            cls._ensure_active(plan, "edit")
            old_data = plan_snapshot(plan)

            if description is not None:
                plan.description = description
            if notes is not None:
                plan.notes = notes
            if category_id is not None:
                plan.category = cls._spending_category(plan.credit_card.ledger_id, category_id)
            if remaining_installments is not None:
                cls._reschedule(plan, remaining_installments)

            plan.save()
            record_action(
                plan.credit_card.ledger_id,
                ActionType.UPDATE_INSTALLMENT_PLAN,
                "installment_plan",
                plan.id,
                user=user,
                old_data=old_data,
                new_data=plan_snapshot(plan),
            )

        cls.get_logger().info("Updated installment plan", extra={"plan_id": str(plan.id)})
        return plan

    @classmethod
    def _reschedule(cls, plan: InstallmentPlan, remaining: int) -> None:
        scheduled = list(plan.installments.filter(status=InstallmentStatus.SCHEDULED).order_by("number"))
        total = sum(installment.amount for installment in scheduled)
        upper = min(MAX_INSTALLMENTS - plan.completed_installments, total)
        lower = max(1, MIN_INSTALLMENTS - plan.completed_installments)
        if not lower <= remaining <= upper:
            raise ValidationError(
                f"remaining_installments must be between {lower} and {upper}",
                error_code="INVALID_INSTALLMENT_COUNT",
                details={"remaining_installments": remaining},
            )

        start = scheduled[0].due_date
        Installment.objects.filter(id__in=[installment.id for installment in scheduled]).delete()
        amounts = split_amount(total, remaining)
        Installment.objects.bulk_create(
            Installment(plan=plan, number=number, due_date=due_date, amount=amount)
            for number, (due_date, amount) in enumerate(
                zip(due_dates(start, plan.frequency, remaining), amounts),
                start=plan.completed_installments + 1,
            )
        )
        plan.number_of_installments = plan.completed_installments + remaining
        plan.installment_amount = amounts[0]

    @classmethod
    def cancel_plan(cls, plan_id: uuid.UUID, user: Any = None) -> InstallmentPlan:
        """
        Cancel a plan before any installment was processed.

        The purchase posting is reversed, so the card no longer owes it.

        Raises:
            InvalidInstallmentState: The plan is not active or has processed installments
        """
        with cls.atomic():
            plan = cls._lock_plan(plan_id)
            cls._ensure_active(plan, "cancel")
            if plan.completed_installments:
                raise InvalidInstallmentState(
                    "Cannot cancel a plan with processed installments",
                    error_code="INSTALLMENTS_PROCESSED",
                    details={"plan_id": str(plan.id), "completed_installments": plan.completed_installments},
                )
            old_data = plan_snapshot(plan)
            LedgerService.reverse(plan.purchase_transaction_id, user=user)
            for installment in plan.installments.filter(status=InstallmentStatus.SCHEDULED):
                installment.cancel()
                installment.save()
            plan.cancel()
            plan.save()
            record_action(
                plan.credit_card.ledger_id,
                ActionType.CANCEL_INSTALLMENT_PLAN,
                "installment_plan",
                plan.id,
                user=user,
                old_data=old_data,
                new_data=plan_snapshot(plan),
            )

        cls.get_logger().info("Cancelled installment plan", extra={"plan_id": str(plan.id)})
        return plan

    # ==========================================================================
    # Processing
    # ==========================================================================

    @classmethod
    def process_installment(
        cls,
        installment_id: uuid.UUID,
        processed_date: date | None = None,
        user: Any = None,
    ) -> Installment:
        """
        Charge one installment to the plan's category.

        Posts category -> CC Payment for the installment amount, dated
        processed_date (default the due date). The plan completes with its
        last installment.

        Idempotent: a processed installment is returned unchanged.

        Raises:
            InvalidInstallmentState: Cancelled installment or plan, or an
                earlier installment is still scheduled (OUT_OF_SEQUENCE)
        """
        plan_id = cls.get_installment(installment_id).plan_id

        with cls.atomic():
            plan = cls._lock_plan(plan_id)
            installment = Installment.objects.select_for_update().get(id=installment_id)
            if installment.status == InstallmentStatus.PROCESSED:
                return installment
            if installment.status != InstallmentStatus.SCHEDULED:
                raise InvalidInstallmentState(
                    f"Cannot process a {installment.status} installment",
                    details={"installment_id": str(installment.id), "status": installment.status},
                )
            cls._ensure_active(plan, "process")
            first_open = plan.installments.filter(status=InstallmentStatus.SCHEDULED).order_by("number").first()
            if first_open.id != installment.id:
                raise InvalidInstallmentState(
                    f"Installment {first_open.number} of {plan.description!r} is due first",
                    error_code="OUT_OF_SEQUENCE",
                    details={"installment_id": str(installment.id), "next_number": first_open.number},
                )

            card = plan.credit_card
            if card.payment_category_id is None:
                raise ValidationError(
                    f"{card.name!r} has no CC Payment category",
                    error_code="NO_PAYMENT_CATEGORY",
                    details={"account_id": str(card.id)},
                )
            day = processed_date or installment.due_date
            txn = LedgerService.post(
                ledger_id=card.ledger_id,
                debit_account_id=plan.category_id,
                credit_account_id=card.payment_category_id,
                amount=installment.amount,
                date=day,
                description=f"Installment {installment.number}/{plan.number_of_installments}: {plan.description}",
                kind=TransactionKind.INSTALLMENT,
                idempotency_key=f"installment:{plan.id}:{installment.number}",
                user=user,
                action_type=ActionType.PROCESS_INSTALLMENT,
            )
            installment.process(day, txn)
            installment.save()
            plan.completed_installments += 1
            if plan.completed_installments >= plan.number_of_installments:
                plan.complete()
            plan.save()

        cls.get_logger().info(
            "Processed installment",
            extra={
                "plan_id": str(plan.id),
                "installment": installment.number,
                "amount": installment.amount,
                "plan_status": plan.status,
            },
        )
        return installment

    @classmethod
    def process_due(cls, as_of: date | None = None) -> dict[str, int]:
        """
        Process every scheduled installment due on or before as_of, oldest first.

        A failing installment is logged and the rest of its plan waits for
        the next run.

        Returns:
            Counts of processed and failed installments
        """
        as_of = as_of or timezone.localdate()
        due = list(
            Installment.objects.filter(
                status=InstallmentStatus.SCHEDULED,
                due_date__lte=as_of,
                plan__status=InstallmentPlanStatus.ACTIVE,
            )
            .order_by("plan_id", "number")
            .values_list("id", "plan_id")
        )
        results = {"processed": 0, "failed": 0}
        blocked: set[uuid.UUID] = set()
        for installment_id, plan_id in due:
            if plan_id in blocked:
                continue
            try:
                cls.process_installment(installment_id)
            except BaseApplicationError as exc:
                blocked.add(plan_id)
                results["failed"] += 1
                cls.get_logger().warning(
                    "Installment processing failed",
                    extra={"installment_id": str(installment_id), "error_code": exc.error_code},
                )
                continue
            results["processed"] += 1
        return results
