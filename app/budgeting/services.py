"""
Envelope budgeting engine.

Every number here is derived from ledger transactions; nothing is stored.

    budgeted  - net assignment/move postings into a category in the period
    activity  - net non-budgeting outflow of the category in the period
    balance   - previous balance + budgeted - activity (rolls over, may go negative)

Money enters the budget as income credited to the Income category. An
assignment debits Income and credits a category; a move debits one
category and credits another.

Usage:
    from budgeting.periods import Period
    from budgeting.services import EnvelopeService

    march = Period.parse("2024-03")
    EnvelopeService.assign(budget.id, groceries.id, 40000, march)
    EnvelopeService.move_money(budget.id, dining.id, groceries.id, 2500)
    EnvelopeService.totals(budget.id, march).left_to_budget
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from typing import TYPE_CHECKING

from django.db.models import Sum
from django.utils import timezone

from budgeting.exceptions import NotABudgetCategory, NotOverspent, OverBudgetWarning
from budgeting.periods import Period
from budgeting.types import AssignmentResult, BudgetTotals, CategoryStatus, OverspentCategory
from core.services import BaseService
from ledger.choices import AccountKind, AccountType, ActionType, SystemRole, TransactionKind
from ledger.models import Account, Transaction
from ledger.services import AccountService, LedgerService
from ledger.types import validate_amount

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import date
    from typing import Any

    from django.db.models import QuerySet


def net_credits(queryset: QuerySet, account_ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, int]:
    """
    Credits minus debits per account over the given transactions.

    For categories (liability_like) this is the change in balance.
    """
    account_ids = list(account_ids)
    totals: dict[uuid.UUID, int] = defaultdict(int)
    credits = (
        queryset.filter(credit_account_id__in=account_ids)
        .order_by()
        .values("credit_account_id")
        .annotate(total=Sum("amount"))
    )
    for row in credits:
        totals[row["credit_account_id"]] += row["total"]
    debits = (
        queryset.filter(debit_account_id__in=account_ids)
        .order_by()
        .values("debit_account_id")
        .annotate(total=Sum("amount"))
    )
    for row in debits:
        totals[row["debit_account_id"]] -= row["total"]
    return totals


class EnvelopeService(BaseService):
    """
    Service for budget status, assignments and moves between categories.

    All methods are class methods - no instance state is maintained.
    """

    # ==========================================================================
    # Helpers
    # ==========================================================================

    @staticmethod
    def budget_categories(ledger_id: uuid.UUID) -> QuerySet:
        """Active user categories shown in the budget grid."""
        return Account.objects.filter(
            ledger_id=ledger_id,
            type=AccountType.EQUITY,
            kind=AccountKind.PLAIN,
            system_role__isnull=True,
            is_active=True,
        ).order_by("sort_order", "name")

    @staticmethod
    def assignable_category(ledger_id: uuid.UUID, category_id: uuid.UUID) -> Account:
        """
        Return a category money can be assigned to or moved between.

        User categories and CC Payment categories qualify; system
        categories and group headers do not.

        Raises:
            AccountNotFound: Unknown id or another ledger's account
            NotABudgetCategory: Any other kind of account
        """
        account = AccountService.get_account(category_id, ledger_id=ledger_id)
        if (
            account.type != AccountType.EQUITY
            or account.is_group
            or account.is_system
            or account.kind not in (AccountKind.PLAIN, AccountKind.CC_PAYMENT_CATEGORY)
        ):
            raise NotABudgetCategory(
                f"{account.name!r} is not a budget category",
                details={"account_id": str(account.id)},
            )
        return account

    @staticmethod
    def _posting_date(period: Period) -> date:
        """Today, clamped into the period."""
        return min(max(period.start, timezone.localdate()), period.end)

    # ==========================================================================
    # Status
    # ==========================================================================

    @classmethod
    def budget_status(cls, ledger_id: uuid.UUID, period: Period) -> list[CategoryStatus]:
        """
        Budgeted, activity and rolling balance of every budget category.

        Args:
            ledger_id: Budget to report on
            period: Month to report

        Returns:
            One CategoryStatus per category, in display order
        """
        AccountService.get_ledger(ledger_id)
        categories = list(cls.budget_categories(ledger_id))
        ids = [category.id for category in categories]

        counted = Transaction.objects.counted().filter(ledger_id=ledger_id)
        in_period = counted.in_period(period.start, period.end)
        previous = net_credits(counted.filter(date__lt=period.start), ids)
        budgeted = net_credits(in_period.budgeting(), ids)
        inflow = net_credits(in_period.non_budgeting(), ids)

        rows = []
        for category in categories:
            previous_balance = previous.get(category.id, 0)
            category_budgeted = budgeted.get(category.id, 0)
            activity = -inflow.get(category.id, 0)
            rows.append(
                CategoryStatus(
                    category_id=category.id,
                    name=category.name,
                    group_id=category.parent_group_id,
                    previous_balance=previous_balance,
                    budgeted=category_budgeted,
                    activity=activity,
                    balance=previous_balance + category_budgeted - activity,
                )
            )
        return rows

    @classmethod
    def overspent_categories(cls, ledger_id: uuid.UUID, period: Period) -> list[OverspentCategory]:
        """Categories whose balance at the end of the period is negative."""
        return [
            OverspentCategory(
                category_id=row.category_id,
                name=row.name,
                balance=row.balance,
                overspent_amount=-row.balance,
            )
            for row in cls.budget_status(ledger_id, period)
            if row.is_overspent
        ]

    @staticmethod
    def available_to_budget(ledger_id: uuid.UUID, as_of: date | None = None) -> int:
        """
        Money not yet assigned: the Income balance plus the Unassigned balance.

        Unassigned collects reconciliation adjustments, interest charges and
        uncategorised postings, so a bank surplus adds to it and a charge
        nobody budgeted for takes away from it.
        """
        income = AccountService.system_account(ledger_id, SystemRole.INCOME)
        unassigned = AccountService.system_account(ledger_id, SystemRole.UNASSIGNED)
        return income.get_balance(as_of=as_of) + unassigned.get_balance(as_of=as_of)

    @classmethod
    def totals(cls, ledger_id: uuid.UUID, period: Period) -> BudgetTotals:
        """
        Summary of a period.

        income:             income received in the period
        unassigned:         net Unassigned activity in the period
        budgeted:           net assignments out of Income in the period
        prior_overspending: overspending carried in from earlier periods
        left_to_budget:     income + unassigned - budgeted - prior_overspending
        overspent_total:    overspending at the end of the period
        """
        statuses = cls.budget_status(ledger_id, period)
        income_account = AccountService.system_account(ledger_id, SystemRole.INCOME)
        unassigned_account = AccountService.system_account(ledger_id, SystemRole.UNASSIGNED)
        in_period = (
            Transaction.objects.counted()
            .filter(ledger_id=ledger_id)
            .in_period(period.start, period.end)
        )
        income = net_credits(in_period.non_budgeting(), [income_account.id]).get(income_account.id, 0)
        unassigned = net_credits(in_period, [unassigned_account.id]).get(unassigned_account.id, 0)
        budgeted = -net_credits(in_period.budgeting(), [income_account.id]).get(income_account.id, 0)
        prior_overspending = sum(max(0, -row.previous_balance) for row in statuses)
        overspent_total = sum(-row.balance for row in statuses if row.is_overspent)
        available = cls.available_to_budget(ledger_id, as_of=period.end)

        return BudgetTotals(
            period=str(period),
            income=income,
            unassigned=unassigned,
            budgeted=budgeted,
            prior_overspending=prior_overspending,
            left_to_budget=income + unassigned - budgeted - prior_overspending,
            available_to_budget=available,
            overspent_total=overspent_total,
            is_overbudgeted=available < 0,
        )

    # ==========================================================================
    # Assignments
    # ==========================================================================

    @classmethod
    def assign(
        cls,
        ledger_id: uuid.UUID,
        category_id: uuid.UUID,
        amount: int,
        period: Period,
        allow_overbudget: bool = True,
        user: Any = None,
        idempotency_key: str | None = None,
    ) -> AssignmentResult:
        """
        Assign money from Income to a category.

        The posting is dated today, clamped into the period. Assigning more
        than is available succeeds with a warning attached; with
        allow_overbudget=False the warning is raised instead and nothing is
        written.

        Returns:
            AssignmentResult with the assignment transaction and optional warning

        Raises:
            OverBudgetWarning: Overage while allow_overbudget is False
            NotABudgetCategory: Target is a system category, group or bank account
        """
        validate_amount(amount)
        category = cls.assignable_category(ledger_id, category_id)
        income = AccountService.system_account(ledger_id, SystemRole.INCOME)
        unassigned = AccountService.system_account(ledger_id, SystemRole.UNASSIGNED)

        with cls.atomic():
            # Hold the money pools and the category so the check and the posting agree
            LedgerService.lock_accounts(ledger_id, {income.id, unassigned.id, category.id})
            available = cls.available_to_budget(ledger_id)
            overage = amount - max(available, 0)
            warning = OverBudgetWarning(amount, available, overage) if overage > 0 else None
            if warning is not None and not allow_overbudget:
                raise warning

            txn = LedgerService.post(
                ledger_id=ledger_id,
                debit_account_id=income.id,
                credit_account_id=category.id,
                amount=amount,
                date=cls._posting_date(period),
                description=f"Assign to {category.name}",
                kind=TransactionKind.ASSIGNMENT,
                idempotency_key=idempotency_key,
                user=user,
                action_type=ActionType.ASSIGN,
            )

        if warning is not None:
            cls.get_logger().warning(
                "Assignment exceeds available to budget",
                extra={"ledger_id": str(ledger_id), "category_id": str(category.id), "overage": overage},
            )
        return AssignmentResult(transaction=txn, warning=warning)

    @classmethod
    def unassign(
        cls,
        ledger_id: uuid.UUID,
        category_id: uuid.UUID,
        amount: int,
        period: Period,
        user: Any = None,
    ):
        """Return money from a category to Income (an assignment in reverse)."""
        validate_amount(amount)
        category = cls.assignable_category(ledger_id, category_id)
        income = AccountService.system_account(ledger_id, SystemRole.INCOME)
        return LedgerService.post(
            ledger_id=ledger_id,
            debit_account_id=category.id,
            credit_account_id=income.id,
            amount=amount,
            date=cls._posting_date(period),
            description=f"Unassign from {category.name}",
            kind=TransactionKind.ASSIGNMENT,
            user=user,
            action_type=ActionType.ASSIGN,
        )

    @classmethod
    def move_money(
        cls,
        ledger_id: uuid.UUID,
        from_category_id: uuid.UUID,
        to_category_id: uuid.UUID,
        amount: int,
        date: date | None = None,
        user: Any = None,
    ):
        """
        Move budgeted money between two categories as one posting.

        Both category rows are locked by LedgerService.post; the move either
        lands completely or not at all.
        """
        validate_amount(amount)
        source = cls.assignable_category(ledger_id, from_category_id)
        target = cls.assignable_category(ledger_id, to_category_id)
        txn = LedgerService.post(
            ledger_id=ledger_id,
            debit_account_id=source.id,
            credit_account_id=target.id,
            amount=amount,
            date=date or timezone.localdate(),
            description=f"Move from {source.name} to {target.name}",
            kind=TransactionKind.MOVE,
            user=user,
            action_type=ActionType.MOVE,
        )

        cls.get_logger().info(
            "Moved money",
            extra={
                "ledger_id": str(ledger_id),
                "from_category_id": str(source.id),
                "to_category_id": str(target.id),
                "amount": amount,
            },
        )
        return txn

    @classmethod
    def cover_overspending(
        cls,
        ledger_id: uuid.UUID,
        category_id: uuid.UUID,
        source_category_id: uuid.UUID,
        amount: int | None = None,
        user: Any = None,
    ):
        """
        Move money from a funded category into an overspent one.

        Args:
            amount: Defaults to the full overspent amount

        Raises:
            NotOverspent: The category balance is not negative
        """
        category = cls.assignable_category(ledger_id, category_id)
        balance = category.get_balance()
        if balance >= 0:
            raise NotOverspent(
                f"{category.name!r} is not overspent",
                details={"category_id": str(category.id), "balance": balance},
            )
        return cls.move_money(
            ledger_id,
            source_category_id,
            category.id,
            -balance if amount is None else amount,
            user=user,
        )
