"""
Ledger service layer for budgets, accounts and postings.

This module provides the two services every other app writes through:

    AccountService: ledgers, accounts, credit cards and system categories
    LedgerService: posting, reversal, soft delete, edit, transfer, undo

All writes run in a single atomic block (BaseService.atomic) and record one
ActionHistory row in that same block. Money-moving writes lock the account
rows they touch with select_for_update, ordered by id so that concurrent
postings always acquire locks in the same order.

Usage:
    from ledger.services import AccountService, LedgerService

    budget = AccountService.create_ledger(user, "Household")
    checking = AccountService.create_account(budget.id, "Checking", AccountType.ASSET)

    txn = LedgerService.post(
        ledger_id=budget.id,
        debit_account_id=groceries.id,
        credit_account_id=checking.id,
        amount=4250,
        date=date(2024, 3, 2),
        description="Farmers market",
        idempotency_key="import:bank:88123",
    )

    LedgerService.reverse(txn.id, user=user)
"""

from __future__ import annotations

import uuid
from datetime import timedelta
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from core.exceptions import ConflictError, ValidationError
from core.services import BaseService
from ledger.choices import (
    CC_PAYMENT_CATEGORY_PREFIX,
    SYSTEM_CATEGORY_NAMES,
    UNDOABLE_ACTIONS,
    AccountKind,
    AccountType,
    ActionType,
    SystemRole,
    TransactionKind,
    TransactionStatus,
)
from ledger.exceptions import (
    AccountInUse,
    AccountNotFound,
    ActionNotFound,
    InvalidAccountForOperation,
    InvalidTransactionState,
    LedgerNotFound,
    NonPostableAccount,
    ProtectedAccount,
    TransactionNotFound,
)
from ledger.models import Account, ActionHistory, Ledger, Transaction
from ledger.routing import needs_routing, plan_legs, requested_accounts
from ledger.types import PostingParams

if TYPE_CHECKING:
    from datetime import date
    from typing import Any

    from django.db.models import QuerySet


def account_snapshot(account: Account) -> dict[str, Any]:
    """JSON-safe snapshot of an account for ActionHistory."""
    return {
        "name": account.name,
        "type": account.type,
        "kind": account.kind,
        "system_role": account.system_role,
        "parent_group": str(account.parent_group_id) if account.parent_group_id else None,
        "sort_order": account.sort_order,
        "is_active": account.is_active,
    }


def transaction_snapshot(txn: Transaction) -> dict[str, Any]:
    """JSON-safe snapshot of a transaction for ActionHistory."""
    return {
        "date": txn.date.isoformat(),
        "description": txn.description,
        "amount": txn.amount,
        "debit_account": str(txn.debit_account_id),
        "credit_account": str(txn.credit_account_id),
        "kind": txn.kind,
        "status": txn.status,
        "cleared": txn.cleared,
        "reconciled": txn.reconciled,
    }


def record_action(
    ledger_id: uuid.UUID,
    action_type: str,
    entity_type: str,
    entity_id: uuid.UUID,
    user: Any = None,
    old_data: dict[str, Any] | None = None,
    new_data: dict[str, Any] | None = None,
) -> ActionHistory:
    """
    Append one ActionHistory row.

    Must be called inside the atomic block of the mutation it describes.
    """
    return ActionHistory.objects.create(
        ledger_id=ledger_id,
        user=user if getattr(user, "is_authenticated", False) else None,
        action_type=action_type,
        entity_type=entity_type,
        entity_id=entity_id,
        old_data=old_data,
        new_data=new_data,
    )


class AccountService(BaseService):
    """
    Service for ledgers and their accounts.

    Handles the structural side of a budget: creating the ledger with its
    system categories, account CRUD, and pairing credit cards with their
    payment categories.

    All methods are class methods - no instance state is maintained.
    """

    # ==========================================================================
    # Ledgers
    # ==========================================================================

    @classmethod
    def get_ledger(cls, ledger_id: uuid.UUID, user: Any = None) -> Ledger:
        """
        Get a ledger by ID, optionally scoped to its owner.

        Raises:
            LedgerNotFound: If the ledger doesn't exist or isn't owned by user
        """
        queryset = Ledger.objects.all()
        if user is not None:
            queryset = queryset.filter(user=user)
        try:
            return queryset.get(id=ledger_id)
        except Ledger.DoesNotExist:
            raise LedgerNotFound(
                f"Ledger {ledger_id} not found",
                details={"ledger_id": str(ledger_id)},
            )

    @classmethod
    def create_ledger(cls, user: Any, name: str, description: str = "") -> Ledger:
        """
        Create a ledger together with its Income, Unassigned and Off-budget categories.

        Args:
            user: Owner of the new budget
            name: Display name
            description: Optional free text

        Returns:
            The new Ledger
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Ledger name is required", error_code="NAME_REQUIRED")

        with cls.atomic():
            budget = Ledger.objects.create(user=user, name=name, description=description)
            for sort_order, (role, category_name) in enumerate(SYSTEM_CATEGORY_NAMES.items()):
                Account.objects.create(
                    ledger=budget,
                    name=category_name,
                    type=AccountType.EQUITY,
                    system_role=role,
                    sort_order=sort_order,
                )
            record_action(
                budget.id,
                ActionType.CREATE_LEDGER,
                "ledger",
                budget.id,
                user=user,
                new_data={"name": budget.name, "description": budget.description},
            )

        cls.get_logger().info(
            "Created ledger",
            extra={"ledger_id": str(budget.id), "user_id": getattr(user, "pk", None)},
        )
        return budget

    @classmethod
    def update_ledger(
        cls,
        ledger_id: uuid.UUID,
        user: Any = None,
        name: str | None = None,
        description: str | None = None,
    ) -> Ledger:
        """Rename a ledger or change its description."""
        with cls.atomic():
            budget = cls.get_ledger(ledger_id)
            old = {"name": budget.name, "description": budget.description}
            if name is not None:
                if not name.strip():
                    raise ValidationError("Ledger name is required", error_code="NAME_REQUIRED")
                budget.name = name.strip()
            if description is not None:
                budget.description = description
            budget.save(update_fields=["name", "description", "updated_at"])
            record_action(
                budget.id,
                ActionType.UPDATE_LEDGER,
                "ledger",
                budget.id,
                user=user,
                old_data=old,
                new_data={"name": budget.name, "description": budget.description},
            )
        return budget

    @classmethod
    def delete_ledger(cls, ledger_id: uuid.UUID) -> None:
        """
        Permanently delete a ledger and everything in it.

        This is the only hard delete of transactions; the action history of
        the ledger goes with it.
        """
        with cls.atomic():
            budget = cls.get_ledger(ledger_id)
            budget.delete()

        cls.get_logger().warning("Deleted ledger", extra={"ledger_id": str(ledger_id)})

    # ==========================================================================
    # Account lookup
    # ==========================================================================

    @classmethod
    def get_account(cls, account_id: uuid.UUID, ledger_id: uuid.UUID | None = None) -> Account:
        """
        Get an account by ID, optionally requiring it to be in a ledger.

        Raises:
            AccountNotFound: If the account doesn't exist in the ledger
        """
        queryset = Account.objects.all()
        if ledger_id is not None:
            queryset = queryset.filter(ledger_id=ledger_id)
        try:
            return queryset.get(id=account_id)
        except Account.DoesNotExist:
            raise AccountNotFound(
                f"Account {account_id} not found",
                details={"account_id": str(account_id)},
            )

    @classmethod
    def system_account(cls, ledger_id: uuid.UUID, role: str) -> Account:
        """Return the Income, Unassigned or Off-budget category of a ledger."""
        try:
            return Account.objects.get(ledger_id=ledger_id, system_role=role)
        except Account.DoesNotExist:
            raise AccountNotFound(
                f"System category {role} missing from ledger {ledger_id}",
                details={"ledger_id": str(ledger_id), "system_role": role},
            )

    # ==========================================================================
    # Account CRUD
    # ==========================================================================

    @classmethod
    def _resolve_parent_group(cls, ledger_id: uuid.UUID, parent_group_id: uuid.UUID | None) -> Account | None:
        if parent_group_id is None:
            return None
        group = cls.get_account(parent_group_id, ledger_id=ledger_id)
        if group.kind != AccountKind.CATEGORY_GROUP:
            raise InvalidAccountForOperation(
                "parent_group must be a category group",
                details={"parent_group": str(parent_group_id)},
            )
        return group

    @classmethod
    def _ensure_name_free(cls, ledger_id: uuid.UUID, name: str, exclude_id: uuid.UUID | None = None) -> None:
        queryset = Account.objects.filter(ledger_id=ledger_id, name=name)
        if exclude_id is not None:
            queryset = queryset.exclude(id=exclude_id)
        if queryset.exists():
            raise ConflictError(
                f"An account named {name!r} already exists",
                error_code="ACCOUNT_NAME_TAKEN",
                details={"name": name},
            )

    @classmethod
    def create_account(
        cls,
        ledger_id: uuid.UUID,
        name: str,
        type: str,
        user: Any = None,
        kind: str = AccountKind.PLAIN,
        parent_group_id: uuid.UUID | None = None,
        sort_order: int = 0,
    ) -> Account:
        """
        Create a plain account, category or category group.

        Credit cards go through create_credit_card so their payment category
        exists from the start.

        Raises:
            ValidationError: Unknown type, card kinds, or an invalid group
            ConflictError: Name already used in the ledger
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Account name is required", error_code="NAME_REQUIRED")
        if type not in AccountType.values:
            raise ValidationError(
                f"Unknown account type: {type}",
                error_code="INVALID_ACCOUNT_TYPE",
                details={"type": type},
            )
        if kind not in (AccountKind.PLAIN, AccountKind.CATEGORY_GROUP):
            raise InvalidAccountForOperation(
                "Credit cards and payment categories are created with the card",
                details={"kind": kind},
            )
        if kind == AccountKind.CATEGORY_GROUP and type != AccountType.EQUITY:
            raise InvalidAccountForOperation(
                "Category groups must be equity accounts",
                details={"type": type},
            )
        if name.startswith(CC_PAYMENT_CATEGORY_PREFIX):
            raise ValidationError(
                f"Names starting with {CC_PAYMENT_CATEGORY_PREFIX!r} are reserved",
                error_code="RESERVED_NAME",
                details={"name": name},
            )

        with cls.atomic():
            cls.get_ledger(ledger_id)
            parent = cls._resolve_parent_group(ledger_id, parent_group_id)
            cls._ensure_name_free(ledger_id, name)
            account = Account.objects.create(
                ledger_id=ledger_id,
                name=name,
                type=type,
                kind=kind,
                parent_group=parent,
                sort_order=sort_order,
            )
            record_action(
                ledger_id,
                ActionType.CREATE_ACCOUNT,
                "account",
                account.id,
                user=user,
                new_data=account_snapshot(account),
            )

        cls.get_logger().info(
            "Created account",
            extra={"ledger_id": str(ledger_id), "account_id": str(account.id), "type": type},
        )
        return account

    @classmethod
    def create_credit_card(cls, ledger_id: uuid.UUID, name: str, user: Any = None) -> Account:
        """
        Create a credit card liability account and its "CC Payment: <name>" category.

        Returns:
            The card account; its payment_category is already linked
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Account name is required", error_code="NAME_REQUIRED")
        payment_name = f"{CC_PAYMENT_CATEGORY_PREFIX}{name}"

        with cls.atomic():
            cls.get_ledger(ledger_id)
            cls._ensure_name_free(ledger_id, name)
            cls._ensure_name_free(ledger_id, payment_name)
            payment_category = Account.objects.create(
                ledger_id=ledger_id,
                name=payment_name,
                type=AccountType.EQUITY,
                kind=AccountKind.CC_PAYMENT_CATEGORY,
            )
            card = Account.objects.create(
                ledger_id=ledger_id,
                name=name,
                type=AccountType.LIABILITY,
                kind=AccountKind.CREDIT_CARD,
                payment_category=payment_category,
            )
            record_action(
                ledger_id,
                ActionType.CREATE_ACCOUNT,
                "account",
                card.id,
                user=user,
                new_data={**account_snapshot(card), "payment_category": str(payment_category.id)},
            )

        cls.get_logger().info(
            "Created credit card",
            extra={"ledger_id": str(ledger_id), "account_id": str(card.id)},
        )
        return card

    @classmethod
    def update_account(cls, account_id: uuid.UUID, user: Any = None, **changes: Any) -> Account:
        """
        Update name, sort_order, is_active or parent_group_id of an account.

        Renaming a card renames its payment category as well. System
        categories and payment categories cannot be renamed.
        """
        allowed = {"name", "sort_order", "is_active", "parent_group_id"}
        unknown = set(changes) - allowed
        if unknown:
            raise ValidationError(
                "Unsupported account fields",
                error_code="INVALID_FIELDS",
                details={"fields": sorted(unknown)},
            )

        with cls.atomic():
            account = Account.objects.select_for_update().filter(id=account_id).first()
            if account is None:
                raise AccountNotFound(
                    f"Account {account_id} not found",
                    details={"account_id": str(account_id)},
                )
            old = account_snapshot(account)

            if "name" in changes and changes["name"] != account.name:
                if account.is_system or account.kind == AccountKind.CC_PAYMENT_CATEGORY:
                    raise ProtectedAccount(
                        "System and payment categories cannot be renamed",
                        details={"account_id": str(account.id)},
                    )
                new_name = (changes["name"] or "").strip()
                if not new_name:
                    raise ValidationError("Account name is required", error_code="NAME_REQUIRED")
                cls._ensure_name_free(account.ledger_id, new_name, exclude_id=account.id)
                account.name = new_name
                if account.is_credit_card and account.payment_category_id:
                    payment_category = account.payment_category
                    payment_name = f"{CC_PAYMENT_CATEGORY_PREFIX}{new_name}"
                    cls._ensure_name_free(account.ledger_id, payment_name, exclude_id=payment_category.id)
                    payment_category.name = payment_name
                    payment_category.save(update_fields=["name", "updated_at"])

            if "is_active" in changes and not changes["is_active"] and account.is_system:
                raise ProtectedAccount(
                    "System categories cannot be deactivated",
                    details={"account_id": str(account.id)},
                )
            if "is_active" in changes:
                account.is_active = bool(changes["is_active"])
            if "sort_order" in changes:
                account.sort_order = int(changes["sort_order"])
            if "parent_group_id" in changes:
                account.parent_group = cls._resolve_parent_group(
                    account.ledger_id, changes["parent_group_id"]
                )

            account.save()
            record_action(
                account.ledger_id,
                ActionType.UPDATE_ACCOUNT,
                "account",
                account.id,
                user=user,
                old_data=old,
                new_data=account_snapshot(account),
            )
        return account

    @classmethod
    def delete_account(cls, account_id: uuid.UUID, user: Any = None) -> None:
        """
        Hard-delete an account that has never been posted to.

        Deleting a card deletes its (unused) payment category; deleting a
        category group detaches its children.

        Raises:
            ProtectedAccount: System categories and payment categories
            AccountInUse: Any transaction references the account
        """
        with cls.atomic():
            account = Account.objects.select_for_update().filter(id=account_id).first()
            if account is None:
                raise AccountNotFound(
                    f"Account {account_id} not found",
                    details={"account_id": str(account_id)},
                )
            if account.is_system:
                raise ProtectedAccount(
                    "System categories cannot be deleted",
                    details={"account_id": str(account.id)},
                )
            if account.kind == AccountKind.CC_PAYMENT_CATEGORY:
                raise ProtectedAccount(
                    "Payment categories are deleted together with their card",
                    details={"account_id": str(account.id)},
                )

            doomed = [account]
            if account.is_credit_card and account.payment_category_id:
                doomed.append(account.payment_category)
            for candidate in doomed:
                if candidate.has_postings():
                    raise AccountInUse(
                        f"Account {candidate.name!r} has transactions and cannot be deleted",
                        details={"account_id": str(candidate.id)},
                    )

            record_action(
                account.ledger_id,
                ActionType.DELETE_ACCOUNT,
                "account",
                account.id,
                user=user,
                old_data=account_snapshot(account),
            )
            for candidate in doomed:
                candidate.delete()

        cls.get_logger().info("Deleted account", extra={"account_id": str(account_id)})


class LedgerService(BaseService):
    """
    Service for double-entry postings.

    Key features:
    - Validation before any write (amount, distinct accounts, ledger scope)
    - Idempotency via unique keys (safe to retry)
    - Account row locks in id order
    - Credit card routing (see ledger.routing)
    - Corrections by reversal or soft delete; rows are never edited

    All methods are class methods - no instance state is maintained.
    """

    # ==========================================================================
    # Posting
    # ==========================================================================

    @classmethod
    def lock_accounts(cls, ledger_id: uuid.UUID, account_ids: set[uuid.UUID]) -> dict[uuid.UUID, Account]:
        """
        Lock account rows in id order and return them by id.

        Every write path that touches more than one account takes its locks
        through here, so two requests never wait on each other in a cycle.
        """
        return {
            account.id: account
            for account in Account.objects.filter(ledger_id=ledger_id, id__in=account_ids)
            .select_related("payment_category")
            .select_for_update(of=("self",))
            .order_by("id")
        }

    @staticmethod
    def _ensure_postable(account: Account) -> None:
        if account.is_group:
            raise NonPostableAccount(
                f"Category group {account.name!r} cannot hold transactions",
                details={"account_id": str(account.id)},
            )
        if not account.is_active:
            raise NonPostableAccount(
                f"Account {account.name!r} is inactive",
                details={"account_id": str(account.id)},
            )

    @classmethod
    def post(
        cls,
        ledger_id: uuid.UUID,
        debit_account_id: uuid.UUID,
        credit_account_id: uuid.UUID,
        amount: int,
        date: date,
        description: str = "",
        kind: str = TransactionKind.STANDARD,
        idempotency_key: str | None = None,
        user: Any = None,
        action_type: str = ActionType.POST_TRANSACTION,
    ) -> Transaction:
        """
        Post one transaction (two legs for routed credit card activity).

        Idempotent - a second call with the same idempotency_key returns the
        first transaction without writing anything.

        Returns:
            The primary Transaction

        Raises:
            ValidationError: Bad amount, identical accounts, group or inactive account
            AccountNotFound: Either account is missing from the ledger
        """
        params = PostingParams(
            ledger_id=ledger_id,
            debit_account_id=debit_account_id,
            credit_account_id=credit_account_id,
            amount=amount,
            date=date,
            description=description,
            kind=kind,
            idempotency_key=idempotency_key,
            user=user,
        )
        return cls.post_entry(params, action_type=action_type)

    @classmethod
    def post_entry(cls, params: PostingParams, action_type: str = ActionType.POST_TRANSACTION) -> Transaction:
        """Post from a PostingParams; see post()."""
        with cls.atomic():
            # Step 1: Idempotency first, so a retry never re-validates
            if params.idempotency_key:
                existing = Transaction.objects.filter(
                    ledger_id=params.ledger_id,
                    idempotency_key=params.idempotency_key,
                ).first()
                if existing is not None:
                    return existing

            # Step 2: Validate and lock
            primary = cls._post_locked(params)
            if primary is None:
                return Transaction.objects.get(ledger_id=params.ledger_id, idempotency_key=params.idempotency_key)

            # Step 3: Audit
            record_action(
                params.ledger_id,
                action_type,
                "transaction",
                primary.id,
                user=params.user,
                new_data=transaction_snapshot(primary),
            )

        cls.get_logger().info(
            "Posted transaction",
            extra={
                "ledger_id": str(params.ledger_id),
                "transaction_id": str(primary.id),
                "kind": primary.kind,
                "amount": primary.amount,
            },
        )
        return primary

    @classmethod
    def _post_locked(cls, params: PostingParams) -> Transaction | None:
        """
        Validate, lock and write the legs of one posting.

        Must run inside an atomic block. Returns None when a concurrent
        request created the same idempotency key first.
        """
        requested = {
            account.id: account
            for account in Account.objects.filter(
                ledger_id=params.ledger_id,
                id__in=[params.debit_account_id, params.credit_account_id],
            ).select_related("payment_category")
        }
        for account_id in (params.debit_account_id, params.credit_account_id):
            if account_id not in requested:
                raise AccountNotFound(
                    f"Account {account_id} not found in ledger {params.ledger_id}",
                    details={"account_id": str(account_id), "ledger_id": str(params.ledger_id)},
                )

        debit = requested[params.debit_account_id]
        credit = requested[params.credit_account_id]
        lock_ids = {debit.id, credit.id}
        if needs_routing(debit, credit, params.kind):
            off_budget = AccountService.system_account(params.ledger_id, SystemRole.OFF_BUDGET)
            lock_ids.add(off_budget.id)
            lock_ids.update(
                card.payment_category_id
                for card in (debit, credit)
                if card.kind == AccountKind.CREDIT_CARD
            )

        locked = cls.lock_accounts(params.ledger_id, lock_ids)
        debit = locked[debit.id]
        credit = locked[credit.id]
        cls._ensure_postable(debit)
        cls._ensure_postable(credit)

        off_budget = None
        if needs_routing(debit, credit, params.kind):
            off_budget = next(a for a in locked.values() if a.system_role == SystemRole.OFF_BUDGET)
        legs = plan_legs(debit, credit, params.kind, off_budget)

        try:
            with transaction.atomic():
                primary = None
                for leg in legs:
                    created = Transaction.objects.create(
                        ledger_id=params.ledger_id,
                        date=params.date,
                        description=params.description,
                        amount=params.amount,
                        debit_account=leg.debit,
                        credit_account=leg.credit,
                        kind=leg.kind,
                        cleared=params.cleared,
                        reconciled=params.reconciled,
                        idempotency_key=params.idempotency_key if primary is None else None,
                        linked_to=primary,
                        created_by=params.user if getattr(params.user, "is_authenticated", False) else None,
                    )
                    if primary is None:
                        primary = created
        except IntegrityError:
            if not params.idempotency_key:
                raise
            # Only a concurrent request holding the same key is a retry
            if not Transaction.objects.filter(
                ledger_id=params.ledger_id,
                idempotency_key=params.idempotency_key,
            ).exists():
                raise
            return None
        return primary

    # ==========================================================================
    # Corrections
    # ==========================================================================

    @classmethod
    def _get_for_update(cls, transaction_id: uuid.UUID) -> Transaction:
        txn = Transaction.objects.select_for_update().filter(id=transaction_id).first()
        if txn is None:
            raise TransactionNotFound(
                f"Transaction {transaction_id} not found",
                details={"transaction_id": str(transaction_id)},
            )
        return txn

    @staticmethod
    def _ensure_correctable(txn: Transaction, action: str) -> None:
        """Reject corrections of reversal rows, routed legs and non-active rows."""
        if txn.is_reversal:
            raise InvalidTransactionState(
                "Reversal transactions cannot be corrected",
                details={"transaction_id": str(txn.id), "action": action},
            )
        if txn.linked_to_id is not None:
            raise InvalidTransactionState(
                "Routed card legs follow their primary transaction",
                error_code="LINKED_LEG",
                details={"transaction_id": str(txn.id), "primary_id": str(txn.linked_to_id)},
            )
        if txn.status != TransactionStatus.ACTIVE:
            raise InvalidTransactionState(
                f"Cannot {action} transaction in {txn.status} status",
                details={"transaction_id": str(txn.id), "current_status": txn.status, "action": action},
            )
        if txn.reconciled:
            raise InvalidTransactionState(
                "Reconciled transactions cannot be changed",
                error_code="RECONCILED",
                details={"transaction_id": str(txn.id), "action": action},
            )

    @classmethod
    def _reverse_locked(cls, original: Transaction, user: Any = None) -> Transaction:
        """Write the reversal rows for a transaction and its routed legs."""
        created_by = user if getattr(user, "is_authenticated", False) else None
        cls.lock_accounts(
            original.ledger_id,
            {original.debit_account_id, original.credit_account_id}
            | {
                account_id
                for leg in original.linked_legs.all()
                for account_id in (leg.debit_account_id, leg.credit_account_id)
            },
        )

        reversal = None
        for row in [original, *original.linked_legs.filter(status=TransactionStatus.ACTIVE)]:
            offset = Transaction.objects.create(
                ledger_id=row.ledger_id,
                date=row.date,
                description=f"Reversal of: {row.description}" if row.description else "Reversal",
                amount=row.amount,
                debit_account_id=row.credit_account_id,
                credit_account_id=row.debit_account_id,
                kind=TransactionKind.REVERSAL,
                reversal_of=row,
                linked_to=reversal,
                created_by=created_by,
            )
            row.mark_reversed()
            row.save(update_fields=["status"])
            if reversal is None:
                reversal = offset
        return reversal

    @classmethod
    def reverse(cls, transaction_id: uuid.UUID, user: Any = None) -> Transaction:
        """
        Offset a transaction with a swapped-account reversal.

        The original is marked REVERSED; both rows keep counting toward
        balances, so their net effect is zero. A routed card purchase has both
        of its legs reversed.

        Returns:
            The reversal of the primary transaction

        Raises:
            TransactionNotFound: Unknown id
            InvalidTransactionState: Already reversed/deleted, a reversal, or a routed leg
        """
        with cls.atomic():
            original = cls._get_for_update(transaction_id)
            cls._ensure_correctable(original, "reverse")
            old = transaction_snapshot(original)
            reversal = cls._reverse_locked(original, user=user)
            record_action(
                original.ledger_id,
                ActionType.REVERSE_TRANSACTION,
                "transaction",
                original.id,
                user=user,
                old_data=old,
                new_data={"status": original.status, "reversal_id": str(reversal.id)},
            )

        cls.get_logger().info(
            "Reversed transaction",
            extra={"transaction_id": str(original.id), "reversal_id": str(reversal.id)},
        )
        return reversal

    @classmethod
    def _soft_delete_locked(cls, txn: Transaction, user: Any = None) -> None:
        cls._ensure_correctable(txn, "delete")
        old = transaction_snapshot(txn)
        for row in [txn, *txn.linked_legs.filter(status=TransactionStatus.ACTIVE)]:
            row.mark_deleted()
            row.save(update_fields=["status", "deleted_at"])
        record_action(
            txn.ledger_id,
            ActionType.DELETE_TRANSACTION,
            "transaction",
            txn.id,
            user=user,
            old_data=old,
            new_data={"status": txn.status},
        )

    @classmethod
    def soft_delete(cls, transaction_id: uuid.UUID, user: Any = None) -> Transaction:
        """
        Mark a transaction DELETED so it no longer counts toward any balance.

        The row stays in the audit view. Routed legs are deleted with it.

        Raises:
            InvalidTransactionState: Already deleted or reversed, or a reversal row
        """
        with cls.atomic():
            txn = cls._get_for_update(transaction_id)
            cls._soft_delete_locked(txn, user=user)

        cls.get_logger().info("Soft-deleted transaction", extra={"transaction_id": str(transaction_id)})
        return txn

    @classmethod
    def bulk_soft_delete(cls, transaction_ids: list[uuid.UUID], user: Any = None) -> int:
        """
        Soft-delete several transactions; either all of them or none.

        Returns:
            Number of transactions deleted
        """
        ids = list(dict.fromkeys(transaction_ids))
        if not ids:
            return 0

        with cls.atomic():
            rows = {
                txn.id: txn
                for txn in Transaction.objects.select_for_update().filter(id__in=ids).order_by("id")
            }
            for transaction_id in ids:
                txn = rows.get(uuid.UUID(str(transaction_id)))
                if txn is None:
                    raise TransactionNotFound(
                        f"Transaction {transaction_id} not found",
                        details={"transaction_id": str(transaction_id)},
                    )
                cls._soft_delete_locked(txn, user=user)

        cls.get_logger().info("Bulk soft-deleted transactions", extra={"count": len(ids)})
        return len(ids)

    @classmethod
    def edit(cls, transaction_id: uuid.UUID, user: Any = None, **changes: Any) -> Transaction:
        """
        Correct a transaction by reversing it and posting the corrected copy.

        Accepted changes: date, description, amount, debit_account_id,
        credit_account_id. The original row is never mutated.

        Returns:
            The newly posted transaction
        """
        allowed = {"date", "description", "amount", "debit_account_id", "credit_account_id"}
        unknown = set(changes) - allowed
        if unknown:
            raise ValidationError(
                "Unsupported transaction fields",
                error_code="INVALID_FIELDS",
                details={"fields": sorted(unknown)},
            )

        with cls.atomic():
            original = cls._get_for_update(transaction_id)
            cls._ensure_correctable(original, "edit")
            debit_id, credit_id = requested_accounts(original)
            params = PostingParams(
                ledger_id=original.ledger_id,
                debit_account_id=changes.get("debit_account_id", debit_id),
                credit_account_id=changes.get("credit_account_id", credit_id),
                amount=changes.get("amount", original.amount),
                date=changes.get("date", original.date),
                description=changes.get("description", original.description),
                kind=original.kind,
                user=user,
            )
            old = transaction_snapshot(original)
            cls._reverse_locked(original, user=user)
            corrected = cls._post_locked(params)
            record_action(
                original.ledger_id,
                ActionType.EDIT_TRANSACTION,
                "transaction",
                original.id,
                user=user,
                old_data=old,
                new_data={**transaction_snapshot(corrected), "replacement_id": str(corrected.id)},
            )

        cls.get_logger().info(
            "Edited transaction",
            extra={"transaction_id": str(transaction_id), "replacement_id": str(corrected.id)},
        )
        return corrected

    # ==========================================================================
    # Transfers
    # ==========================================================================

    @classmethod
    def transfer(
        cls,
        ledger_id: uuid.UUID,
        from_account_id: uuid.UUID,
        to_account_id: uuid.UUID,
        amount: int,
        date: date,
        description: str = "",
        user: Any = None,
        idempotency_key: str | None = None,
    ) -> Transaction:
        """
        Move money between two balance-sheet accounts.

        Money leaves from_account and arrives in to_account. A transfer from a
        bank account to a credit card is a card payment and is routed as one.

        Raises:
            InvalidAccountForOperation: Either side is not an asset or liability
        """
        from_account = AccountService.get_account(from_account_id, ledger_id=ledger_id)
        to_account = AccountService.get_account(to_account_id, ledger_id=ledger_id)
        for account in (from_account, to_account):
            if account.type not in (AccountType.ASSET, AccountType.LIABILITY):
                raise InvalidAccountForOperation(
                    "Transfers move money between bank and card accounts only",
                    details={"account_id": str(account.id), "type": account.type},
                )

        # Money in: assets increase on debit, liabilities decrease on debit
        return cls.post(
            ledger_id=ledger_id,
            debit_account_id=to_account.id,
            credit_account_id=from_account.id,
            amount=amount,
            date=date,
            description=description or f"Transfer: {from_account.name} to {to_account.name}",
            kind=TransactionKind.TRANSFER,
            idempotency_key=idempotency_key,
            user=user,
            action_type=ActionType.TRANSFER,
        )

    # ==========================================================================
    # Undo and retention
    # ==========================================================================

    @classmethod
    def undo(cls, action_id: uuid.UUID, user: Any = None) -> Transaction:
        """
        Undo a logged transaction-creating action by reversing its transaction.

        Raises:
            ActionNotFound: Unknown action id
            ConflictError: The action type cannot be undone
        """
        action = ActionHistory.objects.filter(id=action_id).first()
        if action is None:
            raise ActionNotFound(
                f"Action {action_id} not found",
                details={"action_id": str(action_id)},
            )
        if action.action_type not in UNDOABLE_ACTIONS:
            raise ConflictError(
                f"{action.get_action_type_display()} actions cannot be undone",
                error_code="UNDO_NOT_SUPPORTED",
                details={"action_id": str(action.id), "action_type": action.action_type},
            )
        return cls.reverse(action.entity_id, user=user)

    @classmethod
    def purge_action_history(cls, older_than_days: int | None = None) -> int:
        """
        Delete action history rows older than the retention window.

        Args:
            older_than_days: Defaults to settings.ACTION_HISTORY_RETENTION_DAYS

        Returns:
            Number of rows deleted
        """
        if older_than_days is None:
            older_than_days = settings.ACTION_HISTORY_RETENTION_DAYS
        cutoff = timezone.now() - timedelta(days=older_than_days)
        deleted, _ = ActionHistory.objects.filter(created_at__lt=cutoff).delete()

        cls.get_logger().info(
            "Purged action history",
            extra={"deleted": deleted, "older_than_days": older_than_days},
        )
        return deleted

    # ==========================================================================
    # Queries
    # ==========================================================================

    @staticmethod
    def current_transactions(ledger_id: uuid.UUID, account_id: uuid.UUID | None = None) -> QuerySet:
        """Register view: active non-reversal rows, most recent first."""
        queryset = Transaction.objects.current().filter(ledger_id=ledger_id)
        if account_id is not None:
            account = AccountService.get_account(account_id, ledger_id=ledger_id)
            queryset = queryset.touching(account)
        return queryset.select_related("debit_account", "credit_account").order_by(
            "-date", "-created_at"
        )

    @staticmethod
    def audit_transactions(ledger_id: uuid.UUID, account_id: uuid.UUID | None = None) -> QuerySet:
        """Audit view: every row, including deleted, reversed and reversal rows."""
        queryset = Transaction.objects.filter(ledger_id=ledger_id)
        if account_id is not None:
            account = AccountService.get_account(account_id, ledger_id=ledger_id)
            queryset = queryset.touching(account)
        return queryset.select_related("debit_account", "credit_account", "reversal_of").order_by(
            "-date", "-created_at"
        )


# Singleton instance for convenience
# Usage: from ledger.services import ledger
ledger = LedgerService()
