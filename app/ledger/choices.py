"""
Enumerations for ledger models.

These are Django TextChoices for database storage and admin integration.
They live apart from the models so querysets and services can import them
without pulling in the model module.

Account Classification:
    AccountType    - the five bookkeeping types
    InternalType   - balance sign convention derived from the type
    AccountKind    - closed set of account roles (plain, group header, card, ...)
    SystemRole     - the three reserved categories every ledger owns

Transaction Classification:
    TransactionKind   - what a posting represents
    TransactionStatus - active -> reversed | deleted

Sign convention:
    asset_like accounts (asset, expense) increase on debit.
    liability_like accounts (liability, equity, revenue) increase on credit.
"""

from django.db import models


class AccountType(models.TextChoices):
    """
    Bookkeeping type of an account.

    Budget categories are equity accounts. Bank accounts are assets and
    credit cards are liabilities.
    """

    ASSET = "asset", "Asset"
    LIABILITY = "liability", "Liability"
    EQUITY = "equity", "Equity"
    REVENUE = "revenue", "Revenue"
    EXPENSE = "expense", "Expense"


class InternalType(models.TextChoices):
    """Balance sign convention, derived from AccountType."""

    ASSET_LIKE = "asset_like", "Asset-like"
    LIABILITY_LIKE = "liability_like", "Liability-like"


ASSET_LIKE_TYPES = frozenset({AccountType.ASSET, AccountType.EXPENSE})


def internal_type_for(account_type: str) -> str:
    """Return the InternalType implied by an AccountType."""
    if account_type in ASSET_LIKE_TYPES:
        return InternalType.ASSET_LIKE
    return InternalType.LIABILITY_LIKE


class AccountKind(models.TextChoices):
    """
    Role of an account within the budget.

    Values:
        PLAIN: Ordinary account or budget category
        CATEGORY_GROUP: Non-postable header owning child categories
        CREDIT_CARD: Liability account with limit/statement features
        CC_PAYMENT_CATEGORY: Category that sets money aside for one card
    """

    PLAIN = "plain", "Plain"
    CATEGORY_GROUP = "category_group", "Category Group"
    CREDIT_CARD = "credit_card", "Credit Card"
    CC_PAYMENT_CATEGORY = "cc_payment_category", "CC Payment Category"


class SystemRole(models.TextChoices):
    """Reserved categories created with every ledger."""

    INCOME = "income", "Income"
    UNASSIGNED = "unassigned", "Unassigned"
    OFF_BUDGET = "off_budget", "Off-budget"


SYSTEM_CATEGORY_NAMES = {
    SystemRole.INCOME: "Income",
    SystemRole.UNASSIGNED: "Unassigned",
    SystemRole.OFF_BUDGET: "Off-budget",
}

CC_PAYMENT_CATEGORY_PREFIX = "CC Payment: "


class TransactionKind(models.TextChoices):
    """
    What a posting represents.

    Only ASSIGNMENT and MOVE are budgeting postings; every other kind is
    activity when it touches a category.
    """

    STANDARD = "standard", "Standard"
    ASSIGNMENT = "assignment", "Assignment"
    MOVE = "move", "Move"
    TRANSFER = "transfer", "Transfer"
    CARD_PAYMENT = "card_payment", "Card Payment"
    CARD_ROUTING = "card_routing", "Card Routing"
    INTEREST = "interest", "Interest"
    FEE = "fee", "Fee"
    ADJUSTMENT = "adjustment", "Adjustment"
    INSTALLMENT = "installment", "Installment"
    REVERSAL = "reversal", "Reversal"


BUDGETING_KINDS = frozenset({TransactionKind.ASSIGNMENT, TransactionKind.MOVE})


class TransactionStatus(models.TextChoices):
    """
    Lifecycle of a posting.

    State Flow:
        ACTIVE -> REVERSED (a reversal row now offsets it)
        ACTIVE -> DELETED  (excluded from every balance)
    """

    ACTIVE = "active", "Active"
    REVERSED = "reversed", "Reversed"
    DELETED = "deleted", "Deleted"


class ActionType(models.TextChoices):
    """Mutation recorded in the action history."""

    CREATE_LEDGER = "create_ledger", "Create Ledger"
    UPDATE_LEDGER = "update_ledger", "Update Ledger"
    CREATE_ACCOUNT = "create_account", "Create Account"
    UPDATE_ACCOUNT = "update_account", "Update Account"
    DELETE_ACCOUNT = "delete_account", "Delete Account"
    POST_TRANSACTION = "post_transaction", "Post Transaction"
    REVERSE_TRANSACTION = "reverse_transaction", "Reverse Transaction"
    DELETE_TRANSACTION = "delete_transaction", "Delete Transaction"
    EDIT_TRANSACTION = "edit_transaction", "Edit Transaction"
    TRANSFER = "transfer", "Transfer"
    ASSIGN = "assign", "Assign"
    MOVE = "move", "Move"
    RECONCILE = "reconcile", "Reconcile"
    TOGGLE_CLEARED = "toggle_cleared", "Toggle Cleared"
    CONFIGURE_LIMIT = "configure_limit", "Configure Limit"
    GENERATE_STATEMENT = "generate_statement", "Generate Statement"
    MATERIALIZE = "materialize", "Materialize"
    SKIP_OCCURRENCE = "skip_occurrence", "Skip Occurrence"
    CREATE_INSTALLMENT_PLAN = "create_installment_plan", "Create Installment Plan"
    UPDATE_INSTALLMENT_PLAN = "update_installment_plan", "Update Installment Plan"
    CANCEL_INSTALLMENT_PLAN = "cancel_installment_plan", "Cancel Installment Plan"
    PROCESS_INSTALLMENT = "process_installment", "Process Installment"


# Actions whose entity is a single transaction that undo can reverse
UNDOABLE_ACTIONS = frozenset(
    {
        ActionType.POST_TRANSACTION,
        ActionType.TRANSFER,
        ActionType.ASSIGN,
        ActionType.MOVE,
        ActionType.MATERIALIZE,
    }
)
