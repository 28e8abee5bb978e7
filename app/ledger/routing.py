"""
Credit card routing for postings.

A purchase on a card has to do two things at once: show up as spending in
the budget category, and move the same amount into the card's
"CC Payment: <card>" category so the money to pay the bill is set aside.
The card's liability grows through a second leg against Off-budget.

Legs produced for a request of kind ``standard``:

    Purchase (debit category, credit card):
        1. debit category,          credit CC Payment   (standard)
        2. debit Off-budget,        credit card         (card_routing)

    Refund (debit card, credit category):
        1. debit CC Payment,        credit category     (standard)
        2. debit card,              credit Off-budget   (card_routing)

Legs produced for a card payment (debit card, credit asset account) of kind
``standard``, ``transfer`` or ``card_payment``:

        1. debit card,              credit asset        (card_payment)
        2. debit CC Payment,        credit Off-budget   (card_routing)

Reconciliation adjustments (kind ``adjustment``) between a card and Unassigned
keep the card on the primary leg and move the CC Payment category with it:

    Debt grows (debit Unassigned, credit card):
        1. debit Unassigned,        credit card         (adjustment)
        2. debit Off-budget,        credit CC Payment   (card_routing)

    Debt shrinks (debit card, credit Unassigned):
        1. debit card,              credit Unassigned   (adjustment)
        2. debit CC Payment,        credit Off-budget   (card_routing)

Every other request is posted as a single leg unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass

from ledger.choices import AccountKind, AccountType, SystemRole, TransactionKind
from ledger.models import Account

PAYMENT_KINDS = frozenset(
    {TransactionKind.STANDARD, TransactionKind.TRANSFER, TransactionKind.CARD_PAYMENT}
)


@dataclass(frozen=True)
class Leg:
    """One posting of a routed request."""

    debit: Account
    credit: Account
    kind: str


def _is_spending_category(account: Account) -> bool:
    """Categories whose activity a card purchase should show in."""
    return (
        account.type == AccountType.EQUITY
        and account.kind == AccountKind.PLAIN
        and account.system_role != SystemRole.OFF_BUDGET
    )


def _routable_card(account: Account) -> bool:
    return account.kind == AccountKind.CREDIT_CARD and account.payment_category_id is not None


def needs_routing(debit: Account, credit: Account, kind: str) -> bool:
    """Whether the request needs the Off-budget category and a payment category."""
    return len(plan_legs(debit, credit, kind, off_budget=None)) > 1


def plan_legs(
    debit: Account,
    credit: Account,
    kind: str,
    off_budget: Account | None,
) -> list[Leg]:
    """
    Split a posting request into the legs that are actually written.

    Args:
        debit: Requested debit account
        credit: Requested credit account
        kind: Requested TransactionKind
        off_budget: The ledger's Off-budget category (None when only asking
            whether routing applies)

    Returns:
        Legs in posting order; the first leg is the primary posting
    """
    if kind == TransactionKind.STANDARD and _routable_card(credit) and _is_spending_category(debit):
        return [
            Leg(debit, credit.payment_category, TransactionKind.STANDARD),
            Leg(off_budget, credit, TransactionKind.CARD_ROUTING),
        ]

    if kind == TransactionKind.STANDARD and _routable_card(debit) and _is_spending_category(credit):
        return [
            Leg(debit.payment_category, credit, TransactionKind.STANDARD),
            Leg(debit, off_budget, TransactionKind.CARD_ROUTING),
        ]

    if kind == TransactionKind.ADJUSTMENT and _routable_card(credit) and debit.system_role == SystemRole.UNASSIGNED:
        return [
            Leg(debit, credit, TransactionKind.ADJUSTMENT),
            Leg(off_budget, credit.payment_category, TransactionKind.CARD_ROUTING),
        ]

    if kind == TransactionKind.ADJUSTMENT and _routable_card(debit) and credit.system_role == SystemRole.UNASSIGNED:
        return [
            Leg(debit, credit, TransactionKind.ADJUSTMENT),
            Leg(debit.payment_category, off_budget, TransactionKind.CARD_ROUTING),
        ]

    if kind in PAYMENT_KINDS and _routable_card(debit) and credit.type == AccountType.ASSET:
        return [
            Leg(debit, credit, TransactionKind.CARD_PAYMENT),
            Leg(debit.payment_category, off_budget, TransactionKind.CARD_ROUTING),
        ]

    return [Leg(debit, credit, kind)]


def requested_accounts(primary) -> tuple:
    """
    Recover the (debit_id, credit_id) a routed posting was requested with.

    Purchases and refunds store the payment category on the primary leg; the
    card itself only appears on the linked card_routing leg. Payments and
    adjustments keep the requested accounts on the primary leg.
    """
    leg = primary.linked_legs.filter(kind=TransactionKind.CARD_ROUTING).first()
    if leg is None or primary.kind in (TransactionKind.CARD_PAYMENT, TransactionKind.ADJUSTMENT):
        return primary.debit_account_id, primary.credit_account_id
    if leg.debit_account.system_role == SystemRole.OFF_BUDGET:
        # Purchase: category -> CC Payment, Off-budget -> card
        return primary.debit_account_id, leg.credit_account_id
    # Refund: CC Payment -> category, card -> Off-budget
    return leg.debit_account_id, primary.credit_account_id
