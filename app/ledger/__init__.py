"""
Ledger app: the double-entry core of an envelope budget.

This app handles:
- Ledgers (budgets) and their system categories
- Accounts, budget categories, category groups and credit card pairing
- Transactions: posting, routing, reversal, soft delete, edit and undo
- Balances and running-balance history
- The action history audit trail and its retention sweep

Related apps:
    - budgeting: Envelope status, assignments and goals
    - credit_cards: Limits, statements, interest and payments
    - reconciliation: Statement reconciliation and cleared flags
    - recurring: Recurring transaction templates

Usage:
    from ledger.services import AccountService, LedgerService

    budget = AccountService.create_ledger(user, "Household")
    LedgerService.post(budget.id, groceries.id, checking.id, 4250, date.today())
"""
