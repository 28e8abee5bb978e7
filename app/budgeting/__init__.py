"""
Budgeting app: envelope budgeting on top of the ledger.

This app handles:
- Monthly budget status per category (budgeted, activity, rolling balance)
- Assigning, unassigning and moving money between categories
- Covering overspending and surfacing overspent categories
- Category goals and one-step funding of underfunded goals

Budget assignments are not stored separately: they are ledger transactions
of kind "assignment" from Income to a category.

Usage:
    from budgeting.periods import Period
    from budgeting.services import EnvelopeService

    result = EnvelopeService.assign(budget.id, groceries.id, 40000, Period.parse("2024-03"))
    if result.warning:
        print(f"Over budget by {result.warning.overage}")
"""
