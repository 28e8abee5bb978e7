"""
Recurring app: transaction templates posted on a schedule.

A RecurringTransaction is a template (rent, salary, subscriptions) with a
frequency and a next_date. Materializing it posts one ledger transaction,
records a RecurringOccurrence for (template, due_date) and moves next_date
forward one step. The hourly Celery sweep materializes every due
auto_create template, catching up on missed occurrences.

Usage:
    from recurring.services import RecurringService

    rent = RecurringService.create_template(
        budget.id, "Rent", 150000, Frequency.MONTHLY, date(2024, 1, 31),
        account_id=checking.id, transaction_type=RecurringTransactionType.OUTFLOW,
        category_id=housing.id,
    )
    RecurringService.materialize(rent.id)
"""
