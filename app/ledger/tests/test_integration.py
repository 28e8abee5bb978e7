"""
End-to-end ledger scenarios.

These run a month of activity through the services and check the
properties that must hold whatever happened in between: the ledger stays
balanced, balances match their history, and corrections net to zero.
"""

from datetime import date

from ledger.balances import BalanceService
from ledger.choices import TransactionStatus
from ledger.models import Transaction
from ledger.services import LedgerService


class TestMonthOfActivity:
    """A paycheck, bank spending, card spending, a card payment and corrections."""

    def test_ledger_balanced_and_history_consistent(
        self, budget, income, checking, savings, groceries, rent, card, off_budget
    ):
        LedgerService.post(budget.id, checking.id, income.id, 300000, date(2024, 3, 1), "Paycheck")
        LedgerService.post(budget.id, rent.id, checking.id, 150000, date(2024, 3, 2), "Rent")
        purchase = LedgerService.post(budget.id, groceries.id, card.id, 8000, date(2024, 3, 3), "Market")
        LedgerService.post(budget.id, card.id, groceries.id, 1000, date(2024, 3, 4), "Refund")
        LedgerService.transfer(budget.id, checking.id, savings.id, 20000, date(2024, 3, 5))
        LedgerService.transfer(budget.id, checking.id, card.id, 7000, date(2024, 3, 20))
        typo = LedgerService.post(budget.id, groceries.id, checking.id, 99999, date(2024, 3, 21))
        LedgerService.edit(typo.id, amount=999)
        LedgerService.soft_delete(purchase.id)

        assert BalanceService.ledger_totals(budget.id).is_balanced
        for account in (checking, savings, groceries, rent, card, off_budget, card.payment_category):
            history = BalanceService.history(account.id, limit=500)
            latest = history[0].running_balance if history else 0
            assert latest == BalanceService.balance(account.id)

        assert checking.get_balance() == 300000 - 150000 - 20000 - 7000 - 999
        assert savings.get_balance() == 20000
        # Purchase deleted, refund and payment remain
        assert card.get_balance() == -1000 - 7000
        assert groceries.get_balance() == 1000 - 999

    def test_every_reversal_nets_to_zero(self, budget, checking, groceries, card, income):
        rows = [
            LedgerService.post(budget.id, checking.id, income.id, 5000, date(2024, 3, 1)),
            LedgerService.post(budget.id, groceries.id, checking.id, 1200, date(2024, 3, 2)),
            LedgerService.post(budget.id, groceries.id, card.id, 3400, date(2024, 3, 3)),
        ]
        balances_before = {a.id: a.get_balance() for a in (checking, groceries, card, income)}
        extra = LedgerService.post(budget.id, groceries.id, card.id, 777, date(2024, 3, 4))

        LedgerService.reverse(extra.id)

        assert {a.id: a.get_balance() for a in (checking, groceries, card, income)} == balances_before
        assert all(
            Transaction.objects.get(id=row.id).status == TransactionStatus.ACTIVE for row in rows
        )
        assert BalanceService.ledger_totals(budget.id).is_balanced
