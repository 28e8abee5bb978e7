"""
Credit cards app.

Credit limits, billing statements, interest accrual and scheduled payments
for credit card accounts. Card postings themselves are routed by the ledger
(see ledger.routing); this app only reads them and posts interest and
payments through LedgerService.
"""
