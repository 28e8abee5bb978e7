"""
Result types for reconciliation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ledger.models import Transaction
    from reconciliation.models import Reconciliation


@dataclass(frozen=True)
class ReconciliationResult:
    reconciliation: Reconciliation
    difference: int
    adjustment_transaction: Transaction | None = None

    @property
    def balanced(self) -> bool:
        return self.difference == 0
