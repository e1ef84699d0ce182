"""
Settlement Engine

Pure functions from (expense history, members) to balances and transfers.
Nothing in this package reads files, the environment or the clock.
"""

from decimal import Decimal
from typing import Iterable, Sequence

from travel_ledger.engine.aggregator import (
    aggregate_balances,
    ledger_imbalance,
    total_paid,
)
from travel_ledger.engine.solver import (
    BALANCE_EPSILON,
    SETTLE_TOLERANCE,
    TRANSFER_FLOOR,
    UnbalancedLedgerError,
    solve_settlements,
)
from travel_ledger.models.ledger import Expense, LedgerSummary


def summarize(
    expenses: Sequence[Expense],
    members: Iterable[str] = (),
    *,
    epsilon: Decimal = BALANCE_EPSILON,
    transfer_floor: Decimal = TRANSFER_FLOOR,
    settle_tolerance: Decimal = SETTLE_TOLERANCE,
    strict: bool = False,
) -> LedgerSummary:
    """Aggregate the history and settle it in one call."""
    balances = aggregate_balances(expenses, members)
    plan = solve_settlements(
        balances,
        epsilon=epsilon,
        transfer_floor=transfer_floor,
        settle_tolerance=settle_tolerance,
        strict=strict,
    )
    return LedgerSummary(
        total_expense=total_paid(balances),
        expense_count=len(expenses),
        balances=balances,
        plan=plan,
    )


__all__ = [
    "BALANCE_EPSILON",
    "SETTLE_TOLERANCE",
    "TRANSFER_FLOOR",
    "UnbalancedLedgerError",
    "aggregate_balances",
    "ledger_imbalance",
    "solve_settlements",
    "summarize",
    "total_paid",
]
