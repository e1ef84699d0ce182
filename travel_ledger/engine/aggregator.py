"""
Ledger Aggregator

Reduces an expense history to one NetBalance per member.

Balances are recomputed from the full history on every call. There is
no running total to keep in sync, so the result is correct after any
change to the history, including a full wipe.
"""

from decimal import Decimal
from typing import Iterable

from travel_ledger.models.ledger import Expense, NetBalance


ZERO = Decimal("0")


def aggregate_balances(
    expenses: Iterable[Expense],
    members: Iterable[str] = (),
) -> list[NetBalance]:
    """
    Compute paid/owed/balance totals per member.

    Every registered member appears in the result, as does anyone named
    in a payer or share mapping of the history, even if they are no
    longer registered. Entries come out in first-seen order: registered
    members first, then payers, then debtors. The order is stable but
    the solver does not rely on it.

    Args:
        expenses: The expense history, oldest first
        members: Registered member names in registration order

    Returns:
        One NetBalance per member
    """
    paid: dict[str, Decimal] = {}
    owed: dict[str, Decimal] = {}

    for expense in expenses:
        for name, value in expense.paid_by.items():
            paid[name] = paid.get(name, ZERO) + value
        for name, value in expense.distribution.items():
            owed[name] = owed.get(name, ZERO) + value

    everyone = dict.fromkeys(members)
    everyone.update(dict.fromkeys(paid))
    everyone.update(dict.fromkeys(owed))

    return [
        NetBalance(
            member=name,
            paid=paid.get(name, ZERO),
            owed=owed.get(name, ZERO),
        )
        for name in everyone
    ]


def ledger_imbalance(balances: Iterable[NetBalance]) -> Decimal:
    """
    Sum of all balances.

    Zero (within tolerance) whenever every expense's payer total and
    share total both match its amount.
    """
    return sum((entry.balance for entry in balances), ZERO)


def total_paid(balances: Iterable[NetBalance]) -> Decimal:
    """Total money spent by the group."""
    return sum((entry.paid for entry in balances), ZERO)
