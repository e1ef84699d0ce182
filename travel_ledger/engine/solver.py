"""
Settlement Solver

Turns net balances into an ordered list of debtor -> creditor transfers.

ALGORITHM: greedy two-pointer matching.
- Largest debt pays the largest credit first.
- Each step settles at least one side completely, so the plan has at
  most (debtors + creditors - 1) transfers.
- This is not the optimal plan for every group, but it is deterministic:
  equal balances keep the order they came in.

The solver works on its own copies of the balances and returns new
objects. It never touches its input and keeps no state between calls.
"""

from decimal import Decimal
from typing import Iterable

from travel_ledger.engine.aggregator import ledger_imbalance
from travel_ledger.models.ledger import NetBalance, Settlement, SettlementPlan


# Balances within this of zero are already settled
BALANCE_EPSILON = Decimal("0.005")

# Transfers at or below this are too small to write down
TRANSFER_FLOOR = Decimal("0.009")

# A member whose remaining balance is below this has been paid off
SETTLE_TOLERANCE = Decimal("0.01")

ZERO = Decimal("0")


class UnbalancedLedgerError(ValueError):
    """Raised in strict mode when balances do not sum to zero."""

    def __init__(self, imbalance: Decimal):
        self.imbalance = imbalance
        super().__init__(
            f"Balances do not sum to zero (off by {imbalance}); "
            "an expense's payer or share total does not match its amount"
        )


def solve_settlements(
    balances: Iterable[NetBalance],
    *,
    epsilon: Decimal = BALANCE_EPSILON,
    transfer_floor: Decimal = TRANSFER_FLOOR,
    settle_tolerance: Decimal = SETTLE_TOLERANCE,
    strict: bool = False,
) -> SettlementPlan:
    """
    Produce the transfers that bring every balance to zero.

    Args:
        balances: Net balances, typically from aggregate_balances()
        epsilon: Balances within this of zero are left out
        transfer_floor: Matching stops once the next transfer would be
            this small or smaller
        settle_tolerance: A debtor or creditor is done once their
            remaining balance is below this
        strict: Raise UnbalancedLedgerError instead of returning a
            partial plan when the balances do not sum to zero

    Returns:
        A SettlementPlan. If every balance is already within tolerance
        of zero this is the fully-settled sentinel. If the input did not
        sum to zero, the amount left unmatched is reported in `residual`
        and the plan is never marked fully settled.
    """
    balances = list(balances)

    if strict:
        imbalance = ledger_imbalance(balances)
        if abs(imbalance) > settle_tolerance:
            raise UnbalancedLedgerError(imbalance)

    # Working copies: [name, remaining balance]
    debtors = [[b.member, b.balance] for b in balances if b.balance < -epsilon]
    creditors = [[b.member, b.balance] for b in balances if b.balance > epsilon]

    # sort() is stable, so ties keep their aggregation order
    debtors.sort(key=lambda entry: entry[1])
    creditors.sort(key=lambda entry: entry[1], reverse=True)

    transfers: list[Settlement] = []
    i = j = 0

    while i < len(debtors) and j < len(creditors):
        debtor = debtors[i]
        creditor = creditors[j]

        amount = min(creditor[1], -debtor[1])
        if amount <= transfer_floor:
            break

        transfers.append(Settlement(
            from_member=debtor[0],
            to_member=creditor[0],
            amount=amount,
        ))

        creditor[1] -= amount
        debtor[1] += amount

        if abs(debtor[1]) < settle_tolerance:
            i += 1
        if abs(creditor[1]) < settle_tolerance:
            j += 1

    residual = (
        _unmatched(debtors[i:], settle_tolerance)
        + _unmatched(creditors[j:], settle_tolerance)
    )

    if not transfers:
        if residual:
            return SettlementPlan(fully_settled=False, residual=residual)
        return SettlementPlan.settled()

    return SettlementPlan(transfers=transfers, residual=residual)


def _unmatched(entries: list[list], tolerance: Decimal) -> Decimal:
    """Absolute balance still outstanding on one side after matching."""
    return sum(
        (abs(remaining) for _, remaining in entries if abs(remaining) >= tolerance),
        ZERO,
    )
