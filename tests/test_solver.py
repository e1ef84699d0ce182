"""
Tests for the settlement solver.

Covers the worked scenarios, the tolerance edges, and the properties
every plan must have: no input mutation, determinism, a bounded number
of transfers, and balances that reach zero once the plan is applied.
"""

from decimal import Decimal

import pytest

from conftest import make_expense
from travel_ledger.engine import (
    UnbalancedLedgerError,
    aggregate_balances,
    solve_settlements,
    summarize,
)
from travel_ledger.models.ledger import NetBalance


def balances_of(**values):
    """NetBalance list from member=balance keyword arguments, in order."""
    result = []
    for name, value in values.items():
        value = Decimal(str(value))
        if value >= 0:
            result.append(NetBalance(member=name, paid=value))
        else:
            result.append(NetBalance(member=name, owed=-value))
    return result


def as_tuples(plan):
    return [(t.from_member, t.to_member, t.amount) for t in plan.transfers]


def apply(balances, plan):
    """Remaining balance per member after carrying out every transfer."""
    remaining = {entry.member: entry.balance for entry in balances}
    for transfer in plan.transfers:
        remaining[transfer.from_member] += transfer.amount
        remaining[transfer.to_member] -= transfer.amount
    return remaining


class TestSettlementScenarios:
    """End-to-end scenarios from expense history to transfers."""

    def test_one_payer_two_debtors(self):
        """Test A pays 30 split evenly: B and C each pay A 10."""
        expenses = [make_expense(30, {"A": 30}, {"A": 10, "B": 10, "C": 10})]

        summary = summarize(expenses, ["A", "B", "C"])

        assert as_tuples(summary.plan) == [
            ("B", "A", Decimal("10")),
            ("C", "A", Decimal("10")),
        ]
        assert summary.plan.fully_settled is False
        assert summary.total_expense == Decimal("30")

    def test_multiple_payers(self):
        """Test the largest debt goes to the largest credit first."""
        expenses = [make_expense(45, {"A": 25, "B": 20}, {"A": 15, "B": 5, "C": 25})]

        plan = summarize(expenses, ["A", "B", "C"]).plan

        assert as_tuples(plan) == [
            ("C", "B", Decimal("15")),
            ("C", "A", Decimal("10")),
        ]

    def test_cancelling_expenses_are_settled(self):
        """Test two expenses that cancel out leave nothing to pay."""
        expenses = [
            make_expense(10, {"A": 10}, {"B": 10}),
            make_expense(10, {"B": 10}, {"A": 10}),
        ]

        plan = summarize(expenses, ["A", "B"]).plan

        assert plan.fully_settled is True
        assert plan.transfers == []

    def test_empty_history(self):
        """Test no expenses: zero balance per member and the sentinel."""
        summary = summarize([], ["A", "B", "C"])

        assert len(summary.balances) == 3
        assert all(entry.balance == 0 for entry in summary.balances)
        assert summary.plan.fully_settled is True
        assert summary.has_expenses is False

    def test_multiple_payers_documented_case(self):
        """Test A and B pay 100 between them, C owes a quarter."""
        expenses = [
            make_expense(100, {"A": 60, "B": 40}, {"A": 50, "B": 25, "C": 25}),
        ]

        summary = summarize(expenses, ["A", "B", "C"])

        balances = {entry.member: entry.balance for entry in summary.balances}
        assert balances == {"A": Decimal("10"), "B": Decimal("15"), "C": Decimal("-25")}
        assert as_tuples(summary.plan) == [
            ("C", "B", Decimal("15")),
            ("C", "A", Decimal("10")),
        ]

    def test_fifty_fifty_cancel(self):
        """Test each member covering the other's 50 leaves nothing to pay."""
        expenses = [
            make_expense(50, {"A": 50}, {"B": 50}),
            make_expense(50, {"B": 50}, {"A": 50}),
        ]

        summary = summarize(expenses, ["A", "B"])

        assert all(entry.balance == 0 for entry in summary.balances)
        assert summary.plan.fully_settled is True
        assert summary.plan.transfers == []

    def test_uneven_thirds(self):
        """Test shares that don't divide evenly still settle exactly."""
        expenses = [
            make_expense(100, {"A": 100}, {"A": "33.33", "B": "33.33", "C": "33.34"}),
        ]
        balances = aggregate_balances(expenses, ["A", "B", "C"])

        plan = solve_settlements(balances)

        assert as_tuples(plan) == [
            ("C", "A", Decimal("33.34")),
            ("B", "A", Decimal("33.33")),
        ]
        assert all(value == 0 for value in apply(balances, plan).values())


class TestTolerances:
    """Tests for epsilon, transfer floor and settle tolerance."""

    def test_balances_within_epsilon_are_ignored(self):
        """Test tiny balances count as already settled."""
        plan = solve_settlements(balances_of(A="0.004", B="-0.004"))

        assert plan.fully_settled is True

    def test_transfer_at_floor_is_not_emitted(self):
        """Test a transfer of exactly the floor amount is dropped."""
        plan = solve_settlements(balances_of(A="0.009", B="-0.009"))

        assert plan.transfers == []
        assert plan.fully_settled is True
        assert plan.residual == Decimal("0")

    def test_transfer_just_above_floor_is_emitted(self):
        """Test the smallest transfer that still gets written down."""
        plan = solve_settlements(balances_of(A="0.0095", B="-0.0095"))

        assert as_tuples(plan) == [("B", "A", Decimal("0.0095"))]

    def test_no_transfer_below_floor(self):
        """Test every emitted transfer is above the floor."""
        plan = solve_settlements(
            balances_of(A="10.004", B="-5", C="-5.004")
        )

        assert all(t.amount > Decimal("0.009") for t in plan.transfers)

    def test_custom_tolerances(self):
        """Test tolerances can be widened."""
        plan = solve_settlements(
            balances_of(A="0.5", B="-0.5"),
            epsilon=Decimal("1"),
        )

        assert plan.fully_settled is True


class TestSolverProperties:
    """Properties every plan must satisfy."""

    def test_ties_keep_input_order(self):
        """Test equal creditors are paid in the order they came in."""
        plan = solve_settlements(balances_of(A=10, B=10, C=-20))

        assert as_tuples(plan) == [
            ("C", "A", Decimal("10")),
            ("C", "B", Decimal("10")),
        ]

    def test_input_is_not_modified(self):
        """Test the solver works on its own copies."""
        balances = balances_of(A=20, B=-10, C=-10)
        before = [entry.model_dump() for entry in balances]

        solve_settlements(balances)

        assert [entry.model_dump() for entry in balances] == before

    def test_repeated_calls_give_same_plan(self):
        """Test the solver keeps no state between calls."""
        balances = balances_of(A=25, B=5, C=-12, D=-18)

        assert solve_settlements(balances) == solve_settlements(balances)

    def test_transfer_count_is_bounded(self):
        """Test at most debtors + creditors - 1 transfers."""
        balances = balances_of(A=40, B=25, C=5, D=-30, E=-22, F=-18)

        plan = solve_settlements(balances)

        assert 0 < len(plan.transfers) <= 5

    def test_applying_plan_zeroes_every_balance(self):
        """Test the plan leaves everyone within tolerance of zero."""
        balances = balances_of(A=40, B=25, C=5, D=-30, E=-22, F=-18)

        remaining = apply(balances, solve_settlements(balances))

        assert all(abs(value) < Decimal("0.01") for value in remaining.values())

    def test_transfers_go_from_debtor_to_creditor(self):
        """Test nobody pays someone who is owed nothing."""
        balances = balances_of(A=40, B=25, C=5, D=-30, E=-22, F=-18)

        plan = solve_settlements(balances)

        assert {t.from_member for t in plan.transfers} <= {"D", "E", "F"}
        assert {t.to_member for t in plan.transfers} <= {"A", "B", "C"}


class TestUnbalancedLedger:
    """Balances that don't sum to zero."""

    def test_partial_plan_reports_residual(self):
        """Test the default fallback: settle what matches, report the rest."""
        plan = solve_settlements(balances_of(A=10, B=-5))

        assert as_tuples(plan) == [("B", "A", Decimal("5"))]
        assert plan.residual == Decimal("5")

    def test_lone_creditor_reports_residual(self):
        """Test nothing to match leaves the whole credit unmatched."""
        plan = solve_settlements(balances_of(A=10))

        assert plan.transfers == []
        assert plan.fully_settled is False
        assert plan.residual == Decimal("10")

    def test_strict_mode_raises(self):
        """Test strict mode refuses to settle."""
        with pytest.raises(UnbalancedLedgerError) as exc_info:
            solve_settlements(balances_of(A=10, B=-5), strict=True)

        assert exc_info.value.imbalance == Decimal("5")

    def test_strict_mode_accepts_balanced_input(self):
        """Test strict mode is silent when everything adds up."""
        plan = solve_settlements(balances_of(A=20, B=-10, C=-10), strict=True)

        assert len(plan.transfers) == 2
        assert plan.residual == Decimal("0")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
