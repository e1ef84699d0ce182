"""Tests for summary formatting."""

from decimal import Decimal

import pytest

from conftest import make_expense
from travel_ledger.engine import summarize
from travel_ledger.models.ledger import LedgerSummary, Settlement, SettlementPlan
from travel_ledger.presentation import (
    NO_EXPENSES_MESSAGE,
    SETTLED_MESSAGE,
    balance_line,
    format_currency,
    render_summary_html,
    settlement_statement,
    settlement_statements,
)


class TestFormatting:

    def test_format_currency(self):
        assert format_currency(Decimal("1234.5")) == "₹1,234.50"
        assert format_currency(Decimal("10"), "$") == "$10.00"

    def test_format_currency_rounds_for_display_only(self):
        assert format_currency(Decimal("33.335")) == "₹33.34"

    def test_settlement_statement(self):
        transfer = Settlement(from_member="Ben", to_member="Asha", amount=Decimal("10"))
        assert settlement_statement(transfer) == "Ben ➡️ ₹10.00 ➡️ Asha"

    def test_settled_plan_has_one_line(self):
        assert settlement_statements(SettlementPlan.settled()) == [SETTLED_MESSAGE]

    def test_balance_line(self):
        summary = summarize(
            [make_expense(30, {"A": 30}, {"A": 10, "B": 20})], ["A", "B"]
        )
        assert balance_line(summary.balances[1]) == (
            "B: Paid ₹0.00, Owes ₹20.00, Net: ₹-20.00"
        )


class TestRenderSummaryHtml:

    def test_no_expenses(self):
        assert NO_EXPENSES_MESSAGE in render_summary_html(LedgerSummary())

    def test_sections(self):
        summary = summarize(
            [make_expense(30, {"A": 30}, {"A": 10, "B": 10, "C": 10})],
            ["A", "B", "C"],
        )

        html = render_summary_html(summary)

        assert "Total Expense: ₹30.00" in html
        assert "B ➡️ ₹10.00 ➡️ A" in html
        assert "warning" not in html

    def test_member_names_are_escaped(self):
        """Test names are treated as text, never markup."""
        summary = summarize(
            [make_expense(10, {"<b>Eve</b>": 10}, {"Bob": 10})],
            ["<b>Eve</b>", "Bob"],
        )

        html = render_summary_html(summary)

        assert "<b>Eve</b>" not in html
        assert "&lt;b&gt;Eve&lt;/b&gt;" in html

    def test_residual_warning(self):
        summary = summarize(
            [make_expense(30, {"A": 30}, {"B": 20})],
            ["A", "B"],
        )

        html = render_summary_html(summary)

        assert "could not be matched" in html
        assert "₹10.00" in html

    def test_unmatched_balance_is_not_called_settled(self):
        """Test a plan with nothing to transfer but money left over."""
        summary = summarize([make_expense(10, {"A": 10}, {})], ["A"])

        html = render_summary_html(summary)

        assert SETTLED_MESSAGE not in html
        assert "could not be matched" in html
        assert settlement_statements(summary.plan) == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
