"""
Presentation Helpers

Formatting for the summary view. This is the only place amounts are
rounded (to two decimals, for display), and the only place user-supplied
text is escaped before it ends up in HTML.
"""

from decimal import Decimal
from html import escape

from travel_ledger.models.ledger import (
    LedgerSummary,
    NetBalance,
    Settlement,
    SettlementPlan,
)


SETTLED_MESSAGE = "All settled up ✅"
NO_EXPENSES_MESSAGE = "🗒️ No expenses yet. Add one above!"


def format_currency(amount: Decimal, symbol: str = "₹") -> str:
    """Format an amount for display, e.g. ₹1,234.50."""
    return f"{symbol}{amount:,.2f}"


def settlement_statement(settlement: Settlement, symbol: str = "₹") -> str:
    """One transfer as text: `Ben ➡️ ₹10.00 ➡️ Asha`."""
    return (
        f"{settlement.from_member} ➡️ "
        f"{format_currency(settlement.amount, symbol)} ➡️ "
        f"{settlement.to_member}"
    )


def settlement_statements(plan: SettlementPlan, symbol: str = "₹") -> list[str]:
    """All transfers as text, or the settled message for the settled sentinel."""
    if plan.fully_settled:
        return [SETTLED_MESSAGE]
    return [settlement_statement(t, symbol) for t in plan.transfers]


def balance_line(entry: NetBalance, symbol: str = "₹") -> str:
    return (
        f"{entry.member}: Paid {format_currency(entry.paid, symbol)}, "
        f"Owes {format_currency(entry.owed, symbol)}, "
        f"Net: {format_currency(entry.balance, symbol)}"
    )


def render_summary_html(summary: LedgerSummary, symbol: str = "₹") -> str:
    """
    Render the summary block.

    Member names are opaque user input; everything that came from the
    user is escaped.
    """
    if not summary.has_expenses:
        return f"<p>{escape(NO_EXPENSES_MESSAGE)}</p>"

    contributions = "".join(
        f"<li>{escape(balance_line(entry, symbol))}</li>"
        for entry in summary.balances
    )
    settlements = "".join(
        f"<li>{escape(line)}</li>"
        for line in settlement_statements(summary.plan, symbol)
    )

    warning = ""
    if summary.plan.residual:
        warning = (
            "<p class=\"warning\">⚠ Some expenses don't add up; "
            f"{escape(format_currency(summary.plan.residual, symbol))} "
            "could not be matched.</p>"
        )

    return (
        f"<h3>💰 Total Expense: {escape(format_currency(summary.total_expense, symbol))}</h3>"
        "<h3>📊 Contributions</h3>"
        f"<ul>{contributions}</ul>"
        "<h3>🔁 Settlements</h3>"
        f"<ul>{settlements}</ul>"
        f"{warning}"
    )
