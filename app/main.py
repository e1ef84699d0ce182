"""
Streamlit Frontend for Travel Ledger

The screen the group actually uses during a trip: register members,
record who paid for what, and see who owes whom.

DESIGN PRINCIPLES:
1. One form per action, with a clear success/error notification
2. Invalid input is explained, never silently fixed
3. Destructive actions need explicit confirmation
4. The summary is recomputed from the full history on every view
"""

import asyncio

import streamlit as st

from travel_ledger.audit import create_correlation_id
from travel_ledger.config import get_settings, validate_all_settings
from travel_ledger.engine import UnbalancedLedgerError
from travel_ledger.models.ledger import ExpenseDraft
from travel_ledger.orchestrator import LedgerService, create_app_components
from travel_ledger.presentation import (
    NO_EXPENSES_MESSAGE,
    format_currency,
    render_summary_html,
)
from travel_ledger.services.storage import StorageError


# Page configuration
st.set_page_config(
    page_title="Travel Expense Manager",
    page_icon="✈️",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .summary-box {
        padding: 20px;
        background-color: #f4f6f8;
        border-radius: 10px;
        border-left: 5px solid #004085;
        margin: 10px 0;
    }
    .summary-box .warning {
        color: #856404;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    try:
        service, audit_logger = create_app_components(use_storage=True)
        run_async(service.load())
        return service, audit_logger
    except StorageError as e:
        st.error(f"Could not open the saved ledger, starting empty: {e}")
        return create_app_components(use_storage=False)


def notify(message: str, kind: str = "success"):
    """Show a toast and keep it in the sidebar's recent activity list."""
    icon = "✅" if kind == "success" else "⚠️"
    st.toast(message, icon=icon)

    limit = get_settings().app.max_toasts
    recent = st.session_state.setdefault("notifications", [])
    recent.append(message)
    del recent[:-limit]


def main():
    """Main application entry point."""
    service, _ = get_components()

    st.sidebar.title("✈️ Travel Expense Manager")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["👥 Members", "💸 Add Expense", "📊 Summary", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **How to use:**
        1. Add everyone on the trip
        2. Record each shared expense
        3. Check the summary to settle up
        """
    )

    if st.session_state.get("notifications"):
        st.sidebar.markdown("**Recent activity:**")
        for message in reversed(st.session_state.notifications):
            st.sidebar.caption(message)

    if page == "👥 Members":
        render_members_page(service)
    elif page == "💸 Add Expense":
        render_expense_page(service)
    elif page == "📊 Summary":
        render_summary_page(service)
    elif page == "⚙️ Settings":
        render_settings_page(service)


def render_members_page(service: LedgerService):
    """Render the member registration page."""
    st.title("👥 Members")

    with st.form("add_member", clear_on_submit=True):
        name = st.text_input("New member name", placeholder="e.g., Asha")
        submitted = st.form_submit_button("➕ Add Member", type="primary")

    if submitted:
        try:
            added, message = run_async(
                service.add_member(name, correlation_id=create_correlation_id())
            )
            notify(message, "success" if added else "error")
        except StorageError as e:
            notify(f"⚠ Could not save member: {e}", "error")

    st.markdown("---")
    if service.state.members:
        for member in service.state.members:
            st.markdown(f"- {member}")
    else:
        st.info("No members yet. Add everyone who shares expenses.")


def render_expense_page(service: LedgerService):
    """Render the expense form."""
    st.title("💸 Add Expense")

    members = service.state.members
    if not members:
        st.warning("⚠ Add members first.")
        return

    symbol = service.settings.currency_symbol
    split_payment = st.checkbox(
        "Several people paid",
        help="Enter how much each person paid instead of choosing one payer",
    )

    with st.form("add_expense", clear_on_submit=True):
        col1, col2, col3 = st.columns(3)
        with col1:
            title = st.text_input("Title *", placeholder="e.g., Dinner")
        with col2:
            location = st.text_input("Location *", placeholder="e.g., Goa")
        with col3:
            amount = st.number_input(
                f"Amount ({symbol}) *",
                value=None,
                min_value=0.0,
                step=0.01,
                format="%.2f",
            )

        paid_by = {}
        if split_payment:
            st.markdown("**Paid by**")
            for member in members:
                paid_by[member] = st.number_input(
                    f"Paid by {member}",
                    value=None,
                    min_value=0.0,
                    step=0.01,
                    format="%.2f",
                    key=f"paid_{member}",
                )
        else:
            payer = st.selectbox("Who paid? *", options=[None] + members,
                                 format_func=lambda x: "Who paid?" if x is None else x)

        st.markdown("**Amount owed by each member**")
        distribution = {}
        cols = st.columns(min(len(members), 3))
        for index, member in enumerate(members):
            with cols[index % len(cols)]:
                distribution[member] = st.number_input(
                    f"Owed by {member}",
                    value=None,
                    min_value=0.0,
                    step=0.01,
                    format="%.2f",
                    key=f"owed_{member}",
                )

        submitted = st.form_submit_button("💾 Add Expense", type="primary")

    if not submitted:
        return

    if not split_payment:
        paid_by = {payer: amount} if payer else {}

    draft = ExpenseDraft(
        title=title,
        location=location,
        amount=_raw(amount),
        paid_by={name: _raw(value) for name, value in paid_by.items()},
        distribution={name: _raw(value) for name, value in distribution.items()},
    )

    try:
        expense, result, message = run_async(
            service.record_expense(draft, correlation_id=create_correlation_id())
        )
    except StorageError as e:
        notify(f"⚠ Could not save expense: {e}", "error")
        return

    if expense is None:
        notify(result.first_error or "⚠ Expense not saved", "error")
        st.error(message)
    else:
        notify(f"✅ Expense added: {expense.title}")
        if result.warnings:
            st.info(message)


def _raw(value):
    """Number inputs give floats; hand the validator their text form."""
    return None if value is None else str(value)


def render_summary_page(service: LedgerService):
    """Render balances and settlements."""
    st.title("📊 Summary")

    try:
        summary = run_async(service.get_summary(correlation_id=create_correlation_id()))
    except UnbalancedLedgerError as e:
        st.error(f"⚠ {e}")
        return

    if not summary.has_expenses:
        st.info(NO_EXPENSES_MESSAGE)
        return

    symbol = service.settings.currency_symbol
    col1, col2 = st.columns(2)
    col1.metric("Total Expense", format_currency(summary.total_expense, symbol))
    col2.metric("Expenses Recorded", summary.expense_count)

    st.markdown(
        f'<div class="summary-box">{render_summary_html(summary, symbol)}</div>',
        unsafe_allow_html=True,
    )

    with st.expander("🧾 Expense History"):
        for expense in reversed(service.state.expenses):
            st.markdown(
                f"**{expense.title}** @ {expense.location}: "
                f"{format_currency(expense.amount, symbol)} "
                f"({expense.timestamp.strftime('%d %b %Y %H:%M')})"
            )


def render_settings_page(service: LedgerService):
    """Render the settings page."""
    st.title("⚙️ Settings")

    status = validate_all_settings()
    for name, key in [("Ledger settings", "ledger"), ("App settings", "app")]:
        if status.get(key, False):
            st.success(f"✅ {name} - OK")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    settings = service.settings
    st.markdown("### Configuration")
    st.markdown(
        f"- **Ledger file:** `{settings.storage_path}`\n"
        f"- **Audit log:** `{settings.audit_log_path}`\n"
        f"- **Currency:** {settings.currency_symbol}\n"
        f"- **Strict zero-sum check:** {'on' if settings.strict_zero_sum else 'off'}"
    )
    st.markdown(
        "To change these, create a `.env` file. "
        "See `.env.example` for the available variables."
    )

    st.markdown("---")
    st.markdown("### 🗑️ Delete All Data")
    st.warning("⚠️ This will delete all members and expenses permanently.")
    confirmed = st.checkbox("I understand this cannot be undone")
    if st.button("Delete all history", disabled=not confirmed):
        try:
            message = run_async(
                service.delete_history(correlation_id=create_correlation_id())
            )
            notify(message)
        except StorageError as e:
            notify(f"⚠ Could not delete history: {e}", "error")


if __name__ == "__main__":
    main()
