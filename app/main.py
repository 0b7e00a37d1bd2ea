"""
Streamlit Frontend for Household Finance

The screen household members look at: this month's dashboard, monthly
reports, and simple forms to record expenses and settlements.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Every number comes from the aggregation engine, never from the page
3. Clear error messages in simple language
4. Nothing is written without an explicit "Save" action
"""

import asyncio
from datetime import date
from decimal import Decimal

import streamlit as st

from household_finance.audit import create_correlation_id
from household_finance.models.ledger import Expense, Settlement
from household_finance.orchestrator import (
    DashboardComposer,
    LedgerWriteFlow,
    ReportComposer,
    SettlementRejectedError,
    create_app_components,
)
from household_finance.services.storage import StorageError


# Page configuration
st.set_page_config(
    page_title="Household Finance",
    page_icon="🏠",
    layout="wide",
    initial_sidebar_state="expanded",
)

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


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
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return create_app_components(use_storage=False)


def money(amount) -> str:
    if amount is None:
        return "Varies"
    return f"{amount:,.2f}"


def main():
    """Main application entry point."""
    dashboard, reports, write_flow, _ = get_components()

    # Sidebar navigation
    st.sidebar.title("🏠 Household Finance")
    st.sidebar.markdown("---")

    household_id = st.sidebar.number_input("Household ID", min_value=1, value=1, step=1)
    user_id = st.sidebar.number_input("Your user ID", min_value=1, value=1, step=1)

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "📈 Reports", "➕ Add Entry", "⚙️ Settings"],
        index=0,
    )

    # Route to appropriate page
    try:
        if page == "📊 Dashboard":
            render_dashboard_page(dashboard, int(household_id), int(user_id))
        elif page == "📈 Reports":
            render_reports_page(reports, int(household_id))
        elif page == "➕ Add Entry":
            render_entry_page(write_flow, int(household_id), int(user_id))
        elif page == "⚙️ Settings":
            render_settings_page()
    except StorageError as e:
        st.error(f"❌ Could not load your household data: {e}")


def render_dashboard_page(dashboard: DashboardComposer, household_id: int, user_id: int):
    """Render this month's dashboard."""
    st.title("📊 Dashboard")

    today = date.today()
    col1, col2 = st.columns(2)
    with col1:
        month = st.selectbox(
            "Month",
            options=list(range(1, 13)),
            index=today.month - 1,
            format_func=lambda m: MONTH_NAMES[m - 1],
        )
    with col2:
        year = st.number_input("Year", min_value=1900, max_value=9999, value=today.year)

    result = run_async(dashboard.compute_dashboard(
        household_id=household_id,
        user_id=user_id,
        month=month,
        year=int(year),
        correlation_id=create_correlation_id(),
    ))

    col1, col2, col3 = st.columns(3)
    col1.metric("Income", money(result.total_income))
    col2.metric("Expenses", money(result.total_expenses))
    col3.metric("Net", money(result.net_income))

    balance = result.settlement_balance
    st.info(f"🤝 {balance.status.value} ({money(balance.net_balance)})")

    st.markdown("### Budgets")
    if not result.budgets:
        st.caption("No budgets set for this month.")
    for budget in result.budgets:
        label = f"{budget.category_name}: {money(budget.spent_amount)} of {money(budget.budget_amount)}"
        if budget.is_over_budget:
            label += " ⚠️ over budget"
        st.progress(min(float(budget.percent_used) / 100, 1.0), text=label)

    st.markdown("### Upcoming Bills")
    if not result.upcoming_bills:
        st.caption("Nothing due in the next few weeks.")
    for bill in result.upcoming_bills:
        flag = "🔔 " if bill.needs_reminder else ""
        st.write(
            f"{flag}**{bill.description}** ({bill.category_name}): "
            f"{money(bill.amount)} due {bill.due_date:%d %b}, in {bill.days_until_due} days"
        )

    col1, col2 = st.columns(2)
    with col1:
        st.markdown("### Debts")
        st.write(f"Total remaining: {money(result.debts.total_debt)} ({result.debts.percent_paid}% paid)")
        for debt in result.debts.debts:
            st.write(f"- {debt.name}: {money(debt.current_balance)}")
    with col2:
        st.markdown("### Savings")
        st.write(f"Total saved: {money(result.savings.total_saved)} ({result.savings.percent_complete}%)")
        for goal in result.savings.goals:
            st.progress(
                min(max(float(goal.percent_complete) / 100, 0.0), 1.0),
                text=f"{goal.name}: {money(goal.current_amount)} of {money(goal.target_amount)}",
            )

    st.markdown("### Recent Expenses")
    st.dataframe(
        [
            {
                "Date": e.expense_date,
                "Description": e.description,
                "Category": e.category_name,
                "Paid by": e.paid_by_name or "",
                "Amount": float(e.amount),
            }
            for e in result.recent_expenses
        ],
        use_container_width=True,
    )


def render_reports_page(reports: ReportComposer, household_id: int):
    """Render the monthly summary and month comparison."""
    st.title("📈 Reports")

    today = date.today()
    col1, col2 = st.columns(2)
    with col1:
        month = st.selectbox(
            "Month",
            options=list(range(1, 13)),
            index=today.month - 1,
            format_func=lambda m: MONTH_NAMES[m - 1],
            key="report_month",
        )
    with col2:
        year = int(st.number_input("Year", min_value=1900, max_value=9999, value=today.year, key="report_year"))

    summary = run_async(reports.compute_monthly_summary(household_id, month, year))

    st.markdown(f"### {MONTH_NAMES[month - 1]} {year}")
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Income", money(summary.total_income))
    col2.metric("Expenses", money(summary.total_expenses))
    col3.metric("Net", money(summary.net_income))
    col4.metric("Transactions", summary.transaction_count)

    st.markdown("#### Spending by Category")
    st.dataframe(
        [
            {
                "Category": c.category_name,
                "Total": float(c.total_amount),
                "Count": c.transaction_count,
                "Average": float(c.average_amount),
            }
            for c in summary.expenses_by_category
        ],
        use_container_width=True,
    )

    st.markdown("#### Budget vs Actual")
    st.dataframe(
        [
            {
                "Budget": b.category_name,
                "Amount": float(b.budget_amount),
                "Spent": float(b.spent_amount),
                "Remaining": float(b.remaining_amount),
                "% Used": float(b.percent_used),
            }
            for b in summary.budget_comparison
        ],
        use_container_width=True,
    )

    st.markdown("---")
    st.markdown("### Compare with another month")
    col1, col2 = st.columns(2)
    with col1:
        base_month = st.selectbox(
            "Compare against",
            options=list(range(1, 13)),
            index=(month - 2) % 12,
            format_func=lambda m: MONTH_NAMES[m - 1],
        )
    with col2:
        base_year = int(st.number_input(
            "Year of that month",
            min_value=1900,
            max_value=9999,
            value=year if base_month < month else year - 1,
        ))

    result = run_async(reports.compute_month_comparison(
        household_id, base_month, base_year, month, year
    ))
    comparison = result.comparison
    col1, col2, col3 = st.columns(3)
    col1.metric("Income change", money(comparison.income_difference), f"{comparison.income_change_percent}%")
    col2.metric(
        "Expense change",
        money(comparison.expense_difference),
        f"{comparison.expense_change_percent}%",
        delta_color="inverse",
    )
    col3.metric("Trend", comparison.trend.value)


def render_entry_page(write_flow: LedgerWriteFlow, household_id: int, user_id: int):
    """Render forms for recording expenses and settlements."""
    st.title("➕ Add Entry")

    st.markdown("### Expense")
    with st.form("expense_form", clear_on_submit=True):
        amount = st.number_input("Amount", min_value=0.0, step=1.0, format="%.2f")
        expense_date = st.date_input("Date", value=date.today())
        category_id = st.number_input("Category ID", min_value=1, value=1, step=1)
        description = st.text_input("Description")
        if st.form_submit_button("💾 Save Expense", type="primary"):
            expense = run_async(write_flow.add_record(household_id, Expense(
                id=0,
                household_id=household_id,
                category_id=int(category_id),
                amount=Decimal(str(amount)),
                expense_date=expense_date,
                description=description,
                paid_by_user_id=user_id,
            )))
            st.success(f"✅ Expense {expense.id} saved")

    st.markdown("### Settlement")
    with st.form("settlement_form", clear_on_submit=True):
        to_user_id = st.number_input("Paid to user ID", min_value=1, value=1, step=1)
        settle_amount = st.number_input("Amount paid", min_value=0.0, step=1.0, format="%.2f")
        settlement_date = st.date_input("Date paid", value=date.today())
        if st.form_submit_button("💾 Save Settlement", type="primary"):
            try:
                settlement = run_async(write_flow.record_settlement(household_id, Settlement(
                    id=0,
                    household_id=household_id,
                    from_user_id=user_id,
                    to_user_id=int(to_user_id),
                    amount=Decimal(str(settle_amount)),
                    settlement_date=settlement_date,
                )))
                st.success(f"✅ Settlement {settlement.id} saved")
            except SettlementRejectedError as e:
                for message in e.result.error_messages:
                    st.error(f"❌ {message}")


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    # Check services
    from household_finance.config import get_settings, validate_all_settings

    status = validate_all_settings()

    services = [
        ("Application", "app"),
        ("Google Sheets (Storage)", "google_sheets"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    if status.get("app"):
        st.caption(f"Storage backend: {get_settings().app.storage_backend}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
