"""
Financial Aggregation Engine

Pure, synchronous functions over an already-loaded HouseholdLedger.
Nothing here performs I/O or holds shared state, so every function is safe
to call from several threads at once.
"""

from household_finance.engine.balances import (
    apply_contribution_delta,
    apply_debt_payment_delta,
    debt_summary,
    savings_progress,
)
from household_finance.engine.bills import DEFAULT_LOOKAHEAD_DAYS, upcoming_bills
from household_finance.engine.budgets import budget_comparison, budget_progress
from household_finance.engine.periods import next_occurrence, resolve_due_date
from household_finance.engine.settlements import (
    check_settlement_parties,
    settlement_balance,
)
from household_finance.engine.summaries import (
    TREND_THRESHOLD_PERCENT,
    category_breakdown,
    expense_overview,
    month_comparison,
    monthly_totals,
    recent_expenses,
)

__all__ = [
    "DEFAULT_LOOKAHEAD_DAYS",
    "TREND_THRESHOLD_PERCENT",
    "apply_contribution_delta",
    "apply_debt_payment_delta",
    "budget_comparison",
    "budget_progress",
    "category_breakdown",
    "check_settlement_parties",
    "debt_summary",
    "expense_overview",
    "month_comparison",
    "monthly_totals",
    "next_occurrence",
    "recent_expenses",
    "resolve_due_date",
    "savings_progress",
    "settlement_balance",
    "upcoming_bills",
]
