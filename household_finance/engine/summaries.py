"""
Expense Summaries and Month-over-Month Comparison

Period totals, category breakdowns, recent activity and the comparison of
two periods. Expenses are date-keyed and matched to a period by month and
year of their date; income rows carry their period directly.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Optional

from household_finance.engine.budgets import UNCATEGORIZED_LABEL, period_expenses
from household_finance.engine.bills import DEFAULT_CATEGORY_COLOR
from household_finance.engine.periods import (
    CENT,
    change_percent,
    round_percent,
    total,
)
from household_finance.models.ledger import Expense, HouseholdLedger
from household_finance.models.reports import (
    CategoryBreakdown,
    CategoryTotal,
    ComparisonMetrics,
    ExpenseOverview,
    MonthComparisonResult,
    MonthlyTotals,
    RecentExpenseItem,
    SpendingTrend,
)

# Expense changes smaller than this (in percent, either direction) are "Stable".
TREND_THRESHOLD_PERCENT = Decimal("5")

DEFAULT_RECENT_COUNT = 5


def period_income(ledger: HouseholdLedger, month: int, year: int) -> Decimal:
    return total(i.amount for i in ledger.incomes if i.month == month and i.year == year)


def monthly_totals(
    ledger: HouseholdLedger,
    month: int,
    year: int,
    expenses: Optional[list[Expense]] = None,
) -> MonthlyTotals:
    """Income, expenses, net and transaction count of one period."""
    if expenses is None:
        expenses = period_expenses(ledger, month, year)
    income = period_income(ledger, month, year)
    spent = total(e.amount for e in expenses)
    return MonthlyTotals(
        month=month,
        year=year,
        total_income=income,
        total_expenses=spent,
        net_income=income - spent,
        transaction_count=len(expenses),
    )


def category_breakdown(
    ledger: HouseholdLedger,
    month: int,
    year: int,
    expenses: Optional[list[Expense]] = None,
) -> list[CategoryBreakdown]:
    """
    Spending of a period grouped by category, largest total first.

    average_amount is total / count rounded to cents. Groups only exist
    for categories with at least one expense, so count is never zero.
    """
    if expenses is None:
        expenses = period_expenses(ledger, month, year)
    categories = ledger.category_by_id()

    groups: dict[int, list[Decimal]] = defaultdict(list)
    for expense in expenses:
        groups[expense.category_id].append(expense.amount)

    breakdown = []
    for category_id, amounts in groups.items():
        category = categories.get(category_id)
        group_total = total(amounts)
        breakdown.append(CategoryBreakdown(
            category_id=category_id,
            category_name=category.name if category else UNCATEGORIZED_LABEL,
            category_color=category.color if category else DEFAULT_CATEGORY_COLOR,
            total_amount=group_total,
            transaction_count=len(amounts),
            average_amount=(group_total / len(amounts)).quantize(CENT),
        ))

    breakdown.sort(key=lambda c: (-c.total_amount, c.category_id))
    return breakdown


def recent_expenses(
    ledger: HouseholdLedger,
    count: int = DEFAULT_RECENT_COUNT,
) -> list[RecentExpenseItem]:
    """The household's latest expenses, newest first, with category and payer names."""
    if count <= 0:
        return []

    categories = ledger.category_by_id()
    users = ledger.user_by_id()

    latest = sorted(
        ledger.expenses,
        key=lambda e: (e.expense_date, e.id),
        reverse=True,
    )[:count]

    items = []
    for expense in latest:
        category = categories.get(expense.category_id)
        payer = users.get(expense.paid_by_user_id) if expense.paid_by_user_id is not None else None
        items.append(RecentExpenseItem(
            id=expense.id,
            amount=expense.amount,
            description=expense.description,
            expense_date=expense.expense_date,
            category_name=category.name if category else UNCATEGORIZED_LABEL,
            category_color=category.color if category else DEFAULT_CATEGORY_COLOR,
            paid_by_name=(payer.display_name or payer.username) if payer else None,
        ))
    return items


def classify_trend(expense_change_percent: Decimal) -> SpendingTrend:
    if abs(expense_change_percent) < TREND_THRESHOLD_PERCENT:
        return SpendingTrend.STABLE
    if expense_change_percent > 0:
        return SpendingTrend.UP
    return SpendingTrend.DOWN


def month_comparison(
    ledger: HouseholdLedger,
    month1: int,
    year1: int,
    month2: int,
    year2: int,
) -> MonthComparisonResult:
    """
    Compare period 2 against period 1.

    Differences are period2 - period1. Percent changes are relative to
    period 1 and are 0 when period 1's value is 0. The trend is
    classified from the unrounded expense change.
    """
    first = monthly_totals(ledger, month1, year1)
    second = monthly_totals(ledger, month2, year2)

    income_diff = second.total_income - first.total_income
    expense_diff = second.total_expenses - first.total_expenses

    income_change = change_percent(income_diff, first.total_income)
    expense_change = change_percent(expense_diff, first.total_expenses)

    return MonthComparisonResult(
        month1=first,
        month2=second,
        comparison=ComparisonMetrics(
            income_difference=income_diff,
            expense_difference=expense_diff,
            income_change_percent=round_percent(income_change),
            expense_change_percent=round_percent(expense_change),
            trend=classify_trend(expense_change),
        ),
    )


def expense_overview(ledger: HouseholdLedger, today: date) -> ExpenseOverview:
    """All-time spending of a household plus the current month's total."""
    categories = ledger.category_by_id()

    by_name: dict[str, list[Decimal]] = defaultdict(list)
    for expense in ledger.expenses:
        category = categories.get(expense.category_id)
        by_name[category.name if category else UNCATEGORIZED_LABEL].append(expense.amount)

    by_category = [
        CategoryTotal(category_name=name, total=total(amounts), count=len(amounts))
        for name, amounts in by_name.items()
    ]
    by_category.sort(key=lambda c: (-c.total, c.category_name))

    return ExpenseOverview(
        total_spent=total(e.amount for e in ledger.expenses),
        this_month=total(
            e.amount for e in period_expenses(ledger, today.month, today.year)
        ),
        by_category=by_category,
        total_expenses=len(ledger.expenses),
    )
