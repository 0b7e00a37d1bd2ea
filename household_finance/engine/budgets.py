"""
Budget Progress and Budget-vs-Actual

A budget row applies to one category, or to the whole household when its
category_id is None. Spending is always summed from the period's expenses,
never read from a stored total.
"""

from decimal import Decimal
from typing import Optional

from household_finance.engine.periods import in_period, percent_of, total
from household_finance.models.ledger import Budget, Category, Expense, HouseholdLedger
from household_finance.models.reports import BudgetComparison, BudgetProgress

TOTAL_BUDGET_LABEL = "Total Budget"
UNCATEGORIZED_LABEL = "Uncategorized"


def period_budgets(ledger: HouseholdLedger, month: int, year: int) -> list[Budget]:
    return [b for b in ledger.budgets if b.month == month and b.year == year]


def period_expenses(ledger: HouseholdLedger, month: int, year: int) -> list[Expense]:
    return [e for e in ledger.expenses if in_period(e.expense_date, month, year)]


def spent_against(budget: Budget, expenses: list[Expense]) -> Decimal:
    """Spending that counts against a budget row."""
    if budget.category_id is None:
        return total(e.amount for e in expenses)
    return total(e.amount for e in expenses if e.category_id == budget.category_id)


def _budget_label(budget: Budget, categories: dict[int, Category]) -> str:
    if budget.category_id is None:
        return TOTAL_BUDGET_LABEL
    category = categories.get(budget.category_id)
    return category.name if category else UNCATEGORIZED_LABEL


def _budget_fields(
    budget: Budget,
    expenses: list[Expense],
    categories: dict[int, Category],
) -> dict:
    spent = spent_against(budget, expenses)
    return {
        "budget_id": budget.id,
        "category_id": budget.category_id,
        "category_name": _budget_label(budget, categories),
        "budget_amount": budget.amount,
        "spent_amount": spent,
        "remaining_amount": budget.amount - spent,
        "percent_used": percent_of(spent, budget.amount),
        "is_over_budget": spent > budget.amount,
    }


def budget_progress(
    ledger: HouseholdLedger,
    month: int,
    year: int,
    expenses: Optional[list[Expense]] = None,
) -> list[BudgetProgress]:
    """
    Progress of every budget in a period, most-used first.

    Zero-amount budgets report 0% used. is_over_budget is strictly
    spent > amount.
    """
    if expenses is None:
        expenses = period_expenses(ledger, month, year)
    categories = ledger.category_by_id()

    progress = [
        BudgetProgress(**_budget_fields(budget, expenses, categories))
        for budget in period_budgets(ledger, month, year)
    ]
    progress.sort(key=lambda p: (-p.percent_used, p.budget_id))
    return progress


def budget_comparison(
    ledger: HouseholdLedger,
    month: int,
    year: int,
    expenses: Optional[list[Expense]] = None,
) -> list[BudgetComparison]:
    """
    Budget vs actual for a period, in budget order.

    Every budget row appears, including categories with no spending in
    the period (spent_amount = 0).
    """
    if expenses is None:
        expenses = period_expenses(ledger, month, year)
    categories = ledger.category_by_id()

    return [
        BudgetComparison(**_budget_fields(budget, expenses, categories))
        for budget in period_budgets(ledger, month, year)
    ]
