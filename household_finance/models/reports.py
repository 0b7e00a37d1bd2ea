"""
Derived View Models

Result records produced by the aggregation engine and the composers.
They are plain data: no lookups, no back-references, safe to serialize.

All money values are Decimal. Percentages are Decimal rounded to two
places (half-even), except where noted.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class SettlementStatus(str, Enum):
    """Net settlement position of one member."""
    OWED = "You are owed"
    OWES = "You owe"
    SETTLED = "All settled"


class SpendingTrend(str, Enum):
    """Month-over-month expense trend."""
    STABLE = "Stable"
    UP = "Spending Up"
    DOWN = "Spending Down"


# =============================================================================
# BUDGETS
# =============================================================================

class BudgetProgress(BaseModel):
    """Dashboard view of one budget row."""

    budget_id: int
    category_id: Optional[int] = None
    category_name: str
    budget_amount: Decimal
    spent_amount: Decimal
    remaining_amount: Decimal
    percent_used: Decimal
    is_over_budget: bool


class BudgetComparison(BudgetProgress):
    """Report view of one budget row (budget vs actual, in budget order)."""


# =============================================================================
# DEBTS & SAVINGS
# =============================================================================

class DebtItem(BaseModel):
    """Stored fields of one debt. No computed values beyond the balance."""

    id: int
    name: str
    debt_type: str = ""
    current_balance: Decimal
    interest_rate: Optional[Decimal] = None
    minimum_payment: Optional[Decimal] = None


class DebtSummary(BaseModel):
    total_debt: Decimal = Decimal("0")
    total_paid: Decimal = Decimal("0")
    percent_paid: Decimal = Decimal("0")
    debts: list[DebtItem] = Field(default_factory=list)


class SavingsGoalItem(BaseModel):
    id: int
    name: str
    target_amount: Decimal
    current_amount: Decimal
    remaining_amount: Decimal = Field(
        ...,
        description="target - current; negative when the goal was overshot"
    )
    percent_complete: Decimal
    target_date: Optional[date] = None
    priority: str = ""


class SavingsSummary(BaseModel):
    total_saved: Decimal = Decimal("0")
    total_target: Decimal = Decimal("0")
    total_remaining: Decimal = Decimal("0")
    percent_complete: Decimal = Decimal("0")
    goals: list[SavingsGoalItem] = Field(default_factory=list)


# =============================================================================
# BILLS
# =============================================================================

class UpcomingBill(BaseModel):
    """A recurring bill projected onto its next unpaid due date."""

    bill_id: int
    description: str
    amount: Optional[Decimal] = None
    is_variable_amount: bool = False
    due_date: date
    days_until_due: int
    is_overdue: bool
    needs_reminder: bool = False
    category_name: str
    category_color: str


# =============================================================================
# EXPENSES
# =============================================================================

class CategoryBreakdown(BaseModel):
    category_id: int
    category_name: str
    category_color: str
    total_amount: Decimal
    transaction_count: int
    average_amount: Decimal


class RecentExpenseItem(BaseModel):
    id: int
    amount: Decimal
    description: str
    expense_date: date
    category_name: str
    category_color: str
    paid_by_name: Optional[str] = None


class MonthlyTotals(BaseModel):
    """Income/expense totals of one period."""

    month: int
    year: int
    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    net_income: Decimal = Decimal("0")
    transaction_count: int = 0


class ComparisonMetrics(BaseModel):
    income_difference: Decimal
    expense_difference: Decimal
    income_change_percent: Decimal
    expense_change_percent: Decimal
    trend: SpendingTrend


class MonthComparisonResult(BaseModel):
    month1: MonthlyTotals
    month2: MonthlyTotals
    comparison: ComparisonMetrics


class CategoryTotal(BaseModel):
    category_name: str
    total: Decimal
    count: int


class ExpenseOverview(BaseModel):
    """All-time spending overview of a household."""

    total_spent: Decimal = Decimal("0")
    this_month: Decimal = Decimal("0")
    by_category: list[CategoryTotal] = Field(default_factory=list)
    total_expenses: int = 0


# =============================================================================
# SETTLEMENTS
# =============================================================================

class SettlementBalance(BaseModel):
    user_id: int
    owed_to_me: Decimal = Decimal("0")
    i_owe: Decimal = Decimal("0")
    net_balance: Decimal = Decimal("0")
    status: SettlementStatus = SettlementStatus.SETTLED


# =============================================================================
# COMPOSITES
# =============================================================================

class MonthlySummaryResult(BaseModel):
    month: int
    year: int
    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    net_income: Decimal = Decimal("0")
    transaction_count: int = 0
    expenses_by_category: list[CategoryBreakdown] = Field(default_factory=list)
    budget_comparison: list[BudgetComparison] = Field(default_factory=list)


class DashboardResult(BaseModel):
    """Everything the household dashboard shows for one period."""

    household_id: int
    month: int
    year: int
    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    net_income: Decimal = Decimal("0")
    expenses_by_category: list[CategoryBreakdown] = Field(default_factory=list)
    budgets: list[BudgetProgress] = Field(default_factory=list)
    debts: DebtSummary = Field(default_factory=DebtSummary)
    savings: SavingsSummary = Field(default_factory=SavingsSummary)
    upcoming_bills: list[UpcomingBill] = Field(default_factory=list)
    recent_expenses: list[RecentExpenseItem] = Field(default_factory=list)
    settlement_balance: SettlementBalance
