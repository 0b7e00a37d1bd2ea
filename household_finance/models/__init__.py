"""
Data Models Package

Ledger entities (what households record), derived views (what the
aggregation engine computes), validation results and audit events.
"""

from household_finance.models.ledger import (
    BillPayment,
    Budget,
    Category,
    Debt,
    DebtPayment,
    Expense,
    Household,
    HouseholdLedger,
    Income,
    LedgerRecord,
    RecurringBill,
    SavingsContribution,
    SavingsGoal,
    Settlement,
    User,
)
from household_finance.models.reports import (
    BudgetComparison,
    BudgetProgress,
    CategoryBreakdown,
    CategoryTotal,
    ComparisonMetrics,
    DashboardResult,
    DebtItem,
    DebtSummary,
    ExpenseOverview,
    MonthComparisonResult,
    MonthlySummaryResult,
    MonthlyTotals,
    RecentExpenseItem,
    SavingsGoalItem,
    SavingsSummary,
    SettlementBalance,
    SettlementStatus,
    SpendingTrend,
    UpcomingBill,
)
from household_finance.models.validation import ValidationIssue, ValidationResult
from household_finance.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger entities
    "BillPayment",
    "Budget",
    "Category",
    "Debt",
    "DebtPayment",
    "Expense",
    "Household",
    "HouseholdLedger",
    "Income",
    "LedgerRecord",
    "RecurringBill",
    "SavingsContribution",
    "SavingsGoal",
    "Settlement",
    "User",
    # Derived views
    "BudgetComparison",
    "BudgetProgress",
    "CategoryBreakdown",
    "CategoryTotal",
    "ComparisonMetrics",
    "DashboardResult",
    "DebtItem",
    "DebtSummary",
    "ExpenseOverview",
    "MonthComparisonResult",
    "MonthlySummaryResult",
    "MonthlyTotals",
    "RecentExpenseItem",
    "SavingsGoalItem",
    "SavingsSummary",
    "SettlementBalance",
    "SettlementStatus",
    "SpendingTrend",
    "UpcomingBill",
    # Validation
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
