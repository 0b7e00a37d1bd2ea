"""
Ledger Entity Models

These models describe the raw rows a household records: expenses, income,
budgets, recurring bills, debts, savings goals and settlements.

DESIGN DECISION: Entities reference each other through plain foreign-key
fields only (household_id, category_id, debt_id, ...). There are no
back-references, so a model never holds a cycle and always serializes.
Joins are done by the aggregation engine through HouseholdLedger lookups.

Running balances (Debt.current_balance, SavingsGoal.current_amount) are
stored values. They are maintained by the write path and trusted as-is.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# HOUSEHOLD & PEOPLE
# =============================================================================

class Household(BaseModel):
    """The tenancy boundary. Aggregation never crosses households."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: int
    name: str = Field(..., min_length=1, max_length=100)
    currency: str = Field(default="USD", max_length=10)
    use_joint_account: bool = False
    created_at: datetime = Field(default_factory=utc_now)


class User(BaseModel):
    """A household member."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: int
    household_id: int
    username: str = Field(..., min_length=1, max_length=50)
    display_name: str = Field(default="", max_length=100)
    email: Optional[str] = Field(default=None, max_length=200)
    created_at: datetime = Field(default_factory=utc_now)


class Category(BaseModel):
    """
    Spending category.

    Categories are soft-deleted (is_active = False) so historical expenses
    keep their label.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: int
    household_id: int
    name: str = Field(..., min_length=1, max_length=100)
    color: str = Field(default="#9CA3AF", max_length=20)
    icon: Optional[str] = Field(default=None, max_length=50)
    priority: Optional[str] = Field(default=None, max_length=20)
    parent_category_id: Optional[int] = None
    is_active: bool = True


# =============================================================================
# SPENDING & INCOME
# =============================================================================

class Expense(BaseModel):
    """A single spending row, keyed by its date."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: int
    household_id: int
    category_id: int
    amount: Decimal = Field(..., ge=0, description="Amount spent")
    expense_date: date
    description: str = Field(default="", max_length=255)
    paid_by_user_id: Optional[int] = None
    notes: Optional[str] = Field(default=None, max_length=1000)
    created_at: datetime = Field(default_factory=utc_now)


class Income(BaseModel):
    """
    Income for a period.

    Income is period-keyed (month, year), not date-keyed.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: int
    household_id: int
    user_id: int
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1900, le=9999)
    amount: Decimal = Field(..., ge=0)
    source: str = Field(default="", max_length=100)
    received_date: Optional[date] = None


class Budget(BaseModel):
    """
    A spending limit for a period.

    category_id = None means the budget covers the whole household's
    spending for that period.
    """

    id: int
    household_id: int
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1900, le=9999)
    category_id: Optional[int] = None
    amount: Decimal = Field(..., ge=0)


# =============================================================================
# RECURRING OBLIGATIONS
# =============================================================================

class RecurringBill(BaseModel):
    """
    Template for a monthly obligation.

    This is NOT a ledger of payments; see BillPayment for those.
    day_of_month is kept exactly as entered. Values outside 1-31 mean
    "no recurrence configured" and are skipped by projections.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: int
    household_id: int
    category_id: int
    description: str = Field(default="", max_length=255)
    amount: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="None when the amount varies month to month"
    )
    is_variable_amount: bool = False
    frequency: str = Field(default="monthly", max_length=20)
    day_of_month: Optional[int] = None
    reminder_days_before: int = Field(default=0, ge=0)
    is_active: bool = True
    paid_by_user_id: Optional[int] = None
    notes: Optional[str] = Field(default=None, max_length=1000)


class BillPayment(BaseModel):
    """Proof that a recurring bill was settled for a given period."""

    id: int
    recurring_bill_id: int
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1900, le=9999)
    amount: Decimal = Field(..., ge=0)
    paid_date: date
    paid_by_user_id: Optional[int] = None
    notes: Optional[str] = Field(default=None, max_length=1000)


# =============================================================================
# DEBTS & SAVINGS (running balances)
# =============================================================================

class Debt(BaseModel):
    """
    A debt with a stored running balance.

    INVARIANT (maintained by the write path):
        current_balance == original_amount - sum(payments)
    Overpayment is allowed, so current_balance may go negative.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: int
    household_id: int
    name: str = Field(..., min_length=1, max_length=100)
    debt_type: str = Field(default="", max_length=50)
    original_amount: Decimal = Field(..., ge=0)
    current_balance: Decimal
    interest_rate: Optional[Decimal] = Field(default=None, ge=0)
    minimum_payment: Optional[Decimal] = Field(default=None, ge=0)
    payment_day_of_month: Optional[int] = None
    creditor: Optional[str] = Field(default=None, max_length=100)
    is_active: bool = True
    updated_at: datetime = Field(default_factory=utc_now)


class DebtPayment(BaseModel):
    """A payment against a debt. Reduces Debt.current_balance."""

    id: int
    debt_id: int
    amount: Decimal = Field(..., ge=0)
    payment_date: date
    paid_by_user_id: Optional[int] = None
    notes: Optional[str] = Field(default=None, max_length=1000)


class SavingsGoal(BaseModel):
    """
    A savings target with a stored running amount.

    INVARIANT (maintained by the write path):
        current_amount == sum(contributions)
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: int
    household_id: int
    name: str = Field(..., min_length=1, max_length=100)
    target_amount: Decimal = Field(..., ge=0)
    current_amount: Decimal = Decimal("0")
    target_date: Optional[date] = None
    priority: str = Field(default="", max_length=20)
    is_active: bool = True
    updated_at: datetime = Field(default_factory=utc_now)


class SavingsContribution(BaseModel):
    """A contribution to a savings goal. Increases SavingsGoal.current_amount."""

    id: int
    savings_goal_id: int
    amount: Decimal = Field(..., ge=0)
    contribution_date: date
    contributed_by_user_id: Optional[int] = None
    notes: Optional[str] = Field(default=None, max_length=1000)


# =============================================================================
# SETTLEMENTS
# =============================================================================

class Settlement(BaseModel):
    """A directed payment from one member to another."""

    id: int
    household_id: int
    from_user_id: int
    to_user_id: int
    amount: Decimal = Field(..., ge=0)
    settlement_date: date
    notes: Optional[str] = Field(default=None, max_length=1000)


LedgerRecord = Union[
    User,
    Category,
    Expense,
    Income,
    Budget,
    RecurringBill,
    BillPayment,
    Debt,
    DebtPayment,
    SavingsGoal,
    SavingsContribution,
    Settlement,
]


# =============================================================================
# SNAPSHOT
# =============================================================================

class HouseholdLedger(BaseModel):
    """
    Every row of one household, loaded as a single consistent snapshot.

    This is the only input the aggregation engine sees. Each aggregation
    re-filters the collections it needs; nothing here is cached totals.
    """

    household_id: int
    users: list[User] = Field(default_factory=list)
    categories: list[Category] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)
    incomes: list[Income] = Field(default_factory=list)
    budgets: list[Budget] = Field(default_factory=list)
    recurring_bills: list[RecurringBill] = Field(default_factory=list)
    bill_payments: list[BillPayment] = Field(default_factory=list)
    debts: list[Debt] = Field(default_factory=list)
    debt_payments: list[DebtPayment] = Field(default_factory=list)
    savings_goals: list[SavingsGoal] = Field(default_factory=list)
    savings_contributions: list[SavingsContribution] = Field(default_factory=list)
    settlements: list[Settlement] = Field(default_factory=list)

    @field_validator(
        "users", "categories", "expenses", "incomes", "budgets",
        "recurring_bills", "debts", "savings_goals", "settlements",
    )
    @classmethod
    def reject_foreign_rows(cls, rows: list, info):
        """Rows owned by another household must never reach the engine."""
        household_id = info.data.get("household_id")
        for row in rows:
            if row.household_id != household_id:
                raise ValueError(
                    f"{type(row).__name__} {row.id} belongs to household "
                    f"{row.household_id}, not {household_id}"
                )
        return rows

    def category_by_id(self) -> dict[int, Category]:
        return {c.id: c for c in self.categories}

    def user_by_id(self) -> dict[int, User]:
        return {u.id: u for u in self.users}

    def member_ids(self) -> set[int]:
        return {u.id for u in self.users}
