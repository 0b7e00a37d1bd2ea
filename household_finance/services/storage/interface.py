"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep the aggregation engine decoupled from storage

Reads hand back one HouseholdLedger snapshot per call. Writes that move a
running balance (debt payments, savings contributions) are explicit
operations that commit the child row and the parent balance together.
"""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from household_finance.models.audit import AuditEvent
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


# Table names match the HouseholdLedger collections they fill.
LEDGER_TABLES: dict[type[BaseModel], str] = {
    User: "users",
    Category: "categories",
    Expense: "expenses",
    Income: "incomes",
    Budget: "budgets",
    RecurringBill: "recurring_bills",
    BillPayment: "bill_payments",
    Debt: "debts",
    DebtPayment: "debt_payments",
    SavingsGoal: "savings_goals",
    SavingsContribution: "savings_contributions",
    Settlement: "settlements",
}

TABLE_MODELS: dict[str, type[BaseModel]] = {
    table: model for model, table in LEDGER_TABLES.items()
}

# Rows without a household_id belong to a household through their parent.
# table -> (parent table, foreign key field)
CHILD_TABLES: dict[str, tuple[str, str]] = {
    "bill_payments": ("recurring_bills", "recurring_bill_id"),
    "debt_payments": ("debts", "debt_id"),
    "savings_contributions": ("savings_goals", "savings_goal_id"),
}

# Only reachable through the balance operations.
BALANCE_TABLES = {"debt_payments", "savings_contributions"}


def table_for(record: BaseModel) -> str:
    try:
        return LEDGER_TABLES[type(record)]
    except KeyError:
        raise StorageError(f"Unsupported ledger record: {type(record).__name__}")


class LedgerStorageInterface(ABC):
    """
    Abstract interface for household ledger storage.

    Any storage implementation (Google Sheets, PostgreSQL, etc.)
    must implement these methods.

    Records passed with id == 0 get the next free id of their table.
    """

    @abstractmethod
    async def add_household(self, household: Household) -> Household:
        """
        Register a household.

        Raises:
            DuplicateError: If the household id is taken
        """
        pass

    @abstractmethod
    async def get_household(self, household_id: int) -> Household:
        """
        Raises:
            NotFoundError: If the household doesn't exist
        """
        pass

    @abstractmethod
    async def load_ledger(self, household_id: int) -> HouseholdLedger:
        """
        Load every row of one household as a single consistent snapshot.

        The snapshot is a copy: mutating it never changes stored data.

        Raises:
            NotFoundError: If the household doesn't exist
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def add_record(self, household_id: int, record: LedgerRecord) -> LedgerRecord:
        """
        Insert a plain ledger row.

        Debt payments and savings contributions are refused here; they go
        through the balance operations below.

        Returns:
            The stored record, with its id assigned

        Raises:
            NotFoundError: If the household or a referenced parent row is
                outside the household
            DuplicateError: If the id is already taken
            StorageError: If the write fails
        """
        pass

    # -------------------------------------------------------------------------
    # Balance-affecting operations
    # -------------------------------------------------------------------------

    @abstractmethod
    async def record_debt_payment(
        self,
        household_id: int,
        payment: DebtPayment,
    ) -> tuple[DebtPayment, Debt]:
        """
        Insert a payment and subtract it from its debt's balance, atomically.

        Raises:
            NotFoundError: If the debt is not in the household
        """
        pass

    @abstractmethod
    async def update_debt_payment(
        self,
        household_id: int,
        payment_id: int,
        amount: Decimal,
        payment_date: Optional[date] = None,
    ) -> tuple[DebtPayment, Debt]:
        """Change a payment; the debt balance moves by the difference."""
        pass

    @abstractmethod
    async def delete_debt_payment(self, household_id: int, payment_id: int) -> Debt:
        """Remove a payment and restore its amount to the debt balance."""
        pass

    @abstractmethod
    async def record_savings_contribution(
        self,
        household_id: int,
        contribution: SavingsContribution,
    ) -> tuple[SavingsContribution, SavingsGoal]:
        """Insert a contribution and add it to its goal, atomically."""
        pass

    @abstractmethod
    async def update_savings_contribution(
        self,
        household_id: int,
        contribution_id: int,
        amount: Decimal,
        contribution_date: Optional[date] = None,
    ) -> tuple[SavingsContribution, SavingsGoal]:
        pass

    @abstractmethod
    async def delete_savings_contribution(
        self,
        household_id: int,
        contribution_id: int,
    ) -> SavingsGoal:
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Events of one request, in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Most recent events, newest first."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage (or not in the caller's household)."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
