"""
Indexed Ledger Tables

Holds ledger rows by table and id, and knows the household ownership
rules: household-keyed rows carry household_id, child rows (payments and
contributions) belong to whichever household owns their parent.

Both storage backends use this. The in-memory backend keeps one instance
alive; the Google Sheets backend builds one per request from a single
batched read. Balance operations are planned here (nothing is stored)
and then committed by the backend in one step.
"""

from datetime import date
from decimal import Decimal
from typing import Callable, Optional

from pydantic import BaseModel

from household_finance.engine.balances import (
    apply_contribution_delta,
    apply_debt_payment_delta,
)
from household_finance.models.ledger import Household, HouseholdLedger, SavingsGoal
from household_finance.services.storage.interface import (
    BALANCE_TABLES,
    CHILD_TABLES,
    TABLE_MODELS,
    DuplicateError,
    NotFoundError,
    StorageError,
    table_for,
)

# child table -> (delta function, date field)
BALANCE_RULES: dict[str, tuple[Callable, str]] = {
    "debt_payments": (apply_debt_payment_delta, "payment_date"),
    "savings_contributions": (apply_contribution_delta, "contribution_date"),
}

BalanceChange = tuple[BaseModel, BaseModel]


class LedgerTables:
    """Ledger rows indexed as {table: {id: row}}."""

    def __init__(
        self,
        households: Optional[dict[int, Household]] = None,
        tables: Optional[dict[str, dict[int, BaseModel]]] = None,
    ):
        self.households: dict[int, Household] = households or {}
        self.tables: dict[str, dict[int, BaseModel]] = {
            table: {} for table in TABLE_MODELS
        }
        # Highest id ever stored per table, deleted rows included
        self.high_water: dict[str, int] = {table: 0 for table in TABLE_MODELS}
        if tables:
            self.tables.update(tables)
            for table, rows in tables.items():
                self.retire_id(table, max(rows, default=0))

    # -------------------------------------------------------------------------
    # Ownership
    # -------------------------------------------------------------------------

    def require_household(self, household_id: int) -> Household:
        household = self.households.get(household_id)
        if household is None:
            raise NotFoundError(f"Household not found: {household_id}")
        return household

    def owns(self, household_id: int, table: str, row: BaseModel) -> bool:
        if table in CHILD_TABLES:
            parent_table, foreign_key = CHILD_TABLES[table]
            parent = self.tables[parent_table].get(getattr(row, foreign_key))
            return parent is not None and parent.household_id == household_id
        return row.household_id == household_id

    def get_owned(self, household_id: int, table: str, row_id: int) -> BaseModel:
        """A row of the household, or NotFoundError (also for other households' rows)."""
        row = self.tables[table].get(row_id)
        if row is None or not self.owns(household_id, table, row):
            raise NotFoundError(f"{TABLE_MODELS[table].__name__} not found: {row_id}")
        return row

    def retire_id(self, table: str, row_id: int) -> None:
        """Mark an id as used so it is never handed out again."""
        self.high_water[table] = max(self.high_water[table], row_id)

    def next_id(self, table: str) -> int:
        """Ids are never reused, even after the row is deleted."""
        return max(self.high_water[table], max(self.tables[table], default=0)) + 1

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def snapshot(self, household_id: int) -> HouseholdLedger:
        self.require_household(household_id)
        collections = {
            table: [
                row.model_copy(deep=True)
                for row_id, row in sorted(rows.items())
                if self.owns(household_id, table, row)
            ]
            for table, rows in self.tables.items()
        }
        return HouseholdLedger(household_id=household_id, **collections)

    # -------------------------------------------------------------------------
    # Planning writes (nothing is stored until put())
    # -------------------------------------------------------------------------

    def prepare_household(self, household: Household) -> Household:
        if household.id in self.households:
            raise DuplicateError(f"Household already exists: {household.id}")
        if household.id == 0:
            household = household.model_copy(
                update={"id": max(self.households, default=0) + 1}
            )
        return household

    def prepare_insert(self, household_id: int, record: BaseModel) -> BaseModel:
        """Check ownership and assign an id. Returns the row to store."""
        self.require_household(household_id)
        table = table_for(record)

        if table in CHILD_TABLES:
            parent_table, foreign_key = CHILD_TABLES[table]
            self.get_owned(household_id, parent_table, getattr(record, foreign_key))
        elif record.household_id != household_id:
            raise NotFoundError(
                f"{type(record).__name__} belongs to household "
                f"{record.household_id}, not {household_id}"
            )

        if record.id == 0:
            return record.model_copy(update={"id": self.next_id(table)})
        if record.id in self.tables[table]:
            raise DuplicateError(f"{type(record).__name__} already exists: {record.id}")
        return record.model_copy()

    def plan_plain_insert(self, household_id: int, record: BaseModel) -> BaseModel:
        if table_for(record) in BALANCE_TABLES:
            raise StorageError(
                f"{type(record).__name__} changes a running balance; "
                "use the balance operations instead"
            )
        if isinstance(record, SavingsGoal):
            # A new goal starts empty; only contributions move current_amount
            record = record.model_copy(update={"current_amount": Decimal("0")})
        return self.prepare_insert(household_id, record)

    def _parent_for(self, household_id: int, table: str, child: BaseModel) -> BaseModel:
        parent_table, foreign_key = CHILD_TABLES[table]
        return self.get_owned(household_id, parent_table, getattr(child, foreign_key))

    def plan_balance_insert(self, household_id: int, child: BaseModel) -> BalanceChange:
        """(new child, parent with the amount applied)"""
        table = table_for(child)
        apply_delta, _ = BALANCE_RULES[table]
        child = self.prepare_insert(household_id, child)
        parent = self._parent_for(household_id, table, child)
        return child, apply_delta(parent, new_amount=child.amount)

    def plan_balance_update(
        self,
        household_id: int,
        table: str,
        child_id: int,
        amount: Decimal,
        when: Optional[date] = None,
    ) -> BalanceChange:
        """(changed child, parent moved by the difference)"""
        self.require_household(household_id)
        apply_delta, date_field = BALANCE_RULES[table]
        old = self.get_owned(household_id, table, child_id)

        data = old.model_dump()
        data["amount"] = amount
        if when is not None:
            data[date_field] = when
        updated = TABLE_MODELS[table].model_validate(data)

        parent = self._parent_for(household_id, table, old)
        return updated, apply_delta(parent, old_amount=old.amount, new_amount=updated.amount)

    def plan_balance_delete(self, household_id: int, table: str, child_id: int) -> BalanceChange:
        """(removed child, parent with the amount reverted)"""
        self.require_household(household_id)
        apply_delta, _ = BALANCE_RULES[table]
        old = self.get_owned(household_id, table, child_id)
        parent = self._parent_for(household_id, table, old)
        return old, apply_delta(parent, old_amount=old.amount)

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def put(self, row: BaseModel) -> None:
        table = table_for(row)
        self.tables[table][row.id] = row
        self.retire_id(table, row.id)

    def remove(self, row: BaseModel) -> None:
        self.tables[table_for(row)].pop(row.id, None)
