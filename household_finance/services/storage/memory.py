"""
In-Memory Storage Implementation

Used for tests, demos and the default "memory" backend. All state lives
in one LedgerTables instance guarded by an asyncio.Lock, so a snapshot
never observes a payment without its balance change (or the reverse).
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from household_finance.models.audit import AuditEvent
from household_finance.models.ledger import (
    Debt,
    DebtPayment,
    Household,
    HouseholdLedger,
    LedgerRecord,
    SavingsContribution,
    SavingsGoal,
)
from household_finance.services.storage.interface import (
    AuditStorageInterface,
    LedgerStorageInterface,
)
from household_finance.services.storage.tables import BalanceChange, LedgerTables


class InMemoryLedgerStorage(LedgerStorageInterface):
    """Ledger storage held in process memory."""

    def __init__(self):
        self._tables = LedgerTables()
        self._lock = asyncio.Lock()

    async def add_household(self, household: Household) -> Household:
        async with self._lock:
            household = self._tables.prepare_household(household)
            self._tables.households[household.id] = household
            return household.model_copy()

    async def get_household(self, household_id: int) -> Household:
        async with self._lock:
            return self._tables.require_household(household_id).model_copy()

    async def load_ledger(self, household_id: int) -> HouseholdLedger:
        async with self._lock:
            return self._tables.snapshot(household_id)

    async def add_record(self, household_id: int, record: LedgerRecord) -> LedgerRecord:
        async with self._lock:
            stored = self._tables.plan_plain_insert(household_id, record)
            self._tables.put(stored)
            return stored.model_copy(deep=True)

    def _commit(self, change: BalanceChange, delete: bool = False) -> BalanceChange:
        child, parent = change
        if delete:
            self._tables.remove(child)
        else:
            self._tables.put(child)
        self._tables.put(parent)
        return child.model_copy(deep=True), parent.model_copy(deep=True)

    # -------------------------------------------------------------------------
    # Debt payments
    # -------------------------------------------------------------------------

    async def record_debt_payment(
        self,
        household_id: int,
        payment: DebtPayment,
    ) -> tuple[DebtPayment, Debt]:
        async with self._lock:
            return self._commit(self._tables.plan_balance_insert(household_id, payment))

    async def update_debt_payment(
        self,
        household_id: int,
        payment_id: int,
        amount: Decimal,
        payment_date: Optional[date] = None,
    ) -> tuple[DebtPayment, Debt]:
        async with self._lock:
            return self._commit(self._tables.plan_balance_update(
                household_id, "debt_payments", payment_id, amount, payment_date
            ))

    async def delete_debt_payment(self, household_id: int, payment_id: int) -> Debt:
        async with self._lock:
            change = self._tables.plan_balance_delete(household_id, "debt_payments", payment_id)
            return self._commit(change, delete=True)[1]

    # -------------------------------------------------------------------------
    # Savings contributions
    # -------------------------------------------------------------------------

    async def record_savings_contribution(
        self,
        household_id: int,
        contribution: SavingsContribution,
    ) -> tuple[SavingsContribution, SavingsGoal]:
        async with self._lock:
            return self._commit(self._tables.plan_balance_insert(household_id, contribution))

    async def update_savings_contribution(
        self,
        household_id: int,
        contribution_id: int,
        amount: Decimal,
        contribution_date: Optional[date] = None,
    ) -> tuple[SavingsContribution, SavingsGoal]:
        async with self._lock:
            return self._commit(self._tables.plan_balance_update(
                household_id, "savings_contributions", contribution_id, amount, contribution_date
            ))

    async def delete_savings_contribution(
        self,
        household_id: int,
        contribution_id: int,
    ) -> SavingsGoal:
        async with self._lock:
            change = self._tables.plan_balance_delete(
                household_id, "savings_contributions", contribution_id
            )
            return self._commit(change, delete=True)[1]


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log kept in a list."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return sorted(self._events, key=lambda e: e.timestamp, reverse=True)[:limit]
