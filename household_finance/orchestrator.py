"""
Main Orchestrator for Household Finance

This module ties together all the components and defines the
end-to-end flows for:
1. Dashboard (one household, one period, one requesting user)
2. Reports (monthly summary, breakdowns, budget vs actual, comparisons)
3. Ledger writes (plain rows, balance-affecting payments, settlements)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Every read works on ONE ledger snapshot loaded per request
- The aggregation engine never touches storage
- Balance-affecting writes go through the atomic storage operations
- Settlements are validated before they are written
- Every step is audited
"""

import asyncio
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Callable, Optional, Union
from uuid import UUID

import structlog

from household_finance.audit import AuditLogger, create_correlation_id
from household_finance.config import AppSettings, get_settings
from household_finance.engine import (
    budget_comparison,
    budget_progress,
    category_breakdown,
    debt_summary,
    expense_overview,
    month_comparison,
    monthly_totals,
    recent_expenses,
    savings_progress,
    settlement_balance,
    upcoming_bills,
)
from household_finance.engine.budgets import period_expenses
from household_finance.models.audit import AuditEventType
from household_finance.models.ledger import (
    Debt,
    DebtPayment,
    HouseholdLedger,
    LedgerRecord,
    SavingsContribution,
    SavingsGoal,
    Settlement,
)
from household_finance.models.reports import (
    BudgetComparison,
    CategoryBreakdown,
    DashboardResult,
    ExpenseOverview,
    MonthComparisonResult,
    MonthlySummaryResult,
    SettlementBalance,
    UpcomingBill,
)
from household_finance.models.validation import ValidationResult
from household_finance.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
    LedgerStorageInterface,
    StorageError,
)
from household_finance.validation import LedgerValidator

logger = structlog.get_logger("household_finance.orchestrator")


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


class SettlementRejectedError(Exception):
    """A settlement failed validation and was not written."""

    def __init__(self, result: ValidationResult):
        self.result = result
        super().__init__("; ".join(result.error_messages))


class _LedgerReader:
    """Shared snapshot loading for the composers."""

    def __init__(
        self,
        storage: LedgerStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[AppSettings] = None,
        clock: Callable[[], date] = utc_today,
    ):
        self._storage = storage
        self._audit_logger = audit_logger
        self._settings = settings or get_settings().app
        self._clock = clock

    async def _load(self, household_id: int, correlation_id: UUID) -> HouseholdLedger:
        try:
            return await self._storage.load_ledger(household_id)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation="load_ledger",
                    error_message=str(e),
                    household_id=household_id,
                    correlation_id=correlation_id,
                )
            raise

    async def _audit_view(
        self,
        event_type: AuditEventType,
        household_id: int,
        view: str,
        details: dict,
        correlation_id: UUID,
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_view_computed(
                event_type=event_type,
                household_id=household_id,
                view=view,
                details=details,
                correlation_id=correlation_id,
            )


class DashboardComposer(_LedgerReader):
    """
    Builds the dashboard for one household and period.

    The period defaults to the current calendar month. Upcoming bills are
    always projected from today's date, whatever period is shown.
    """

    async def compute_dashboard(
        self,
        household_id: int,
        user_id: int,
        month: Optional[int] = None,
        year: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> DashboardResult:
        correlation_id = correlation_id or create_correlation_id()
        today = self._clock()
        month = month or today.month
        year = year or today.year

        ledger = await self._load(household_id, correlation_id)
        expenses = period_expenses(ledger, month, year)
        totals = monthly_totals(ledger, month, year, expenses)

        result = DashboardResult(
            household_id=household_id,
            month=month,
            year=year,
            total_income=totals.total_income,
            total_expenses=totals.total_expenses,
            net_income=totals.net_income,
            expenses_by_category=category_breakdown(ledger, month, year, expenses),
            budgets=budget_progress(ledger, month, year, expenses),
            debts=debt_summary(ledger),
            savings=savings_progress(ledger),
            upcoming_bills=upcoming_bills(
                ledger, today, self._settings.upcoming_bills_lookahead_days
            ),
            recent_expenses=recent_expenses(ledger, self._settings.recent_expenses_count),
            settlement_balance=settlement_balance(ledger, user_id),
        )

        await self._audit_view(
            AuditEventType.DASHBOARD_COMPUTED,
            household_id,
            "dashboard",
            {"month": month, "year": year, "user_id": user_id},
            correlation_id,
        )
        return result

    async def compute_upcoming_bills(
        self,
        household_id: int,
        lookahead_days: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> list[UpcomingBill]:
        correlation_id = correlation_id or create_correlation_id()
        if lookahead_days is None:
            lookahead_days = self._settings.upcoming_bills_lookahead_days

        ledger = await self._load(household_id, correlation_id)
        bills = upcoming_bills(ledger, self._clock(), lookahead_days)

        await self._audit_view(
            AuditEventType.DASHBOARD_COMPUTED,
            household_id,
            "upcoming_bills",
            {"lookahead_days": lookahead_days, "result_count": len(bills)},
            correlation_id,
        )
        return bills

    async def compute_settlement_balance(
        self,
        household_id: int,
        user_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> SettlementBalance:
        correlation_id = correlation_id or create_correlation_id()
        ledger = await self._load(household_id, correlation_id)
        balance = settlement_balance(ledger, user_id)

        await self._audit_view(
            AuditEventType.DASHBOARD_COMPUTED,
            household_id,
            "settlement_balance",
            {"user_id": user_id, "status": balance.status.value},
            correlation_id,
        )
        return balance


class ReportComposer(_LedgerReader):
    """Report views over one household snapshot."""

    async def compute_monthly_summary(
        self,
        household_id: int,
        month: int,
        year: int,
        correlation_id: Optional[UUID] = None,
    ) -> MonthlySummaryResult:
        correlation_id = correlation_id or create_correlation_id()
        ledger = await self._load(household_id, correlation_id)
        expenses = period_expenses(ledger, month, year)
        totals = monthly_totals(ledger, month, year, expenses)

        summary = MonthlySummaryResult(
            month=month,
            year=year,
            total_income=totals.total_income,
            total_expenses=totals.total_expenses,
            net_income=totals.net_income,
            transaction_count=totals.transaction_count,
            expenses_by_category=category_breakdown(ledger, month, year, expenses),
            budget_comparison=budget_comparison(ledger, month, year, expenses),
        )

        await self._audit_view(
            AuditEventType.REPORT_COMPUTED,
            household_id,
            "monthly_summary",
            {"month": month, "year": year},
            correlation_id,
        )
        return summary

    async def compute_category_breakdown(
        self,
        household_id: int,
        month: int,
        year: int,
        correlation_id: Optional[UUID] = None,
    ) -> list[CategoryBreakdown]:
        correlation_id = correlation_id or create_correlation_id()
        ledger = await self._load(household_id, correlation_id)
        breakdown = category_breakdown(ledger, month, year)

        await self._audit_view(
            AuditEventType.REPORT_COMPUTED,
            household_id,
            "category_breakdown",
            {"month": month, "year": year},
            correlation_id,
        )
        return breakdown

    async def compute_budget_comparison(
        self,
        household_id: int,
        month: int,
        year: int,
        correlation_id: Optional[UUID] = None,
    ) -> list[BudgetComparison]:
        correlation_id = correlation_id or create_correlation_id()
        ledger = await self._load(household_id, correlation_id)
        comparison = budget_comparison(ledger, month, year)

        await self._audit_view(
            AuditEventType.REPORT_COMPUTED,
            household_id,
            "budget_comparison",
            {"month": month, "year": year},
            correlation_id,
        )
        return comparison

    async def compute_month_comparison(
        self,
        household_id: int,
        month1: int,
        year1: int,
        month2: int,
        year2: int,
        correlation_id: Optional[UUID] = None,
    ) -> MonthComparisonResult:
        correlation_id = correlation_id or create_correlation_id()
        ledger = await self._load(household_id, correlation_id)
        result = month_comparison(ledger, month1, year1, month2, year2)

        await self._audit_view(
            AuditEventType.REPORT_COMPUTED,
            household_id,
            "month_comparison",
            {
                "month1": month1,
                "year1": year1,
                "month2": month2,
                "year2": year2,
                "trend": result.comparison.trend.value,
            },
            correlation_id,
        )
        return result

    async def compute_expense_overview(
        self,
        household_id: int,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ExpenseOverview:
        correlation_id = correlation_id or create_correlation_id()
        ledger = await self._load(household_id, correlation_id)
        overview = expense_overview(ledger, today or self._clock())

        await self._audit_view(
            AuditEventType.REPORT_COMPUTED,
            household_id,
            "expense_overview",
            {"total_expenses": overview.total_expenses},
            correlation_id,
        )
        return overview


class LedgerWriteFlow:
    """
    Orchestrates ledger writes.

    Flow for a settlement:
    1. Load the household snapshot
    2. Validate parties and amount
    3. Refuse (and audit) when invalid
    4. Write and audit

    Debt payments and savings contributions always go through the
    storage's atomic balance operations.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        validator: Optional[LedgerValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._validator = validator or LedgerValidator()
        self._audit_logger = audit_logger

    async def add_record(
        self,
        household_id: int,
        record: LedgerRecord,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerRecord:
        """
        Write any ledger row, routing balance-affecting rows and
        settlements through their dedicated flows.
        """
        if isinstance(record, Settlement):
            return await self.record_settlement(household_id, record, correlation_id=correlation_id)
        if isinstance(record, DebtPayment):
            return (await self.record_debt_payment(household_id, record, correlation_id))[0]
        if isinstance(record, SavingsContribution):
            return (await self.record_savings_contribution(household_id, record, correlation_id))[0]

        correlation_id = correlation_id or create_correlation_id()
        stored = await self._storage.add_record(household_id, record)

        if self._audit_logger:
            await self._audit_logger.log_record_added(
                household_id=household_id,
                entity_type=type(stored).__name__,
                entity_id=stored.id,
                correlation_id=correlation_id,
            )
        return stored

    # -------------------------------------------------------------------------
    # Running balances
    # -------------------------------------------------------------------------

    async def _balance_before(self, household_id: int, table: str, parent_id: int) -> Decimal:
        """Parent balance before a write; only used for the audit delta."""
        ledger = await self._storage.load_ledger(household_id)
        for parent in getattr(ledger, table):
            if parent.id == parent_id:
                return parent.current_balance if isinstance(parent, Debt) else parent.current_amount
        return Decimal("0")

    async def _audit_balance(
        self,
        event_type: AuditEventType,
        household_id: int,
        child_type: str,
        child_id: int,
        parent: Union[Debt, SavingsGoal],
        before: Decimal,
        correlation_id: Optional[UUID],
    ) -> None:
        if not self._audit_logger:
            return
        after = parent.current_balance if isinstance(parent, Debt) else parent.current_amount
        await self._audit_logger.log_balance_adjusted(
            event_type=event_type,
            household_id=household_id,
            entity_type=child_type,
            entity_id=child_id,
            parent_id=parent.id,
            delta=str(after - before),
            new_balance=str(after),
            correlation_id=correlation_id or create_correlation_id(),
        )

    async def _parent_id(self, household_id: int, table: str, child_id: int, key: str) -> int:
        ledger = await self._storage.load_ledger(household_id)
        for child in getattr(ledger, table):
            if child.id == child_id:
                return getattr(child, key)
        return 0

    async def record_debt_payment(
        self,
        household_id: int,
        payment: DebtPayment,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[DebtPayment, Debt]:
        before = await self._balance_before(household_id, "debts", payment.debt_id)
        stored, debt = await self._storage.record_debt_payment(household_id, payment)
        await self._audit_balance(
            AuditEventType.DEBT_PAYMENT_RECORDED,
            household_id, "debt_payment", stored.id, debt, before, correlation_id,
        )
        return stored, debt

    async def update_debt_payment(
        self,
        household_id: int,
        payment_id: int,
        amount: Decimal,
        payment_date: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[DebtPayment, Debt]:
        debt_id = await self._parent_id(household_id, "debt_payments", payment_id, "debt_id")
        before = await self._balance_before(household_id, "debts", debt_id)
        stored, debt = await self._storage.update_debt_payment(
            household_id, payment_id, amount, payment_date
        )
        await self._audit_balance(
            AuditEventType.DEBT_PAYMENT_UPDATED,
            household_id, "debt_payment", stored.id, debt, before, correlation_id,
        )
        return stored, debt

    async def delete_debt_payment(
        self,
        household_id: int,
        payment_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> Debt:
        debt_id = await self._parent_id(household_id, "debt_payments", payment_id, "debt_id")
        before = await self._balance_before(household_id, "debts", debt_id)
        debt = await self._storage.delete_debt_payment(household_id, payment_id)
        await self._audit_balance(
            AuditEventType.DEBT_PAYMENT_DELETED,
            household_id, "debt_payment", payment_id, debt, before, correlation_id,
        )
        return debt

    async def record_savings_contribution(
        self,
        household_id: int,
        contribution: SavingsContribution,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[SavingsContribution, SavingsGoal]:
        before = await self._balance_before(
            household_id, "savings_goals", contribution.savings_goal_id
        )
        stored, goal = await self._storage.record_savings_contribution(household_id, contribution)
        await self._audit_balance(
            AuditEventType.CONTRIBUTION_RECORDED,
            household_id, "savings_contribution", stored.id, goal, before, correlation_id,
        )
        return stored, goal

    async def update_savings_contribution(
        self,
        household_id: int,
        contribution_id: int,
        amount: Decimal,
        contribution_date: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[SavingsContribution, SavingsGoal]:
        goal_id = await self._parent_id(
            household_id, "savings_contributions", contribution_id, "savings_goal_id"
        )
        before = await self._balance_before(household_id, "savings_goals", goal_id)
        stored, goal = await self._storage.update_savings_contribution(
            household_id, contribution_id, amount, contribution_date
        )
        await self._audit_balance(
            AuditEventType.CONTRIBUTION_UPDATED,
            household_id, "savings_contribution", stored.id, goal, before, correlation_id,
        )
        return stored, goal

    async def delete_savings_contribution(
        self,
        household_id: int,
        contribution_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> SavingsGoal:
        goal_id = await self._parent_id(
            household_id, "savings_contributions", contribution_id, "savings_goal_id"
        )
        before = await self._balance_before(household_id, "savings_goals", goal_id)
        goal = await self._storage.delete_savings_contribution(household_id, contribution_id)
        await self._audit_balance(
            AuditEventType.CONTRIBUTION_DELETED,
            household_id, "savings_contribution", contribution_id, goal, before, correlation_id,
        )
        return goal

    # -------------------------------------------------------------------------
    # Settlements
    # -------------------------------------------------------------------------

    async def record_settlement(
        self,
        household_id: int,
        settlement: Settlement,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Settlement:
        """
        Validate and write a settlement.

        Raises:
            SettlementRejectedError: If validation found any error
        """
        correlation_id = correlation_id or create_correlation_id()
        ledger = await self._storage.load_ledger(household_id)
        result = self._validator.validate_settlement(ledger, settlement, today)

        if not result.is_valid:
            if self._audit_logger:
                await self._audit_logger.log_settlement_rejected(
                    household_id=household_id,
                    issues=[
                        {"field": i.field, "type": i.issue_type, "message": i.message}
                        for i in result.issues
                    ],
                    correlation_id=correlation_id,
                )
            raise SettlementRejectedError(result)

        stored = await self._storage.add_record(household_id, settlement)

        if self._audit_logger:
            await self._audit_logger.log_settlement_recorded(
                household_id=household_id,
                settlement_id=stored.id,
                from_user_id=stored.from_user_id,
                to_user_id=stored.to_user_id,
                amount=str(stored.amount),
                correlation_id=correlation_id,
            )
        return stored


def create_app_components(
    use_storage: bool = True,
) -> tuple[DashboardComposer, ReportComposer, LedgerWriteFlow, LedgerStorageInterface]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use the configured storage backend.
                    Set to False for in-memory storage regardless of settings.

    Returns:
        (dashboard_composer, report_composer, write_flow, ledger_storage)
    """
    settings = get_settings().app
    ledger_storage: LedgerStorageInterface = InMemoryLedgerStorage()
    audit_logger = AuditLogger(InMemoryAuditStorage())

    if use_storage and settings.storage_backend == "google_sheets":
        try:
            sheets_client = GoogleSheetsClient()
            sheets_client.get_spreadsheet()
            ledger_storage = GoogleSheetsLedgerStorage(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))
            ledger_storage = InMemoryLedgerStorage()
            audit_logger = AuditLogger(InMemoryAuditStorage())
            asyncio.run(audit_logger.log_error(
                error_type="storage_not_configured",
                error_message=str(e),
                details={"storage_backend": settings.storage_backend},
            ))

    dashboard = DashboardComposer(ledger_storage, audit_logger, settings)
    reports = ReportComposer(ledger_storage, audit_logger, settings)
    write_flow = LedgerWriteFlow(ledger_storage, audit_logger=audit_logger)

    return dashboard, reports, write_flow, ledger_storage
