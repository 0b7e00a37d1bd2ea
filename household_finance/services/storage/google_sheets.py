"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the shared storage backend because:
1. Household members can view their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

Each ledger table is one worksheet (header row + one row per record).

TRADEOFFS:
- No transactions. A snapshot is one values_batch_get call over every
  worksheet, and each balance operation writes the child row and the
  parent balance in one values_batch_update call, so neither can be
  observed half-applied.
- Deleted rows are blanked except for their id, so row numbers read in
  the same request stay valid for the write and the id is never reused.
- Limited query capabilities (we filter in Python)
"""

import asyncio
import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials
from pydantic import BaseModel, ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential

from household_finance.config import GoogleSheetsSettings, get_settings
from household_finance.models.audit import AuditEvent, AuditEventType, AuditSeverity
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
    TABLE_MODELS,
    AuditStorageInterface,
    LedgerStorageInterface,
    StorageConnectionError,
    StorageError,
    table_for,
)
from household_finance.services.storage.tables import BalanceChange, LedgerTables


HOUSEHOLDS = "households"

SHEET_TITLES: dict[str, str] = {
    HOUSEHOLDS: "Households",
    "users": "Users",
    "categories": "Categories",
    "expenses": "Expenses",
    "incomes": "Income",
    "budgets": "Budgets",
    "recurring_bills": "RecurringBills",
    "bill_payments": "BillPayments",
    "debts": "Debts",
    "debt_payments": "DebtPayments",
    "savings_goals": "SavingsGoals",
    "savings_contributions": "SavingsContributions",
    "settlements": "Settlements",
}

# Column order follows the model's field order.
TABLE_COLUMNS: dict[str, list[str]] = {
    HOUSEHOLDS: list(Household.model_fields),
    **{table: list(model.model_fields) for table, model in TABLE_MODELS.items()},
}

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "household_id",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def model_to_row(model: BaseModel, columns: list[str]) -> list[str]:
    """Convert a model to a spreadsheet row."""
    return [_cell(getattr(model, column)) for column in columns]


def row_to_model(model_cls: type[BaseModel], columns: list[str], row: list) -> BaseModel:
    """
    Convert a spreadsheet row to a model.

    Empty cells are left out so the model's defaults apply. Pydantic
    parses the text cells into ints, Decimals, dates and bools.
    """
    data = {
        column: value
        for column, value in zip(columns, row)
        if value != ""
    }
    return model_cls.model_validate(data)


def _deleted_row(table: str, row_id: int) -> list[str]:
    """A deleted row keeps only its id."""
    return [str(row_id)] + [""] * (len(TABLE_COLUMNS[table]) - 1)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    A ready spreadsheet handle can be passed in instead of credentials.
    """

    def __init__(
        self,
        settings: Optional[GoogleSheetsSettings] = None,
        spreadsheet: Optional[gspread.Spreadsheet] = None,
    ):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet = spreadsheet
        self._settings = settings
        self._worksheets: dict[str, gspread.Worksheet] = {}

    @property
    def settings(self) -> GoogleSheetsSettings:
        if self._settings is None:
            self._settings = get_settings().google_sheets
        return self._settings

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self.settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise StorageConnectionError(
                    f"Google credentials file not found: {self.settings.credentials_path}"
                )
            except Exception as e:
                raise StorageConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self.settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise StorageConnectionError(
                    f"Spreadsheet not found: {self.settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(self, title: str, columns: list[str], rows: int = 1000) -> gspread.Worksheet:
        """Get or create a worksheet with a header row."""
        if title not in self._worksheets:
            spreadsheet = self.get_spreadsheet()
            try:
                sheet = spreadsheet.worksheet(title)
            except gspread.WorksheetNotFound:
                sheet = spreadsheet.add_worksheet(
                    title=title,
                    rows=rows,
                    cols=len(columns),
                )
                sheet.append_row(columns)
            self._worksheets[title] = sheet
        return self._worksheets[title]

    def get_table_sheet(self, table: str) -> gspread.Worksheet:
        return self.get_worksheet(SHEET_TITLES[table], TABLE_COLUMNS[table])

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self.get_worksheet(
            self.settings.audit_sheet_name,
            AUDIT_COLUMNS,
            rows=5000,  # More rows for audit log
        )


class SheetReadResult:
    """One batched read: parsed tables plus where each row lives."""

    def __init__(self):
        self.tables = LedgerTables()
        self.row_numbers: dict[tuple[str, int], int] = {}
        self.next_row: dict[str, int] = {}

    def append_row_number(self, table: str) -> int:
        row_number = self.next_row[table]
        self.next_row[table] += 1
        return row_number


class GoogleSheetsLedgerStorage(LedgerStorageInterface):
    """
    Google Sheets implementation of ledger storage.

    Every operation starts from one batched read of all ledger worksheets.
    Writes from this process are serialized by an asyncio.Lock.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
        self._lock = asyncio.Lock()

    # -------------------------------------------------------------------------
    # Raw sheet access
    # -------------------------------------------------------------------------

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _fetch_all(self) -> list[dict]:
        try:
            for table in SHEET_TITLES:
                self._client.get_table_sheet(table)
            response = self._client.get_spreadsheet().values_batch_get(
                [f"'{title}'" for title in SHEET_TITLES.values()]
            )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read ledger: {e}")
        return response.get("valueRanges", [])

    def _read_all(self) -> SheetReadResult:
        result = SheetReadResult()
        value_ranges = self._fetch_all()
        for table, value_range in zip(SHEET_TITLES, value_ranges):
            values = value_range.get("values", [])
            result.next_row[table] = max(len(values), 1) + 1
            model_cls = Household if table == HOUSEHOLDS else TABLE_MODELS[table]

            # Row 1 is the header
            for row_number, row in enumerate(values[1:], start=2):
                if not row or not row[0]:
                    continue
                try:
                    if table != HOUSEHOLDS and not any(row[1:]):
                        result.tables.retire_id(table, int(row[0]))
                        continue
                    record = row_to_model(model_cls, TABLE_COLUMNS[table], row)
                except (ValidationError, ValueError) as e:
                    raise StorageError(
                        f"Malformed row {row_number} in {SHEET_TITLES[table]}: {e}"
                    )
                if table == HOUSEHOLDS:
                    result.tables.households[record.id] = record
                else:
                    result.tables.put(record)
                result.row_numbers[(table, record.id)] = row_number
        return result

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _write_rows(self, writes: list[tuple[str, int, list[str]]]) -> None:
        """Write (table, row_number, values) rows in a single batch update."""
        try:
            for table, row_number, _ in writes:
                sheet = self._client.get_table_sheet(table)
                if row_number > sheet.row_count:
                    sheet.add_rows(row_number - sheet.row_count)

            self._client.get_spreadsheet().values_batch_update({
                "valueInputOption": "RAW",
                "data": [
                    {
                        "range": f"'{SHEET_TITLES[table]}'!A{row_number}",
                        "values": [values],
                    }
                    for table, row_number, values in writes
                ],
            })
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to write ledger rows: {e}")

    def _row_write(self, result: SheetReadResult, row: BaseModel) -> tuple[str, int, list[str]]:
        """Write for an existing row, or an appended one for a new row."""
        table = HOUSEHOLDS if isinstance(row, Household) else table_for(row)
        row_number = result.row_numbers.get((table, row.id))
        if row_number is None:
            row_number = result.append_row_number(table)
        return table, row_number, model_to_row(row, TABLE_COLUMNS[table])

    def _commit(
        self,
        result: SheetReadResult,
        change: BalanceChange,
        delete: bool = False,
    ) -> BalanceChange:
        child, parent = change
        if delete:
            table = table_for(child)
            child_write = (
                table, result.row_numbers[(table, child.id)], _deleted_row(table, child.id)
            )
        else:
            child_write = self._row_write(result, child)
        self._write_rows([child_write, self._row_write(result, parent)])
        return child, parent

    # -------------------------------------------------------------------------
    # Interface
    # -------------------------------------------------------------------------

    async def add_household(self, household: Household) -> Household:
        async with self._lock:
            result = self._read_all()
            household = result.tables.prepare_household(household)
            self._write_rows([self._row_write(result, household)])
            return household

    async def get_household(self, household_id: int) -> Household:
        return self._read_all().tables.require_household(household_id)

    async def load_ledger(self, household_id: int) -> HouseholdLedger:
        return self._read_all().tables.snapshot(household_id)

    async def add_record(self, household_id: int, record: LedgerRecord) -> LedgerRecord:
        async with self._lock:
            result = self._read_all()
            stored = result.tables.plan_plain_insert(household_id, record)
            self._write_rows([self._row_write(result, stored)])
            return stored

    async def record_debt_payment(
        self,
        household_id: int,
        payment: DebtPayment,
    ) -> tuple[DebtPayment, Debt]:
        async with self._lock:
            result = self._read_all()
            return self._commit(result, result.tables.plan_balance_insert(household_id, payment))

    async def update_debt_payment(
        self,
        household_id: int,
        payment_id: int,
        amount: Decimal,
        payment_date: Optional[date] = None,
    ) -> tuple[DebtPayment, Debt]:
        async with self._lock:
            result = self._read_all()
            return self._commit(result, result.tables.plan_balance_update(
                household_id, "debt_payments", payment_id, amount, payment_date
            ))

    async def delete_debt_payment(self, household_id: int, payment_id: int) -> Debt:
        async with self._lock:
            result = self._read_all()
            change = result.tables.plan_balance_delete(household_id, "debt_payments", payment_id)
            return self._commit(result, change, delete=True)[1]

    async def record_savings_contribution(
        self,
        household_id: int,
        contribution: SavingsContribution,
    ) -> tuple[SavingsContribution, SavingsGoal]:
        async with self._lock:
            result = self._read_all()
            return self._commit(
                result, result.tables.plan_balance_insert(household_id, contribution)
            )

    async def update_savings_contribution(
        self,
        household_id: int,
        contribution_id: int,
        amount: Decimal,
        contribution_date: Optional[date] = None,
    ) -> tuple[SavingsContribution, SavingsGoal]:
        async with self._lock:
            result = self._read_all()
            return self._commit(result, result.tables.plan_balance_update(
                household_id, "savings_contributions", contribution_id, amount, contribution_date
            ))

    async def delete_savings_contribution(
        self,
        household_id: int,
        contribution_id: int,
    ) -> SavingsGoal:
        async with self._lock:
            result = self._read_all()
            change = result.tables.plan_balance_delete(
                household_id, "savings_contributions", contribution_id
            )
            return self._commit(result, change, delete=True)[1]


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            household_id=int(safe_get(4)) if safe_get(4) else None,
            entity_type=safe_get(5) or None,
            entity_id=int(safe_get(6)) if safe_get(6) else None,
            correlation_id=UUID(safe_get(7)) if safe_get(7) else None,
            description=safe_get(8),
            details=json.loads(safe_get(9)) if safe_get(9) else {},
            error_message=safe_get(10) or None,
            is_user_action=safe_get(11).lower() == "true",
        )

    def _all_events(self) -> list[AuditEvent]:
        try:
            rows = self._client.get_audit_sheet().get_all_values()[1:]
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        return [self._row_to_event(row) for row in rows if row and row[0]]

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to write audit event: {e}")

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        events = [e for e in self._all_events() if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        events = self._all_events()
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
