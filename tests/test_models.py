"""
Tests for Household Finance models

Test strategy:
1. Unit tests for models and the aggregation engine (pure functions)
2. Flow tests against in-memory storage
3. No real API calls in tests (fake spreadsheet objects stand in for gspread)
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from household_finance.models.ledger import (
    Budget,
    Category,
    Debt,
    Expense,
    HouseholdLedger,
    Income,
    RecurringBill,
    User,
)
from household_finance.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from household_finance.models.validation import ValidationIssue, ValidationResult


class TestLedgerModels:
    """Tests for ledger entity models."""

    def test_expense_creation(self):
        """Test Expense model creation."""
        expense = Expense(
            id=1,
            household_id=1,
            category_id=10,
            amount=Decimal("12.50"),
            expense_date=date(2024, 3, 1),
        )
        assert expense.amount == Decimal("12.50")
        assert expense.paid_by_user_id is None

    def test_expense_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            Expense(
                id=1,
                household_id=1,
                category_id=10,
                amount=Decimal("-1"),
                expense_date=date(2024, 3, 1),
            )

    def test_income_month_bounds(self):
        """Test income month must be 1-12."""
        with pytest.raises(ValueError):
            Income(id=1, household_id=1, user_id=1, month=13, year=2024, amount=Decimal("1"))

    def test_category_default_color(self):
        """Test categories get the neutral gray by default."""
        category = Category(id=1, household_id=1, name="  Groceries  ")
        assert category.color == "#9CA3AF"
        assert category.name == "Groceries"

    def test_budget_without_category_is_household_wide(self):
        """Test budget category is optional."""
        budget = Budget(id=1, household_id=1, month=3, year=2024, amount=Decimal("500"))
        assert budget.category_id is None

    def test_recurring_bill_keeps_out_of_range_day(self):
        """Test day_of_month is stored as given; projection decides what it means."""
        bill = RecurringBill(id=1, household_id=1, category_id=1, day_of_month=40)
        assert bill.day_of_month == 40

    def test_debt_balance_may_be_negative(self):
        """Test overpaid debts keep their negative balance."""
        debt = Debt(
            id=1,
            household_id=1,
            name="Card",
            original_amount=Decimal("1000"),
            current_balance=Decimal("-200"),
        )
        assert debt.current_balance == Decimal("-200")


class TestHouseholdLedger:
    """Tests for the snapshot container."""

    def test_rejects_rows_from_another_household(self):
        """Test that a snapshot can't mix households."""
        with pytest.raises(ValueError, match="belongs to household 2"):
            HouseholdLedger(
                household_id=1,
                users=[User(id=5, household_id=2, username="mallory")],
            )

    def test_lookups(self, ledger):
        """Test id lookup helpers."""
        assert ledger.category_by_id()[10].name == "Groceries"
        assert ledger.user_by_id()[2].username == "bob"
        assert ledger.member_ids() == {1, 2, 3}

    def test_empty_ledger(self, empty_ledger):
        """Test every collection defaults to empty."""
        assert empty_ledger.expenses == []
        assert empty_ledger.member_ids() == set()


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.RECORD_ADDED,
            description="Expense added",
        )
        assert event.event_type == AuditEventType.RECORD_ADDED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.SETTLEMENT_RECORDED,
            household_id=1,
            description="Settlement recorded",
            details={"amount": "50"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "settlement_recorded"
        assert log_dict["household_id"] == 1
        assert log_dict["details"]["amount"] == "50"

    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        event = AuditEvent(
            event_type=AuditEventType.RECORD_ADDED,
            household_id=3,
            entity_id=7,
            description="Expense added",
            is_user_action=True,
        )
        row = event.to_sheets_row()
        assert len(row) == 12  # Expected number of columns
        assert row[2] == "record_added"  # event_type
        assert row[4] == "3"  # household_id
        assert row[6] == "7"  # entity_id
        assert row[11] == "True"  # is_user_action

    def test_audit_event_builder_balance_adjusted(self):
        """Test AuditEventBuilder.balance_adjusted."""
        correlation_id = uuid4()
        event = AuditEventBuilder.balance_adjusted(
            event_type=AuditEventType.DEBT_PAYMENT_RECORDED,
            household_id=1,
            entity_type="debt_payment",
            entity_id=4,
            parent_id=2,
            delta="-100",
            new_balance="900",
            correlation_id=correlation_id,
        )
        assert event.entity_id == 4
        assert event.details == {"parent_id": 2, "delta": "-100", "new_balance": "900"}
        assert event.correlation_id == correlation_id
        assert event.is_user_action is True

    def test_audit_event_builder_settlement_rejected(self):
        """Test rejected settlements are warnings."""
        event = AuditEventBuilder.settlement_rejected(
            household_id=1,
            issues=[{"field": "to_user_id", "type": "self_settlement", "message": "x"}],
        )
        assert event.event_type == AuditEventType.SETTLEMENT_REJECTED
        assert event.severity == AuditSeverity.WARNING

    def test_audit_event_builder_view_computed(self):
        """Test computed views log at debug level."""
        event = AuditEventBuilder.view_computed(
            event_type=AuditEventType.DASHBOARD_COMPUTED,
            household_id=1,
            view="upcoming_bills",
        )
        assert event.severity == AuditSeverity.DEBUG
        assert event.entity_type == "upcoming_bills"
        assert event.details == {}


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            is_valid=False,
            issues=[
                ValidationIssue(
                    field="to_user_id",
                    issue_type="self_settlement",
                    message="Cannot settle with yourself",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1
        assert result.error_messages == ["Cannot settle with yourself"]

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            is_valid=True,
            issues=[
                ValidationIssue(
                    field="settlement_date",
                    issue_type="future_date",
                    message="Date in future",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0

    def test_validation_issue_severity_pattern(self):
        """Test severity must be error, warning or info."""
        with pytest.raises(ValueError):
            ValidationIssue(field="x", issue_type="y", message="z", severity="fatal")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
