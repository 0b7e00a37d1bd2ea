"""Tests for budget progress and budget vs actual."""

from decimal import Decimal

from household_finance.engine.budgets import budget_comparison, budget_progress
from household_finance.models.ledger import Budget, Expense, HouseholdLedger
from datetime import date


class TestBudgetProgress:
    """Tests for budget progress."""

    def test_category_budget(self, ledger):
        """Groceries: 30.00 + 15.60 against 100.00."""
        progress = {p.budget_id: p for p in budget_progress(ledger, 3, 2024)}
        groceries = progress[1]

        assert groceries.category_name == "Groceries"
        assert groceries.spent_amount == Decimal("45.60")
        assert groceries.remaining_amount == Decimal("54.40")
        assert groceries.percent_used == Decimal("45.60")
        assert groceries.is_over_budget is False

    def test_household_wide_budget_counts_all_expenses(self, ledger):
        progress = {p.budget_id: p for p in budget_progress(ledger, 3, 2024)}
        household = progress[2]

        assert household.category_id is None
        assert household.category_name == "Total Budget"
        assert household.spent_amount == Decimal("215.60")
        assert household.percent_used == Decimal("43.12")

    def test_zero_amount_budget(self, ledger):
        """Zero budgets report 0% but are still over budget when spent."""
        progress = {p.budget_id: p for p in budget_progress(ledger, 3, 2024)}
        dining = progress[3]

        assert dining.percent_used == Decimal("0")
        assert dining.is_over_budget is True
        assert dining.remaining_amount == Decimal("-40.00")

    def test_ordered_by_percent_used(self, ledger):
        progress = budget_progress(ledger, 3, 2024)
        assert [p.budget_id for p in progress] == [1, 2, 3]

    def test_only_target_period(self, ledger):
        progress = budget_progress(ledger, 2, 2024)
        assert [p.budget_id for p in progress] == [4]
        assert progress[0].spent_amount == Decimal("50.00")
        assert progress[0].percent_used == Decimal("62.50")

    def test_exactly_on_budget_is_not_over(self):
        ledger = HouseholdLedger(
            household_id=1,
            budgets=[Budget(id=1, household_id=1, month=1, year=2024, category_id=5, amount=Decimal("100.00"))],
            expenses=[
                Expense(id=1, household_id=1, category_id=5, amount=Decimal("100.00"),
                        expense_date=date(2024, 1, 3)),
            ],
        )
        [progress] = budget_progress(ledger, 1, 2024)
        assert progress.percent_used == Decimal("100.00")
        assert progress.is_over_budget is False

    def test_empty_period(self, empty_ledger):
        assert budget_progress(empty_ledger, 3, 2024) == []


class TestBudgetComparison:
    """Tests for budget vs actual."""

    def test_keeps_budget_order(self, ledger):
        comparison = budget_comparison(ledger, 3, 2024)
        assert [c.category_name for c in comparison] == ["Groceries", "Total Budget", "Dining"]

    def test_budget_without_spending_reports_zero(self):
        ledger = HouseholdLedger(
            household_id=1,
            budgets=[Budget(id=1, household_id=1, month=3, year=2024, category_id=77, amount=Decimal("60"))],
        )
        [row] = budget_comparison(ledger, 3, 2024)
        assert row.spent_amount == Decimal("0")
        assert row.remaining_amount == Decimal("60")
        assert row.category_name == "Uncategorized"
        assert row.is_over_budget is False
