"""Tests for debt and savings progress and running-balance deltas."""

from decimal import Decimal

from household_finance.engine.balances import (
    apply_contribution_delta,
    apply_debt_payment_delta,
    debt_summary,
    savings_progress,
)
from household_finance.models.ledger import Debt, SavingsGoal


class TestDebtSummary:
    """Tests for debt payoff progress."""

    def test_totals_over_active_debts(self, ledger):
        summary = debt_summary(ledger)

        assert summary.total_debt == Decimal("5800")
        assert summary.total_paid == Decimal("5200")
        assert summary.percent_paid == Decimal("47.27")

    def test_inactive_debts_excluded_and_ordered_by_balance(self, ledger):
        summary = debt_summary(ledger)
        assert [d.id for d in summary.debts] == [1, 2]

    def test_stored_balance_reported_as_is(self, ledger):
        """The overpaid card keeps its negative balance."""
        summary = debt_summary(ledger)
        card = summary.debts[1]
        assert card.current_balance == Decimal("-200")

    def test_no_debts(self, empty_ledger):
        summary = debt_summary(empty_ledger)
        assert summary.total_debt == Decimal("0")
        assert summary.percent_paid == Decimal("0")
        assert summary.debts == []


class TestSavingsProgress:
    """Tests for savings goal progress."""

    def test_totals(self, ledger):
        summary = savings_progress(ledger)

        assert summary.total_target == Decimal("3000")
        assert summary.total_saved == Decimal("2400")
        assert summary.total_remaining == Decimal("600")
        assert summary.percent_complete == Decimal("80.00")

    def test_goals_ordered_and_not_clamped(self, ledger):
        goals = savings_progress(ledger).goals

        assert [g.id for g in goals] == [2, 1, 3]
        assert goals[0].percent_complete == Decimal("105.00")
        assert goals[0].remaining_amount == Decimal("-100")
        # zero target
        assert goals[2].percent_complete == Decimal("0")


class TestBalanceDeltas:
    """Tests for the running-balance arithmetic."""

    def _debt(self) -> Debt:
        return Debt(
            id=1,
            household_id=1,
            name="Card",
            original_amount=Decimal("1000.00"),
            current_balance=Decimal("1000.00"),
        )

    def test_payment_create_update_delete(self):
        debt = apply_debt_payment_delta(self._debt(), new_amount=Decimal("300"))
        assert debt.current_balance == Decimal("700.00")

        debt = apply_debt_payment_delta(debt, old_amount=Decimal("300"), new_amount=Decimal("450"))
        assert debt.current_balance == Decimal("550.00")

        debt = apply_debt_payment_delta(debt, old_amount=Decimal("450"))
        assert debt.current_balance == Decimal("1000.00")

    def test_overpayment_goes_negative(self):
        """Payments totaling 1200 on a 1000 debt leave -200."""
        debt = self._debt()
        for amount in ("500", "500", "200"):
            debt = apply_debt_payment_delta(debt, new_amount=Decimal(amount))
        assert debt.current_balance == Decimal("-200.00")

    def test_original_is_untouched(self):
        original = self._debt()
        apply_debt_payment_delta(original, new_amount=Decimal("10"))
        assert original.current_balance == Decimal("1000.00")

    def test_contribution_create_update_delete(self):
        goal = SavingsGoal(id=1, household_id=1, name="Trip", target_amount=Decimal("500"))

        goal = apply_contribution_delta(goal, new_amount=Decimal("100"))
        assert goal.current_amount == Decimal("100")

        goal = apply_contribution_delta(goal, old_amount=Decimal("100"), new_amount=Decimal("80"))
        assert goal.current_amount == Decimal("80")

        goal = apply_contribution_delta(goal, old_amount=Decimal("80"))
        assert goal.current_amount == Decimal("0")
