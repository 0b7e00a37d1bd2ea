"""
Debt and Savings Progress

Summaries read the stored running balances (Debt.current_balance,
SavingsGoal.current_amount) and never recompute them from payments.

The write path keeps those balances current through the delta helpers at
the bottom of this module.
"""

from datetime import datetime, timezone
from decimal import Decimal

from household_finance.engine.periods import ZERO, percent_of, total
from household_finance.models.ledger import Debt, HouseholdLedger, SavingsGoal
from household_finance.models.reports import (
    DebtItem,
    DebtSummary,
    SavingsGoalItem,
    SavingsSummary,
)


def debt_summary(ledger: HouseholdLedger) -> DebtSummary:
    """
    Payoff progress over the household's active debts.

    total_paid = sum(original) - sum(current balance). Overpaid debts
    carry a negative balance and are reported as-is.
    """
    debts = [d for d in ledger.debts if d.is_active]

    total_original = total(d.original_amount for d in debts)
    total_current = total(d.current_balance for d in debts)
    total_paid = total_original - total_current

    items = [
        DebtItem(
            id=d.id,
            name=d.name,
            debt_type=d.debt_type,
            current_balance=d.current_balance,
            interest_rate=d.interest_rate,
            minimum_payment=d.minimum_payment,
        )
        for d in debts
    ]
    items.sort(key=lambda d: (-d.current_balance, d.id))

    return DebtSummary(
        total_debt=total_current,
        total_paid=total_paid,
        percent_paid=percent_of(total_paid, total_original),
        debts=items,
    )


def savings_progress(ledger: HouseholdLedger) -> SavingsSummary:
    """Progress over the household's active savings goals, closest to done first."""
    goals = [g for g in ledger.savings_goals if g.is_active]

    total_target = total(g.target_amount for g in goals)
    total_saved = total(g.current_amount for g in goals)

    items = [
        SavingsGoalItem(
            id=g.id,
            name=g.name,
            target_amount=g.target_amount,
            current_amount=g.current_amount,
            remaining_amount=g.target_amount - g.current_amount,
            percent_complete=percent_of(g.current_amount, g.target_amount),
            target_date=g.target_date,
            priority=g.priority,
        )
        for g in goals
    ]
    items.sort(key=lambda g: (-g.percent_complete, g.id))

    return SavingsSummary(
        total_saved=total_saved,
        total_target=total_target,
        total_remaining=total_target - total_saved,
        percent_complete=percent_of(total_saved, total_target),
        goals=items,
    )


# =============================================================================
# RUNNING-BALANCE DELTAS
# =============================================================================

def apply_debt_payment_delta(
    debt: Debt,
    old_amount: Decimal = ZERO,
    new_amount: Decimal = ZERO,
) -> Debt:
    """
    Debt after a payment is created, changed or removed.

    Create: old_amount=0, new_amount=payment.
    Update: old_amount=previous, new_amount=current.
    Delete: old_amount=payment, new_amount=0.

    The old amount is added back and the new one subtracted. The balance is
    not clamped, so overpayment leaves it negative.
    """
    return debt.model_copy(update={
        "current_balance": debt.current_balance + old_amount - new_amount,
        "updated_at": datetime.now(timezone.utc),
    })


def apply_contribution_delta(
    goal: SavingsGoal,
    old_amount: Decimal = ZERO,
    new_amount: Decimal = ZERO,
) -> SavingsGoal:
    """Savings goal after a contribution is created, changed or removed."""
    return goal.model_copy(update={
        "current_amount": goal.current_amount - old_amount + new_amount,
        "updated_at": datetime.now(timezone.utc),
    })
