"""
Upcoming Bills Projection

Projects each active recurring bill onto its next due date, counted from
today's real date (not from a dashboard's target month), and keeps the
unpaid ones that fall inside the lookahead window.
"""

from datetime import date

from household_finance.engine.budgets import UNCATEGORIZED_LABEL
from household_finance.engine.periods import next_occurrence
from household_finance.models.ledger import HouseholdLedger
from household_finance.models.reports import UpcomingBill

DEFAULT_LOOKAHEAD_DAYS = 30
DEFAULT_CATEGORY_COLOR = "#9CA3AF"


def paid_periods(ledger: HouseholdLedger) -> set[tuple[int, int, int]]:
    """(recurring_bill_id, month, year) of every recorded bill payment."""
    return {
        (p.recurring_bill_id, p.month, p.year)
        for p in ledger.bill_payments
    }


def upcoming_bills(
    ledger: HouseholdLedger,
    today: date,
    lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
) -> list[UpcomingBill]:
    """
    Unpaid bills due within lookahead_days calendar days of today.

    - Bills without a valid day_of_month are skipped.
    - A bill is skipped when a payment exists for its due month/year.
    - Results are ordered most urgent first (ties by bill id), so the
      same data always yields the same list.
    """
    categories = ledger.category_by_id()
    paid = paid_periods(ledger)

    results = []
    for bill in ledger.recurring_bills:
        if not bill.is_active:
            continue

        occurrence = next_occurrence(today, bill.day_of_month)
        if occurrence is None:
            continue
        due_date, days_until_due = occurrence

        if (bill.id, due_date.month, due_date.year) in paid:
            continue
        if days_until_due > lookahead_days:
            continue

        category = categories.get(bill.category_id)
        results.append(UpcomingBill(
            bill_id=bill.id,
            description=bill.description,
            amount=bill.amount,
            is_variable_amount=bill.is_variable_amount,
            due_date=due_date,
            days_until_due=days_until_due,
            is_overdue=days_until_due < 0,
            needs_reminder=days_until_due <= bill.reminder_days_before,
            category_name=category.name if category else UNCATEGORIZED_LABEL,
            category_color=category.color if category else DEFAULT_CATEGORY_COLOR,
        ))

    results.sort(key=lambda b: (b.days_until_due, b.bill_id))
    return results
