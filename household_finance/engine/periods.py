"""
Date and Period Utilities

A period is a (month, year) pair: the grain for budgets, income and
summaries. Recurring bills are monthly and keyed by day-of-month, so their
due date has to be clamped to the length of the target month (day 31 in
April is April 30th) and rolled over into the next month/year.

Also holds the shared percentage policy used by every aggregation.
"""

import calendar
from datetime import date
from decimal import ROUND_HALF_EVEN, Decimal
from typing import Iterable, Optional

ZERO = Decimal("0")
CENT = Decimal("0.01")


def is_valid_day_of_month(day_of_month: Optional[int]) -> bool:
    """A recurrence is configured only for a day-of-month in 1..31."""
    return day_of_month is not None and 1 <= day_of_month <= 31


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def next_period(month: int, year: int) -> tuple[int, int]:
    """The (month, year) after the given one. December rolls to January."""
    if month == 12:
        return 1, year + 1
    return month + 1, year


def resolve_due_date(year: int, month: int, day_of_month: int) -> date:
    """
    Due date of a day-of-month in a given month.

    The day is clamped to the last valid day of that month, so a bill due
    on the 31st falls on the 30th in a 30-day month and on the 28th/29th
    in February.
    """
    if not is_valid_day_of_month(day_of_month):
        raise ValueError(f"Day of month must be between 1 and 31, got {day_of_month}")
    return date(year, month, min(day_of_month, days_in_month(year, month)))


def next_occurrence(today: date, day_of_month: Optional[int]) -> Optional[tuple[date, int]]:
    """
    Next due date of a monthly recurrence, counted from today.

    If day_of_month >= today.day the due date is in the current month,
    otherwise it rolls into the next month.

    Returns:
        (due_date, days_until_due), or None when no recurrence is
        configured (missing or out-of-range day_of_month).
    """
    if not is_valid_day_of_month(day_of_month):
        return None

    if day_of_month >= today.day:
        due_date = resolve_due_date(today.year, today.month, day_of_month)
    else:
        month, year = next_period(today.month, today.year)
        due_date = resolve_due_date(year, month, day_of_month)

    return due_date, (due_date - today).days


def in_period(value: date, month: int, year: int) -> bool:
    return value.month == month and value.year == year


def total(amounts: Iterable[Decimal]) -> Decimal:
    """Sum of Decimal amounts; an empty sequence sums to zero."""
    return sum(amounts, ZERO)


def round_percent(value: Decimal) -> Decimal:
    """Round to two places, half-to-even."""
    return value.quantize(CENT, rounding=ROUND_HALF_EVEN)


def percent_of(part: Decimal, whole: Decimal) -> Decimal:
    """
    part / whole * 100, rounded to two places.

    A zero (or negative) whole yields 0 instead of a division error. This
    covers zero-amount budgets, zero original debt and zero savings targets.
    """
    if whole <= ZERO:
        return ZERO
    return round_percent(part / whole * 100)


def change_percent(difference: Decimal, baseline: Decimal) -> Decimal:
    """
    Unrounded percentage change against a baseline.

    A zero baseline reports 0% change.
    """
    if baseline <= ZERO:
        return ZERO
    return difference / baseline * 100
