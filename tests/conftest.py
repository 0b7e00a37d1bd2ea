"""
Shared fixtures.

One household (id 1) with a March 2024 worth of data, plus a second
household (id 2) used to check that nothing leaks across households.
"""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from household_finance.config import AppSettings
from household_finance.models.ledger import (
    BillPayment,
    Budget,
    Category,
    Debt,
    Expense,
    Household,
    HouseholdLedger,
    Income,
    RecurringBill,
    SavingsContribution,
    SavingsGoal,
    Settlement,
    User,
)
from household_finance.services.storage import InMemoryLedgerStorage, LedgerStorageInterface

HOUSEHOLD_ID = 1
OTHER_HOUSEHOLD_ID = 2

# April has 30 days
TODAY = date(2024, 4, 15)


def build_ledger() -> HouseholdLedger:
    h = HOUSEHOLD_ID
    return HouseholdLedger(
        household_id=h,
        users=[
            User(id=1, household_id=h, username="alice", display_name="Alice"),
            User(id=2, household_id=h, username="bob"),
            User(id=3, household_id=h, username="carol", display_name="Carol"),
        ],
        categories=[
            Category(id=10, household_id=h, name="Groceries", color="#22C55E"),
            Category(id=11, household_id=h, name="Utilities", color="#3B82F6"),
            Category(id=12, household_id=h, name="Dining", color="#F59E0B"),
        ],
        expenses=[
            Expense(id=1, household_id=h, category_id=10, amount=Decimal("30.00"),
                    expense_date=date(2024, 3, 2), description="Market", paid_by_user_id=1),
            Expense(id=2, household_id=h, category_id=10, amount=Decimal("15.60"),
                    expense_date=date(2024, 3, 10), description="Bakery", paid_by_user_id=2),
            Expense(id=3, household_id=h, category_id=11, amount=Decimal("120.00"),
                    expense_date=date(2024, 3, 5), description="Power", paid_by_user_id=1),
            Expense(id=4, household_id=h, category_id=12, amount=Decimal("40.00"),
                    expense_date=date(2024, 3, 10), description="Pizza"),
            Expense(id=5, household_id=h, category_id=10, amount=Decimal("50.00"),
                    expense_date=date(2024, 2, 14), description="Market", paid_by_user_id=1),
            Expense(id=6, household_id=h, category_id=99, amount=Decimal("10.00"),
                    expense_date=date(2024, 3, 20), description="Misc", paid_by_user_id=3),
        ],
        incomes=[
            Income(id=1, household_id=h, user_id=1, month=3, year=2024, amount=Decimal("3000")),
            Income(id=2, household_id=h, user_id=2, month=3, year=2024, amount=Decimal("1500")),
            Income(id=3, household_id=h, user_id=1, month=2, year=2024, amount=Decimal("2500")),
        ],
        budgets=[
            Budget(id=1, household_id=h, month=3, year=2024, category_id=10, amount=Decimal("100.00")),
            Budget(id=2, household_id=h, month=3, year=2024, category_id=None, amount=Decimal("500.00")),
            Budget(id=3, household_id=h, month=3, year=2024, category_id=12, amount=Decimal("0")),
            Budget(id=4, household_id=h, month=2, year=2024, category_id=10, amount=Decimal("80.00")),
        ],
        recurring_bills=[
            RecurringBill(id=1, household_id=h, category_id=11, description="Rent",
                          amount=Decimal("1200"), day_of_month=1, reminder_days_before=3),
            RecurringBill(id=2, household_id=h, category_id=11, description="Internet",
                          amount=Decimal("60"), day_of_month=31),
            RecurringBill(id=3, household_id=h, category_id=11, description="Electricity",
                          is_variable_amount=True, day_of_month=20, reminder_days_before=7),
            RecurringBill(id=4, household_id=h, category_id=99, description="Water",
                          amount=Decimal("25"), day_of_month=17, reminder_days_before=5),
            RecurringBill(id=5, household_id=h, category_id=11, description="Gym",
                          amount=Decimal("30")),
            RecurringBill(id=6, household_id=h, category_id=11, description="Streaming",
                          amount=Decimal("12"), day_of_month=40),
            RecurringBill(id=7, household_id=h, category_id=11, description="Old phone",
                          amount=Decimal("20"), day_of_month=16, is_active=False),
            RecurringBill(id=8, household_id=h, category_id=11, description="Insurance",
                          amount=Decimal("90"), day_of_month=14),
        ],
        bill_payments=[
            BillPayment(id=1, recurring_bill_id=3, month=4, year=2024,
                        amount=Decimal("75"), paid_date=date(2024, 4, 12)),
            BillPayment(id=2, recurring_bill_id=1, month=4, year=2024,
                        amount=Decimal("1200"), paid_date=date(2024, 4, 1)),
        ],
        debts=[
            Debt(id=1, household_id=h, name="Car loan", debt_type="auto",
                 original_amount=Decimal("10000"), current_balance=Decimal("6000")),
            Debt(id=2, household_id=h, name="Credit card", debt_type="card",
                 original_amount=Decimal("1000"), current_balance=Decimal("-200")),
            Debt(id=3, household_id=h, name="Old loan", original_amount=Decimal("500"),
                 current_balance=Decimal("0"), is_active=False),
        ],
        savings_goals=[
            SavingsGoal(id=1, household_id=h, name="Emergency fund",
                        target_amount=Decimal("1000"), current_amount=Decimal("250")),
            SavingsGoal(id=2, household_id=h, name="Vacation",
                        target_amount=Decimal("2000"), current_amount=Decimal("2100")),
            SavingsGoal(id=3, household_id=h, name="Someday",
                        target_amount=Decimal("0"), current_amount=Decimal("50")),
        ],
        savings_contributions=[
            SavingsContribution(id=1, savings_goal_id=1, amount=Decimal("250"),
                                contribution_date=date(2024, 1, 31)),
            SavingsContribution(id=2, savings_goal_id=2, amount=Decimal("2100"),
                                contribution_date=date(2024, 2, 29)),
            SavingsContribution(id=3, savings_goal_id=3, amount=Decimal("50"),
                                contribution_date=date(2024, 3, 1)),
        ],
        settlements=[
            Settlement(id=1, household_id=h, from_user_id=1, to_user_id=2,
                       amount=Decimal("50"), settlement_date=date(2024, 3, 3)),
            Settlement(id=2, household_id=h, from_user_id=2, to_user_id=1,
                       amount=Decimal("20"), settlement_date=date(2024, 3, 8)),
            Settlement(id=3, household_id=h, from_user_id=3, to_user_id=1,
                       amount=Decimal("10"), settlement_date=date(2024, 3, 9)),
        ],
    )


def build_other_ledger() -> HouseholdLedger:
    h = OTHER_HOUSEHOLD_ID
    return HouseholdLedger(
        household_id=h,
        users=[User(id=20, household_id=h, username="dave")],
        categories=[Category(id=20, household_id=h, name="Groceries")],
        expenses=[
            Expense(id=20, household_id=h, category_id=20, amount=Decimal("999"),
                    expense_date=date(2024, 3, 4)),
        ],
        debts=[
            Debt(id=20, household_id=h, name="Mortgage",
                 original_amount=Decimal("50000"), current_balance=Decimal("40000")),
        ],
        savings_goals=[
            SavingsGoal(id=20, household_id=h, name="House", target_amount=Decimal("5000")),
        ],
    )


async def seed(storage: LedgerStorageInterface, *ledgers: HouseholdLedger) -> None:
    """
    Write ledgers through the storage API.

    Goals are stored empty and reach their amounts through the seeded
    contributions, the same way they do in use.
    """
    for ledger in ledgers:
        await storage.add_household(Household(id=ledger.household_id, name=f"Household {ledger.household_id}"))
        for field in HouseholdLedger.model_fields:
            if field == "household_id":
                continue
            for row in getattr(ledger, field):
                if isinstance(row, SavingsContribution):
                    await storage.record_savings_contribution(ledger.household_id, row)
                else:
                    await storage.add_record(ledger.household_id, row)


@pytest.fixture
def ledger() -> HouseholdLedger:
    return build_ledger()


@pytest.fixture
def empty_ledger() -> HouseholdLedger:
    return HouseholdLedger(household_id=HOUSEHOLD_ID)


@pytest.fixture
def storage() -> InMemoryLedgerStorage:
    storage = InMemoryLedgerStorage()
    asyncio.run(seed(storage, build_ledger(), build_other_ledger()))
    return storage


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings(_env_file=None)


@pytest.fixture
def today() -> date:
    return TODAY
