"""
Household Finance

Shared household ledger (expenses, income, budgets, recurring bills,
debts, savings goals, settlements) and the aggregation engine that turns
it into dashboards and reports.
"""

__version__ = "0.1.0"
