"""Write-request validation package."""

from household_finance.validation.validator import LedgerValidator

__all__ = ["LedgerValidator"]
