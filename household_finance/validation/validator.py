"""
Settlement Validation

DESIGN DECISION: Validation happens in two stages:

STAGE 1 - SCHEMA VALIDATION:
- Amount must be positive
- Needs nothing but the request itself

STAGE 2 - HOUSEHOLD VALIDATION:
- Both parties must be members of the household
- Nobody settles with themselves
- Needs the household's ledger snapshot

Stage 2 always runs, so the user sees every problem at once.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them and the write is refused.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from household_finance.engine.settlements import check_settlement_parties
from household_finance.models.ledger import HouseholdLedger, Settlement
from household_finance.models.validation import ValidationIssue, ValidationResult


class LedgerValidator:
    """Validates write requests against a household snapshot."""

    def _validate_schema(self, settlement: Settlement) -> list[ValidationIssue]:
        issues = []

        if settlement.amount <= Decimal("0"):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Settlement amount must be greater than zero",
                severity="error",
                suggested_fix="Enter the amount that was paid",
            ))

        return issues

    def _validate_household(
        self,
        ledger: HouseholdLedger,
        settlement: Settlement,
        today: date,
    ) -> list[ValidationIssue]:
        issues = check_settlement_parties(
            ledger,
            settlement.from_user_id,
            settlement.to_user_id,
        )

        if settlement.settlement_date > today:
            issues.append(ValidationIssue(
                field="settlement_date",
                issue_type="future_date",
                message=f"Settlement date ({settlement.settlement_date}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        return issues

    def validate_settlement(
        self,
        ledger: HouseholdLedger,
        settlement: Settlement,
        today: Optional[date] = None,
    ) -> ValidationResult:
        """
        Check a settlement before it is written.

        Args:
            ledger: Snapshot of the household the settlement is recorded in
            settlement: The settlement to record
            today: Reference date for the future-date warning (UTC today by default)

        Returns:
            ValidationResult; is_valid is False when any error was found
        """
        today = today or datetime.now(timezone.utc).date()

        issues = self._validate_schema(settlement)
        issues.extend(self._validate_household(ledger, settlement, today))

        return ValidationResult(
            is_valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
            warnings=[issue.message for issue in issues if issue.severity == "warning"],
        )

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Summary of a validation result for display."""
        if result.is_valid and not result.warnings:
            return "✅ All checks passed!"

        lines = []

        if result.has_errors:
            lines.append("❌ This settlement can't be recorded:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
