"""
Audit Models

Every ledger write and every computed view is recorded as an AuditEvent.
This gives:
1. Traceability of running-balance adjustments
2. Debugging information when a balance looks wrong
3. A history of rejected writes (e.g. invalid settlements)

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Plain ledger rows
    RECORD_ADDED = "record_added"

    # Balance-affecting writes
    DEBT_PAYMENT_RECORDED = "debt_payment_recorded"
    DEBT_PAYMENT_UPDATED = "debt_payment_updated"
    DEBT_PAYMENT_DELETED = "debt_payment_deleted"
    CONTRIBUTION_RECORDED = "contribution_recorded"
    CONTRIBUTION_UPDATED = "contribution_updated"
    CONTRIBUTION_DELETED = "contribution_deleted"

    # Settlements
    SETTLEMENT_RECORDED = "settlement_recorded"
    SETTLEMENT_REJECTED = "settlement_rejected"

    # Derived views
    DASHBOARD_COMPUTED = "dashboard_computed"
    REPORT_COMPUTED = "report_computed"

    # System events
    STORAGE_ERROR = "storage_error"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context
    household_id: Optional[int] = Field(
        default=None,
        description="Household the event belongs to"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'debt_payment', 'settlement', 'dashboard')"
    )
    entity_id: Optional[int] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate events of one request"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "household_id": self.household_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, household_id, entity_type,
         entity_id, correlation_id, description, details_json, error_message,
         is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            str(self.household_id) if self.household_id is not None else "",
            self.entity_type or "",
            str(self.entity_id) if self.entity_id is not None else "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.record_added(household_id, "expense", 12)
        event = AuditEventBuilder.settlement_rejected(household_id, issues)
    """

    @staticmethod
    def record_added(
        household_id: int,
        entity_type: str,
        entity_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_ADDED,
            household_id=household_id,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"{entity_type.replace('_', ' ').capitalize()} {entity_id} added",
            is_user_action=True,
        )

    @staticmethod
    def balance_adjusted(
        event_type: AuditEventType,
        household_id: int,
        entity_type: str,
        entity_id: int,
        parent_id: int,
        delta: str,
        new_balance: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        """A child write together with the running-balance change it caused."""
        return AuditEvent(
            event_type=event_type,
            household_id=household_id,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=(
                f"{event_type.value.replace('_', ' ').capitalize()}: "
                f"balance of {parent_id} now {new_balance}"
            ),
            details={
                "parent_id": parent_id,
                "delta": delta,
                "new_balance": new_balance,
            },
            is_user_action=True,
        )

    @staticmethod
    def settlement_recorded(
        household_id: int,
        settlement_id: int,
        from_user_id: int,
        to_user_id: int,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTLEMENT_RECORDED,
            household_id=household_id,
            entity_type="settlement",
            entity_id=settlement_id,
            correlation_id=correlation_id,
            description=f"Settlement of {amount} from user {from_user_id} to user {to_user_id}",
            details={
                "from_user_id": from_user_id,
                "to_user_id": to_user_id,
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def settlement_rejected(
        household_id: int,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTLEMENT_REJECTED,
            severity=AuditSeverity.WARNING,
            household_id=household_id,
            entity_type="settlement",
            correlation_id=correlation_id,
            description=f"Settlement rejected with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def view_computed(
        event_type: AuditEventType,
        household_id: int,
        view: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            severity=AuditSeverity.DEBUG,
            household_id=household_id,
            entity_type=view,
            correlation_id=correlation_id,
            description=f"Computed {view.replace('_', ' ')}",
            details=details or {},
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        household_id: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            household_id=household_id,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={"operation": operation},
            correlation_id=correlation_id,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
