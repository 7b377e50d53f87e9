"""
Audit Models for Finance Tracker

Every significant action against the record stores is logged for audit
purposes. This provides:
1. Traceability of all mutations (who added/changed/deleted what)
2. Debugging information when the table store rejects a call
3. A record of best-effort side effects that failed (reminder bridge)

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
    # Reads
    RECORDS_FETCHED = "records_fetched"
    FETCH_FAILED = "fetch_failed"
    STALE_FETCH_DROPPED = "stale_fetch_dropped"

    # Mutations
    RECORD_ADDED = "record_added"
    RECORD_UPDATED = "record_updated"
    RECORD_DELETED = "record_deleted"
    MUTATION_FAILED = "mutation_failed"

    # Attachments
    ATTACHMENT_UPLOADED = "attachment_uploaded"
    ATTACHMENT_FAILED = "attachment_failed"

    # Reminders and the reminder bridge
    REMINDER_COMPLETED = "reminder_completed"
    REMINDER_REOPENED = "reminder_reopened"
    TRANSACTION_SYNTHESIZED = "transaction_synthesized"
    BRIDGE_FAILED = "bridge_failed"

    # Reports
    REPORT_GENERATED = "report_generated"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
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

    # Context - which record/user is this about?
    user_id: Optional[str] = Field(
        default=None,
        description="Owner of the affected records"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Table the event relates to (e.g., 'expenses', 'reminders')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the record this event relates to"
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

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": self.user_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, user_id, entity_type,
         entity_id, description, details_json, error_message]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.user_id or "",
            self.entity_type or "",
            self.entity_id or "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.record_added("expenses", record_id, user_id)
        event = AuditEventBuilder.bridge_failed(reminder_id, user_id, str(e))
    """

    @staticmethod
    def records_fetched(
        table: str,
        user_id: str,
        count: int,
        time_filter: Optional[str],
        search: Optional[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORDS_FETCHED,
            severity=AuditSeverity.DEBUG,
            user_id=user_id,
            entity_type=table,
            description=f"Fetched {count} {table}",
            details={
                "count": count,
                "time_filter": time_filter,
                "search": search,
            },
        )

    @staticmethod
    def fetch_failed(
        table: str,
        user_id: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FETCH_FAILED,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            entity_type=table,
            description=f"Failed to load {table}",
            error_message=error_message,
        )

    @staticmethod
    def stale_fetch_dropped(
        table: str,
        user_id: str,
        sequence: int,
        latest: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STALE_FETCH_DROPPED,
            severity=AuditSeverity.DEBUG,
            user_id=user_id,
            entity_type=table,
            description=f"Dropped response #{sequence} for {table} (latest #{latest})",
            details={"sequence": sequence, "latest": latest},
        )

    @staticmethod
    def record_added(
        table: str,
        record_id: str,
        user_id: str,
        attachment_count: int = 0,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_ADDED,
            user_id=user_id,
            entity_type=table,
            entity_id=record_id,
            description=f"Record added to {table}",
            details={"attachment_count": attachment_count},
        )

    @staticmethod
    def record_updated(
        table: str,
        record_id: str,
        user_id: str,
        fields: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_UPDATED,
            user_id=user_id,
            entity_type=table,
            entity_id=record_id,
            description=f"Record in {table} updated",
            details={"fields": fields},
        )

    @staticmethod
    def record_deleted(
        table: str,
        record_id: str,
        user_id: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            user_id=user_id,
            entity_type=table,
            entity_id=record_id,
            description=f"Record deleted from {table}",
        )

    @staticmethod
    def mutation_failed(
        table: str,
        operation: str,
        user_id: str,
        error_message: str,
        record_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MUTATION_FAILED,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            entity_type=table,
            entity_id=record_id,
            description=f"Failed to {operation} record in {table}",
            details={"operation": operation},
            error_message=error_message,
        )

    @staticmethod
    def attachment_uploaded(
        table: str,
        record_id: str,
        user_id: str,
        file_path: str,
        file_size: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ATTACHMENT_UPLOADED,
            user_id=user_id,
            entity_type=table,
            entity_id=record_id,
            description=f"Attachment stored at {file_path}",
            details={
                "file_path": file_path,
                "file_size_bytes": file_size,
            },
        )

    @staticmethod
    def attachment_failed(
        table: str,
        record_id: str,
        user_id: str,
        file_name: str,
        error_message: str,
    ) -> AuditEvent:
        # The record row stays behind without this file.
        return AuditEvent(
            event_type=AuditEventType.ATTACHMENT_FAILED,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            entity_type=table,
            entity_id=record_id,
            description=f"Attachment upload failed: {file_name}",
            details={"file_name": file_name},
            error_message=error_message,
        )

    @staticmethod
    def reminder_toggled(
        reminder_id: str,
        user_id: str,
        completed: bool,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.REMINDER_COMPLETED
                if completed
                else AuditEventType.REMINDER_REOPENED
            ),
            user_id=user_id,
            entity_type="reminders",
            entity_id=reminder_id,
            description="Reminder completed" if completed else "Reminder reopened",
        )

    @staticmethod
    def transaction_synthesized(
        reminder_id: str,
        user_id: str,
        kind: str,
        amount: str,
        record_id: Optional[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_SYNTHESIZED,
            user_id=user_id,
            entity_type="reminders",
            entity_id=reminder_id,
            description=f"Reminder completion recorded as {kind} of {amount}",
            details={
                "kind": kind,
                "amount": amount,
                "transaction_id": record_id,
            },
        )

    @staticmethod
    def bridge_failed(
        reminder_id: str,
        user_id: str,
        kind: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BRIDGE_FAILED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="reminders",
            entity_id=reminder_id,
            description=f"Could not record reminder payment as {kind}",
            details={"kind": kind},
            error_message=error_message,
        )

    @staticmethod
    def report_generated(
        user_id: str,
        period: str,
        label: str,
        transaction_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_GENERATED,
            user_id=user_id,
            entity_type="report",
            description=f"Generated {period} report for {label}",
            details={
                "period": period,
                "label": label,
                "transaction_count": transaction_count,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )
