"""
Audit Models for Budget Advisor

Every load, save and edit of a month is recorded as an audit event.
This provides:
1. Traceability of what the session did to each month
2. Debugging information when a save silently fails in the background
3. A history the notification layer can show

DESIGN DECISION: Audit events are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Month lifecycle
    MONTH_LOADED = "month_loaded"
    MONTH_CREATED = "month_created"
    MONTH_LOAD_FAILED = "month_load_failed"

    # Persistence
    RECORD_SAVED = "record_saved"
    SAVE_FAILED = "save_failed"

    # Edits
    ITEM_ADDED = "item_added"
    ITEM_EDITED = "item_edited"
    ITEM_DELETED = "item_deleted"
    CATEGORY_ADDED = "category_added"

    # Advisor
    COMMAND_RECEIVED = "command_received"
    ADVICE_GENERATED = "advice_generated"

    # System events
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
        default_factory=datetime.utcnow,
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

    # Which month (if any) the event is about
    month_key: Optional[str] = Field(
        default=None,
        description="Canonical YYYY-MM key of the affected month"
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

    # Error information (if applicable)
    error_type: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "month_key": self.month_key,
            "description": self.description,
            "details": self.details,
            "error_type": self.error_type,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.month_created("2025-12", storage="local")
        event = AuditEventBuilder.save_failed("2025-12", error)
    """

    @staticmethod
    def month_loaded(month_key: str, storage: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MONTH_LOADED,
            month_key=month_key,
            description=f"Loaded {month_key} from {storage} storage",
            details={"storage": storage},
        )

    @staticmethod
    def month_created(month_key: str, storage: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MONTH_CREATED,
            month_key=month_key,
            description=f"No stored record for {month_key}; created default month",
            details={"storage": storage},
        )

    @staticmethod
    def month_load_failed(month_key: str, error: Exception) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MONTH_LOAD_FAILED,
            severity=AuditSeverity.ERROR,
            month_key=month_key,
            description=f"Could not load {month_key}",
            error_type=type(error).__name__,
            error_message=str(error),
        )

    @staticmethod
    def record_saved(month_key: str, storage: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_SAVED,
            month_key=month_key,
            description=f"Saved {month_key} to {storage} storage",
            details={"storage": storage},
        )

    @staticmethod
    def save_failed(month_key: str, error: Exception) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            month_key=month_key,
            description=f"Save failed for {month_key}",
            error_type=type(error).__name__,
            error_message=str(error),
        )

    @staticmethod
    def item_changed(
        event_type: AuditEventType,
        month_key: str,
        target: str,
        item_id: Any,
    ) -> AuditEvent:
        verb = {
            AuditEventType.ITEM_ADDED: "added to",
            AuditEventType.ITEM_EDITED: "edited in",
            AuditEventType.ITEM_DELETED: "deleted from",
        }[event_type]
        return AuditEvent(
            event_type=event_type,
            month_key=month_key,
            description=f"Item {item_id} {verb} {target}",
            details={"target": target, "item_id": str(item_id)},
            is_user_action=True,
        )

    @staticmethod
    def category_added(month_key: str, category_id: str, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_ADDED,
            month_key=month_key,
            description=f"Category added: {name}",
            details={"category_id": category_id, "name": name},
            is_user_action=True,
        )

    @staticmethod
    def command_received(command: str, intent: str, month_key: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COMMAND_RECEIVED,
            month_key=month_key,
            description=f"Advisor command classified as {intent}",
            details={"command": command[:200], "intent": intent},
            is_user_action=True,
        )

    @staticmethod
    def advice_generated(month_key: str, remarks: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ADVICE_GENERATED,
            month_key=month_key,
            description=f"Generated {remarks} advice remarks",
            details={"remarks": remarks},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        month_key: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            month_key=month_key,
            description=f"System error: {error_type}",
            error_type=error_type,
            error_message=error_message,
            details=details or {},
        )
