"""
Audit Logger

DESIGN DECISION: Every load, save and edit of a month is logged.
This provides:
1. Traceability of background saves (which otherwise fail silently)
2. Debugging capability
3. A recent-history view for the session

The audit logger:
- Is synchronous - it only writes to the local structured log
- Gracefully handles failures (doesn't crash the app if logging fails)
- Keeps a bounded in-memory history of recent events
"""

from collections import deque
from typing import Any, Optional

import structlog

from budget_advisor.models.audit import AuditEvent, AuditEventBuilder, AuditEventType


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events to the structured local log and remembers the most
    recent ones.
    """

    def __init__(self, history_size: int = 200):
        self._logger = structlog.get_logger("budget_advisor.audit")
        self._history: deque[AuditEvent] = deque(maxlen=history_size)

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the local log write failed; never raises.
        """
        self._history.append(event)
        log_dict = event.to_log_dict()

        try:
            if event.severity.value in ("error", "critical"):
                self._logger.error("audit_event", **log_dict)
            elif event.severity.value == "warning":
                self._logger.warning("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            return False

        return True

    def recent_events(self, limit: int = 50) -> list[AuditEvent]:
        """Most recent events, newest first."""
        return list(reversed(self._history))[:limit]

    def log_month_loaded(self, month_key: str, storage: str) -> None:
        self.log(AuditEventBuilder.month_loaded(month_key, storage))

    def log_month_created(self, month_key: str, storage: str) -> None:
        self.log(AuditEventBuilder.month_created(month_key, storage))

    def log_month_load_failed(self, month_key: str, error: Exception) -> None:
        self.log(AuditEventBuilder.month_load_failed(month_key, error))

    def log_record_saved(self, month_key: str, storage: str) -> None:
        self.log(AuditEventBuilder.record_saved(month_key, storage))

    def log_save_failed(self, month_key: str, error: Exception) -> None:
        self.log(AuditEventBuilder.save_failed(month_key, error))

    def log_item_added(self, month_key: str, target: str, item_id: Any) -> None:
        self.log(AuditEventBuilder.item_changed(AuditEventType.ITEM_ADDED, month_key, target, item_id))

    def log_item_edited(self, month_key: str, target: str, item_id: Any) -> None:
        self.log(AuditEventBuilder.item_changed(AuditEventType.ITEM_EDITED, month_key, target, item_id))

    def log_item_deleted(self, month_key: str, target: str, item_id: Any) -> None:
        self.log(AuditEventBuilder.item_changed(AuditEventType.ITEM_DELETED, month_key, target, item_id))

    def log_category_added(self, month_key: str, category_id: str, name: str) -> None:
        self.log(AuditEventBuilder.category_added(month_key, category_id, name))

    def log_command(self, command: str, intent: str, month_key: Optional[str]) -> None:
        self.log(AuditEventBuilder.command_received(command, intent, month_key))

    def log_advice(self, month_key: str, remarks: int) -> None:
        self.log(AuditEventBuilder.advice_generated(month_key, remarks))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        month_key: Optional[str] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            month_key=month_key,
        ))
