"""
Notification Side Channel

Background saves finish after the user has moved on, so their outcome
cannot be returned to the caller. Instead the budget service publishes
a Notification here and whatever shows toasts subscribes to it.
"""

from collections import deque
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

import structlog
from pydantic import BaseModel, Field


logger = structlog.get_logger(__name__)


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    ERROR = "error"


class Notification(BaseModel):
    """A short, user-facing message (a toast)."""

    level: NotificationLevel = NotificationLevel.SUCCESS
    message: str
    month_key: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


NotificationHandler = Callable[[Notification], None]


class NotificationCenter:
    """Fan-out of notifications to subscribers, with a short history."""

    def __init__(self, history_size: int = 50):
        self._subscribers: list[NotificationHandler] = []
        self._history: deque[Notification] = deque(maxlen=history_size)

    def subscribe(self, handler: NotificationHandler) -> None:
        if handler not in self._subscribers:
            self._subscribers.append(handler)

    def unsubscribe(self, handler: NotificationHandler) -> None:
        if handler in self._subscribers:
            self._subscribers.remove(handler)

    def publish(self, notification: Notification) -> None:
        self._history.append(notification)
        for handler in list(self._subscribers):
            try:
                handler(notification)
            except Exception as e:
                # A broken toast must not break the save path
                logger.error(
                    "notification_handler_failed",
                    error=str(e),
                    message=notification.message,
                )

    def success(self, message: str, month_key: Optional[str] = None) -> None:
        self.publish(Notification(level=NotificationLevel.SUCCESS, message=message, month_key=month_key))

    def error(self, message: str, month_key: Optional[str] = None) -> None:
        self.publish(Notification(level=NotificationLevel.ERROR, message=message, month_key=month_key))

    @property
    def history(self) -> list[Notification]:
        """Recent notifications, oldest first."""
        return list(self._history)
