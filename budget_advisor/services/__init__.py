"""Services package."""

from budget_advisor.services.budget import (
    BudgetService,
    BudgetServiceError,
    BudgetSessionState,
    MonthLoadError,
    NoActiveMonthError,
    PersistOutcome,
)
from budget_advisor.services.notifications import (
    Notification,
    NotificationCenter,
    NotificationLevel,
)
from budget_advisor.services.session import SessionProvider, StaticSession
from budget_advisor.services.storage import (
    BudgetStorageInterface,
    CorruptRecordError,
    GoogleSheetsBudgetStorage,
    GoogleSheetsClient,
    LocalBudgetStorage,
    StorageError,
    TransportError,
    UnauthenticatedError,
)

__all__ = [
    # Budget service
    "BudgetService",
    "BudgetServiceError",
    "BudgetSessionState",
    "MonthLoadError",
    "NoActiveMonthError",
    "PersistOutcome",
    # Notifications
    "Notification",
    "NotificationCenter",
    "NotificationLevel",
    # Session
    "SessionProvider",
    "StaticSession",
    # Storage services
    "BudgetStorageInterface",
    "CorruptRecordError",
    "GoogleSheetsBudgetStorage",
    "GoogleSheetsClient",
    "LocalBudgetStorage",
    "StorageError",
    "TransportError",
    "UnauthenticatedError",
]
