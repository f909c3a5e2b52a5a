"""
Storage Services Package

Provides the abstract month storage interface and its two implementations:
a local JSON blob for offline use and Google Sheets for shared use.
"""

from budget_advisor.services.storage.interface import (
    BudgetStorageInterface,
    CorruptRecordError,
    StorageError,
    TransportError,
    UnauthenticatedError,
)
from budget_advisor.services.storage.local import LocalBudgetStorage
from budget_advisor.services.storage.google_sheets import (
    GoogleSheetsBudgetStorage,
    GoogleSheetsClient,
)

__all__ = [
    # Interfaces
    "BudgetStorageInterface",
    # Exceptions
    "CorruptRecordError",
    "StorageError",
    "TransportError",
    "UnauthenticatedError",
    # Local implementation
    "LocalBudgetStorage",
    # Google Sheets implementation
    "GoogleSheetsBudgetStorage",
    "GoogleSheetsClient",
]
