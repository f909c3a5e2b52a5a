"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for month storage.
This allows us to:
1. Run offline against a local JSON file
2. Run multi-user against a Google Sheets table
3. Use in-memory fakes for testing
4. Keep the budget service decoupled from where records live

The interface is intentionally tiny: fetch one month, persist one month.
"Not found" is a normal answer (None), never an exception.
"""

from abc import ABC, abstractmethod
from typing import Optional

from budget_advisor.models.budget import MonthKey, MonthRecord


class BudgetStorageInterface(ABC):
    """
    Abstract interface for month record storage.

    Any storage implementation (local file, Google Sheets, etc.)
    must implement these methods.
    """

    #: Short name used in logs and audit events
    name: str = "abstract"

    @abstractmethod
    async def fetch(self, key: MonthKey) -> Optional[MonthRecord]:
        """
        Retrieve the record for one month.

        Args:
            key: The month to load

        Returns:
            The stored record, or None if the month was never saved

        Raises:
            TransportError: If the store could not be reached or queried
            UnauthenticatedError: If the store needs a session and has none
            CorruptRecordError: If the stored payload is not a valid record
        """
        pass

    @abstractmethod
    async def persist(self, key: MonthKey, record: MonthRecord) -> bool:
        """
        Write the full record for one month (insert or replace).

        Args:
            key: The month being saved
            record: The complete record, serialized as it is right now

        Returns:
            True if saved successfully

        Raises:
            TransportError: If the write could not reach the store
            UnauthenticatedError: If there is no active session
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class TransportError(StorageError):
    """Could not reach, query or write the storage backend."""
    pass


class UnauthenticatedError(StorageError):
    """Storage operation attempted without an active session."""
    pass


class CorruptRecordError(StorageError):
    """A stored payload could not be decoded into a month record."""
    pass
