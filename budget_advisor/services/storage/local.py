"""
Local File Storage Implementation

DESIGN DECISION: The offline store is a single JSON blob holding the
whole budget database (every month), stored under a fixed name.

TRADEOFFS:
- Every save rewrites the full database, not just the changed month.
  That keeps the blob consistent with no partial-field races: whichever
  save lands last carries the latest state of every month.
- Single user only. There is no owner scoping.

An absent or unreadable-as-JSON blob is treated as an empty database,
so a first run (or a hand-damaged file) never blocks the app.
"""

import json
import os
from pathlib import Path
from typing import Any, Optional

import structlog
from pydantic import ValidationError

from budget_advisor.config import get_settings
from budget_advisor.models.budget import MonthKey, MonthRecord
from budget_advisor.services.storage.interface import (
    BudgetStorageInterface,
    CorruptRecordError,
    TransportError,
)


logger = structlog.get_logger(__name__)


class LocalBudgetStorage(BudgetStorageInterface):
    """
    Local JSON blob implementation of month storage.

    The blob is read once, lazily, into an in-process mirror; every
    persist updates the mirror and writes the whole mirror back.
    """

    name = "local"

    def __init__(self, path: Optional[Path] = None):
        self._path = Path(path) if path else get_settings().app.local_storage_path
        self._database: Optional[dict[str, Any]] = None

    @property
    def path(self) -> Path:
        return self._path

    def _read_blob(self) -> dict[str, Any]:
        """Read the blob from disk; absent or malformed means empty."""
        if not self._path.exists():
            return {}

        try:
            with self._path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except ValueError as e:
            # JSONDecodeError and UnicodeDecodeError
            logger.warning(
                "local_blob_malformed",
                path=str(self._path),
                error=str(e),
            )
            return {}
        except OSError as e:
            raise TransportError(f"Failed to read local budget database: {e}")

        if not isinstance(data, dict):
            logger.warning(
                "local_blob_malformed",
                path=str(self._path),
                error=f"expected an object, got {type(data).__name__}",
            )
            return {}

        return data

    def _load_database(self) -> dict[str, Any]:
        if self._database is None:
            self._database = self._read_blob()
        return self._database

    def _write_blob(self, database: dict[str, Any]) -> None:
        """Overwrite the blob atomically with the full database."""
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as handle:
                json.dump(database, handle, indent=2, sort_keys=True)
            os.replace(tmp_path, self._path)
        except OSError as e:
            raise TransportError(f"Failed to write local budget database: {e}")

    async def fetch(self, key: MonthKey) -> Optional[MonthRecord]:
        """Look the month up in the local database."""
        raw = self._load_database().get(str(key))
        if raw is None:
            return None

        try:
            return MonthRecord.from_json_dict(raw)
        except ValidationError as e:
            raise CorruptRecordError(f"Stored record for {key} is invalid: {e}")

    async def persist(self, key: MonthKey, record: MonthRecord) -> bool:
        """Store the month and rewrite the full database snapshot."""
        database = self._load_database()
        database[str(key)] = record.to_json_dict()
        self._write_blob(database)
        logger.debug("local_blob_written", month_key=str(key), months=len(database))
        return True
