"""
Shared fixtures.

No test talks to Google or writes outside tmp_path: the remote store is
exercised through a fake worksheet, the service through an in-memory store.
"""

import asyncio
import json
import re
import time
from typing import Optional

import pytest

from budget_advisor.models.budget import MonthKey, MonthRecord
from budget_advisor.services.notifications import NotificationCenter
from budget_advisor.services.storage import (
    BudgetStorageInterface,
    StorageError,
    TransportError,
)
from budget_advisor.services.storage.google_sheets import BUDGET_COLUMNS


class InMemoryBudgetStorage(BudgetStorageInterface):
    """Store that keeps JSON snapshots in a dict and can be told to fail."""

    name = "memory"

    def __init__(self):
        self.rows: dict[str, str] = {}
        self.persist_calls: list[str] = []
        self.fetch_error: Optional[StorageError] = None
        self.fetch_delays: dict[str, float] = {}
        self.persist_error: Optional[Exception] = None

    async def fetch(self, key: MonthKey) -> Optional[MonthRecord]:
        await asyncio.sleep(self.fetch_delays.get(str(key), 0))
        if self.fetch_error:
            raise self.fetch_error
        payload = self.rows.get(str(key))
        if payload is None:
            return None
        return MonthRecord.from_json_dict(json.loads(payload))

    async def persist(self, key: MonthKey, record: MonthRecord) -> bool:
        self.persist_calls.append(str(key))
        if self.persist_error:
            raise self.persist_error
        self.rows[str(key)] = json.dumps(record.to_json_dict(), sort_keys=True)
        return True


class FakeWorksheet:
    """Just enough of gspread.Worksheet for the budget table."""

    def __init__(self, rows: Optional[list[list[str]]] = None):
        self.rows: list[list[str]] = [list(BUDGET_COLUMNS)] + [list(r) for r in rows or []]
        self.read_error: Optional[Exception] = None
        self.delay = 0.0  # seconds each read takes, like a slow network
        self.append_calls = 0
        self.update_calls = 0

    def get_all_values(self) -> list[list[str]]:
        if self.delay:
            time.sleep(self.delay)
        if self.read_error:
            raise self.read_error
        return [list(row) for row in self.rows]

    def append_row(self, row, value_input_option=None):
        self.append_calls += 1
        self.rows.append(list(row))

    def update(self, range_name=None, values=None):
        self.update_calls += 1
        index = int(re.match(r"A(\d+):", range_name).group(1))
        self.rows[index - 1] = list(values[0])


class FakeSheetsClient:
    def __init__(self, sheet: FakeWorksheet):
        self.sheet = sheet

    def get_budget_sheet(self) -> FakeWorksheet:
        return self.sheet


@pytest.fixture
def memory_storage() -> InMemoryBudgetStorage:
    return InMemoryBudgetStorage()


@pytest.fixture
def failing_fetch_storage() -> InMemoryBudgetStorage:
    storage = InMemoryBudgetStorage()
    storage.fetch_error = TransportError("network unreachable")
    return storage


@pytest.fixture
def fake_worksheet() -> FakeWorksheet:
    return FakeWorksheet()


@pytest.fixture
def fake_sheets_client(fake_worksheet) -> FakeSheetsClient:
    return FakeSheetsClient(fake_worksheet)


@pytest.fixture
def notifications() -> NotificationCenter:
    return NotificationCenter()


@pytest.fixture
def sample_record() -> MonthRecord:
    """A month with income on both sides and items in two categories."""
    return MonthRecord.model_validate({
        "income": {
            "projected": [{"id": 1, "name": "Salary", "amount": 40000}],
            "actual": [
                {"id": 2, "name": "Salary", "amount": 45000},
                {"id": 3, "name": "Freelance", "amount": 5000},
            ],
        },
        "expenses": [
            {
                "id": "cat_housing",
                "name": "Housing",
                "items": [
                    {"id": 10, "name": "Rent", "projected": 20000, "actual": 15000},
                ],
            },
            {
                "id": "cat_food",
                "name": "Food",
                "items": [
                    {"id": 11, "name": "Groceries", "projected": 10000, "actual": 5000},
                ],
            },
        ],
    })
