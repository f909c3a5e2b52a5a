"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the shared (multi-user) backend because:
1. Households can see their months directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

The sheet is used as a table with one row per (owner_id, date_key) and
the whole month record as a JSON cell. Saves are upserts on that pair:
the row is replaced if it exists, appended otherwise. Last writer wins;
concurrent edits of the same month are not merged.

gspread is blocking, so every sheet call (and its retry backoff) runs in
a worker thread. Saves of the same row are serialized in this process.

TRADEOFFS:
- No server-side uniqueness constraint (we look the row up before writing)
- Limited query capabilities (we filter in Python)
"""

import asyncio
import json
from typing import Optional

import gspread
from google.oauth2.service_account import Credentials
from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from budget_advisor.config import GoogleSheetsSettings, get_settings
from budget_advisor.models.budget import MonthKey, MonthRecord
from budget_advisor.services.session import SessionProvider
from budget_advisor.services.storage.interface import (
    BudgetStorageInterface,
    CorruptRecordError,
    TransportError,
    UnauthenticatedError,
)


# Column mappings for the budget sheet
BUDGET_COLUMNS = [
    "owner_id",
    "date_key",
    "data_json",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            if not self._settings.credentials_path:
                raise TransportError("Google credentials path is not configured")
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise TransportError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise TransportError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise TransportError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_budget_sheet(self) -> gspread.Worksheet:
        """Get or create the budget worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.budget_sheet_name)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=self._settings.budget_sheet_name,
                rows=1000,
                cols=len(BUDGET_COLUMNS),
            )
            sheet.append_row(BUDGET_COLUMNS)
        return sheet


_retry_api_errors = retry(
    retry=retry_if_exception_type(gspread.exceptions.APIError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


class GoogleSheetsBudgetStorage(BudgetStorageInterface):
    """
    Google Sheets implementation of month storage.

    Rows are scoped to the owner of the current session; a signed-out
    session can neither read nor write.
    """

    name = "google_sheets"

    def __init__(
        self,
        session: SessionProvider,
        client: Optional[GoogleSheetsClient] = None,
    ):
        self._session = session
        self._client = client or GoogleSheetsClient()
        self._row_locks: dict[tuple[str, str], asyncio.Lock] = {}

    def _require_owner(self) -> str:
        owner_id = self._session.current_owner_id()
        if not owner_id:
            raise UnauthenticatedError("No active session")
        return owner_id

    @staticmethod
    def _record_to_row(owner_id: str, key: MonthKey, record: MonthRecord) -> list:
        """Convert a month record to a spreadsheet row."""
        return [
            owner_id,
            str(key),
            json.dumps(record.to_json_dict(), sort_keys=True),
        ]

    @staticmethod
    def _find_row(
        rows: list[list],
        owner_id: str,
        date_key: str,
    ) -> tuple[Optional[int], Optional[list]]:
        """
        Find the row for (owner_id, date_key).

        Returns (1-based sheet row number, row values), or (None, None).
        """
        for idx, row in enumerate(rows[1:], start=2):  # Row 1 is the header
            if len(row) >= 2 and row[0] == owner_id and row[1] == date_key:
                return idx, row
        return None, None

    @_retry_api_errors
    def _read_rows(self) -> list[list]:
        return self._client.get_budget_sheet().get_all_values()

    @_retry_api_errors
    def _upsert_row(self, owner_id: str, date_key: str, row: list) -> None:
        sheet = self._client.get_budget_sheet()
        idx, _ = self._find_row(sheet.get_all_values(), owner_id, date_key)
        if idx is None:
            sheet.append_row(row, value_input_option="RAW")
        else:
            sheet.update(range_name=f"A{idx}:C{idx}", values=[row])

    async def fetch(self, key: MonthKey) -> Optional[MonthRecord]:
        """Point query for the owner's month."""
        owner_id = self._require_owner()

        try:
            rows = await asyncio.to_thread(self._read_rows)
        except Exception as e:
            raise TransportError(f"Failed to query budget sheet: {e}")

        _, row = self._find_row(rows, owner_id, str(key))
        payload = row[2] if row and len(row) > 2 else ""
        if not payload:
            return None

        try:
            return MonthRecord.from_json_dict(json.loads(payload))
        except (json.JSONDecodeError, ValidationError) as e:
            raise CorruptRecordError(f"Stored record for {key} is invalid: {e}")

    async def persist(self, key: MonthKey, record: MonthRecord) -> bool:
        """Upsert the owner's month row."""
        owner_id = self._require_owner()
        row = self._record_to_row(owner_id, key, record)

        # One upsert per row at a time, or two first saves both append
        lock = self._row_locks.setdefault((owner_id, str(key)), asyncio.Lock())
        async with lock:
            try:
                await asyncio.to_thread(self._upsert_row, owner_id, str(key), row)
            except Exception as e:
                raise TransportError(f"Failed to save {key}: {e}")

        return True
