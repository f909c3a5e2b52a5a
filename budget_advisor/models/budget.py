"""
Core Data Models for Budget Advisor

These models define the per-month budget record and everything inside it.
They are designed to:
1. Enforce type safety at runtime
2. Keep money exact (Decimal, two places) so totals never drift
3. Be serializable for the local blob and the remote table
4. Keep item ids stable - they are the only handle for edit/delete

DESIGN DECISION: Amounts are stored as Decimal but written to JSON as
numbers, so the stored format stays readable by any JSON consumer and
legacy float values load cleanly (they are quantized on the way in).
"""

import re
import threading
import time
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from functools import total_ordering
from typing import Annotated, Any, Optional

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    model_validator,
)


CENT = Decimal("0.01")

_MONTH_KEY_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


# =============================================================================
# FIELD TYPES
# =============================================================================

def _to_money(value: Any) -> Any:
    """Quantize any numeric input to two decimal places."""
    if isinstance(value, bool):
        raise ValueError("Amount must be a number, not a boolean")
    if isinstance(value, (int, float, str, Decimal)):
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError(f"Not a valid amount: {value!r}")
        if not amount.is_finite():
            raise ValueError(f"Not a valid amount: {value!r}")
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    return value


def coerce_item_id(value: Any) -> Optional[int]:
    """
    Normalize an item id coming from storage or the UI layer.

    Ids may arrive as int, integral float or numeric string.
    Returns None for anything that cannot name an item.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else None
    if isinstance(value, str):
        text = value.strip()
        if re.fullmatch(r"-?\d+", text):
            return int(text)
    return None


def _validate_item_id(value: Any) -> int:
    item_id = coerce_item_id(value)
    if item_id is None:
        raise ValueError(f"Not a valid item id: {value!r}")
    return item_id


Money = Annotated[
    Decimal,
    BeforeValidator(_to_money),
    Field(ge=0),
    PlainSerializer(float, return_type=float, when_used="json"),
]

ItemId = Annotated[int, BeforeValidator(_validate_item_id)]


_id_lock = threading.Lock()
_last_item_id = 0


def new_item_id() -> int:
    """
    Allocate a process-unique, monotonic item id.

    Ids are millisecond timestamps, bumped by one when two ids are
    requested within the same millisecond.
    """
    global _last_item_id
    with _id_lock:
        candidate = int(time.time() * 1000)
        if candidate <= _last_item_id:
            candidate = _last_item_id + 1
        _last_item_id = candidate
        return candidate


# =============================================================================
# ENUMS
# =============================================================================

class IncomeKind(str, Enum):
    """The two income lists kept for every month."""
    PROJECTED = "projected"
    ACTUAL = "actual"


# =============================================================================
# MONTH KEY
# =============================================================================

@total_ordering
class MonthKey(BaseModel):
    """
    Identifies one budget period.

    Canonical string form is "YYYY-MM"; that string is the lookup key
    in every store.
    """
    model_config = ConfigDict(frozen=True)

    year: int = Field(ge=1, le=9999)
    month: int = Field(ge=1, le=12)

    @classmethod
    def parse(cls, text: str) -> "MonthKey":
        """Parse a "YYYY-MM" string."""
        match = _MONTH_KEY_PATTERN.match(text.strip()) if isinstance(text, str) else None
        if not match:
            raise ValueError(f"Month key must look like YYYY-MM, got {text!r}")
        return cls(year=int(match.group(1)), month=int(match.group(2)))

    @classmethod
    def from_date(cls, value: date) -> "MonthKey":
        return cls(year=value.year, month=value.month)

    @classmethod
    def coerce(cls, value: "MonthKey | str") -> "MonthKey":
        if isinstance(value, MonthKey):
            return value
        return cls.parse(value)

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, MonthKey):
            return NotImplemented
        return (self.year, self.month) < (other.year, other.month)


# =============================================================================
# LINE ITEMS
# =============================================================================

class IncomeItem(BaseModel):
    """A single projected or actual income entry."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: ItemId = Field(default_factory=new_item_id)
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display label"
    )
    amount: Money


class ExpenseItem(BaseModel):
    """
    A single expense entry inside a category.

    Carries both the planned and the real cost; actual starts at zero.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: ItemId = Field(default_factory=new_item_id)
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display label"
    )
    projected: Money
    actual: Money = Decimal("0.00")


def _ensure_unique(ids: list, what: str) -> None:
    seen = set()
    for value in ids:
        if value in seen:
            raise ValueError(f"Duplicate {what} id: {value}")
        seen.add(value)


class ExpenseCategory(BaseModel):
    """A named group of expense items (Housing, Food, ...)."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Stable slug, unique within a month"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200
    )
    items: list[ExpenseItem] = Field(default_factory=list)

    @model_validator(mode='after')
    def validate_unique_items(self) -> 'ExpenseCategory':
        _ensure_unique([item.id for item in self.items], "expense item")
        return self


class IncomeLists(BaseModel):
    """Projected and actual income for one month."""

    projected: list[IncomeItem] = Field(default_factory=list)
    actual: list[IncomeItem] = Field(default_factory=list)

    @model_validator(mode='after')
    def validate_unique_items(self) -> 'IncomeLists':
        _ensure_unique([item.id for item in self.projected], "projected income")
        _ensure_unique([item.id for item in self.actual], "actual income")
        return self


# =============================================================================
# MONTH RECORD
# =============================================================================

DEFAULT_CATEGORIES = (
    ("cat_housing", "Housing"),
    ("cat_food", "Food"),
    ("cat_transport", "Transport"),
)


class MonthRecord(BaseModel):
    """
    All income and expense data for one month.

    Exactly one record exists per MonthKey. Records are mutated in place
    by the budget service; validation runs when a record is built or loaded.
    """

    income: IncomeLists = Field(default_factory=IncomeLists)
    expenses: list[ExpenseCategory] = Field(default_factory=list)

    @model_validator(mode='after')
    def validate_unique_categories(self) -> 'MonthRecord':
        _ensure_unique([category.id for category in self.expenses], "category")
        return self

    def income_list(self, kind: IncomeKind | str) -> list[IncomeItem]:
        """Return the projected or actual income list (the live list)."""
        kind = IncomeKind(kind)
        if kind is IncomeKind.PROJECTED:
            return self.income.projected
        return self.income.actual

    def find_category(self, category_id: str) -> Optional[ExpenseCategory]:
        for category in self.expenses:
            if category.id == category_id:
                return category
        return None

    def to_json_dict(self) -> dict:
        """Plain JSON-compatible form used by every store."""
        return self.model_dump(mode="json")

    @classmethod
    def from_json_dict(cls, data: Any) -> "MonthRecord":
        return cls.model_validate(data)


def default_month_record() -> MonthRecord:
    """
    Build the record a never-seen month starts with.

    Three empty categories and no income. A fresh object every call.
    """
    return MonthRecord(
        expenses=[
            ExpenseCategory(id=category_id, name=name)
            for category_id, name in DEFAULT_CATEGORIES
        ],
    )
