"""
Tests for Budget Advisor

Test strategy:
1. Unit tests for individual components (models, aggregation, advisor)
2. Integration tests for flows (with in-memory and fake Sheets stores)
3. No real API calls in tests
"""

import json
from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from budget_advisor.models.budget import (
    ExpenseCategory,
    ExpenseItem,
    IncomeItem,
    IncomeKind,
    MonthKey,
    MonthRecord,
    coerce_item_id,
    default_month_record,
    new_item_id,
)
from budget_advisor.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestMonthKey:
    """Tests for the YYYY-MM month identifier."""

    def test_parse_and_format(self):
        key = MonthKey.parse("2025-12")
        assert key.year == 2025
        assert key.month == 12
        assert str(key) == "2025-12"

    def test_month_is_zero_padded(self):
        assert str(MonthKey(year=2026, month=3)) == "2026-03"

    def test_from_date(self):
        assert str(MonthKey.from_date(date(2024, 7, 19))) == "2024-07"

    @pytest.mark.parametrize("text", ["2025-13", "2025-00", "2025-1", "25-01", "december", ""])
    def test_parse_rejects_bad_keys(self, text):
        with pytest.raises(ValueError):
            MonthKey.parse(text)

    def test_keys_are_ordered_and_hashable(self):
        keys = [MonthKey.parse("2025-12"), MonthKey.parse("2024-01"), MonthKey.parse("2025-02")]
        assert [str(k) for k in sorted(keys)] == ["2024-01", "2025-02", "2025-12"]
        assert MonthKey.parse("2025-12") == MonthKey(year=2025, month=12)
        assert len({MonthKey.parse("2025-12"), MonthKey(year=2025, month=12)}) == 1

    def test_coerce_accepts_key_or_string(self):
        key = MonthKey.parse("2025-05")
        assert MonthKey.coerce(key) is key
        assert MonthKey.coerce("2025-05") == key


class TestLineItems:
    """Tests for income and expense line items."""

    def test_income_item_creation(self):
        item = IncomeItem(name="Salary", amount=Decimal("50000"))
        assert item.name == "Salary"
        assert item.amount == Decimal("50000.00")
        assert isinstance(item.id, int)

    def test_name_is_stripped_and_required(self):
        assert IncomeItem(name="  Salary  ", amount=1).name == "Salary"
        with pytest.raises(ValidationError):
            IncomeItem(name="   ", amount=1)

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError):
            IncomeItem(name="Refund", amount=-100)

    def test_non_numeric_amount_rejected(self):
        with pytest.raises(ValidationError):
            ExpenseItem(name="Rent", projected="lots")

    def test_float_amounts_are_quantized(self):
        item = ExpenseItem(name="Bus", projected=0.1 + 0.2, actual="12.345")
        assert item.projected == Decimal("0.30")
        assert item.actual == Decimal("12.35")

    def test_expense_actual_defaults_to_zero(self):
        item = ExpenseItem(name="Rent", projected=8500)
        assert item.actual == Decimal("0.00")

    def test_string_ids_are_coerced(self):
        assert IncomeItem(id="5", name="Gift", amount=10).id == 5

    def test_ids_are_unique_and_increasing(self):
        ids = [new_item_id() for _ in range(50)]
        assert len(set(ids)) == 50
        assert ids == sorted(ids)

    @pytest.mark.parametrize(
        "value,expected",
        [(5, 5), ("5", 5), (" 17 ", 17), (5.0, 5), (Decimal("9"), 9), ("abc", None), (5.5, None), (True, None), (None, None)],
    )
    def test_coerce_item_id(self, value, expected):
        assert coerce_item_id(value) == expected


class TestMonthRecord:
    """Tests for the per-month record."""

    def test_default_record_shape(self):
        record = default_month_record()
        assert [c.name for c in record.expenses] == ["Housing", "Food", "Transport"]
        assert [c.id for c in record.expenses] == ["cat_housing", "cat_food", "cat_transport"]
        assert all(c.items == [] for c in record.expenses)
        assert record.income.projected == []
        assert record.income.actual == []

    def test_default_record_is_fresh_each_time(self):
        first = default_month_record()
        first.expenses[0].items.append(ExpenseItem(name="Rent", projected=1))
        assert default_month_record().expenses[0].items == []

    def test_duplicate_category_ids_rejected(self):
        with pytest.raises(ValidationError, match="Duplicate category id"):
            MonthRecord(expenses=[
                ExpenseCategory(id="cat_food", name="Food"),
                ExpenseCategory(id="cat_food", name="More food"),
            ])

    def test_duplicate_item_ids_rejected(self):
        with pytest.raises(ValidationError, match="Duplicate expense item id"):
            ExpenseCategory(id="cat_food", name="Food", items=[
                ExpenseItem(id=1, name="Bread", projected=1),
                ExpenseItem(id="1", name="Milk", projected=1),
            ])

    def test_same_id_allowed_in_different_lists(self):
        record = MonthRecord.model_validate({
            "income": {
                "projected": [{"id": 1, "name": "Salary", "amount": 1}],
                "actual": [{"id": 1, "name": "Salary", "amount": 1}],
            },
        })
        assert record.income.projected[0].id == record.income.actual[0].id

    def test_income_list_returns_live_list(self):
        record = default_month_record()
        record.income_list(IncomeKind.ACTUAL).append(IncomeItem(name="Salary", amount=1))
        record.income_list("projected").append(IncomeItem(name="Salary", amount=2))
        assert len(record.income.actual) == 1
        assert len(record.income.projected) == 1

    def test_find_category(self):
        record = default_month_record()
        assert record.find_category("cat_food").name == "Food"
        assert record.find_category("cat_missing") is None

    def test_json_form_uses_numbers(self, sample_record):
        data = sample_record.to_json_dict()
        assert data["income"]["actual"][0]["amount"] == 45000.0
        assert data["expenses"][0]["items"][0]["actual"] == 15000.0
        # And it is real JSON
        json.dumps(data)

    def test_json_round_trip_is_deep_equal(self, sample_record):
        data = json.loads(json.dumps(sample_record.to_json_dict()))
        assert MonthRecord.from_json_dict(data) == sample_record

    def test_loads_legacy_blob_format(self):
        record = MonthRecord.from_json_dict({
            "income": {"projected": [], "actual": [{"id": 1733000000000, "name": "Sales", "amount": 1200.5}]},
            "expenses": [{"id": "cat_1733000000001", "name": "Misc", "items": [
                {"id": 1733000000002, "name": "Fuel", "projected": 8500, "actual": 0},
            ]}],
        })
        assert record.income.actual[0].amount == Decimal("1200.50")
        assert record.expenses[0].items[0].projected == Decimal("8500.00")


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        event = AuditEvent(
            event_type=AuditEventType.MONTH_LOADED,
            description="Loaded 2025-12",
        )
        assert event.event_type == AuditEventType.MONTH_LOADED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        event = AuditEventBuilder.record_saved("2025-12", storage="local")
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "record_saved"
        assert log_dict["month_key"] == "2025-12"
        assert log_dict["details"]["storage"] == "local"

    def test_save_failed_is_an_error(self):
        event = AuditEventBuilder.save_failed("2025-12", RuntimeError("boom"))
        assert event.severity == AuditSeverity.ERROR
        assert event.error_type == "RuntimeError"
        assert event.error_message == "boom"

    def test_item_changes_are_user_actions(self):
        event = AuditEventBuilder.item_changed(
            AuditEventType.ITEM_DELETED, "2025-12", "income.actual", 42,
        )
        assert event.is_user_action is True
        assert event.details["item_id"] == "42"
        assert "deleted from income.actual" in event.description


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
