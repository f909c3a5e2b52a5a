"""
Data Models Package

This package contains all Pydantic models used in Budget Advisor.
Every month record that enters or leaves a store passes through these schemas.
"""

from budget_advisor.models.budget import (
    DEFAULT_CATEGORIES,
    ExpenseCategory,
    ExpenseItem,
    IncomeItem,
    IncomeKind,
    IncomeLists,
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

__all__ = [
    # Budget models
    "DEFAULT_CATEGORIES",
    "ExpenseCategory",
    "ExpenseItem",
    "IncomeItem",
    "IncomeKind",
    "IncomeLists",
    "MonthKey",
    "MonthRecord",
    "coerce_item_id",
    "default_month_record",
    "new_item_id",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
