"""
Aggregation Engine

DESIGN DECISION: Totals are DETERMINISTIC folds over the month record.
Nothing here reads storage or mutates the record; the dashboard, the
category tables and the advisor all read the same numbers.

Two variance conventions live side by side on purpose:
- per item / per category: projected - actual (positive = under budget)
- balance: actual - projected (positive = better than planned)
Each one points "up" when things are going well for what it measures.
"""

from decimal import Decimal
from enum import Enum
from typing import Iterable

from pydantic import BaseModel

from budget_advisor.models.budget import (
    ExpenseCategory,
    ExpenseItem,
    IncomeItem,
    MonthRecord,
)


ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


class VarianceDirection(str, Enum):
    """Arrow shown next to a variance."""
    UP = "up"
    DOWN = "down"
    NEUTRAL = "neutral"


class BudgetTotals(BaseModel):
    """Month-level totals for the dashboard and the advisor."""

    proj_income: Decimal
    act_income: Decimal
    proj_expense: Decimal
    act_expense: Decimal
    proj_balance: Decimal
    act_balance: Decimal
    balance_diff: Decimal


class CategoryTotals(BaseModel):
    """Footer row of one expense category table."""

    projected: Decimal
    actual: Decimal
    variance: Decimal


def _sum_income(items: Iterable[IncomeItem]) -> Decimal:
    return sum((item.amount for item in items), ZERO)


def _expense_items(record: MonthRecord) -> Iterable[ExpenseItem]:
    for category in record.expenses:
        yield from category.items


def aggregate(record: MonthRecord) -> BudgetTotals:
    """Compute projected/actual totals, balances and the balance variance."""
    proj_income = _sum_income(record.income.projected)
    act_income = _sum_income(record.income.actual)

    proj_expense = ZERO
    act_expense = ZERO
    for item in _expense_items(record):
        proj_expense += item.projected
        act_expense += item.actual

    proj_balance = proj_income - proj_expense
    act_balance = act_income - act_expense

    return BudgetTotals(
        proj_income=proj_income,
        act_income=act_income,
        proj_expense=proj_expense,
        act_expense=act_expense,
        proj_balance=proj_balance,
        act_balance=act_balance,
        balance_diff=act_balance - proj_balance,
    )


def item_variance(item: ExpenseItem) -> Decimal:
    """Projected minus actual; positive means the item came in under budget."""
    return item.projected - item.actual


def category_totals(category: ExpenseCategory) -> CategoryTotals:
    projected = sum((item.projected for item in category.items), ZERO)
    actual = sum((item.actual for item in category.items), ZERO)
    return CategoryTotals(
        projected=projected,
        actual=actual,
        variance=projected - actual,
    )


def variance_direction(value: Decimal) -> VarianceDirection:
    if value > 0:
        return VarianceDirection.UP
    if value < 0:
        return VarianceDirection.DOWN
    return VarianceDirection.NEUTRAL


def balance_trend(totals: BudgetTotals) -> VarianceDirection:
    """Dashboard trend: up unless the actual balance fell short of plan."""
    if totals.balance_diff >= 0:
        return VarianceDirection.UP
    return VarianceDirection.DOWN


def savings_rate(totals: BudgetTotals) -> Decimal:
    """Actual balance as a percentage of actual income (0 with no income)."""
    if totals.act_income > 0:
        return totals.act_balance / totals.act_income * HUNDRED
    return Decimal("0")
