"""Aggregation and formatting package."""

from budget_advisor.queries.aggregation import (
    BudgetTotals,
    CategoryTotals,
    VarianceDirection,
    aggregate,
    balance_trend,
    category_totals,
    item_variance,
    savings_rate,
    variance_direction,
)
from budget_advisor.queries.formatting import format_currency

__all__ = [
    "BudgetTotals",
    "CategoryTotals",
    "VarianceDirection",
    "aggregate",
    "balance_trend",
    "category_totals",
    "format_currency",
    "item_variance",
    "savings_rate",
    "variance_direction",
]
