"""Display formatting for amounts."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

from budget_advisor.models.budget import CENT


def format_currency(value: Union[Decimal, int, float], symbol: str = "Ksh") -> str:
    """Format an amount as e.g. "Ksh 10,000.00" (two places, grouped thousands)."""
    amount = Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
    return f"{symbol} {amount:,.2f}"
