"""Advisor agents package."""

from budget_advisor.agents.advisor import (
    ADVICE_SEPARATOR,
    COMMAND_RULES,
    UNRECOGNIZED_RESPONSE,
    AdvisorIntent,
    AdvisorResponse,
    CommandRule,
    FinancialAdvisor,
    classify_command,
)

__all__ = [
    "ADVICE_SEPARATOR",
    "COMMAND_RULES",
    "UNRECOGNIZED_RESPONSE",
    "AdvisorIntent",
    "AdvisorResponse",
    "CommandRule",
    "FinancialAdvisor",
    "classify_command",
]
