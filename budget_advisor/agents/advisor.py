"""
Rule-Based Financial Advisor

DESIGN DECISION: The advisor is a deterministic rule table, not a model.

CRITICAL BOUNDARIES:

1. INTENT CLASSIFICATION:
   - A command is lower-cased and checked against COMMAND_RULES in order
   - The first matching rule wins; nothing matching means UNKNOWN
   - Rules are plain data, so each one can be tested on its own

2. ADVICE GENERATION:
   - CAN: Comment on the current month's aggregates
   - CANNOT: Look at other months or invent numbers
   - Remarks are always ordered income -> expense -> investment

The advisor only ever sees the record it is handed; it never reads or
writes storage.
"""

import re
from decimal import Decimal
from enum import Enum
from typing import Callable, NamedTuple, Optional

from pydantic import BaseModel

from budget_advisor.models.budget import MonthRecord
from budget_advisor.queries.aggregation import BudgetTotals, aggregate, savings_rate
from budget_advisor.queries.formatting import format_currency


# Savings rate (percent) above which investing is considered safe
SAFE_SAVINGS_RATE = Decimal("20")

# Share of the surplus suggested for investment
INVESTMENT_SHARE = Decimal("0.5")

ADVICE_SEPARATOR = "\n\n"

UNRECOGNIZED_RESPONSE = "I'm sorry, I didn't quite catch that."


class AdvisorIntent(str, Enum):
    """What a command is asking for."""
    SHOW_EXPENSES = "show_expenses"
    SHOW_INCOME = "show_income"
    SHOW_DASHBOARD = "show_dashboard"
    ANALYZE = "analyze"
    BALANCE = "balance"
    TOTAL_INCOME = "total_income"
    GREETING = "greeting"
    UNKNOWN = "unknown"


Predicate = Callable[[str], bool]


def contains_all(*phrases: str) -> Predicate:
    """Match when every phrase occurs somewhere in the command."""
    return lambda text: all(phrase in text for phrase in phrases)


def contains_any(*phrases: str) -> Predicate:
    """Match when at least one phrase occurs somewhere in the command."""
    return lambda text: any(phrase in text for phrase in phrases)


def contains_word(*words: str) -> Predicate:
    """Match whole words only ("hi" must not match "this")."""
    pattern = re.compile(r"\b(?:" + "|".join(re.escape(word) for word in words) + r")\b")
    return lambda text: pattern.search(text) is not None


class CommandRule(NamedTuple):
    intent: AdvisorIntent
    predicate: Predicate


def _either(*predicates: Predicate) -> Predicate:
    return lambda text: any(predicate(text) for predicate in predicates)


# Checked top to bottom; the first match wins
COMMAND_RULES: tuple[CommandRule, ...] = (
    # Navigation
    CommandRule(AdvisorIntent.SHOW_EXPENSES, contains_all("expense", "show")),
    CommandRule(AdvisorIntent.SHOW_INCOME, contains_all("income", "show")),
    CommandRule(AdvisorIntent.SHOW_DASHBOARD, contains_any("dashboard", "home")),
    # Analysis
    CommandRule(
        AdvisorIntent.ANALYZE,
        contains_any("advice", "analyze", "how are we doing", "invest"),
    ),
    # Data queries
    CommandRule(AdvisorIntent.BALANCE, contains_any("balance")),
    CommandRule(AdvisorIntent.TOTAL_INCOME, contains_any("total income")),
    # Small talk
    CommandRule(AdvisorIntent.GREETING, _either(contains_any("hello"), contains_word("hi"))),
)

NAVIGATION_TARGETS = {
    AdvisorIntent.SHOW_EXPENSES: "expenses",
    AdvisorIntent.SHOW_INCOME: "income",
    AdvisorIntent.SHOW_DASHBOARD: "dashboard",
}


def classify_command(
    command: str,
    rules: tuple[CommandRule, ...] = COMMAND_RULES,
) -> AdvisorIntent:
    """Map a free-text command to the first matching intent."""
    text = command.strip().lower()
    if not text:
        return AdvisorIntent.UNKNOWN
    for rule in rules:
        if rule.predicate(text):
            return rule.intent
    return AdvisorIntent.UNKNOWN


class AdvisorResponse(BaseModel):
    """What the chat widget shows, plus where (if anywhere) to navigate."""

    intent: AdvisorIntent
    message: str
    navigate_to: Optional[str] = None


class FinancialAdvisor:
    """
    Answers advisor commands against one month record.

    Messages use light markdown (**bold**) for emphasis.
    """

    def __init__(
        self,
        currency_symbol: str = "Ksh",
        advisor_name: str = "Mic3",
        rules: tuple[CommandRule, ...] = COMMAND_RULES,
    ):
        self._currency_symbol = currency_symbol
        self._advisor_name = advisor_name
        self._rules = rules
        self._handlers: dict[AdvisorIntent, Callable[[MonthRecord], str]] = {
            AdvisorIntent.SHOW_EXPENSES: lambda record: "I've opened the Expenses tab for you.",
            AdvisorIntent.SHOW_INCOME: lambda record: "Here is your Income Manager.",
            AdvisorIntent.SHOW_DASHBOARD: lambda record: "Back to the Dashboard.",
            AdvisorIntent.ANALYZE: self.analyze,
            AdvisorIntent.BALANCE: self._describe_balance,
            AdvisorIntent.TOTAL_INCOME: self._describe_income,
            AdvisorIntent.GREETING: self._greet,
            AdvisorIntent.UNKNOWN: lambda record: UNRECOGNIZED_RESPONSE,
        }

    def _money(self, value: Decimal) -> str:
        return format_currency(value, self._currency_symbol)

    def respond(self, command: str, record: MonthRecord) -> AdvisorResponse:
        """Classify the command and produce the reply for it."""
        intent = classify_command(command, self._rules)
        message = self._handlers[intent](record)
        return AdvisorResponse(
            intent=intent,
            message=message,
            navigate_to=NAVIGATION_TARGETS.get(intent),
        )

    # -------------------------------------------------------------------------
    # Data queries
    # -------------------------------------------------------------------------

    def _describe_balance(self, record: MonthRecord) -> str:
        totals = aggregate(record)
        return f"Your actual balance for this month is {self._money(totals.act_balance)}."

    def _describe_income(self, record: MonthRecord) -> str:
        totals = aggregate(record)
        return f"You have earned {self._money(totals.act_income)} so far this month."

    def _greet(self, record: MonthRecord) -> str:
        return (
            f"Hello! I am your {self._advisor_name} Financial Advisor. "
            "Ask me for 'advice' to analyze your budget health."
        )

    # -------------------------------------------------------------------------
    # Advice rules
    # -------------------------------------------------------------------------

    def income_advice(self, totals: BudgetTotals) -> Optional[str]:
        """Shortfall or surplus against projected income; None when on target."""
        variance = totals.act_income - totals.proj_income
        if variance < 0:
            return (
                f"⚠️ **Income Alert**: You are trailing your projected income by "
                f"{self._money(abs(variance))}. If this persists, avoid big discretionary spends."
            )
        if variance > 0:
            return (
                f"✅ **Income Strong**: You exceeded your income target by "
                f"{self._money(variance)}. Great job!"
            )
        return None

    def expense_advice(self, totals: BudgetTotals) -> str:
        if totals.act_expense > totals.proj_expense:
            over = totals.act_expense - totals.proj_expense
            return (
                f"🚨 **Overspending**: Expenses are {self._money(over)} higher than planned. "
                "Review your largest categories immediately."
            )
        return (
            f"👍 **Spending Control**: You are under your expense budget by "
            f"{self._money(totals.proj_expense - totals.act_expense)}."
        )

    def investment_advice(self, totals: BudgetTotals) -> list[str]:
        balance = totals.act_balance
        if balance <= 0:
            return [
                f"🛑 **Critical Deficit**: You are currently spending more than you earn "
                f"({self._money(balance)}). Investment is NOT recommended. "
                "Focus on cutting costs to stabilize."
            ]

        rate = savings_rate(totals)
        if rate > SAFE_SAVINGS_RATE:
            return [
                f"🚀 **Investment Opportunity**: You have a strong surplus of "
                f"{self._money(balance)} ({rate:.1f}% savings rate).",
                f"Given your healthy margin, {self._advisor_name} is in a **Safe Position** to invest. "
                f"Consider allocating 50% ({self._money(balance * INVESTMENT_SHARE)}) "
                "to a high-yield fund or business expansion.",
            ]
        return [
            f"💰 **Positive Balance**: You have a surplus of {self._money(balance)}. "
            "Focus on building an emergency fund before aggressive investing."
        ]

    def generate_advice(self, totals: BudgetTotals) -> list[str]:
        """All remarks for the month, ordered income -> expense -> investment."""
        advice = []
        income_remark = self.income_advice(totals)
        if income_remark:
            advice.append(income_remark)
        advice.append(self.expense_advice(totals))
        advice.extend(self.investment_advice(totals))
        return advice

    def analyze(self, record: MonthRecord) -> str:
        return ADVICE_SEPARATOR.join(self.generate_advice(aggregate(record)))
