"""Tests for command classification and the rule-based advice."""

import pytest

from budget_advisor.agents import (
    ADVICE_SEPARATOR,
    COMMAND_RULES,
    UNRECOGNIZED_RESPONSE,
    AdvisorIntent,
    CommandRule,
    FinancialAdvisor,
    classify_command,
)
from budget_advisor.agents.advisor import contains_word
from budget_advisor.models.budget import MonthRecord, default_month_record
from budget_advisor.queries import aggregate


def month(proj_income=0, act_income=0, proj_expense=0, act_expense=0) -> MonthRecord:
    """A month with one income line per side and one expense item."""
    return MonthRecord.model_validate({
        "income": {
            "projected": [{"id": 1, "name": "Plan", "amount": proj_income}],
            "actual": [{"id": 2, "name": "Sales", "amount": act_income}],
        },
        "expenses": [{
            "id": "cat_ops",
            "name": "Operations",
            "items": [{"id": 3, "name": "Stock", "projected": proj_expense, "actual": act_expense}],
        }],
    })


@pytest.fixture
def advisor():
    return FinancialAdvisor()


class TestClassifyCommand:
    """Tests for mapping commands to intents."""

    @pytest.mark.parametrize("command,intent", [
        ("Show me my expenses", AdvisorIntent.SHOW_EXPENSES),
        ("show income", AdvisorIntent.SHOW_INCOME),
        ("go home", AdvisorIntent.SHOW_DASHBOARD),
        ("Open the DASHBOARD", AdvisorIntent.SHOW_DASHBOARD),
        ("Give me some advice", AdvisorIntent.ANALYZE),
        ("analyze my budget", AdvisorIntent.ANALYZE),
        ("How are we doing?", AdvisorIntent.ANALYZE),
        ("Should I invest?", AdvisorIntent.ANALYZE),
        ("What's my balance", AdvisorIntent.BALANCE),
        ("total income please", AdvisorIntent.TOTAL_INCOME),
        ("Hello there", AdvisorIntent.GREETING),
        ("hi", AdvisorIntent.GREETING),
        ("Hi, Mic3!", AdvisorIntent.GREETING),
        ("what is the weather", AdvisorIntent.UNKNOWN),
        ("", AdvisorIntent.UNKNOWN),
        ("   ", AdvisorIntent.UNKNOWN),
    ])
    def test_classification(self, command, intent):
        assert classify_command(command) == intent

    def test_first_matching_rule_wins(self):
        # Mentions both navigation and analysis words
        assert classify_command("show expense advice") == AdvisorIntent.SHOW_EXPENSES
        assert classify_command("balance advice") == AdvisorIntent.ANALYZE

    def test_hi_matches_whole_word_only(self):
        assert classify_command("this month") == AdvisorIntent.UNKNOWN
        assert contains_word("hi")("oh hi") is True
        assert contains_word("hi")("shipping") is False

    def test_show_without_target_is_not_navigation(self):
        assert classify_command("show") == AdvisorIntent.UNKNOWN

    def test_custom_rules(self):
        rules = (CommandRule(AdvisorIntent.BALANCE, lambda text: "money" in text),) + COMMAND_RULES
        assert classify_command("how much money", rules) == AdvisorIntent.BALANCE


class TestRespond:
    """Tests for the chat replies."""

    def test_navigation(self, advisor):
        response = advisor.respond("show expenses", default_month_record())
        assert response.intent == AdvisorIntent.SHOW_EXPENSES
        assert response.navigate_to == "expenses"

    def test_data_answers_have_no_navigation(self, advisor):
        record = month(act_income=50000, act_expense=20000)

        balance = advisor.respond("balance", record)
        assert balance.message == "Your actual balance for this month is Ksh 30,000.00."
        assert balance.navigate_to is None

        income = advisor.respond("total income", record)
        assert income.message == "You have earned Ksh 50,000.00 so far this month."

    def test_greeting_uses_advisor_name(self):
        response = FinancialAdvisor(advisor_name="Acme").respond("hello", default_month_record())
        assert "Acme Financial Advisor" in response.message

    def test_unknown(self, advisor):
        response = advisor.respond("sing me a song", default_month_record())
        assert response.intent == AdvisorIntent.UNKNOWN
        assert response.message == UNRECOGNIZED_RESPONSE

    def test_currency_symbol(self):
        response = FinancialAdvisor(currency_symbol="USD").respond("balance", month(act_income=10))
        assert "USD 10.00" in response.message


class TestAdvice:
    """Tests for the income, expense and investment remarks."""

    def test_healthy_month(self, advisor):
        record = month(proj_income=40000, act_income=50000, proj_expense=30000, act_expense=20000)
        advice = advisor.generate_advice(aggregate(record))

        assert len(advice) == 4
        assert "Income Strong" in advice[0] and "Ksh 10,000.00" in advice[0]
        assert "Spending Control" in advice[1] and "Ksh 10,000.00" in advice[1]
        assert "Investment Opportunity" in advice[2]
        assert "Ksh 30,000.00" in advice[2] and "60.0% savings rate" in advice[2]
        assert "Safe Position" in advice[3] and "Ksh 15,000.00" in advice[3]

    def test_deficit_month(self, advisor):
        record = month(proj_income=20000, act_income=10000, proj_expense=12000, act_expense=15000)
        advice = advisor.generate_advice(aggregate(record))

        assert "Income Alert" in advice[0] and "Ksh 10,000.00" in advice[0]
        assert "Overspending" in advice[1] and "Ksh 3,000.00" in advice[1]
        assert "Critical Deficit" in advice[2] and "Ksh -5,000.00" in advice[2]
        assert not any("Investment Opportunity" in remark for remark in advice)

    def test_income_on_target_has_no_income_remark(self, advisor):
        record = month(proj_income=1000, act_income=1000, proj_expense=900, act_expense=900)
        advice = advisor.generate_advice(aggregate(record))
        assert not any("Income" in remark for remark in advice)
        assert "Spending Control" in advice[0]

    def test_small_surplus_is_positive_balance(self, advisor):
        # 10% savings rate, under the investing threshold
        record = month(proj_income=10000, act_income=10000, proj_expense=9000, act_expense=9000)
        advice = advisor.generate_advice(aggregate(record))
        assert "Positive Balance" in advice[-1]
        assert "Ksh 1,000.00" in advice[-1]

    def test_exactly_twenty_percent_is_not_an_opportunity(self, advisor):
        record = month(act_income=10000, act_expense=8000)
        advice = advisor.generate_advice(aggregate(record))
        assert "Positive Balance" in advice[-1]

    def test_zero_balance_is_a_deficit(self, advisor):
        advice = advisor.generate_advice(aggregate(default_month_record()))
        assert "Critical Deficit" in advice[-1]

    def test_analyze_joins_remarks(self, advisor):
        record = month(proj_income=40000, act_income=50000, proj_expense=30000, act_expense=20000)
        response = advisor.respond("advice", record)
        assert response.intent == AdvisorIntent.ANALYZE
        assert response.message.split(ADVICE_SEPARATOR) == advisor.generate_advice(aggregate(record))
