from decimal import Decimal

import pytest

from src.core.advice import (
    ADVICE_RULES,
    AdviceContext,
    AdviceRule,
    evaluate_advice,
    format_euros,
)
from src.core.models import RiskProfile
from src.core.recommendation_engine import ALLOCATION_TEMPLATES, recommend
from tests.factories import metrics, profile


def _ctx(
    *,
    balance: str = "50000",
    income: str = "2000",
    expenses: str = "1500",
    tolerance: str = "moderate",
    horizon: str = "medium",
    age=35,
    emergency_fund: str = "9000",
    risk_profile: RiskProfile = RiskProfile.BALANCED,
) -> AdviceContext:
    return AdviceContext(
        profile=profile(tolerance, horizon, age=age),
        metrics=metrics(total_balance=balance, monthly_income=income, monthly_expenses=expenses),
        risk_profile=risk_profile,
        emergency_fund=Decimal(emergency_fund),
        allocation=ALLOCATION_TEMPLATES[risk_profile],
    )


def _rule_ids(ctx: AdviceContext):
    return [item.rule_id for item in evaluate_advice(ctx)]


def test_rule_ids_are_unique():
    ids = [rule.rule_id for rule in ADVICE_RULES]
    assert len(ids) == len(set(ids))


def test_healthy_situation_only_directs_savings_to_allocation():
    assert _rule_ids(_ctx()) == ["SAVINGS_TO_ALLOCATION"]


def test_allocation_advice_lists_every_weighted_asset_class():
    message = evaluate_advice(_ctx())[0].message
    assert "500 €" in message
    assert "Liquidités 15 %" in message
    assert "Alternatifs 5 %" in message


def test_negative_savings_warning_leads_the_advice():
    ids = _rule_ids(_ctx(income="1300", expenses="1500", balance="0"))

    assert ids[0] == "NEGATIVE_SAVINGS"
    assert "SAVINGS_TO_ALLOCATION" not in ids
    assert "SAVINGS_TO_BUFFER" not in ids


def test_negative_savings_message_states_the_shortfall():
    message = evaluate_advice(_ctx(income="1300", expenses="1500"))[0].message
    assert "200 €" in message


def test_missing_income_is_flagged():
    ids = _rule_ids(_ctx(income="0", expenses="0"))
    assert ids == ["NO_MONTHLY_INCOME"]


def test_emergency_fund_gap_states_target_and_shortfall():
    results = evaluate_advice(_ctx(balance="1000", emergency_fund="6000"))
    gap = next(item for item in results if item.rule_id == "EMERGENCY_FUND_GAP")

    assert "6 000 €" in gap.message
    assert "5 000 €" in gap.message


def test_buffer_exactly_at_target_is_adequate():
    ids = _rule_ids(_ctx(balance="9000", emergency_fund="9000"))
    assert "EMERGENCY_FUND_GAP" not in ids
    assert "SAVINGS_TO_ALLOCATION" in ids


def test_inadequate_buffer_redirects_savings_to_buffer():
    ids = _rule_ids(_ctx(balance="1000", emergency_fund="6000"))
    assert ids == ["EMERGENCY_FUND_GAP", "SAVINGS_TO_BUFFER"]


def test_low_savings_rate_is_reported_below_threshold():
    results = evaluate_advice(_ctx(income="2000", expenses="1900"))
    low = next(item for item in results if item.rule_id == "LOW_SAVINGS_RATE")
    assert "5.0 %" in low.message


@pytest.mark.parametrize("expenses", ["1800", "2000", "2500"])
def test_low_savings_rate_is_silent_at_threshold_or_without_savings(expenses):
    assert "LOW_SAVINGS_RATE" not in _rule_ids(_ctx(income="2000", expenses=expenses))


def test_aggressive_short_horizon_gets_equity_warning():
    ids = _rule_ids(_ctx(tolerance="aggressive", horizon="short"))
    assert "SHORT_HORIZON_EQUITY" in ids


@pytest.mark.parametrize("age", [None, 60, 72])
def test_age_caveat_applies_when_age_is_unknown_or_senior(age):
    results = evaluate_advice(_ctx(age=age, horizon="long"))
    assert results[-1].rule_id == "AGE_HORIZON_CAVEAT"
    assert "long terme" in results[-1].message


def test_age_caveat_is_silent_for_younger_investors():
    assert "AGE_HORIZON_CAVEAT" not in _rule_ids(_ctx(age=59))


def test_rules_are_evaluated_independently_in_table_order():
    calls = []

    def _tracking(rule_id: str, applies: bool) -> AdviceRule:
        def _applies(_ctx):
            calls.append(rule_id)
            return applies

        return AdviceRule(rule_id=rule_id, applies=_applies, message=lambda _ctx: rule_id)

    rules = (_tracking("FIRST", True), _tracking("SECOND", False), _tracking("THIRD", True))
    results = evaluate_advice(_ctx(), rules)

    assert calls == ["FIRST", "SECOND", "THIRD"]
    assert [item.message for item in results] == ["FIRST", "THIRD"]


def test_format_euros_uses_space_thousands_separator():
    assert format_euros(Decimal("12345.67")) == "12 346 €"


def test_conservative_short_reference_gets_savings_line_without_expense_warning():
    result = recommend(
        profile("conservative", "short"),
        metrics(total_balance="1000", monthly_income="2000", monthly_expenses="1500"),
    )

    assert sum(result.allocation.values()) == 100
    assert "SAVINGS_TO_BUFFER" in result.triggered_rules
    assert "NEGATIVE_SAVINGS" not in result.triggered_rules
    assert len(result.advice) == len(result.triggered_rules)


def test_negative_savings_warning_leads_regardless_of_risk_profile():
    result = recommend(
        profile("aggressive", "long"),
        metrics(total_balance="1000", monthly_income="1300", monthly_expenses="1500"),
    )

    assert result.triggered_rules[0] == "NEGATIVE_SAVINGS"
    assert result.advice[0].startswith("Vos dépenses mensuelles dépassent")


def test_format_euros_handles_amounts_beyond_default_decimal_precision():
    assert format_euros(Decimal("9" * 40)) == " ".join(["9"] + ["999"] * 13) + " €"


def test_buffer_shortfall_is_exact_for_large_targets():
    ctx = _ctx(balance="0.01", emergency_fund="9" * 30)

    assert ctx.buffer_shortfall == Decimal("9" * 29 + "8.99")
    assert "EMERGENCY_FUND_GAP" in _rule_ids(ctx)
