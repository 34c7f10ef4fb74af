from decimal import Decimal

import pytest
from pydantic import ValidationError

from src.core.models import (
    MONEY_MAX_DIGITS,
    Account,
    AssetClass,
    ExpenseEntry,
    Frequency,
    IncomeEntry,
    InvalidEnumValueError,
    Metrics,
    Profile,
    Recommendation,
    parse_enum,
)
from src.core.recommendation_engine import recommend
from tests.factories import metrics, profile


def test_metrics_derive_savings_when_omitted():
    assert metrics(monthly_income="2000", monthly_expenses="2300").monthly_savings == Decimal(
        "-300"
    )


def test_metrics_reject_inconsistent_savings():
    with pytest.raises(ValidationError, match="monthly_savings must equal"):
        Metrics(
            monthly_income=Decimal("2000"),
            monthly_expenses=Decimal("1500"),
            monthly_savings=Decimal("100"),
        )


def test_metrics_are_immutable():
    value = metrics(monthly_income="10")
    with pytest.raises(ValidationError):
        value.monthly_income = Decimal("20")


def test_parse_enum_reports_field_and_allowed_values():
    with pytest.raises(InvalidEnumValueError) as exc_info:
        parse_enum(Frequency, "weekly", "frequency")

    assert exc_info.value.field_name == "frequency"
    assert exc_info.value.allowed == ("monthly", "quarterly", "annual", "one_time")
    assert str(exc_info.value).startswith("INVALID_ENUM_VALUE: frequency='weekly'")


def test_profile_rejects_out_of_domain_enum_values():
    with pytest.raises(ValidationError, match="INVALID_ENUM_VALUE"):
        Profile(risk_tolerance="reckless")


def test_profile_completeness_needs_both_enums():
    assert Profile().is_complete is False
    assert profile("moderate", None).is_complete is False
    assert profile("moderate", "short").is_complete is True


@pytest.mark.parametrize("age", [-1, 131])
def test_profile_age_is_bounded(age):
    with pytest.raises(ValidationError):
        Profile(age=age)


def test_asset_classes_are_ordered_by_risk_with_labels():
    assert [asset.risk_rank for asset in AssetClass] == [0, 1, 2, 3, 4]
    assert AssetClass.REAL_ESTATE.label == "Immobilier"


def test_recommendation_rejects_allocation_not_summing_to_100():
    base = recommend(profile("moderate", "medium"), metrics(monthly_income="100"))
    payload = base.model_dump()
    payload["allocation"] = {AssetClass.CASH: 60, AssetClass.BONDS: 30}

    with pytest.raises(ValidationError, match="sum to exactly 100"):
        Recommendation.model_validate(payload)


def test_recommendation_rejects_negative_weights():
    base = recommend(profile("moderate", "medium"), metrics(monthly_income="100"))
    payload = base.model_dump()
    payload["allocation"] = {AssetClass.CASH: 110, AssetClass.BONDS: -10}

    with pytest.raises(ValidationError, match="non-negative"):
        Recommendation.model_validate(payload)


@pytest.mark.parametrize("amount", ["0.005", "1234.567"])
def test_records_reject_sub_cent_amounts(amount):
    with pytest.raises(ValidationError):
        Account(balance=amount)
    with pytest.raises(ValidationError):
        IncomeEntry(amount=amount)
    with pytest.raises(ValidationError):
        ExpenseEntry(amount=amount)


def test_records_accept_amounts_up_to_the_money_bound():
    largest = "9" * (MONEY_MAX_DIGITS - 2) + ".99"
    assert Account(balance=largest).balance == Decimal(largest)
    with pytest.raises(ValidationError):
        Account(balance="1" + "0" * (MONEY_MAX_DIGITS - 1))


def test_metrics_accept_totals_beyond_default_decimal_precision():
    income = Decimal("9" * 30 + ".99")
    value = Metrics(monthly_income=income, monthly_expenses=Decimal("0.01"))
    assert value.monthly_savings == Decimal("9" * 30 + ".98")
