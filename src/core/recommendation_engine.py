"""
FILE: src/core/recommendation_engine.py
Table-driven investment recommendation from an investor profile and monthly metrics.
"""

import logging
from decimal import Decimal, localcontext
from typing import Dict, List, Mapping, Tuple, Union

from src.core.advice import ADVICE_RULES, AdviceContext, evaluate_advice
from src.core.models import (
    MONEY_CONTEXT,
    AssetClass,
    IncompleteProfileError,
    InvestmentHorizon,
    InvestmentSuggestion,
    Metrics,
    Profile,
    Recommendation,
    RiskLabel,
    RiskProfile,
    RiskTolerance,
    parse_enum,
    quantize_money,
)

logger = logging.getLogger(__name__)

RISK_PROFILE_TABLE: Dict[RiskTolerance, Dict[InvestmentHorizon, RiskProfile]] = {
    RiskTolerance.CONSERVATIVE: {
        InvestmentHorizon.SHORT: RiskProfile.CONSERVATIVE,
        InvestmentHorizon.MEDIUM: RiskProfile.CONSERVATIVE,
        InvestmentHorizon.LONG: RiskProfile.BALANCED,
    },
    RiskTolerance.MODERATE: {
        InvestmentHorizon.SHORT: RiskProfile.CONSERVATIVE,
        InvestmentHorizon.MEDIUM: RiskProfile.BALANCED,
        InvestmentHorizon.LONG: RiskProfile.GROWTH,
    },
    RiskTolerance.AGGRESSIVE: {
        InvestmentHorizon.SHORT: RiskProfile.BALANCED,
        InvestmentHorizon.MEDIUM: RiskProfile.GROWTH,
        InvestmentHorizon.LONG: RiskProfile.AGGRESSIVE,
    },
}

EMERGENCY_FUND_BASE_MONTHS: Dict[InvestmentHorizon, int] = {
    InvestmentHorizon.SHORT: 3,
    InvestmentHorizon.MEDIUM: 6,
    InvestmentHorizon.LONG: 6,
}

EMERGENCY_FUND_PROFILE_ADJUSTMENT: Dict[RiskProfile, int] = {
    RiskProfile.CONSERVATIVE: 1,
    RiskProfile.BALANCED: 0,
    RiskProfile.GROWTH: 0,
    RiskProfile.AGGRESSIVE: 0,
}

ALLOCATION_TEMPLATES: Dict[RiskProfile, Dict[AssetClass, int]] = {
    RiskProfile.CONSERVATIVE: {
        AssetClass.CASH: 30,
        AssetClass.BONDS: 45,
        AssetClass.EQUITIES: 15,
        AssetClass.REAL_ESTATE: 8,
        AssetClass.ALTERNATIVES: 2,
    },
    RiskProfile.BALANCED: {
        AssetClass.CASH: 15,
        AssetClass.BONDS: 35,
        AssetClass.EQUITIES: 35,
        AssetClass.REAL_ESTATE: 10,
        AssetClass.ALTERNATIVES: 5,
    },
    RiskProfile.GROWTH: {
        AssetClass.CASH: 10,
        AssetClass.BONDS: 20,
        AssetClass.EQUITIES: 50,
        AssetClass.REAL_ESTATE: 12,
        AssetClass.ALTERNATIVES: 8,
    },
    RiskProfile.AGGRESSIVE: {
        AssetClass.CASH: 5,
        AssetClass.BONDS: 10,
        AssetClass.EQUITIES: 65,
        AssetClass.REAL_ESTATE: 10,
        AssetClass.ALTERNATIVES: 10,
    },
}


def _suggestion(
    name: str, type_: str, expected_rate: str, risk_label: RiskLabel, asset_class: AssetClass
) -> InvestmentSuggestion:
    return InvestmentSuggestion(
        name=name,
        type=type_,
        expected_rate=expected_rate,
        risk_label=risk_label,
        asset_class=asset_class,
    )


_LIVRET_A = _suggestion(
    "Livret A / LDDS", "Épargne réglementée", "2 - 3 %", RiskLabel.LOW, AssetClass.CASH
)
_FONDS_EUROS = _suggestion(
    "Fonds euros (assurance vie)", "Assurance vie", "2,5 - 3,5 %", RiskLabel.LOW, AssetClass.BONDS
)
_OAT = _suggestion(
    "Obligations d'État (OAT)", "Obligations", "3 - 3,5 %", RiskLabel.LOW, AssetClass.BONDS
)
_ETF_OBLIGATAIRE = _suggestion(
    "ETF obligataire euro", "ETF", "3 - 4 %", RiskLabel.MODERATE, AssetClass.BONDS
)
_ETF_MONDE = _suggestion(
    "ETF MSCI World (PEA)", "ETF actions", "6 - 8 %", RiskLabel.MODERATE, AssetClass.EQUITIES
)
_SCPI = _suggestion(
    "SCPI de rendement", "Immobilier", "4 - 5 %", RiskLabel.MODERATE, AssetClass.REAL_ESTATE
)
_ETF_SP500 = _suggestion(
    "ETF S&P 500", "ETF actions", "7 - 10 %", RiskLabel.HIGH, AssetClass.EQUITIES
)
_ETF_EMERGENTS = _suggestion(
    "ETF marchés émergents", "ETF actions", "6 - 10 %", RiskLabel.HIGH, AssetClass.EQUITIES
)
_CROWDFUNDING = _suggestion(
    "Crowdfunding immobilier", "Immobilier", "8 - 10 %", RiskLabel.HIGH, AssetClass.REAL_ESTATE
)
_CRYPTO = _suggestion(
    "Cryptomonnaies (part limitée)", "Actifs numériques", "Très variable", RiskLabel.HIGH,
    AssetClass.ALTERNATIVES,
)

INVESTMENT_SHELF: Dict[RiskProfile, Tuple[InvestmentSuggestion, ...]] = {
    RiskProfile.CONSERVATIVE: (_LIVRET_A, _FONDS_EUROS, _OAT, _ETF_MONDE),
    RiskProfile.BALANCED: (_FONDS_EUROS, _ETF_OBLIGATAIRE, _ETF_MONDE, _SCPI),
    RiskProfile.GROWTH: (_ETF_MONDE, _ETF_SP500, _SCPI, _ETF_OBLIGATAIRE),
    RiskProfile.AGGRESSIVE: (_ETF_SP500, _ETF_EMERGENTS, _CROWDFUNDING, _CRYPTO),
}


def normalize_allocation(weights: Mapping[AssetClass, int]) -> Dict[AssetClass, int]:
    """
    Scales weights to integer percentages summing to exactly 100.

    Each share is floored; the rounding remainder goes to the lowest-risk
    asset class present in the template.
    """
    total = sum(weights.values())
    if total <= 0 or any(weight < 0 for weight in weights.values()):
        raise ValueError("allocation weights must be non-negative with a positive total")

    ordered = sorted(weights, key=lambda asset: asset.risk_rank)
    allocation = {asset: weights[asset] * 100 // total for asset in ordered}
    allocation[ordered[0]] += 100 - sum(allocation.values())
    return allocation


def validate_rule_tables() -> None:
    """Fails when a risk bucket, enum pair or asset class is missing from a table."""
    for tolerance in RiskTolerance:
        row = RISK_PROFILE_TABLE.get(tolerance, {})
        missing = [h.value for h in InvestmentHorizon if h not in row]
        if missing:
            raise RuntimeError(f"RISK_PROFILE_TABLE_INCOMPLETE: {tolerance.value} -> {missing}")
    for horizon in InvestmentHorizon:
        if horizon not in EMERGENCY_FUND_BASE_MONTHS:
            raise RuntimeError(f"EMERGENCY_FUND_TABLE_INCOMPLETE: {horizon.value}")
    for profile in RiskProfile:
        if profile not in EMERGENCY_FUND_PROFILE_ADJUSTMENT:
            raise RuntimeError(f"EMERGENCY_FUND_TABLE_INCOMPLETE: {profile.value}")
        template = ALLOCATION_TEMPLATES.get(profile)
        if template is None or set(template) != set(AssetClass):
            raise RuntimeError(f"ALLOCATION_TEMPLATE_INCOMPLETE: {profile.value}")
        if not INVESTMENT_SHELF.get(profile):
            raise RuntimeError(f"INVESTMENT_SHELF_INCOMPLETE: {profile.value}")


validate_rule_tables()


def resolve_risk_profile(
    risk_tolerance: Union[RiskTolerance, str], investment_horizon: Union[InvestmentHorizon, str]
) -> RiskProfile:
    tolerance = parse_enum(RiskTolerance, risk_tolerance, "risk_tolerance")
    horizon = parse_enum(InvestmentHorizon, investment_horizon, "investment_horizon")
    return RISK_PROFILE_TABLE[tolerance][horizon]


def emergency_fund_months(horizon: InvestmentHorizon, risk_profile: RiskProfile) -> int:
    return EMERGENCY_FUND_BASE_MONTHS[horizon] + EMERGENCY_FUND_PROFILE_ADJUSTMENT[risk_profile]


def emergency_fund_target(monthly_expenses: Decimal, months: int) -> Decimal:
    if monthly_expenses <= 0:
        return Decimal("0.00")
    with localcontext(MONEY_CONTEXT):
        return quantize_money(monthly_expenses * months)


def recommend(profile: Profile, metrics: Metrics) -> Recommendation:
    """
    Derives a deterministic recommendation for a complete profile.

    Callers gate on Profile.is_complete; an incomplete profile here is a
    programming error.
    """
    if not profile.is_complete:
        raise IncompleteProfileError(
            "recommend() requires risk_tolerance and investment_horizon to be set"
        )

    tolerance = parse_enum(RiskTolerance, profile.risk_tolerance, "risk_tolerance")
    horizon = parse_enum(InvestmentHorizon, profile.investment_horizon, "investment_horizon")
    risk_profile = resolve_risk_profile(tolerance, horizon)
    profile = profile.model_copy(
        update={"risk_tolerance": tolerance, "investment_horizon": horizon}
    )

    months = emergency_fund_months(horizon, risk_profile)
    emergency_fund = emergency_fund_target(metrics.monthly_expenses, months)
    allocation = normalize_allocation(ALLOCATION_TEMPLATES[risk_profile])

    advice = evaluate_advice(
        AdviceContext(
            profile=profile,
            metrics=metrics,
            risk_profile=risk_profile,
            emergency_fund=emergency_fund,
            allocation=allocation,
        ),
        ADVICE_RULES,
    )
    logger.debug(
        "Recommendation resolved",
        extra={
            "extra_fields": {
                "risk_profile": risk_profile.value,
                "advice_rules": [item.rule_id for item in advice],
            }
        },
    )

    investments: List[InvestmentSuggestion] = list(INVESTMENT_SHELF[risk_profile])
    return Recommendation(
        risk_tolerance=tolerance,
        investment_horizon=horizon,
        risk_profile=risk_profile,
        emergency_fund=emergency_fund,
        emergency_fund_months=months,
        allocation=allocation,
        investments=investments,
        advice=[item.message for item in advice],
        triggered_rules=[item.rule_id for item in advice],
    )
