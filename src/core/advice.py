"""
FILE: src/core/advice.py
Ordered advice rules evaluated against an immutable recommendation context.
"""

from dataclasses import dataclass
from decimal import Decimal, localcontext
from typing import Callable, Dict, List, Tuple

from pydantic import BaseModel

from src.core.metrics import savings_rate
from src.core.models import (
    MONEY_CONTEXT,
    AssetClass,
    InvestmentHorizon,
    Metrics,
    Profile,
    RiskProfile,
    RiskTolerance,
)

LOW_SAVINGS_RATE_THRESHOLD = Decimal("10")
SENIOR_AGE_THRESHOLD = 60

_HORIZON_LABELS = {
    InvestmentHorizon.SHORT: "court terme",
    InvestmentHorizon.MEDIUM: "moyen terme",
    InvestmentHorizon.LONG: "long terme",
}


@dataclass(frozen=True)
class AdviceContext:
    profile: Profile
    metrics: Metrics
    risk_profile: RiskProfile
    emergency_fund: Decimal
    allocation: Dict[AssetClass, int]

    @property
    def buffer_adequate(self) -> bool:
        return self.metrics.total_balance >= self.emergency_fund

    @property
    def buffer_shortfall(self) -> Decimal:
        with localcontext(MONEY_CONTEXT):
            return self.emergency_fund - self.metrics.total_balance


@dataclass(frozen=True)
class AdviceRule:
    rule_id: str
    applies: Callable[[AdviceContext], bool]
    message: Callable[[AdviceContext], str]


class AdviceResult(BaseModel):
    model_config = {"frozen": True}

    rule_id: str
    message: str


def format_euros(amount: Decimal) -> str:
    with localcontext(MONEY_CONTEXT):
        whole = amount.quantize(Decimal("1"))
    return f"{whole:,} €".replace(",", " ")


def _allocation_summary(allocation: Dict[AssetClass, int]) -> str:
    return ", ".join(f"{asset.label} {weight} %" for asset, weight in allocation.items() if weight)


def _age_caveat(ctx: AdviceContext) -> str:
    horizon = _HORIZON_LABELS[ctx.profile.investment_horizon]
    if ctx.profile.age is None:
        return (
            f"Renseignez votre âge pour vérifier que votre horizon {horizon} "
            "est cohérent avec votre situation."
        )
    if ctx.profile.investment_horizon == InvestmentHorizon.LONG:
        return (
            f"À {ctx.profile.age} ans, un horizon {horizon} suppose de sécuriser "
            "progressivement vos gains vers des supports moins risqués."
        )
    return (
        f"À {ctx.profile.age} ans, privilégiez la disponibilité de votre épargne "
        f"sur votre horizon {horizon}."
    )


ADVICE_RULES: Tuple[AdviceRule, ...] = (
    AdviceRule(
        rule_id="NEGATIVE_SAVINGS",
        applies=lambda ctx: ctx.metrics.monthly_savings < 0,
        message=lambda ctx: (
            "Vos dépenses mensuelles dépassent vos revenus de "
            f"{format_euros(ctx.metrics.monthly_savings.copy_negate())}. "
            "Réduisez vos dépenses avant d'investir."
        ),
    ),
    AdviceRule(
        rule_id="NO_MONTHLY_INCOME",
        applies=lambda ctx: ctx.metrics.monthly_income == 0,
        message=lambda ctx: (
            "Aucun revenu mensuel n'est enregistré : ajoutez vos revenus réguliers "
            "pour fiabiliser ces recommandations."
        ),
    ),
    AdviceRule(
        rule_id="EMERGENCY_FUND_GAP",
        applies=lambda ctx: not ctx.buffer_adequate,
        message=lambda ctx: (
            f"Constituez d'abord une épargne de précaution de {format_euros(ctx.emergency_fund)} "
            f"(il vous manque {format_euros(ctx.buffer_shortfall)}) "
            "sur un support liquide comme le Livret A."
        ),
    ),
    AdviceRule(
        rule_id="LOW_SAVINGS_RATE",
        applies=lambda ctx: Decimal("0") < savings_rate(ctx.metrics) < LOW_SAVINGS_RATE_THRESHOLD,
        message=lambda ctx: (
            f"Votre taux d'épargne est de {savings_rate(ctx.metrics)} %. "
            f"Visez au moins {LOW_SAVINGS_RATE_THRESHOLD} % de vos revenus."
        ),
    ),
    AdviceRule(
        rule_id="SAVINGS_TO_BUFFER",
        applies=lambda ctx: ctx.metrics.monthly_savings > 0 and not ctx.buffer_adequate,
        message=lambda ctx: (
            f"Affectez en priorité vos {format_euros(ctx.metrics.monthly_savings)} "
            "d'épargne mensuelle à votre épargne de précaution."
        ),
    ),
    AdviceRule(
        rule_id="SAVINGS_TO_ALLOCATION",
        applies=lambda ctx: ctx.metrics.monthly_savings > 0 and ctx.buffer_adequate,
        message=lambda ctx: (
            f"Investissez vos {format_euros(ctx.metrics.monthly_savings)} d'épargne mensuelle "
            f"selon l'allocation recommandée : {_allocation_summary(ctx.allocation)}."
        ),
    ),
    AdviceRule(
        rule_id="SHORT_HORIZON_EQUITY",
        applies=lambda ctx: (
            ctx.profile.risk_tolerance == RiskTolerance.AGGRESSIVE
            and ctx.profile.investment_horizon == InvestmentHorizon.SHORT
        ),
        message=lambda ctx: (
            "Votre horizon est court : limitez la part d'actions, une baisse des marchés "
            "pourrait ne pas avoir le temps de se résorber."
        ),
    ),
    AdviceRule(
        rule_id="AGE_HORIZON_CAVEAT",
        applies=lambda ctx: ctx.profile.age is None or ctx.profile.age >= SENIOR_AGE_THRESHOLD,
        message=_age_caveat,
    ),
)


def evaluate_advice(
    ctx: AdviceContext, rules: Tuple[AdviceRule, ...] = ADVICE_RULES
) -> List[AdviceResult]:
    """Evaluates every rule independently; satisfied rules keep their table order."""
    return [
        AdviceResult(rule_id=rule.rule_id, message=rule.message(ctx))
        for rule in rules
        if rule.applies(ctx)
    ]
