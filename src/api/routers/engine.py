from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from src.api.routers.finance_http_errors import raise_finance_http_exception
from src.core.metrics import aggregate
from src.core.models import InvalidEnumValueError, Metrics, Profile, Recommendation
from src.core.recommendation_engine import recommend

router = APIRouter(tags=["Recommendation Engine"])


class AggregateRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "accounts": [{"balance": "1000"}],
                "incomes": [{"amount": "2000", "frequency": "monthly"}],
                "expenses": [{"amount": "1500", "frequency": "monthly"}],
            }
        }
    }

    accounts: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Raw account records; malformed balances count as zero.",
    )
    incomes: List[Dict[str, Any]] = Field(default_factory=list)
    expenses: List[Dict[str, Any]] = Field(default_factory=list)


class SimulateRecommendationRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "profile": {"risk_tolerance": "moderate", "investment_horizon": "long"},
                "metrics": {
                    "total_balance": "1000",
                    "monthly_income": "2000",
                    "monthly_expenses": "1500",
                },
            }
        }
    }

    profile: Profile
    metrics: Metrics


@router.post(
    "/metrics/aggregate",
    response_model=Metrics,
    summary="Aggregate Financial Records",
    description="Pure aggregation of raw account, income and expense records.",
)
def aggregate_records(payload: AggregateRequest) -> Metrics:
    try:
        return aggregate(payload.accounts, payload.incomes, payload.expenses)
    except InvalidEnumValueError as exc:
        raise_finance_http_exception(exc)


@router.post(
    "/recommendations/simulate",
    response_model=Recommendation,
    summary="Simulate Recommendation",
    description="Pure recommendation for a complete profile and supplied metrics.",
)
def simulate_recommendation(payload: SimulateRecommendationRequest) -> Recommendation:
    if not payload.profile.is_complete:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="PROFILE_INCOMPLETE: risk_tolerance and investment_horizon are required",
        )
    return recommend(payload.profile, payload.metrics)
