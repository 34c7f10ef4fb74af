from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from src.core.models import (
    Account,
    ExpenseEntry,
    IncomeEntry,
    Metrics,
    Profile,
    Recommendation,
)


class AccountCreateRequest(Account):
    model_config = {
        "json_schema_extra": {
            "example": {
                "account_type": "savings",
                "account_name": "Livret A",
                "balance": "1000.00",
            }
        }
    }


class IncomeCreateRequest(IncomeEntry):
    model_config = {
        "json_schema_extra": {
            "example": {"source": "Salaire", "amount": "2000.00", "frequency": "monthly"}
        }
    }


class ExpenseCreateRequest(ExpenseEntry):
    model_config = {
        "json_schema_extra": {
            "example": {
                "category": "Loyer",
                "description": "Appartement",
                "amount": "850.00",
                "frequency": "monthly",
            }
        }
    }


class ProfileUpdateRequest(Profile):
    """Partial profile update; only fields present in the payload are merged."""


class AccountRecord(Account):
    account_id: str = Field(description="Account identifier.", examples=["acc_1a2b3c4d5e6f"])
    user_id: str = Field(description="Owning user.", examples=["user_123"])
    created_at: datetime


class IncomeRecord(IncomeEntry):
    income_id: str = Field(description="Income entry identifier.", examples=["inc_1a2b3c4d5e6f"])
    user_id: str = Field(description="Owning user.", examples=["user_123"])
    created_at: datetime


class ExpenseRecord(ExpenseEntry):
    expense_id: str = Field(
        description="Expense entry identifier.", examples=["exp_1a2b3c4d5e6f"]
    )
    user_id: str = Field(description="Owning user.", examples=["user_123"])
    created_at: datetime


class ProfileRecord(BaseModel):
    user_id: str
    profile: Profile = Field(default_factory=Profile)
    is_complete: bool = Field(
        default=False,
        description="True when both risk_tolerance and investment_horizon are set.",
    )
    updated_at: datetime


class RecommendationRecord(BaseModel):
    recommendation_id: str = Field(examples=["rec_1a2b3c4d5e6f"])
    user_id: str
    created_at: datetime
    recommendation: Recommendation
    recommendation_text: str = Field(description="Advice lines joined by newlines.")
    recommendation_hash: str = Field(description="Canonical sha256 of the recommendation.")


class RecommendationHistoryResponse(BaseModel):
    user_id: str
    items: List[RecommendationRecord] = Field(
        default_factory=list, description="Most recent first."
    )


class FinancialSnapshot(BaseModel):
    user_id: str
    accounts: List[AccountRecord] = Field(default_factory=list)
    incomes: List[IncomeRecord] = Field(default_factory=list)
    expenses: List[ExpenseRecord] = Field(default_factory=list)
    profile: Optional[ProfileRecord] = None
    metrics: Metrics
    expense_breakdown: Dict[str, Decimal] = Field(
        default_factory=dict, description="Monthly expenses per category."
    )
    savings_rate: Decimal = Field(description="Monthly savings as a percentage of income.")
