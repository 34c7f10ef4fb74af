"""
FILE: src/core/models.py
Domain models for financial records, derived metrics, investor profile and recommendations.
"""

from decimal import Context, Decimal, InvalidOperation, localcontext
from enum import Enum
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator

CENT = Decimal("0.01")

# Stored money: up to 15 integer digits plus cents.
MONEY_MAX_DIGITS = 17
MONEY_DECIMAL_PLACES = 2
# Derived totals: sums of many bounded records.
METRICS_MAX_DIGITS = 50

# Wide enough that sums and cent rounding of bounded amounts stay exact.
MONEY_CONTEXT = Context(prec=64)

E = TypeVar("E", bound=Enum)


class InvalidEnumValueError(ValueError):
    """Raised when a value falls outside one of the closed enumerations."""

    def __init__(self, enum_type: Type[Enum], value: Any, field_name: Optional[str] = None):
        self.allowed = tuple(member.value for member in enum_type)
        self.field_name = field_name or enum_type.__name__
        super().__init__(
            f"INVALID_ENUM_VALUE: {self.field_name}={value!r} "
            f"(allowed: {', '.join(self.allowed)})"
        )


class IncompleteProfileError(AssertionError):
    """The recommendation engine was invoked for a profile that is not complete."""


def parse_enum(enum_type: Type[E], value: Any, field_name: Optional[str] = None) -> E:
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError as exc:
        raise InvalidEnumValueError(enum_type, value, field_name) from exc


def quantize_money(value: Decimal) -> Decimal:
    with localcontext(MONEY_CONTEXT):
        return value.quantize(CENT)


class Frequency(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"
    ONE_TIME = "one_time"


class RiskTolerance(str, Enum):
    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"


class InvestmentHorizon(str, Enum):
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class RiskProfile(str, Enum):
    CONSERVATIVE = "conservative"
    BALANCED = "balanced"
    GROWTH = "growth"
    AGGRESSIVE = "aggressive"


class AssetClass(str, Enum):
    """Allocation buckets, declared from lowest to highest risk."""

    CASH = "cash"
    BONDS = "bonds"
    EQUITIES = "equities"
    REAL_ESTATE = "real_estate"
    ALTERNATIVES = "alternatives"

    @property
    def label(self) -> str:
        return _ASSET_CLASS_LABELS[self]

    @property
    def risk_rank(self) -> int:
        return list(AssetClass).index(self)


_ASSET_CLASS_LABELS = {
    AssetClass.CASH: "Liquidités",
    AssetClass.BONDS: "Obligations",
    AssetClass.EQUITIES: "Actions",
    AssetClass.REAL_ESTATE: "Immobilier",
    AssetClass.ALTERNATIVES: "Alternatifs",
}


class RiskLabel(str, Enum):
    LOW = "faible"
    MODERATE = "Modéré"
    HIGH = "Élevé"


class AccountType(str, Enum):
    CURRENT = "current"
    SAVINGS = "savings"
    PEA = "pea"
    LIFE_INSURANCE = "life_insurance"
    CRYPTO = "crypto"
    OTHER = "other"


class ExpenseCategory(str, Enum):
    RENT = "Loyer"
    FOOD = "Alimentation"
    TRANSPORT = "Transport"
    INSURANCE = "Assurances"
    SUBSCRIPTIONS = "Abonnements"
    LEISURE = "Loisirs"
    HEALTH = "Santé"
    EDUCATION = "Éducation"
    OTHER = "Autre"


class Account(BaseModel):
    account_type: AccountType = Field(
        default=AccountType.CURRENT,
        description="Account wrapper type.",
        examples=["savings"],
    )
    account_name: str = Field(
        default="",
        description="User-facing account name.",
        examples=["Livret A"],
    )
    balance: Decimal = Field(
        default=Decimal("0"),
        ge=Decimal("0"),
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
        description="Current account balance.",
        examples=["1000.00"],
    )

    @field_validator("account_type", mode="before")
    @classmethod
    def validate_account_type(cls, value: Any) -> AccountType:
        return parse_enum(AccountType, value, "account_type")


class IncomeEntry(BaseModel):
    source: str = Field(default="", description="Income source.", examples=["Salaire"])
    amount: Decimal = Field(
        default=Decimal("0"),
        ge=Decimal("0"),
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
        description="Amount received per period.",
        examples=["2000.00"],
    )
    frequency: Frequency = Field(
        default=Frequency.MONTHLY,
        description="Recurrence of the income.",
        examples=["monthly"],
    )

    @field_validator("frequency", mode="before")
    @classmethod
    def validate_frequency(cls, value: Any) -> Frequency:
        return parse_enum(Frequency, value, "frequency")


class ExpenseEntry(BaseModel):
    category: ExpenseCategory = Field(
        default=ExpenseCategory.OTHER,
        description="Expense category.",
        examples=["Loyer"],
    )
    description: str = Field(default="", description="Free-text description.")
    amount: Decimal = Field(
        default=Decimal("0"),
        ge=Decimal("0"),
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
        description="Amount spent per period.",
        examples=["850.00"],
    )
    frequency: Frequency = Field(
        default=Frequency.MONTHLY,
        description="Recurrence of the expense.",
        examples=["monthly"],
    )

    @field_validator("category", mode="before")
    @classmethod
    def validate_category(cls, value: Any) -> ExpenseCategory:
        return parse_enum(ExpenseCategory, value, "category")

    @field_validator("frequency", mode="before")
    @classmethod
    def validate_frequency(cls, value: Any) -> Frequency:
        return parse_enum(Frequency, value, "frequency")


class Metrics(BaseModel):
    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "example": {
                "total_balance": "1000.00",
                "monthly_income": "2000.00",
                "monthly_expenses": "1500.00",
                "monthly_savings": "500.00",
            }
        },
    }

    total_balance: Decimal = Field(
        default=Decimal("0.00"),
        max_digits=METRICS_MAX_DIGITS,
        description="Sum of account balances.",
    )
    monthly_income: Decimal = Field(
        default=Decimal("0.00"),
        max_digits=METRICS_MAX_DIGITS,
        description="Sum of monthly income entries.",
    )
    monthly_expenses: Decimal = Field(
        default=Decimal("0.00"),
        max_digits=METRICS_MAX_DIGITS,
        description="Sum of monthly expense entries.",
    )
    monthly_savings: Decimal = Field(
        default=None,
        max_digits=METRICS_MAX_DIGITS,
        description="monthly_income - monthly_expenses; negative when spending exceeds income.",
    )

    @model_validator(mode="before")
    @classmethod
    def derive_monthly_savings(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        if data.get("monthly_savings") is None:
            try:
                income = Decimal(str(data.get("monthly_income") or "0"))
                expenses = Decimal(str(data.get("monthly_expenses") or "0"))
            except InvalidOperation:
                # Field validation reports the malformed amount.
                return data
            with localcontext(MONEY_CONTEXT):
                data = {**data, "monthly_savings": income - expenses}
        return data

    @model_validator(mode="after")
    def validate_monthly_savings(self) -> "Metrics":
        with localcontext(MONEY_CONTEXT):
            expected = self.monthly_income - self.monthly_expenses
        if self.monthly_savings != expected:
            raise ValueError("monthly_savings must equal monthly_income - monthly_expenses")
        return self


class Profile(BaseModel):
    risk_tolerance: Optional[RiskTolerance] = Field(
        default=None,
        description="Self-declared appetite for risk.",
        examples=["moderate"],
    )
    investment_horizon: Optional[InvestmentHorizon] = Field(
        default=None,
        description="short (< 3 years), medium (3 to 8 years) or long (> 8 years).",
        examples=["long"],
    )
    monthly_income: Optional[Decimal] = Field(
        default=None,
        ge=Decimal("0"),
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
        description="Self-reported net monthly income, distinct from aggregated income.",
        examples=["2500.00"],
    )
    age: Optional[int] = Field(default=None, ge=0, le=130, examples=[35])
    life_goals: Optional[str] = Field(
        default=None,
        description="Free-text life goals.",
        examples=["Acheter une résidence principale"],
    )
    full_name: Optional[str] = Field(default=None, examples=["Camille Martin"])

    @field_validator("risk_tolerance", mode="before")
    @classmethod
    def validate_risk_tolerance(cls, value: Any) -> Optional[RiskTolerance]:
        if value is None:
            return None
        return parse_enum(RiskTolerance, value, "risk_tolerance")

    @field_validator("investment_horizon", mode="before")
    @classmethod
    def validate_investment_horizon(cls, value: Any) -> Optional[InvestmentHorizon]:
        if value is None:
            return None
        return parse_enum(InvestmentHorizon, value, "investment_horizon")

    @property
    def is_complete(self) -> bool:
        return self.risk_tolerance is not None and self.investment_horizon is not None


class InvestmentSuggestion(BaseModel):
    model_config = {"frozen": True}

    name: str = Field(description="Instrument or wrapper name.", examples=["Livret A"])
    type: str = Field(description="Instrument category.", examples=["Épargne réglementée"])
    expected_rate: str = Field(
        description="Indicative yield range, display only.", examples=["2 - 3 %"]
    )
    risk_label: RiskLabel = Field(description="Qualitative risk tier.", examples=["faible"])
    asset_class: AssetClass = Field(description="Allocation bucket the instrument belongs to.")


class Recommendation(BaseModel):
    model_config = {"frozen": True}

    risk_tolerance: RiskTolerance
    investment_horizon: InvestmentHorizon
    risk_profile: RiskProfile = Field(
        description="Bucket resolved from the (risk_tolerance, investment_horizon) pair."
    )
    emergency_fund: Decimal = Field(ge=Decimal("0"), description="Target cash buffer.")
    emergency_fund_months: int = Field(
        ge=0, description="Months of monthly expenses covered by the buffer."
    )
    allocation: Dict[AssetClass, int] = Field(
        description="Integer percentages per asset class, summing to exactly 100."
    )
    investments: List[InvestmentSuggestion] = Field(default_factory=list)
    advice: List[str] = Field(default_factory=list)
    triggered_rules: List[str] = Field(
        default_factory=list, description="Advice rule ids, in the same order as advice."
    )

    @model_validator(mode="after")
    def validate_allocation_total(self) -> "Recommendation":
        if sum(self.allocation.values()) != 100:
            raise ValueError("allocation percentages must sum to exactly 100")
        if any(value < 0 for value in self.allocation.values()):
            raise ValueError("allocation percentages must be non-negative")
        return self

    @field_serializer("allocation")
    def serialize_allocation(self, allocation: Dict[AssetClass, int]) -> Dict[str, int]:
        return {asset_class.value: weight for asset_class, weight in allocation.items()}
