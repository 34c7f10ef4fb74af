from src.core.finances.models import (
    AccountCreateRequest,
    AccountRecord,
    ExpenseCreateRequest,
    ExpenseRecord,
    FinancialSnapshot,
    IncomeCreateRequest,
    IncomeRecord,
    ProfileRecord,
    ProfileUpdateRequest,
    RecommendationHistoryResponse,
    RecommendationRecord,
)
from src.core.finances.repository import FinancialDataRepository
from src.core.finances.service import (
    FinancialDataError,
    FinancialDataService,
    FinancialRecordNotFoundError,
    ProfileIncompleteError,
)

__all__ = [
    "AccountCreateRequest",
    "AccountRecord",
    "ExpenseCreateRequest",
    "ExpenseRecord",
    "FinancialDataError",
    "FinancialDataRepository",
    "FinancialDataService",
    "FinancialRecordNotFoundError",
    "FinancialSnapshot",
    "IncomeCreateRequest",
    "IncomeRecord",
    "ProfileIncompleteError",
    "ProfileRecord",
    "ProfileUpdateRequest",
    "RecommendationHistoryResponse",
    "RecommendationRecord",
]
