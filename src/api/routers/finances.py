from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Path, Query, Response, status

from src.api.routers.finance_http_errors import raise_finance_http_exception
from src.api.routers.finances_config import (
    build_repository,
    history_default_limit,
    history_max_limit,
)
from src.core.finances import (
    AccountCreateRequest,
    AccountRecord,
    ExpenseCreateRequest,
    ExpenseRecord,
    FinancialDataError,
    FinancialDataService,
    FinancialSnapshot,
    IncomeCreateRequest,
    IncomeRecord,
    ProfileRecord,
    ProfileUpdateRequest,
    RecommendationHistoryResponse,
    RecommendationRecord,
)
from src.core.models import Metrics, Recommendation

router = APIRouter(prefix="/users/{user_id}", tags=["Financial Data"])

_SERVICE: Optional[FinancialDataService] = None

UserId = Annotated[
    str,
    Path(description="Owning user identifier.", examples=["user_123"], min_length=1),
]


def get_financial_data_service() -> FinancialDataService:
    global _SERVICE
    if _SERVICE is None:
        _SERVICE = FinancialDataService(
            repository=build_repository(),
            default_history_limit=history_default_limit(),
            max_history_limit=history_max_limit(),
        )
    return _SERVICE


def reset_financial_data_service_for_tests() -> None:
    global _SERVICE
    _SERVICE = None


Service = Annotated[FinancialDataService, Depends(get_financial_data_service)]


@router.get(
    "/accounts",
    response_model=List[AccountRecord],
    summary="List Accounts",
    description="Returns the user's accounts, most recently created first.",
)
def list_accounts(user_id: UserId, service: Service) -> List[AccountRecord]:
    return service.list_accounts(user_id=user_id)


@router.post(
    "/accounts",
    response_model=AccountRecord,
    status_code=status.HTTP_201_CREATED,
    summary="Create Account",
)
def create_account(
    user_id: UserId, payload: AccountCreateRequest, service: Service
) -> AccountRecord:
    return service.add_account(user_id=user_id, payload=payload)


@router.delete(
    "/accounts/{account_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Account",
)
def delete_account(user_id: UserId, account_id: str, service: Service) -> Response:
    try:
        service.remove_account(user_id=user_id, account_id=account_id)
    except FinancialDataError as exc:
        raise_finance_http_exception(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/incomes", response_model=List[IncomeRecord], summary="List Income Entries")
def list_incomes(user_id: UserId, service: Service) -> List[IncomeRecord]:
    return service.list_incomes(user_id=user_id)


@router.post(
    "/incomes",
    response_model=IncomeRecord,
    status_code=status.HTTP_201_CREATED,
    summary="Create Income Entry",
)
def create_income(user_id: UserId, payload: IncomeCreateRequest, service: Service) -> IncomeRecord:
    return service.add_income(user_id=user_id, payload=payload)


@router.delete(
    "/incomes/{income_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Income Entry",
)
def delete_income(user_id: UserId, income_id: str, service: Service) -> Response:
    try:
        service.remove_income(user_id=user_id, income_id=income_id)
    except FinancialDataError as exc:
        raise_finance_http_exception(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/expenses", response_model=List[ExpenseRecord], summary="List Expense Entries")
def list_expenses(user_id: UserId, service: Service) -> List[ExpenseRecord]:
    return service.list_expenses(user_id=user_id)


@router.post(
    "/expenses",
    response_model=ExpenseRecord,
    status_code=status.HTTP_201_CREATED,
    summary="Create Expense Entry",
)
def create_expense(
    user_id: UserId, payload: ExpenseCreateRequest, service: Service
) -> ExpenseRecord:
    return service.add_expense(user_id=user_id, payload=payload)


@router.delete(
    "/expenses/{expense_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Expense Entry",
)
def delete_expense(user_id: UserId, expense_id: str, service: Service) -> Response:
    try:
        service.remove_expense(user_id=user_id, expense_id=expense_id)
    except FinancialDataError as exc:
        raise_finance_http_exception(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/profile", response_model=ProfileRecord, summary="Get Investor Profile")
def get_profile(user_id: UserId, service: Service) -> ProfileRecord:
    try:
        return service.get_profile(user_id=user_id)
    except FinancialDataError as exc:
        raise_finance_http_exception(exc)


@router.put(
    "/profile",
    response_model=ProfileRecord,
    summary="Upsert Investor Profile",
    description="Merges the supplied fields into the stored profile.",
)
def update_profile(
    user_id: UserId, payload: ProfileUpdateRequest, service: Service
) -> ProfileRecord:
    return service.update_profile(user_id=user_id, payload=payload)


@router.get(
    "/metrics",
    response_model=Metrics,
    summary="Get Monthly Metrics",
    description="Recomputed from the current record set on every call.",
)
def get_metrics(user_id: UserId, service: Service) -> Metrics:
    return service.compute_metrics(user_id=user_id)


@router.get("/snapshot", response_model=FinancialSnapshot, summary="Get Financial Snapshot")
def get_snapshot(user_id: UserId, service: Service) -> FinancialSnapshot:
    return service.get_snapshot(user_id=user_id)


@router.post(
    "/recommendations/preview",
    response_model=Recommendation,
    tags=["Recommendations"],
    summary="Preview Recommendation",
    description="Runs the recommendation engine on current data without saving it.",
)
def preview_recommendation(user_id: UserId, service: Service) -> Recommendation:
    try:
        return service.preview_recommendation(user_id=user_id)
    except FinancialDataError as exc:
        raise_finance_http_exception(exc)


@router.post(
    "/recommendations",
    response_model=RecommendationRecord,
    status_code=status.HTTP_201_CREATED,
    tags=["Recommendations"],
    summary="Save Recommendation",
    description="Appends the current recommendation to the user's history.",
)
def save_recommendation(user_id: UserId, service: Service) -> RecommendationRecord:
    try:
        return service.save_recommendation(user_id=user_id)
    except FinancialDataError as exc:
        raise_finance_http_exception(exc)


@router.get(
    "/recommendations",
    response_model=RecommendationHistoryResponse,
    tags=["Recommendations"],
    summary="List Recommendation History",
)
def list_recommendations(
    user_id: UserId,
    service: Service,
    limit: Annotated[
        Optional[int],
        Query(ge=1, description="Maximum items to return; capped by configuration."),
    ] = None,
) -> RecommendationHistoryResponse:
    return service.list_recommendations(user_id=user_id, limit=limit)
