import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

from src.core.common.canonical import hash_canonical_payload
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
from src.core.metrics import aggregate, expense_breakdown, savings_rate
from src.core.models import Metrics, Profile, Recommendation
from src.core.recommendation_engine import recommend

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 5
MAX_HISTORY_LIMIT = 100


class FinancialDataError(Exception):
    pass


class FinancialRecordNotFoundError(FinancialDataError):
    pass


class ProfileIncompleteError(FinancialDataError):
    pass


class FinancialDataService:
    def __init__(
        self,
        *,
        repository: FinancialDataRepository,
        default_history_limit: int = DEFAULT_HISTORY_LIMIT,
        max_history_limit: int = MAX_HISTORY_LIMIT,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._repository = repository
        self._default_history_limit = default_history_limit
        self._max_history_limit = max_history_limit
        self._clock = clock or _utc_now

    def add_account(self, *, user_id: str, payload: AccountCreateRequest) -> AccountRecord:
        record = AccountRecord(
            **payload.model_dump(),
            account_id=_new_id("acc"),
            user_id=user_id,
            created_at=self._clock(),
        )
        self._repository.create_account(record)
        self._log("finances.account.created", user_id, account_id=record.account_id)
        return record

    def list_accounts(self, *, user_id: str) -> list[AccountRecord]:
        return self._repository.list_accounts(user_id=user_id)

    def remove_account(self, *, user_id: str, account_id: str) -> None:
        if not self._repository.delete_account(user_id=user_id, account_id=account_id):
            raise FinancialRecordNotFoundError(f"ACCOUNT_NOT_FOUND: {account_id}")
        self._log("finances.account.deleted", user_id, account_id=account_id)

    def add_income(self, *, user_id: str, payload: IncomeCreateRequest) -> IncomeRecord:
        record = IncomeRecord(
            **payload.model_dump(),
            income_id=_new_id("inc"),
            user_id=user_id,
            created_at=self._clock(),
        )
        self._repository.create_income(record)
        self._log("finances.income.created", user_id, income_id=record.income_id)
        return record

    def list_incomes(self, *, user_id: str) -> list[IncomeRecord]:
        return self._repository.list_incomes(user_id=user_id)

    def remove_income(self, *, user_id: str, income_id: str) -> None:
        if not self._repository.delete_income(user_id=user_id, income_id=income_id):
            raise FinancialRecordNotFoundError(f"INCOME_NOT_FOUND: {income_id}")
        self._log("finances.income.deleted", user_id, income_id=income_id)

    def add_expense(self, *, user_id: str, payload: ExpenseCreateRequest) -> ExpenseRecord:
        record = ExpenseRecord(
            **payload.model_dump(),
            expense_id=_new_id("exp"),
            user_id=user_id,
            created_at=self._clock(),
        )
        self._repository.create_expense(record)
        self._log("finances.expense.created", user_id, expense_id=record.expense_id)
        return record

    def list_expenses(self, *, user_id: str) -> list[ExpenseRecord]:
        return self._repository.list_expenses(user_id=user_id)

    def remove_expense(self, *, user_id: str, expense_id: str) -> None:
        if not self._repository.delete_expense(user_id=user_id, expense_id=expense_id):
            raise FinancialRecordNotFoundError(f"EXPENSE_NOT_FOUND: {expense_id}")
        self._log("finances.expense.deleted", user_id, expense_id=expense_id)

    def get_profile(self, *, user_id: str) -> ProfileRecord:
        record = self._repository.get_profile(user_id=user_id)
        if record is None:
            raise FinancialRecordNotFoundError(f"PROFILE_NOT_FOUND: {user_id}")
        return record

    def update_profile(self, *, user_id: str, payload: ProfileUpdateRequest) -> ProfileRecord:
        existing = self._repository.get_profile(user_id=user_id)
        base = existing.profile if existing is not None else Profile()
        merged = base.model_copy(update=payload.model_dump(exclude_unset=True))
        # Re-run validation on the merged result.
        profile = Profile.model_validate(merged.model_dump())
        record = ProfileRecord(
            user_id=user_id,
            profile=profile,
            is_complete=profile.is_complete,
            updated_at=self._clock(),
        )
        self._repository.save_profile(record)
        self._log("finances.profile.updated", user_id, is_complete=profile.is_complete)
        return record

    def compute_metrics(self, *, user_id: str) -> Metrics:
        return aggregate(
            self._repository.list_accounts(user_id=user_id),
            self._repository.list_incomes(user_id=user_id),
            self._repository.list_expenses(user_id=user_id),
        )

    def get_snapshot(self, *, user_id: str) -> FinancialSnapshot:
        accounts = self._repository.list_accounts(user_id=user_id)
        incomes = self._repository.list_incomes(user_id=user_id)
        expenses = self._repository.list_expenses(user_id=user_id)
        metrics = aggregate(accounts, incomes, expenses)
        return FinancialSnapshot(
            user_id=user_id,
            accounts=accounts,
            incomes=incomes,
            expenses=expenses,
            profile=self._repository.get_profile(user_id=user_id),
            metrics=metrics,
            expense_breakdown=expense_breakdown(expenses),
            savings_rate=savings_rate(metrics),
        )

    def preview_recommendation(self, *, user_id: str) -> Recommendation:
        profile = self._complete_profile(user_id)
        return recommend(profile, self.compute_metrics(user_id=user_id))

    def save_recommendation(self, *, user_id: str) -> RecommendationRecord:
        recommendation = self.preview_recommendation(user_id=user_id)
        record = RecommendationRecord(
            recommendation_id=_new_id("rec"),
            user_id=user_id,
            created_at=self._clock(),
            recommendation=recommendation,
            recommendation_text="\n".join(recommendation.advice),
            recommendation_hash=hash_canonical_payload(recommendation),
        )
        self._repository.append_recommendation(record)
        self._log(
            "finances.recommendation.saved",
            user_id,
            recommendation_id=record.recommendation_id,
            risk_profile=recommendation.risk_profile.value,
        )
        return record

    def list_recommendations(
        self, *, user_id: str, limit: Optional[int] = None
    ) -> RecommendationHistoryResponse:
        effective_limit = self._default_history_limit if limit is None else limit
        effective_limit = max(1, min(effective_limit, self._max_history_limit))
        items = self._repository.list_recommendations(user_id=user_id, limit=effective_limit)
        return RecommendationHistoryResponse(user_id=user_id, items=items)

    def _complete_profile(self, user_id: str) -> Profile:
        record = self._repository.get_profile(user_id=user_id)
        if record is None or not record.profile.is_complete:
            raise ProfileIncompleteError(
                "PROFILE_INCOMPLETE: risk_tolerance and investment_horizon are required"
            )
        return record.profile

    def _log(self, message: str, user_id: str, **fields) -> None:
        logger.info(message, extra={"extra_fields": {"user_id": user_id, **fields}})


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)
