from typing import Optional, Protocol

from src.core.finances.models import (
    AccountRecord,
    ExpenseRecord,
    IncomeRecord,
    ProfileRecord,
    RecommendationRecord,
)


class FinancialDataRepository(Protocol):
    def create_account(self, account: AccountRecord) -> None: ...

    def list_accounts(self, *, user_id: str) -> list[AccountRecord]: ...

    def delete_account(self, *, user_id: str, account_id: str) -> bool: ...

    def create_income(self, income: IncomeRecord) -> None: ...

    def list_incomes(self, *, user_id: str) -> list[IncomeRecord]: ...

    def delete_income(self, *, user_id: str, income_id: str) -> bool: ...

    def create_expense(self, expense: ExpenseRecord) -> None: ...

    def list_expenses(self, *, user_id: str) -> list[ExpenseRecord]: ...

    def delete_expense(self, *, user_id: str, expense_id: str) -> bool: ...

    def get_profile(self, *, user_id: str) -> Optional[ProfileRecord]: ...

    def save_profile(self, profile: ProfileRecord) -> None: ...

    def append_recommendation(self, record: RecommendationRecord) -> None: ...

    def list_recommendations(self, *, user_id: str, limit: int) -> list[RecommendationRecord]: ...
