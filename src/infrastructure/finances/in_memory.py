from copy import deepcopy
from threading import Lock
from typing import Optional

from src.core.finances.models import (
    AccountRecord,
    ExpenseRecord,
    IncomeRecord,
    ProfileRecord,
    RecommendationRecord,
)
from src.core.finances.repository import FinancialDataRepository


class InMemoryFinancialDataRepository(FinancialDataRepository):
    def __init__(self) -> None:
        self._lock = Lock()
        self._accounts: dict[str, AccountRecord] = {}
        self._incomes: dict[str, IncomeRecord] = {}
        self._expenses: dict[str, ExpenseRecord] = {}
        self._profiles: dict[str, ProfileRecord] = {}
        self._recommendations: dict[str, list[RecommendationRecord]] = {}

    def create_account(self, account: AccountRecord) -> None:
        with self._lock:
            self._accounts[account.account_id] = deepcopy(account)

    def list_accounts(self, *, user_id: str) -> list[AccountRecord]:
        with self._lock:
            rows = [row for row in self._accounts.values() if row.user_id == user_id]
        rows.sort(key=lambda x: (x.created_at, x.account_id), reverse=True)
        return [deepcopy(row) for row in rows]

    def delete_account(self, *, user_id: str, account_id: str) -> bool:
        with self._lock:
            return _pop_owned(self._accounts, account_id, user_id)

    def create_income(self, income: IncomeRecord) -> None:
        with self._lock:
            self._incomes[income.income_id] = deepcopy(income)

    def list_incomes(self, *, user_id: str) -> list[IncomeRecord]:
        with self._lock:
            rows = [row for row in self._incomes.values() if row.user_id == user_id]
        rows.sort(key=lambda x: (x.created_at, x.income_id), reverse=True)
        return [deepcopy(row) for row in rows]

    def delete_income(self, *, user_id: str, income_id: str) -> bool:
        with self._lock:
            return _pop_owned(self._incomes, income_id, user_id)

    def create_expense(self, expense: ExpenseRecord) -> None:
        with self._lock:
            self._expenses[expense.expense_id] = deepcopy(expense)

    def list_expenses(self, *, user_id: str) -> list[ExpenseRecord]:
        with self._lock:
            rows = [row for row in self._expenses.values() if row.user_id == user_id]
        rows.sort(key=lambda x: (x.created_at, x.expense_id), reverse=True)
        return [deepcopy(row) for row in rows]

    def delete_expense(self, *, user_id: str, expense_id: str) -> bool:
        with self._lock:
            return _pop_owned(self._expenses, expense_id, user_id)

    def get_profile(self, *, user_id: str) -> Optional[ProfileRecord]:
        with self._lock:
            profile = self._profiles.get(user_id)
            return deepcopy(profile) if profile is not None else None

    def save_profile(self, profile: ProfileRecord) -> None:
        with self._lock:
            self._profiles[profile.user_id] = deepcopy(profile)

    def append_recommendation(self, record: RecommendationRecord) -> None:
        with self._lock:
            self._recommendations.setdefault(record.user_id, []).append(deepcopy(record))

    def list_recommendations(self, *, user_id: str, limit: int) -> list[RecommendationRecord]:
        with self._lock:
            rows = list(self._recommendations.get(user_id, []))
        rows.sort(key=lambda x: (x.created_at, x.recommendation_id), reverse=True)
        return [deepcopy(row) for row in rows[:limit]]


def _pop_owned(rows: dict, record_id: str, user_id: str) -> bool:
    row = rows.get(record_id)
    if row is None or row.user_id != user_id:
        return False
    del rows[record_id]
    return True
