import json
import sqlite3
from contextlib import closing
from datetime import datetime
from pathlib import Path
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
from src.core.models import Profile, Recommendation


class SqliteFinancialDataRepository(FinancialDataRepository):
    def __init__(self, *, database_path: str) -> None:
        self._lock = Lock()
        self._database_path = database_path
        self._init_db()

    def create_account(self, account: AccountRecord) -> None:
        query = """
            INSERT INTO accounts (
                account_id,
                user_id,
                account_type,
                account_name,
                balance,
                created_at
            ) VALUES (?, ?, ?, ?, ?, ?)
        """
        self._execute(
            query,
            (
                account.account_id,
                account.user_id,
                account.account_type.value,
                account.account_name,
                str(account.balance),
                account.created_at.isoformat(),
            ),
        )

    def list_accounts(self, *, user_id: str) -> list[AccountRecord]:
        query = """
            SELECT account_id, user_id, account_type, account_name, balance, created_at
            FROM accounts
            WHERE user_id = ?
            ORDER BY created_at DESC, account_id DESC
        """
        with closing(self._connect()) as connection:
            rows = connection.execute(query, (user_id,)).fetchall()
        return [
            AccountRecord(
                account_id=row["account_id"],
                user_id=row["user_id"],
                account_type=row["account_type"],
                account_name=row["account_name"],
                balance=row["balance"],
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]

    def delete_account(self, *, user_id: str, account_id: str) -> bool:
        query = "DELETE FROM accounts WHERE account_id = ? AND user_id = ?"
        return self._execute(query, (account_id, user_id)) > 0

    def create_income(self, income: IncomeRecord) -> None:
        query = """
            INSERT INTO incomes (
                income_id,
                user_id,
                source,
                amount,
                frequency,
                created_at
            ) VALUES (?, ?, ?, ?, ?, ?)
        """
        self._execute(
            query,
            (
                income.income_id,
                income.user_id,
                income.source,
                str(income.amount),
                income.frequency.value,
                income.created_at.isoformat(),
            ),
        )

    def list_incomes(self, *, user_id: str) -> list[IncomeRecord]:
        query = """
            SELECT income_id, user_id, source, amount, frequency, created_at
            FROM incomes
            WHERE user_id = ?
            ORDER BY created_at DESC, income_id DESC
        """
        with closing(self._connect()) as connection:
            rows = connection.execute(query, (user_id,)).fetchall()
        return [
            IncomeRecord(
                income_id=row["income_id"],
                user_id=row["user_id"],
                source=row["source"],
                amount=row["amount"],
                frequency=row["frequency"],
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]

    def delete_income(self, *, user_id: str, income_id: str) -> bool:
        query = "DELETE FROM incomes WHERE income_id = ? AND user_id = ?"
        return self._execute(query, (income_id, user_id)) > 0

    def create_expense(self, expense: ExpenseRecord) -> None:
        query = """
            INSERT INTO expenses (
                expense_id,
                user_id,
                category,
                description,
                amount,
                frequency,
                created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
        """
        self._execute(
            query,
            (
                expense.expense_id,
                expense.user_id,
                expense.category.value,
                expense.description,
                str(expense.amount),
                expense.frequency.value,
                expense.created_at.isoformat(),
            ),
        )

    def list_expenses(self, *, user_id: str) -> list[ExpenseRecord]:
        query = """
            SELECT expense_id, user_id, category, description, amount, frequency, created_at
            FROM expenses
            WHERE user_id = ?
            ORDER BY created_at DESC, expense_id DESC
        """
        with closing(self._connect()) as connection:
            rows = connection.execute(query, (user_id,)).fetchall()
        return [
            ExpenseRecord(
                expense_id=row["expense_id"],
                user_id=row["user_id"],
                category=row["category"],
                description=row["description"],
                amount=row["amount"],
                frequency=row["frequency"],
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]

    def delete_expense(self, *, user_id: str, expense_id: str) -> bool:
        query = "DELETE FROM expenses WHERE expense_id = ? AND user_id = ?"
        return self._execute(query, (expense_id, user_id)) > 0

    def get_profile(self, *, user_id: str) -> Optional[ProfileRecord]:
        query = """
            SELECT user_id, profile_json, is_complete, updated_at
            FROM profiles
            WHERE user_id = ?
        """
        with closing(self._connect()) as connection:
            row = connection.execute(query, (user_id,)).fetchone()
        if row is None:
            return None
        return ProfileRecord(
            user_id=row["user_id"],
            profile=Profile.model_validate(json.loads(row["profile_json"])),
            is_complete=bool(row["is_complete"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def save_profile(self, profile: ProfileRecord) -> None:
        query = """
            INSERT INTO profiles (user_id, profile_json, is_complete, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(user_id) DO UPDATE SET
                profile_json=excluded.profile_json,
                is_complete=excluded.is_complete,
                updated_at=excluded.updated_at
        """
        self._execute(
            query,
            (
                profile.user_id,
                _json_dump(profile.profile.model_dump(mode="json")),
                int(profile.is_complete),
                profile.updated_at.isoformat(),
            ),
        )

    def append_recommendation(self, record: RecommendationRecord) -> None:
        query = """
            INSERT INTO recommendations (
                recommendation_id,
                user_id,
                created_at,
                recommendation_json,
                recommendation_text,
                recommendation_hash
            ) VALUES (?, ?, ?, ?, ?, ?)
        """
        self._execute(
            query,
            (
                record.recommendation_id,
                record.user_id,
                record.created_at.isoformat(),
                _json_dump(record.recommendation.model_dump(mode="json")),
                record.recommendation_text,
                record.recommendation_hash,
            ),
        )

    def list_recommendations(self, *, user_id: str, limit: int) -> list[RecommendationRecord]:
        query = """
            SELECT
                recommendation_id,
                user_id,
                created_at,
                recommendation_json,
                recommendation_text,
                recommendation_hash
            FROM recommendations
            WHERE user_id = ?
            ORDER BY created_at DESC, recommendation_id DESC
            LIMIT ?
        """
        with closing(self._connect()) as connection:
            rows = connection.execute(query, (user_id, limit)).fetchall()
        return [
            RecommendationRecord(
                recommendation_id=row["recommendation_id"],
                user_id=row["user_id"],
                created_at=datetime.fromisoformat(row["created_at"]),
                recommendation=Recommendation.model_validate(
                    json.loads(row["recommendation_json"])
                ),
                recommendation_text=row["recommendation_text"],
                recommendation_hash=row["recommendation_hash"],
            )
            for row in rows
        ]

    def _execute(self, query: str, params: tuple) -> int:
        with self._lock, closing(self._connect()) as connection:
            cursor = connection.execute(query, params)
            connection.commit()
            return cursor.rowcount

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._database_path)
        connection.row_factory = sqlite3.Row
        return connection

    def _init_db(self) -> None:
        Path(self._database_path).parent.mkdir(parents=True, exist_ok=True)
        with closing(self._connect()) as connection:
            connection.executescript(
                """
                CREATE TABLE IF NOT EXISTS accounts (
                    account_id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    account_type TEXT NOT NULL,
                    account_name TEXT NOT NULL,
                    balance TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS incomes (
                    income_id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    source TEXT NOT NULL,
                    amount TEXT NOT NULL,
                    frequency TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS expenses (
                    expense_id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    category TEXT NOT NULL,
                    description TEXT NOT NULL,
                    amount TEXT NOT NULL,
                    frequency TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS profiles (
                    user_id TEXT PRIMARY KEY,
                    profile_json TEXT NOT NULL,
                    is_complete INTEGER NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS recommendations (
                    recommendation_id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    recommendation_json TEXT NOT NULL,
                    recommendation_text TEXT NOT NULL,
                    recommendation_hash TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_recommendations_user_created
                    ON recommendations (user_id, created_at);
                """
            )
            connection.commit()


def _json_dump(value: dict) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
