from datetime import datetime, timezone
from decimal import Decimal

import pytest

from src.core.finances import FinancialDataService
from src.core.models import AssetClass, ExpenseCategory, Frequency, RiskTolerance
from src.infrastructure.finances import SqliteFinancialDataRepository
from tests.factories import account_request, expense_request, income_request, profile_request


@pytest.fixture
def database_path(tmp_path) -> str:
    return str(tmp_path / "nested" / "finances.sqlite")


def _service(database_path: str, clock=None) -> FinancialDataService:
    return FinancialDataService(
        repository=SqliteFinancialDataRepository(database_path=database_path), clock=clock
    )


def test_records_survive_repository_reopen(database_path, clock):
    writer = _service(database_path, clock)
    writer.add_account(user_id="user_001", payload=account_request("1000"))
    writer.add_income(user_id="user_001", payload=income_request("2000"))
    writer.add_expense(
        user_id="user_001", payload=expense_request("1500", frequency="monthly", category="Santé")
    )

    reader = _service(database_path)
    expense = reader.list_expenses(user_id="user_001")[0]

    assert expense.category == ExpenseCategory.HEALTH
    assert expense.frequency == Frequency.MONTHLY
    assert expense.created_at == datetime(2026, 1, 1, 0, 0, 2, tzinfo=timezone.utc)
    assert reader.compute_metrics(user_id="user_001").monthly_savings == Decimal("500.00")


def test_delete_is_scoped_to_owner(database_path, clock):
    service = _service(database_path, clock)
    record = service.add_income(user_id="user_001", payload=income_request("10"))
    repository = SqliteFinancialDataRepository(database_path=database_path)

    assert repository.delete_income(user_id="user_002", income_id=record.income_id) is False
    assert repository.delete_income(user_id="user_001", income_id=record.income_id) is True
    assert repository.list_incomes(user_id="user_001") == []


def test_profile_upsert_round_trips_enums(database_path, clock):
    service = _service(database_path, clock)
    service.update_profile(user_id="user_001", payload=profile_request(risk_tolerance="moderate"))
    service.update_profile(
        user_id="user_001", payload=profile_request(investment_horizon="long", age=62)
    )

    stored = _service(database_path).get_profile(user_id="user_001")

    assert stored.profile.risk_tolerance == RiskTolerance.MODERATE
    assert stored.profile.age == 62
    assert stored.is_complete is True


def test_recommendation_history_round_trips_and_keeps_hash(database_path, clock):
    service = _service(database_path, clock)
    service.add_account(user_id="user_001", payload=account_request("20000"))
    service.add_income(user_id="user_001", payload=income_request("3000"))
    service.add_expense(user_id="user_001", payload=expense_request("1800"))
    service.update_profile(
        user_id="user_001",
        payload=profile_request(risk_tolerance="aggressive", investment_horizon="long"),
    )
    first = service.save_recommendation(user_id="user_001")
    second = service.save_recommendation(user_id="user_001")

    history = _service(database_path).list_recommendations(user_id="user_001", limit=10)

    assert [item.recommendation_id for item in history.items] == [
        second.recommendation_id,
        first.recommendation_id,
    ]
    restored = history.items[0].recommendation
    assert restored == second.recommendation
    assert list(restored.allocation) == list(AssetClass)
    assert history.items[0].recommendation_hash == second.recommendation_hash
