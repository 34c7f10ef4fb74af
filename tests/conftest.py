"""
FILE: tests/conftest.py
Shared fixtures for engine, service and API tests.
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from src.api.routers.finances import reset_financial_data_service_for_tests
from src.core.finances import FinancialDataService
from src.infrastructure.finances import InMemoryFinancialDataRepository


def _has_marker(item: pytest.Item, name: str) -> bool:
    return item.get_closest_marker(name) is not None


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if _has_marker(item, "unit") or _has_marker(item, "integration"):
            continue

        path = Path(str(item.fspath)).as_posix().lower()
        if "/tests/integration/" in path or "_integration.py" in path:
            item.add_marker(pytest.mark.integration)
            continue
        item.add_marker(pytest.mark.unit)


class StepClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, tzinfo=timezone.utc)) -> None:
        self._current = start

    def __call__(self) -> datetime:
        value = self._current
        self._current = self._current + timedelta(seconds=1)
        return value


@pytest.fixture(autouse=True)
def in_memory_runtime(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("FINANCE_STORE_BACKEND", "IN_MEMORY")
    monkeypatch.delenv("FINANCE_PERSISTENCE_PROFILE", raising=False)
    monkeypatch.delenv("FINANCE_HISTORY_DEFAULT_LIMIT", raising=False)
    monkeypatch.delenv("FINANCE_HISTORY_MAX_LIMIT", raising=False)
    reset_financial_data_service_for_tests()
    yield
    reset_financial_data_service_for_tests()


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def repository() -> InMemoryFinancialDataRepository:
    return InMemoryFinancialDataRepository()


@pytest.fixture
def service(repository, clock) -> FinancialDataService:
    return FinancialDataService(repository=repository, clock=clock)
