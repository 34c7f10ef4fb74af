import os
import sqlite3
from typing import cast

from src.core.finances.repository import FinancialDataRepository
from src.core.finances.service import DEFAULT_HISTORY_LIMIT, MAX_HISTORY_LIMIT
from src.infrastructure.finances import (
    InMemoryFinancialDataRepository,
    SqliteFinancialDataRepository,
)

_SUPPORTED_BACKENDS = {"IN_MEMORY", "SQLITE"}


def finance_store_backend_name() -> str:
    backend = os.getenv("FINANCE_STORE_BACKEND", "IN_MEMORY").strip().upper()
    if backend not in _SUPPORTED_BACKENDS:
        raise RuntimeError("FINANCE_STORE_BACKEND_UNSUPPORTED")
    return backend


def finance_sqlite_path() -> str:
    return os.getenv("FINANCE_SQLITE_PATH", ".data/finances.sqlite").strip()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value)
    except ValueError as exc:
        raise RuntimeError(f"{name}_INVALID") from exc
    if parsed < 1:
        raise RuntimeError(f"{name}_INVALID")
    return parsed


def history_default_limit() -> int:
    return _env_int("FINANCE_HISTORY_DEFAULT_LIMIT", DEFAULT_HISTORY_LIMIT)


def history_max_limit() -> int:
    return _env_int("FINANCE_HISTORY_MAX_LIMIT", MAX_HISTORY_LIMIT)


def build_repository() -> FinancialDataRepository:
    backend = finance_store_backend_name()
    if backend == "SQLITE":
        path = finance_sqlite_path()
        if not path:
            raise RuntimeError("FINANCE_SQLITE_PATH_REQUIRED")
        try:
            return cast(
                FinancialDataRepository, SqliteFinancialDataRepository(database_path=path)
            )
        except (OSError, sqlite3.Error) as exc:
            raise RuntimeError("FINANCE_SQLITE_CONNECTION_FAILED") from exc
    return cast(FinancialDataRepository, InMemoryFinancialDataRepository())
