from src.infrastructure.finances.in_memory import InMemoryFinancialDataRepository
from src.infrastructure.finances.sqlite import SqliteFinancialDataRepository

__all__ = ["InMemoryFinancialDataRepository", "SqliteFinancialDataRepository"]
