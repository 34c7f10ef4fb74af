"""
FILE: src/core/metrics.py
Reduces account, income and expense records into the monthly cash-flow view.
"""

import logging
from decimal import Decimal, InvalidOperation, localcontext
from typing import Any, Dict, Iterable, List, Optional

from src.core.models import (
    MONEY_CONTEXT,
    Frequency,
    Metrics,
    parse_enum,
    quantize_money,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Raw amounts beyond this magnitude are outside the money domain.
AGGREGATE_AMOUNT_LIMIT = Decimal("1e30")


def _field(record: Any, name: str) -> Any:
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def _money(record: Any, name: str) -> Decimal:
    """Reads a monetary field, treating missing, malformed or out-of-range values as zero."""
    value = _field(record, name)
    if value is None or isinstance(value, bool):
        return ZERO
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        logger.debug("Non-numeric %s coerced to zero: %r", name, value)
        return ZERO
    if not amount.is_finite():
        logger.debug("Non-finite %s coerced to zero: %r", name, value)
        return ZERO
    if amount.copy_abs() > AGGREGATE_AMOUNT_LIMIT:
        logger.debug("Out-of-range %s coerced to zero: %r", name, value)
        return ZERO
    return amount


def _frequency(record: Any) -> Optional[Frequency]:
    value = _field(record, "frequency")
    if value is None:
        return None
    return parse_enum(Frequency, value, "frequency")


def _is_monthly(record: Any) -> bool:
    return _frequency(record) == Frequency.MONTHLY


def _exact_sum(amounts: Iterable[Decimal]) -> Decimal:
    with localcontext(MONEY_CONTEXT):
        return sum(amounts, ZERO)


def _sum_monthly(records: Iterable[Any]) -> Decimal:
    return _exact_sum(_money(r, "amount") for r in records if _is_monthly(r))


def aggregate(
    accounts: Optional[Iterable[Any]],
    incomes: Optional[Iterable[Any]],
    expenses: Optional[Iterable[Any]],
) -> Metrics:
    """
    Builds Metrics from the current record set.

    Only monthly income and expense entries feed the monthly figures; the
    balance total has no frequency filter. Amounts are summed exactly and
    rounded to cents once per total. Amounts that cannot be read as a finite
    decimal within AGGREGATE_AMOUNT_LIMIT count as zero. A frequency outside
    the closed set raises InvalidEnumValueError.
    """
    total_balance = quantize_money(_exact_sum(_money(a, "balance") for a in accounts or []))
    monthly_income = quantize_money(_sum_monthly(incomes or []))
    monthly_expenses = quantize_money(_sum_monthly(expenses or []))
    with localcontext(MONEY_CONTEXT):
        monthly_savings = monthly_income - monthly_expenses

    return Metrics(
        total_balance=total_balance,
        monthly_income=monthly_income,
        monthly_expenses=monthly_expenses,
        monthly_savings=monthly_savings,
    )


def expense_breakdown(expenses: Optional[Iterable[Any]]) -> Dict[str, Decimal]:
    """Monthly expense totals per category, in first-seen order."""
    breakdown: Dict[str, List[Decimal]] = {}
    for expense in expenses or []:
        if not _is_monthly(expense):
            continue
        category = _field(expense, "category")
        key = getattr(category, "value", category) or "Autre"
        breakdown.setdefault(key, []).append(_money(expense, "amount"))
    return {key: quantize_money(_exact_sum(amounts)) for key, amounts in breakdown.items()}


def savings_rate(metrics: Metrics) -> Decimal:
    """Monthly savings as a percentage of monthly income, one decimal place."""
    if metrics.monthly_income <= ZERO:
        return Decimal("0.0")
    with localcontext(MONEY_CONTEXT):
        rate = metrics.monthly_savings / metrics.monthly_income * Decimal("100")
        return rate.quantize(Decimal("0.1"))
