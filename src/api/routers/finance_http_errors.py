from typing import NoReturn

from fastapi import HTTPException, status

from src.core.finances import FinancialRecordNotFoundError, ProfileIncompleteError
from src.core.models import InvalidEnumValueError

HTTP_422_UNPROCESSABLE = getattr(
    status,
    "HTTP_422_UNPROCESSABLE_CONTENT",
    status.HTTP_422_UNPROCESSABLE_ENTITY,
)


def raise_finance_http_exception(exc: Exception) -> NoReturn:
    if isinstance(exc, FinancialRecordNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, ProfileIncompleteError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if isinstance(exc, InvalidEnumValueError):
        raise HTTPException(status_code=HTTP_422_UNPROCESSABLE, detail=str(exc)) from exc
    raise exc
