from __future__ import annotations

import os

from src.api.routers.finances_config import (
    finance_sqlite_path,
    finance_store_backend_name,
    history_default_limit,
    history_max_limit,
)

_PRODUCTION_PROFILE = "PRODUCTION"
_LOCAL_PROFILE = "LOCAL"


def app_persistence_profile_name() -> str:
    profile = os.getenv("FINANCE_PERSISTENCE_PROFILE", _LOCAL_PROFILE).strip().upper()
    return _PRODUCTION_PROFILE if profile == _PRODUCTION_PROFILE else _LOCAL_PROFILE


def validate_persistence_profile_guardrails() -> None:
    backend = finance_store_backend_name()
    if history_default_limit() > history_max_limit():
        raise RuntimeError("FINANCE_HISTORY_DEFAULT_LIMIT_EXCEEDS_MAX")
    if app_persistence_profile_name() != _PRODUCTION_PROFILE:
        return
    if backend != "SQLITE":
        raise RuntimeError("PERSISTENCE_PROFILE_REQUIRES_SQLITE")
    if not finance_sqlite_path():
        raise RuntimeError("PERSISTENCE_PROFILE_REQUIRES_SQLITE_PATH")
