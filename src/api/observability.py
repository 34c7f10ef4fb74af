import json
import logging
import os
import re
import time
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Awaitable, Callable, NamedTuple, Optional
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from prometheus_fastapi_instrumentator import Instrumentator

SERVICE_NAME_DEFAULT = "finplan-advise"

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")
request_id_var: ContextVar[str] = ContextVar("request_id", default="")
trace_id_var: ContextVar[str] = ContextVar("trace_id", default="")
user_id_var: ContextVar[str] = ContextVar("user_id", default="")

_USER_PATH = re.compile(r"^/users/(?P<user_id>[^/]+)")


class RequestIds(NamedTuple):
    correlation_id: str
    request_id: str
    trace_id: str


class JsonFormatter(logging.Formatter):
    """One JSON object per line, enriched with the active request context."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "service": os.getenv("SERVICE_NAME", SERVICE_NAME_DEFAULT),
            "environment": os.getenv("ENVIRONMENT", "local"),
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": correlation_id_var.get() or None,
            "request_id": request_id_var.get() or None,
            "trace_id": trace_id_var.get() or None,
            "user_id": user_id_var.get() or None,
        }
        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            payload.update(extra_fields)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps({k: v for k, v in payload.items() if v is not None}, default=str)


def configure_logging() -> None:
    root_logger = logging.getLogger()
    if root_logger.hasHandlers():
        root_logger.handlers.clear()
    root_logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)


def trace_id_from_traceparent(traceparent: str) -> str:
    """Extracts the W3C trace id, or mints a new one when the header is unusable."""
    parts = traceparent.split("-") if traceparent else []
    if len(parts) >= 4 and len(parts[1]) == 32:
        return parts[1]
    return uuid4().hex


def user_id_from_path(path: str) -> Optional[str]:
    match = _USER_PATH.match(path)
    return match.group("user_id") if match else None


def resolve_request_ids(request: Request) -> RequestIds:
    return RequestIds(
        correlation_id=request.headers.get("X-Correlation-Id") or f"corr_{uuid4().hex[:12]}",
        request_id=request.headers.get("X-Request-Id") or f"req_{uuid4().hex[:12]}",
        trace_id=trace_id_from_traceparent(request.headers.get("traceparent", "")),
    )


def setup_observability(app: FastAPI) -> None:
    configure_logging()
    Instrumentator().instrument(app).expose(app, include_in_schema=False)

    @app.middleware("http")
    async def _request_observability_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        access_logger = logging.getLogger("http.access")
        started = time.perf_counter()
        ids = resolve_request_ids(request)

        tokens = [
            (correlation_id_var, correlation_id_var.set(ids.correlation_id)),
            (request_id_var, request_id_var.set(ids.request_id)),
            (trace_id_var, trace_id_var.set(ids.trace_id)),
            (user_id_var, user_id_var.set(user_id_from_path(request.url.path) or "")),
        ]
        status_code = 500
        try:
            response: Response = await call_next(request)
            status_code = response.status_code
        finally:
            access_logger.info(
                "request.completed",
                extra={
                    "extra_fields": {
                        "http_method": request.method,
                        "endpoint": request.url.path,
                        "status_code": status_code,
                        "latency_ms": round((time.perf_counter() - started) * 1000, 2),
                    }
                },
            )
            for var, token in reversed(tokens):
                var.reset(token)

        response.headers["X-Correlation-Id"] = ids.correlation_id
        response.headers["X-Request-Id"] = ids.request_id
        response.headers["X-Trace-Id"] = ids.trace_id
        response.headers["traceparent"] = f"00-{ids.trace_id}-0000000000000001-01"
        return response
