"""
FILE: src/api/main.py
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from src.api.observability import setup_observability
from src.api.persistence_profile import validate_persistence_profile_guardrails
from src.api.routers.engine import router as engine_router
from src.api.routers.finances import router as finances_router


@asynccontextmanager
async def _app_lifespan(_app: FastAPI):
    validate_persistence_profile_guardrails()
    yield


app = FastAPI(
    title="Personal Finance Advice API",
    version="0.1.0",
    description=(
        "Aggregates declared accounts, income and expenses into monthly metrics and derives "
        "a deterministic investment recommendation from the investor profile."
    ),
    openapi_tags=[
        {
            "name": "Recommendation Engine",
            "description": "Pure aggregation and recommendation endpoints.",
        },
        {
            "name": "Financial Data",
            "description": "Per-user accounts, income, expenses and profile.",
        },
        {
            "name": "Recommendations",
            "description": "Recommendation preview and append-only history.",
        },
    ],
    lifespan=_app_lifespan,
)

setup_observability(app)
logger = logging.getLogger(__name__)

app.include_router(engine_router)
app.include_router(finances_router)


@app.exception_handler(Exception)
async def unhandled_exception_to_problem_details(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception while serving request", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        media_type="application/problem+json",
        content={
            "type": "about:blank",
            "title": "Internal Server Error",
            "status": 500,
            "detail": "An unexpected error occurred.",
            "instance": str(request.url.path),
        },
    )


@app.get("/health", tags=["Health"], summary="Liveness Check")
def health() -> dict:
    return {"status": "ok"}
