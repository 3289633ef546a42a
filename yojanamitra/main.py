"""YojanaMitra FastAPI application entry point.

Creates the FastAPI app, configures logging and middleware, includes
routers, and loads the scheme catalogue that backs the matcher.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from config.settings import settings
from yojanamitra.api.router import api_router

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Structured logging configuration
# ---------------------------------------------------------------------------


def _configure_logging() -> None:
    """Set up structlog with JSON or console rendering based on settings."""
    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelNamesMapping().get(settings.log_level.upper(), logging.INFO),
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Application lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Load the catalogue and build the matcher.

    A missing or broken catalogue does not stop the app: the match
    endpoint still works with candidates sent in the request body.
    """
    _configure_logging()
    logger.info("app.startup", env=settings.env)

    app.state.start_time = time.time()
    app.state.recognized_parsers = frozenset(settings.recognized_parsers)
    app.state.scheme_candidates = []
    app.state.matcher = None

    from yojanamitra.data.seed import load_candidates
    from yojanamitra.services.candidates import InMemoryCandidateSource, SchemeMatcher

    try:
        path = Path(settings.catalog_path) if settings.catalog_path else None
        app.state.scheme_candidates = load_candidates(path)
    except Exception:
        logger.warning("app.catalogue_load_failed", exc_info=True)

    if app.state.scheme_candidates:
        app.state.matcher = SchemeMatcher(
            InMemoryCandidateSource(app.state.scheme_candidates),
            limit=settings.match_limit,
            near_miss_max=settings.near_miss_max,
            window=settings.candidate_window,
            recognized_parsers=app.state.recognized_parsers,
        )
        logger.info("app.matcher_initialised", schemes=len(app.state.scheme_candidates))

    logger.info("app.startup_complete")

    yield

    logger.info("app.shutdown_complete")


# ---------------------------------------------------------------------------
# FastAPI application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="YojanaMitra API",
    description=(
        "YojanaMitra -- matches a farmer's profile against government schemes "
        "and explains the schemes they almost qualify for."
    ),
    version="0.1.0",
    lifespan=lifespan,
    default_response_class=ORJSONResponse,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"],
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "Authorization"],
)

app.include_router(api_router)


@app.get("/api", response_class=ORJSONResponse)
async def api_info() -> dict:
    """API information endpoint."""
    return {
        "name": "YojanaMitra API",
        "version": app.version,
        "docs": "/docs",
        "health": "/api/v1/health",
        "endpoints": {
            "match": "/api/v1/eligibility/match",
            "reasons": "/api/v1/eligibility/reasons",
            "health": "/api/v1/health",
        },
    }
