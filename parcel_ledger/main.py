"""
Parcel Ledger - Main Application Entry Point

A revolving-credit ledger and installment lifecycle engine.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from parcel_ledger import __version__
from parcel_ledger.core.config import settings
from parcel_ledger.core.logging import setup_logging
from parcel_ledger.core.metrics import get_metrics, get_metrics_content_type
from parcel_ledger.infrastructure.database import db_manager
from parcel_ledger.presentation.api import api_router
from parcel_ledger.presentation.middleware import (
    LoggingMiddleware,
    RequestContextMiddleware,
    error_handler_middleware,
)


OPENAPI_TAGS = [
    {"name": "Tokens", "description": "Issue, inspect, freeze and unfreeze credit tokens"},
    {"name": "Purchases", "description": "Reserve credit and split purchases into installments"},
    {"name": "Plans", "description": "Installment plans and rescheduling"},
    {"name": "Payments", "description": "Settlement and payment-rail confirmations"},
    {"name": "Admin", "description": "Overdue sweep and outbox delivery"},
    {"name": "Health", "description": "Service health"},
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown events:
    - Set up logging
    - Initialize the database engine (and schema, when configured)
    - Dispose of the engine on shutdown
    """
    setup_logging()
    db_manager.init()

    if settings.auto_create_schema:
        await db_manager.create_schema()

    logger = structlog.get_logger(__name__)
    logger.info("application_started", version=__version__)

    yield

    await db_manager.close()
    logger.info("application_stopped")


app = FastAPI(
    title="Parcel Ledger",
    description="Revolving Credit & Installment Ledger",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    openapi_tags=OPENAPI_TAGS,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestContextMiddleware)

error_handler_middleware(app)

app.include_router(api_router)


@app.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    if not settings.metrics_enabled:
        return Response(status_code=404)
    return Response(
        content=get_metrics(),
        media_type=get_metrics_content_type(),
    )


@app.get("/", include_in_schema=False)
async def root():
    """Redirect to API documentation."""
    return RedirectResponse(url="/docs")
