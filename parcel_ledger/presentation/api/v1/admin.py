"""Scheduler-facing batch endpoints."""

from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Body, Depends

from parcel_ledger.application.services import EventDispatcher, OverdueScanner
from parcel_ledger.core.dependencies import get_event_dispatcher, get_overdue_scanner
from parcel_ledger.presentation.schemas import (
    DispatchResponseSchema,
    OverdueScanRequestSchema,
    OverdueScanResponseSchema,
)

admin_router = APIRouter(prefix="/admin")


@admin_router.post(
    "/overdue-scan",
    response_model=OverdueScanResponseSchema,
    summary="Run Overdue Sweep",
    description="""
    Move past-due pending installments to overdue, freeze tokens over the
    overdue threshold and expire stale tokens. Safe to run repeatedly.
    """,
)
async def run_overdue_scan(
    scanner: Annotated[OverdueScanner, Depends(get_overdue_scanner)],
    request: Annotated[OverdueScanRequestSchema | None, Body()] = None,
) -> OverdueScanResponseSchema:
    as_of = request.as_of if request is not None else None
    result = await scanner.run(as_of)

    return OverdueScanResponseSchema(**asdict(result))


@admin_router.post(
    "/events/dispatch",
    response_model=DispatchResponseSchema,
    summary="Dispatch Pending Events",
    description="Deliver ledger events left pending by earlier dispatch attempts.",
)
async def dispatch_pending_events(
    dispatcher: Annotated[EventDispatcher, Depends(get_event_dispatcher)],
) -> DispatchResponseSchema:
    delivered = await dispatcher.dispatch_pending()
    return DispatchResponseSchema(delivered=delivered)
