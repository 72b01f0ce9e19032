"""
HTTP Analyzer REST API Routes

Lifecycle-event ingestion for the capture layer and the read/command
surface used by the panel.
"""

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from httpanalyzer.api.commands import dispatch_command
from httpanalyzer.context import AnalyzerContext
from httpanalyzer.events import (
    LifecycleEvent,
    RequestBodyEvent,
    RequestStartedEvent,
    ResponseStartedEvent,
    apply_event,
)

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["analyzer"])


def get_context(request: Request) -> AnalyzerContext:
    """Resolve the analyzer context attached to the application."""
    return request.app.state.context


ContextDep = Annotated[AnalyzerContext, Depends(get_context)]


# =============================================================================
# Request/Response Models
# =============================================================================


class EventAccepted(BaseModel):
    """Outcome of applying a lifecycle event."""

    accepted: bool = Field(..., description="False when the URL is ignored")
    exchange: dict[str, Any] | None = None


class FilterUpdate(BaseModel):
    """New domain filter; blank clears it."""

    value: str | None = None


def _accepted(ctx: AnalyzerContext, event: LifecycleEvent) -> EventAccepted:
    exchange = apply_event(ctx, event)
    if exchange is None:
        return EventAccepted(accepted=False)
    return EventAccepted(accepted=True, exchange=exchange.to_dict())


# =============================================================================
# Lifecycle Events
# =============================================================================


@router.post("/events/request-started", response_model=EventAccepted)
async def request_started(event: RequestStartedEvent, ctx: ContextDep) -> EventAccepted:
    """Record the start of a request."""
    return _accepted(ctx, event)


@router.post("/events/request-body", response_model=EventAccepted)
async def request_body(event: RequestBodyEvent, ctx: ContextDep) -> EventAccepted:
    """Attach a request body to an exchange."""
    return _accepted(ctx, event)


@router.post("/events/response-started", response_model=EventAccepted)
async def response_started(event: ResponseStartedEvent, ctx: ContextDep) -> EventAccepted:
    """Attach a response to an exchange."""
    return _accepted(ctx, event)


# =============================================================================
# Panel Surface
# =============================================================================


@router.get("/snapshot")
async def snapshot(ctx: ContextDep, domain: str | None = None) -> dict:
    """
    List captured exchanges, newest first.

    Uses the active filter unless a domain is given.
    """
    domain = (domain or "").strip() or None
    items = ctx.snapshot(domain)
    return {"filter": domain or ctx.get_filter(), "data": [item.to_dict() for item in items]}


@router.get("/exchanges/{exchange_id}")
async def get_exchange(exchange_id: str, ctx: ContextDep) -> dict:
    """Get a single exchange."""
    exchange = ctx.get(exchange_id)
    if exchange is None:
        raise HTTPException(status_code=404, detail="Exchange not found")
    return exchange.to_dict()


@router.get("/filter")
async def get_filter(ctx: ContextDep) -> dict:
    return {"value": ctx.get_filter()}


@router.put("/filter")
async def set_filter(update: FilterUpdate, ctx: ContextDep) -> dict:
    return {"ok": True, "value": ctx.set_filter(update.value)}


@router.post("/clear")
async def clear(ctx: ContextDep) -> dict:
    return {"ok": True, "cleared": ctx.clear()}


@router.get("/export")
async def export(ctx: ContextDep) -> JSONResponse:
    """Download the full, unfiltered capture as JSON."""
    filename = ctx.config.export_filename
    return JSONResponse(
        content=ctx.export(),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/rate-limits")
async def rate_limits(ctx: ContextDep) -> dict:
    """Endpoints that answered 429 within the window."""
    return {
        "window_seconds": ctx.config.rate_limit_window_seconds,
        "keys": ctx.rate_limits(),
    }


@router.post("/command")
async def command(request: Request, ctx: ContextDep) -> dict:
    """
    Panel command endpoint.

    Accepts {"action": ..., "value": ...}; unknown actions return
    {"ok": false} instead of an HTTP error.
    """
    try:
        payload = await request.json()
    except ValueError:
        return {"ok": False, "error": "invalid_command"}
    return dispatch_command(ctx, payload)
