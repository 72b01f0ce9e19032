"""
HTTP Analyzer Panel Commands

Dispatches panel commands ({"action": ..., "value": ...}) onto a context.
Shared by the REST command endpoint and the WebSocket channel.
"""

from typing import Any, Callable

import structlog
from pydantic import BaseModel, Field, ValidationError

from httpanalyzer.context import AnalyzerContext

logger = structlog.get_logger(__name__)


class Command(BaseModel):
    """Panel command message."""

    action: str = Field(..., description="Command name")
    value: str | None = Field(default=None, description="Command argument")


def _snapshot(ctx: AnalyzerContext, command: Command) -> dict[str, Any]:
    return {"ok": True, "data": [item.to_dict() for item in ctx.snapshot()]}


def _clear(ctx: AnalyzerContext, command: Command) -> dict[str, Any]:
    return {"ok": True, "cleared": ctx.clear()}


def _set_filter(ctx: AnalyzerContext, command: Command) -> dict[str, Any]:
    return {"ok": True, "value": ctx.set_filter(command.value)}


def _get_filter(ctx: AnalyzerContext, command: Command) -> dict[str, Any]:
    return {"ok": True, "value": ctx.get_filter()}


def _export(ctx: AnalyzerContext, command: Command) -> dict[str, Any]:
    return {"ok": True, "document": ctx.export()}


COMMANDS: dict[str, Callable[[AnalyzerContext, Command], dict[str, Any]]] = {
    "snapshot": _snapshot,
    "clear": _clear,
    "setFilter": _set_filter,
    "getFilter": _get_filter,
    "export": _export,
}


def dispatch_command(ctx: AnalyzerContext, payload: Any) -> dict[str, Any]:
    """
    Run one panel command.

    Invalid payloads and unknown actions get an explicit failure response
    and leave the context untouched.
    """
    try:
        command = Command.model_validate(payload)
    except ValidationError as e:
        logger.warning("invalid_command", errors=e.error_count())
        return {"ok": False, "error": "invalid_command"}

    handler = COMMANDS.get(command.action)
    if handler is None:
        logger.warning("unknown_command", action=command.action)
        return {"ok": False, "error": "unknown_action", "action": command.action}

    return handler(ctx, command)
