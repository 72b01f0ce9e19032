"""
HTTP Analyzer Lifecycle Events

Validated shapes of the events emitted by the capture layer, shared by the
REST API and the replay CLI.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from httpanalyzer.analysis.models import Exchange
from httpanalyzer.context import AnalyzerContext


class HeaderModel(BaseModel):
    """Single header line."""

    name: str
    value: str = ""


class RequestStartedEvent(BaseModel):
    """Request headers are about to be sent."""

    event: Literal["request_started"] = "request_started"
    id: str = Field(..., description="Correlation key of the exchange")
    method: str = Field(default="GET", description="HTTP method")
    url: str = Field(..., description="Request URL")
    headers: list[HeaderModel] = Field(default_factory=list)


class RequestBodyEvent(BaseModel):
    """Request body became available."""

    event: Literal["request_body"] = "request_body"
    id: str = Field(..., description="Correlation key of the exchange")
    body: Any = Field(default=None, description="Opaque body descriptor")
    url: str | None = Field(default=None, description="Request URL, when known")


class ResponseStartedEvent(BaseModel):
    """First byte of the response was received."""

    event: Literal["response_started"] = "response_started"
    id: str = Field(..., description="Correlation key of the exchange")
    status_code: int = Field(..., ge=0, description="HTTP status code")
    status_line: str | None = None
    headers: list[HeaderModel] = Field(default_factory=list)
    from_cache: bool = False
    url: str | None = Field(default=None, description="Request URL, when known")


LifecycleEvent = Annotated[
    Union[RequestStartedEvent, RequestBodyEvent, ResponseStartedEvent],
    Field(discriminator="event"),
]

lifecycle_event_adapter: TypeAdapter[LifecycleEvent] = TypeAdapter(LifecycleEvent)


def apply_event(ctx: AnalyzerContext, event: LifecycleEvent) -> Exchange | None:
    """
    Route a validated event to the matching context handler.

    Returns:
        The affected exchange, or None when the URL is ignored.
    """
    if isinstance(event, RequestStartedEvent):
        return ctx.request_started(
            event.id,
            event.method,
            event.url,
            [h.model_dump() for h in event.headers],
        )
    if isinstance(event, RequestBodyEvent):
        return ctx.request_body_available(event.id, event.body, url=event.url)
    return ctx.response_started(
        event.id,
        event.status_code,
        status_line=event.status_line,
        headers=[h.model_dump() for h in event.headers],
        from_cache=event.from_cache,
        url=event.url,
    )
