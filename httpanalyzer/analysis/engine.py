"""
HTTP Analyzer Tagging Engine

Normalizes an exchange into a canonical view and evaluates the rule
catalog against it. Classification is pure and never raises.
"""

import json
from dataclasses import dataclass
from typing import Any, Protocol

import structlog

from httpanalyzer.analysis.models import Exchange, get_header, split_target
from httpanalyzer.analysis.rules import CanonicalView, RuleCatalog, build_catalog

logger = structlog.get_logger(__name__)


class RateLimitView(Protocol):
    """Read-only view of the rate-limit aggregator used during classification."""

    def is_rate_limited(self, host: str, path: str) -> bool: ...


@dataclass(frozen=True)
class Classification:
    """Derived tags and score for one exchange."""

    tags: frozenset[str]
    score: int


def stringify_body(body: Any) -> str:
    """
    Render an opaque body descriptor as searchable text.

    Strings pass through, bytes are decoded leniently and structured
    descriptors are JSON-encoded.
    """
    if body is None:
        return ""
    if isinstance(body, str):
        return body
    if isinstance(body, (bytes, bytearray)):
        return bytes(body).decode("utf-8", errors="replace")
    try:
        return json.dumps(body, default=str)
    except (TypeError, ValueError):
        return str(body)


def build_view(exchange: Exchange, rate_view: RateLimitView | None = None) -> CanonicalView:
    """Project an exchange onto the canonical view consumed by rules."""
    path, query = split_target(exchange.url)
    response = exchange.response

    recent429 = exchange.recent429
    if not recent429 and rate_view is not None:
        host, key_path = exchange.rate_key
        recent429 = rate_view.is_rate_limited(host, key_path)

    return CanonicalView(
        url=exchange.url or "",
        host=exchange.host or "",
        path=path,
        query=query,
        method=exchange.method or "GET",
        body_text=stringify_body(exchange.request_body),
        request_headers=tuple(exchange.request_headers or ()),
        response_headers=tuple(response.response_headers) if response else (),
        status_code=response.status_code if response else 0,
        cookie=get_header(exchange.request_headers, "Cookie"),
        recent429=recent429,
    )


class TaggingEngine:
    """
    Evaluates a rule catalog against exchanges.

    Every rule is evaluated independently; a rule that raises counts as a
    non-match and does not affect the others.
    """

    def __init__(self, catalog: RuleCatalog | None = None):
        self.catalog = catalog if catalog is not None else build_catalog()

    def classify(self, exchange: Exchange, rate_view: RateLimitView | None = None) -> Classification:
        """
        Derive tags and score for an exchange.

        Args:
            exchange: Exchange to classify. Not modified.
            rate_view: Optional aggregator view consulted for the rate key.

        Returns:
            Classification with deduplicated labels and summed weights.
        """
        view = build_view(exchange, rate_view)

        tags: set[str] = set()
        score = 0
        for rule in self.catalog:
            try:
                matched = rule.matches(view)
            except Exception as e:
                logger.debug(
                    "rule_evaluation_failed",
                    rule_id=rule.id,
                    exchange_id=exchange.id,
                    error=str(e),
                )
                continue

            if matched:
                tags.add(rule.label)
                score += rule.weight

        return Classification(tags=frozenset(tags), score=score)

    def apply(self, exchange: Exchange, rate_view: RateLimitView | None = None) -> Exchange:
        """Recompute and store tags/score on the exchange."""
        result = self.classify(exchange, rate_view)
        exchange.tags = result.tags
        exchange.score = result.score
        return exchange
