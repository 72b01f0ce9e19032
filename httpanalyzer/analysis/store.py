"""
HTTP Analyzer Correlation Store

Bounded, ordered collection of exchanges assembled from partial lifecycle
events. Newest-created exchanges sit at the head; once the store is full
each creation evicts the oldest-created exchange from the tail.
"""

import time
from typing import Any, Callable

import structlog

from httpanalyzer.analysis.engine import RateLimitView, TaggingEngine
from httpanalyzer.analysis.models import Exchange, Header, Response, parse_host

logger = structlog.get_logger(__name__)


def _has_value(value: Any) -> bool:
    """Merge rule: None and empty strings/collections never overwrite."""
    if value is None:
        return False
    if isinstance(value, (str, bytes, bytearray, list, tuple, dict, set, frozenset)):
        return len(value) > 0
    return True


class CorrelationStore:
    """
    In-memory store of correlated exchanges.

    Every create, merge or rate-limit marking recomputes the tags and score
    of the touched exchange.
    """

    DEFAULT_MAX_ITEMS = 50

    def __init__(
        self,
        engine: TaggingEngine | None = None,
        max_items: int = DEFAULT_MAX_ITEMS,
        rate_view: RateLimitView | None = None,
        time_func: Callable[[], float] | None = None,
    ):
        """
        Initialize the store.

        Args:
            engine: Tagging engine used for recomputation
            max_items: Capacity before the oldest exchange is evicted
            rate_view: Aggregator view handed to the engine
            time_func: Clock for creation timestamps
        """
        self.engine = engine or TaggingEngine()
        self.max_items = max_items
        self.rate_view = rate_view
        self._time_func = time_func or time.time

        # Head-first order plus an id index
        self._order: list[Exchange] = []
        self._index: dict[str, Exchange] = {}

    def _recompute(self, exchange: Exchange) -> None:
        self.engine.apply(exchange, self.rate_view)

    def upsert(
        self,
        exchange_id: str,
        *,
        url: str | None = None,
        method: str | None = None,
        request_headers: list[Header] | None = None,
        request_body: Any = None,
        response: Response | None = None,
    ) -> Exchange:
        """
        Create or merge an exchange.

        Unknown ids create a new exchange at the head. Known ids merge in
        place: a field is replaced only by a non-empty value.

        Returns:
            The created or updated exchange.
        """
        exchange = self._index.get(exchange_id)

        if exchange is None:
            exchange = Exchange(
                id=exchange_id,
                url=url or "",
                method=method or "",
                host=parse_host(url),
                timestamp=self._time_func(),
                request_headers=list(request_headers or []),
                request_body=request_body if _has_value(request_body) else None,
                response=response,
            )
            self._order.insert(0, exchange)
            self._index[exchange_id] = exchange
            logger.debug("exchange_created", exchange_id=exchange_id, url=exchange.url)

            if len(self._order) > self.max_items:
                evicted = self._order.pop()
                del self._index[evicted.id]
                logger.debug("exchange_evicted", exchange_id=evicted.id)
        else:
            if _has_value(url):
                exchange.url = url
                exchange.host = parse_host(url)
            if _has_value(method):
                exchange.method = method
            if _has_value(request_headers):
                exchange.request_headers = list(request_headers)
            if _has_value(request_body):
                exchange.request_body = request_body
            if response is not None:
                exchange.response = response

        self._recompute(exchange)
        return exchange

    def get(self, exchange_id: str) -> Exchange | None:
        """Get an exchange by id, or None if it is not stored."""
        return self._index.get(exchange_id)

    def clear(self) -> int:
        """Remove all exchanges. Returns the count removed."""
        count = len(self._order)
        self._order = []
        self._index = {}
        logger.info("store_cleared", entries=count)
        return count

    def mark_rate_limited(self, key: tuple[str, str]) -> int:
        """
        Flag every exchange whose (host, path) equals key and re-tag it.

        Returns:
            Number of exchanges marked.
        """
        marked = 0
        for exchange in self._order:
            if exchange.rate_key == key:
                exchange.recent429 = True
                self._recompute(exchange)
                marked += 1

        if marked:
            logger.debug("rate_limit_marked", host=key[0], path=key[1], exchanges=marked)
        return marked

    def items(self) -> list[Exchange]:
        """Head-first copy of the stored exchanges."""
        return list(self._order)

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, exchange_id: object) -> bool:
        return exchange_id in self._index
