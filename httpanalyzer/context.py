"""
HTTP Analyzer Context

Owns the correlation store, rate-limit aggregator and snapshot view of one
capture session and applies lifecycle events to them. All access goes
through a single lock so every event is handled as one atomic step.
"""

import threading
import time
from collections import OrderedDict
from datetime import datetime
from typing import Any, Callable, Iterable

import structlog

from httpanalyzer.analysis.engine import TaggingEngine
from httpanalyzer.analysis.models import Exchange, Response, normalize_headers, rate_key_for
from httpanalyzer.analysis.rate_limit import RateLimitAggregator
from httpanalyzer.analysis.rules import build_catalog
from httpanalyzer.analysis.store import CorrelationStore
from httpanalyzer.analysis.view import SnapshotView
from httpanalyzer.config import Settings, get_settings

logger = structlog.get_logger(__name__)

TOO_MANY_REQUESTS = 429


class AnalyzerContext:
    """
    One capture session.

    Create a context per process (or per test) and pass it to every
    handler; `close` resets it to empty.
    """

    def __init__(
        self,
        config: Settings | None = None,
        time_func: Callable[[], float] | None = None,
    ):
        self.config = config or get_settings()
        self._time_func = time_func or time.time
        self._lock = threading.RLock()

        self.engine = TaggingEngine(build_catalog(self.config.disabled_rules))
        self.store = CorrelationStore(
            engine=self.engine,
            max_items=self.config.max_items,
            time_func=self._time_func,
        )
        self.aggregator = RateLimitAggregator(
            window_seconds=self.config.rate_limit_window_seconds,
            on_rate_limited=self.store.mark_rate_limited,
            time_func=self._time_func,
        )
        self.store.rate_view = self.aggregator
        self.view = SnapshotView(self.store)

        # Ids of dropped requests whose later events carry no URL
        self._ignored_ids: OrderedDict[str, None] = OrderedDict()

        logger.debug(
            "context_created",
            max_items=self.config.max_items,
            window_seconds=self.config.rate_limit_window_seconds,
            rules=len(self.engine.catalog),
        )

    def is_ignored(self, url: str | None) -> bool:
        """Check whether a URL belongs to the browser itself."""
        return bool(url) and any(url.startswith(p) for p in self.config.ignored_url_prefixes)

    def _drop(self, exchange_id: str, url: str | None) -> bool:
        """
        Decide whether an event should be dropped.

        An ignored URL marks the id, so later events for the same id are
        dropped even without a URL. Call with the lock held.
        """
        if self.is_ignored(url):
            self._ignored_ids[exchange_id] = None
            self._ignored_ids.move_to_end(exchange_id)
            while len(self._ignored_ids) > self.config.max_items:
                self._ignored_ids.popitem(last=False)
            return True
        return exchange_id in self._ignored_ids

    # =========================================================================
    # Inbound lifecycle events
    # =========================================================================

    def request_started(
        self,
        exchange_id: str,
        method: str | None,
        url: str | None,
        headers: Iterable[Any] | None = None,
    ) -> Exchange | None:
        """Apply a request-start event. Ignored URLs return None."""
        with self._lock:
            if self._drop(exchange_id, url):
                return None

            return self.store.upsert(
                exchange_id,
                url=url,
                method=method,
                request_headers=normalize_headers(headers),
            )

    def request_body_available(
        self,
        exchange_id: str,
        body: Any,
        url: str | None = None,
    ) -> Exchange | None:
        """Apply a request-body event."""
        with self._lock:
            if self._drop(exchange_id, url):
                return None

            return self.store.upsert(exchange_id, url=url, request_body=body)

    def response_started(
        self,
        exchange_id: str,
        status_code: int,
        status_line: str | None = None,
        headers: Iterable[Any] | None = None,
        from_cache: bool = False,
        url: str | None = None,
    ) -> Exchange | None:
        """
        Apply a response-start event.

        A 429 status is also recorded by the rate-limit aggregator, which
        re-tags every stored exchange for the same endpoint.
        """
        with self._lock:
            if self._drop(exchange_id, url):
                return None

            response = Response(
                status_code=status_code,
                status_line=status_line or "",
                response_headers=normalize_headers(headers),
                timestamp=self._time_func(),
                from_cache=bool(from_cache),
            )
            exchange = self.store.upsert(exchange_id, url=url, response=response)

            if status_code == TOO_MANY_REQUESTS:
                target = exchange.url or url
                if target:
                    host, path = rate_key_for(target)
                    self.aggregator.observe_429(host, path, self._time_func())
                else:
                    logger.warning("rate_limit_without_url", exchange_id=exchange_id)

            return exchange

    # =========================================================================
    # Outbound surface
    # =========================================================================

    def get(self, exchange_id: str) -> Exchange | None:
        with self._lock:
            return self.store.get(exchange_id)

    def snapshot(self, filter_domain: str | None = None) -> list[Exchange]:
        """Head-first exchanges; without an explicit domain the active filter applies."""
        with self._lock:
            if filter_domain is None:
                return self.view.current()
            return self.view.snapshot(filter_domain)

    def set_filter(self, value: str | None) -> str | None:
        with self._lock:
            active = self.view.set_filter(value)
        logger.info("filter_set", domain=active)
        return active

    def get_filter(self) -> str | None:
        with self._lock:
            return self.view.get_filter()

    def clear(self) -> int:
        """Empty the store. Rate-limit windows are kept."""
        with self._lock:
            return self.store.clear()

    def export(self) -> dict[str, Any]:
        """Full, unfiltered store contents as a JSON-ready document."""
        with self._lock:
            exchanges = [exchange.to_dict() for exchange in self.store.items()]

        logger.info("store_exported", count=len(exchanges))
        return {
            "exported_at": datetime.fromtimestamp(self._time_func()).isoformat(),
            "count": len(exchanges),
            "exchanges": exchanges,
        }

    def rate_limits(self) -> list[dict[str, Any]]:
        """Active rate-limit keys with their in-window counts."""
        with self._lock:
            counts = self.aggregator.counts(self._time_func())
        return [
            {"host": host, "path": path, "count": count}
            for (host, path), count in counts.items()
        ]

    # =========================================================================
    # Maintenance
    # =========================================================================

    def sweep(self, now: float | None = None) -> int:
        """Periodic rate-limit cleanup. Returns the number of keys dropped."""
        with self._lock:
            return self.aggregator.sweep(self._time_func() if now is None else now)

    def close(self) -> None:
        """Reset the session to empty."""
        with self._lock:
            self.store.clear()
            self.aggregator.clear()
            self.view.set_filter(None)
            self._ignored_ids.clear()
        logger.debug("context_closed")
