"""
HTTP Analyzer Rate-Limit Aggregator

Sliding-window tracking of "429 Too Many Requests" responses per
(host, path). Each observation fans out to a listener so stored exchanges
for the same endpoint can be re-tagged.
"""

import time
from typing import Callable

import structlog

logger = structlog.get_logger(__name__)

RateKey = tuple[str, str]


class RateLimitAggregator:
    """
    Per-endpoint sliding window of 429 timestamps.

    Lists are pruned lazily when a new 429 arrives for the same key and
    periodically by `sweep`, which also drops keys that have gone quiet.
    """

    DEFAULT_WINDOW_SECONDS = 5 * 60

    def __init__(
        self,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        on_rate_limited: Callable[[RateKey], object] | None = None,
        time_func: Callable[[], float] | None = None,
    ):
        """
        Initialize the aggregator.

        Args:
            window_seconds: Trailing window length
            on_rate_limited: Called with the key after every observation
            time_func: Clock used when callers do not pass ``now``
        """
        self.window_seconds = window_seconds
        self.on_rate_limited = on_rate_limited
        self._time_func = time_func or time.time
        self._observations: dict[RateKey, list[float]] = {}

    def _cutoff(self, now: float) -> float:
        return now - self.window_seconds

    def observe_429(self, host: str, path: str, now: float | None = None) -> int:
        """
        Record a 429 response for an endpoint.

        Returns:
            Number of 429s for the key inside the trailing window.
        """
        now = self._time_func() if now is None else now
        key = (host, path)
        cutoff = self._cutoff(now)

        timestamps = self._observations.setdefault(key, [])
        timestamps.append(now)
        timestamps[:] = [ts for ts in timestamps if ts > cutoff]
        count = len(timestamps)

        logger.info("rate_limit_observed", host=host, path=path, count=count)

        if self.on_rate_limited is not None:
            self.on_rate_limited(key)

        return count

    def count(self, host: str, path: str, now: float | None = None) -> int:
        """Number of 429s for the key strictly within the window at ``now``."""
        now = self._time_func() if now is None else now
        cutoff = self._cutoff(now)
        return sum(1 for ts in self._observations.get((host, path), ()) if ts > cutoff)

    def is_rate_limited(self, host: str, path: str, now: float | None = None) -> bool:
        """True while the key has at least one 429 inside the window at ``now``."""
        return self.count(host, path, now) > 0

    def sweep(self, now: float | None = None) -> int:
        """
        Prune stale timestamps for every key and drop empty keys.

        Returns:
            Number of keys removed.
        """
        now = self._time_func() if now is None else now
        cutoff = self._cutoff(now)

        removed = 0
        for key in list(self._observations):
            pruned = [ts for ts in self._observations[key] if ts > cutoff]
            if pruned:
                self._observations[key] = pruned
            else:
                del self._observations[key]
                removed += 1

        if removed:
            logger.debug("rate_limit_sweep", removed=removed, remaining=len(self._observations))

        return removed

    def clear(self) -> None:
        """Forget every observation."""
        self._observations.clear()

    def keys(self) -> list[RateKey]:
        return list(self._observations)

    def counts(self, now: float | None = None) -> dict[RateKey, int]:
        """Current in-window count for every tracked key."""
        now = self._time_func() if now is None else now
        return {key: self.count(key[0], key[1], now) for key in self._observations}

    def __len__(self) -> int:
        return len(self._observations)
