"""
HTTP Analyzer Snapshot View

Read-only projection over the correlation store with optional domain
scoping. A domain filter matches the domain itself and its subdomains.
"""

from httpanalyzer.analysis.models import Exchange
from httpanalyzer.analysis.store import CorrelationStore


def host_matches(host: str, domain: str) -> bool:
    """
    Check whether a host equals a domain or is one of its subdomains.

    Comparison ignores case. An empty host never matches.
    """
    if not host:
        return False
    host = host.lower()
    domain = domain.lower()
    return host == domain or host.endswith("." + domain)


class SnapshotView:
    """Filtered, head-first listing of the store. Never mutates it."""

    def __init__(self, store: CorrelationStore):
        self.store = store
        self._filter: str | None = None

    def set_filter(self, value: str | None) -> str | None:
        """Store the trimmed filter value, or clear it when blank."""
        value = (value or "").strip()
        self._filter = value or None
        return self._filter

    def get_filter(self) -> str | None:
        return self._filter

    def snapshot(self, filter_domain: str | None = None) -> list[Exchange]:
        """
        List exchanges head-first, capped at the store capacity.

        Args:
            filter_domain: Domain scope; None lists every exchange.
        """
        items = self.store.items()
        if filter_domain:
            items = [item for item in items if host_matches(item.host, filter_domain)]
        return items[: self.store.max_items]

    def current(self) -> list[Exchange]:
        """Snapshot under the active filter."""
        return self.snapshot(self._filter)
