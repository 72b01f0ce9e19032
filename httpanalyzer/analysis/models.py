"""
HTTP Analyzer Data Models

Lightweight data structures for correlated request/response exchanges.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable
from urllib.parse import urlsplit


# Ports a browser drops from URL.host
DEFAULT_PORTS = {"http": 80, "https": 443, "ws": 80, "wss": 443}


# =============================================================================
# Headers
# =============================================================================


@dataclass(slots=True)
class Header:
    """Single header line. Names compare case-insensitively."""

    name: str
    value: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "value": self.value}


def normalize_headers(headers: Iterable[Any] | None) -> list[Header]:
    """
    Coerce capture-layer header records into Header objects.

    Accepts Header instances, (name, value) pairs and {"name", "value"}
    mappings. Order and duplicates are preserved.
    """
    result = []
    for item in headers or []:
        if isinstance(item, Header):
            result.append(item)
        elif isinstance(item, dict):
            result.append(Header(str(item.get("name", "")), str(item.get("value") or "")))
        else:
            name, value = item
            result.append(Header(str(name), "" if value is None else str(value)))
    return result


def get_header(headers: Iterable[Header] | None, name: str) -> str:
    """Return the first value for a header name, or an empty string."""
    wanted = name.lower()
    for header in headers or []:
        if header.name.lower() == wanted:
            return header.value or ""
    return ""


# =============================================================================
# URL helpers
# =============================================================================


def parse_host(url: str | None) -> str:
    """
    Resolve the host of a URL the way a browser reports ``URL.host``.

    Lower-cased hostname, plus ``:port`` when a non-default port is given.
    Returns an empty string for anything that cannot be resolved.
    """
    if not url:
        return ""
    try:
        parts = urlsplit(url)
        hostname = parts.hostname or ""
        port = parts.port
    except ValueError:
        return ""

    if not hostname:
        return ""
    if ":" in hostname:
        hostname = f"[{hostname}]"
    if port is not None and DEFAULT_PORTS.get(parts.scheme.lower()) != port:
        return f"{hostname}:{port}"
    return hostname


def split_target(url: str | None) -> tuple[str, str]:
    """
    Split a URL into (path, query).

    The query keeps its leading ``?``. A URL that cannot be split is
    returned whole as the path.
    """
    url = url or ""
    try:
        parts = urlsplit(url)
    except ValueError:
        return url, ""

    path = parts.path
    if not path and parts.netloc:
        path = "/"
    query = f"?{parts.query}" if parts.query else ""
    return path, query


def rate_key_for(url: str | None) -> tuple[str, str]:
    """Rate-limit fingerprint key: (host, path) with the query stripped."""
    path, _ = split_target(url)
    return parse_host(url), path


# =============================================================================
# Exchange
# =============================================================================


@dataclass
class Response:
    """Response half of an exchange."""

    status_code: int
    status_line: str = ""
    response_headers: list[Header] = field(default_factory=list)
    timestamp: float = field(default_factory=time.time)
    """Capture time of the response (epoch seconds)."""

    from_cache: bool = False

    def __post_init__(self) -> None:
        if not self.status_line:
            self.status_line = f"HTTP {self.status_code}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "status_code": self.status_code,
            "status_line": self.status_line,
            "response_headers": [h.to_dict() for h in self.response_headers],
            "timestamp": self.timestamp,
            "from_cache": self.from_cache,
        }


@dataclass
class Exchange:
    """
    One observed request/response pair.

    ``tags`` and ``score`` are derived values: they are overwritten on
    every recomputation and never accumulated.
    """

    id: str
    """Correlation key supplied by the capture layer."""

    url: str = ""
    method: str = ""
    host: str = ""
    """Derived from url; empty when the url cannot be resolved."""

    timestamp: float = field(default_factory=time.time)
    """Creation time (epoch seconds)."""

    request_headers: list[Header] = field(default_factory=list)
    request_body: Any = None
    response: Response | None = None

    tags: frozenset[str] = frozenset()
    score: int = 0

    recent429: bool = False
    """Set by the rate-limit fan-out. Never reset once true."""

    @property
    def rate_key(self) -> tuple[str, str]:
        """(host, path) fingerprint used to group 429 observations."""
        path, _ = split_target(self.url)
        return self.host, path

    @property
    def status_code(self) -> int:
        return self.response.status_code if self.response else 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "method": self.method,
            "url": self.url,
            "host": self.host,
            "timestamp": self.timestamp,
            "timestamp_iso": datetime.fromtimestamp(self.timestamp).isoformat(),
            "request_headers": [h.to_dict() for h in self.request_headers],
            "request_body": _jsonable_body(self.request_body),
            "response": self.response.to_dict() if self.response else None,
            "tags": sorted(self.tags),
            "score": self.score,
            "recent429": self.recent429,
        }


def _jsonable_body(body: Any) -> Any:
    """Bytes bodies are exported as text; everything else is left to the encoder."""
    if isinstance(body, (bytes, bytearray)):
        return bytes(body).decode("utf-8", errors="replace")
    return body
