"""
HTTP Analyzer Analysis Module

Core components: data models, tagging engine, rate-limit aggregator,
correlation store and snapshot view.
"""

from httpanalyzer.analysis.engine import Classification, TaggingEngine, build_view
from httpanalyzer.analysis.models import (
    Exchange,
    Header,
    Response,
    normalize_headers,
    parse_host,
    rate_key_for,
)
from httpanalyzer.analysis.rate_limit import RateLimitAggregator
from httpanalyzer.analysis.store import CorrelationStore
from httpanalyzer.analysis.view import SnapshotView, host_matches

__all__ = [
    "Classification",
    "TaggingEngine",
    "build_view",
    "Exchange",
    "Header",
    "Response",
    "normalize_headers",
    "parse_host",
    "rate_key_for",
    "RateLimitAggregator",
    "CorrelationStore",
    "SnapshotView",
    "host_matches",
]
