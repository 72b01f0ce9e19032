"""
HTTP Analyzer Test Configuration

Pytest fixtures and configuration for all tests.
"""

import pytest

from httpanalyzer.config import Settings
from httpanalyzer.context import AnalyzerContext


class FakeClock:
    """Manually advanced clock (epoch seconds)."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config() -> Settings:
    """Settings with the documented defaults, independent of the environment."""
    return Settings(
        max_items=50,
        rate_limit_window_seconds=300,
        sweep_interval_seconds=60,
        ignored_url_prefixes=["chrome-extension://", "chrome://"],
        disabled_rules=[],
    )


@pytest.fixture
def context(config: Settings, clock: FakeClock):
    """Fresh analyzer context driven by the fake clock."""
    ctx = AnalyzerContext(config, time_func=clock)
    yield ctx
    ctx.close()
