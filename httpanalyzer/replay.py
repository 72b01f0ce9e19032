"""
HTTP Analyzer Event Replay

Feeds recorded lifecycle events (one JSON object per line) through a
context. Records may carry a ``timestamp`` (epoch seconds) that drives the
context clock, so rate-limit windows behave as they did during capture.
"""

import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

import structlog
from pydantic import ValidationError

from httpanalyzer.context import AnalyzerContext
from httpanalyzer.events import apply_event, lifecycle_event_adapter

logger = structlog.get_logger(__name__)


class ReplayClock:
    """Clock pinned to the timestamp of the event being replayed."""

    def __init__(self) -> None:
        self._current: float | None = None

    def set(self, timestamp: float) -> None:
        self._current = float(timestamp)

    def __call__(self) -> float:
        return self._current if self._current is not None else time.time()


@dataclass
class ReplayResult:
    """Outcome of a replay run."""

    applied: int = 0
    ignored: int = 0
    errors: list[tuple[int, str]] = field(default_factory=list)
    """(line number, reason) for every skipped line."""


def replay_lines(
    ctx: AnalyzerContext,
    lines: Iterable[str],
    clock: ReplayClock | None = None,
) -> ReplayResult:
    """
    Apply JSON-lines events to a context.

    Blank lines are skipped silently; malformed lines are recorded in the
    result and skipped.
    """
    result = ReplayResult()

    for lineno, line in enumerate(lines, start=1):
        line = line.strip()
        if not line:
            continue

        try:
            record = json.loads(line)
            event = lifecycle_event_adapter.validate_python(record)
        except ValueError as e:
            # ValidationError is a ValueError too
            reason = f"{e.error_count()} validation error(s)" if isinstance(e, ValidationError) else str(e)
            result.errors.append((lineno, reason))
            logger.warning("replay_line_skipped", line=lineno, reason=reason)
            continue

        if clock is not None and isinstance(record.get("timestamp"), (int, float)):
            clock.set(record["timestamp"])

        if apply_event(ctx, event) is None:
            result.ignored += 1
        else:
            result.applied += 1

    logger.info(
        "replay_complete",
        applied=result.applied,
        ignored=result.ignored,
        errors=len(result.errors),
    )
    return result


def replay_file(ctx: AnalyzerContext, path: Path, clock: ReplayClock | None = None) -> ReplayResult:
    """
    Replay a JSON-lines event file.

    Undecodable bytes become U+FFFD, so such lines are reported as
    malformed instead of aborting the run.
    """
    with open(path, encoding="utf-8", errors="replace") as f:
        return replay_lines(ctx, f, clock)
