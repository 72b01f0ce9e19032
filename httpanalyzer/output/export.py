"""
HTTP Analyzer Export Writer

Writes export documents to disk as JSON.
"""

import json
from pathlib import Path
from typing import Any

import structlog

from httpanalyzer.config import settings

logger = structlog.get_logger(__name__)


def save_export(document: dict[str, Any], path: Path) -> Path:
    """
    Save an export document.

    Args:
        document: Document produced by ``AnalyzerContext.export``
        path: Target file; a directory receives the default export filename

    Returns:
        Path to the written file
    """
    path = Path(path).expanduser()
    if path.is_dir():
        path = path / settings.export_filename
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        json.dump(document, f, indent=2, default=str)

    logger.info("export_saved", path=str(path), count=document.get("count", 0))
    return path
