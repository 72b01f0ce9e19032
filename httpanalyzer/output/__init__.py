"""
HTTP Analyzer Output Generation

Console rendering and export writing.
"""

from httpanalyzer.output.console import AnalyzerConsole, get_console
from httpanalyzer.output.export import save_export

__all__ = [
    "AnalyzerConsole",
    "get_console",
    "save_export",
]
