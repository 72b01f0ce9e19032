"""
HTTP Analyzer Classification Rules

Rule interface, generic matchers and the default catalog.
"""

from httpanalyzer.analysis.rules.base import (
    BaseRule,
    CanonicalView,
    FlagRule,
    HeaderCheck,
    PatternRule,
    RuleCatalog,
    StatusRule,
)
from httpanalyzer.analysis.rules.catalog import DEFAULT_RULES, build_catalog

__all__ = [
    "BaseRule",
    "CanonicalView",
    "FlagRule",
    "HeaderCheck",
    "PatternRule",
    "RuleCatalog",
    "StatusRule",
    "DEFAULT_RULES",
    "build_catalog",
]
