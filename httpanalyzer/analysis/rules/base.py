"""
HTTP Analyzer Base Rule Interface

Defines the canonical exchange view, the abstract rule interface and the
generic pattern matcher that most catalog rules are built from.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Iterator

from httpanalyzer.analysis.models import Header, get_header


@dataclass(frozen=True, slots=True)
class CanonicalView:
    """
    Normalized projection of an exchange used as rule input.

    Built once per classification; rules only read from it.
    """

    url: str
    host: str
    path: str
    query: str
    method: str
    body_text: str
    request_headers: tuple[Header, ...]
    response_headers: tuple[Header, ...]
    status_code: int
    cookie: str
    recent429: bool

    def request_header(self, name: str) -> str:
        return get_header(self.request_headers, name)

    def response_header(self, name: str) -> str:
        return get_header(self.response_headers, name)


@dataclass(frozen=True)
class HeaderCheck:
    """Header presence check, optionally constrained by a value pattern."""

    name: str
    pattern: str | None = None

    def test(self, value: str) -> bool:
        if self.pattern is None:
            return bool(value)
        return re.search(self.pattern, value, re.IGNORECASE) is not None


class BaseRule(ABC):
    """
    Abstract base class for all classification rules.

    Subclasses implement `matches`. Rules must not depend on each other:
    the engine evaluates them in any order and sums the weights of the
    ones that match.
    """

    # Rule metadata (override in subclasses or pass to __init__)
    id: str = "base"
    label: str = "BASE"
    weight: int = 0
    description: str = ""

    def __init__(
        self,
        rule_id: str | None = None,
        label: str | None = None,
        weight: int | None = None,
        description: str | None = None,
    ):
        if rule_id is not None:
            self.id = rule_id
        if label is not None:
            self.label = label
        if weight is not None:
            self.weight = weight
        if description is not None:
            self.description = description

        if not isinstance(self.weight, int) or self.weight <= 0:
            raise ValueError(f"rule {self.id} needs a positive integer weight")

    @abstractmethod
    def matches(self, view: CanonicalView) -> bool:
        """Return True when this rule's signal is present in the view."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, label={self.label!r}, weight={self.weight})"


class PatternRule(BaseRule):
    """
    Declarative rule: matches when ANY configured check fires.

    Text checks are case-insensitive regular expressions searched in the
    corresponding view field.
    """

    _TEXT_FIELDS = ("path", "query", "body_text", "url", "host", "cookie")

    def __init__(
        self,
        rule_id: str,
        label: str,
        weight: int,
        *,
        path: str | None = None,
        query: str | None = None,
        body: str | None = None,
        url: str | None = None,
        host: str | None = None,
        cookie: str | None = None,
        request_headers: Iterable[HeaderCheck] = (),
        response_headers: Iterable[HeaderCheck] = (),
        description: str = "",
    ):
        super().__init__(rule_id, label, weight, description)

        raw = dict(zip(self._TEXT_FIELDS, (path, query, body, url, host, cookie)))
        self.text_checks: dict[str, re.Pattern[str]] = {
            name: re.compile(pattern, re.IGNORECASE)
            for name, pattern in raw.items()
            if pattern is not None
        }
        self.request_headers = tuple(request_headers)
        self.response_headers = tuple(response_headers)

        if not (self.text_checks or self.request_headers or self.response_headers):
            raise ValueError(f"pattern rule {rule_id} has no checks")

    def matches(self, view: CanonicalView) -> bool:
        for name, pattern in self.text_checks.items():
            if pattern.search(getattr(view, name) or ""):
                return True
        for check in self.request_headers:
            if check.test(view.request_header(check.name)):
                return True
        for check in self.response_headers:
            if check.test(view.response_header(check.name)):
                return True
        return False


class StatusRule(BaseRule):
    """Matches responses whose status code is at or above a threshold."""

    def __init__(self, rule_id: str, label: str, weight: int, min_status: int, description: str = ""):
        super().__init__(rule_id, label, weight, description)
        self.min_status = min_status

    def matches(self, view: CanonicalView) -> bool:
        return (view.status_code or 0) >= self.min_status


class FlagRule(BaseRule):
    """Matches when a boolean field of the view is set."""

    def __init__(self, rule_id: str, label: str, weight: int, flag: str, description: str = ""):
        super().__init__(rule_id, label, weight, description)
        self.flag = flag

    def matches(self, view: CanonicalView) -> bool:
        return bool(getattr(view, self.flag))


class RuleCatalog:
    """Ordered, immutable collection of rules with unique ids."""

    def __init__(self, rules: Iterable[BaseRule]):
        self._rules: tuple[BaseRule, ...] = tuple(rules)
        seen: set[str] = set()
        for rule in self._rules:
            if rule.id in seen:
                raise ValueError(f"duplicate rule id: {rule.id}")
            seen.add(rule.id)

    def __iter__(self) -> Iterator[BaseRule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def get(self, rule_id: str) -> BaseRule | None:
        """Get a rule by id."""
        for rule in self._rules:
            if rule.id == rule_id:
                return rule
        return None

    def ids(self) -> list[str]:
        """Get all rule ids in catalog order."""
        return [rule.id for rule in self._rules]

    def labels(self) -> set[str]:
        """Get every label a classification can produce."""
        return {rule.label for rule in self._rules}

    def without(self, rule_ids: Iterable[str]) -> "RuleCatalog":
        """Return a copy of the catalog excluding the given rule ids."""
        excluded = set(rule_ids)
        return RuleCatalog(rule for rule in self._rules if rule.id not in excluded)
