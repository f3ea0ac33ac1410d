"""Interface the matchers require from a selector/document engine."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

from .query.models import MatchQuery, SelectorQuery, TextQuery
from .results import ResultSet

if TYPE_CHECKING:  # pragma: no cover
    from .node import Node


class Resolver(Protocol):
    """Resolve queries against a scope.

    Implementations take a fresh look at the document on every call, apply
    ``query.filter_block`` to each candidate and raise
    :class:`~pagecheck.errors.ElementNotReady` for transient failures.
    """

    def resolve_selector(self, query: SelectorQuery, scope: "Node") -> ResultSet: ...

    def resolve_match(self, query: MatchQuery, scope: "Node") -> ResultSet: ...

    def resolve_text(self, query: TextQuery, scope: "Node") -> int: ...


def apply_filter_block(query: SelectorQuery, candidates: list[Any]) -> list[Any]:
    if query.filter_block is None:
        return candidates
    return [candidate for candidate in candidates if query.filter_block(candidate)]
