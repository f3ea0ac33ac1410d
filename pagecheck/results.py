"""Result sets produced by resolvers and the per-attempt outcome snapshot."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, List, Protocol, runtime_checkable

from .query.models import QueryBase, SelectorQuery, TextQuery


@runtime_checkable
class ResultSet(Protocol):
    """What the matchers need from a resolved query."""

    def __len__(self) -> int: ...

    def __contains__(self, node: object) -> bool: ...

    def matches_count(self) -> bool: ...

    def failure_message(self) -> str: ...

    def negative_failure_message(self) -> str: ...


def same_element(candidate: Any, node: Any) -> bool:
    """Compare two elements by their underlying handle when they have one."""

    if candidate is node:
        return True
    return getattr(candidate, "handle", candidate) == getattr(node, "handle", node)


def _expectation(query: QueryBase) -> str:
    phrase = query.count.describe()
    return f"{query.description()} {phrase}" if phrase else query.description()


@dataclass(slots=True)
class ElementResult:
    """Elements a selector or match query found in one resolution attempt."""

    query: SelectorQuery
    elements: List[Any] = field(default_factory=list)
    summaries: List[str] = field(default_factory=list)
    same: Callable[[Any, Any], bool] = same_element

    def __len__(self) -> int:
        return len(self.elements)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.elements)

    def __contains__(self, node: object) -> bool:
        return any(self.same(element, node) for element in self.elements)

    def matches_count(self) -> bool:
        return self.query.matches_count(len(self.elements))

    def _found(self) -> str:
        total = len(self.elements)
        if total == 0:
            return "there were no matches"
        found = f"found {total} {'match' if total == 1 else 'matches'}"
        if self.summaries:
            found += ": " + ", ".join(f'"{summary}"' for summary in self.summaries)
        return found

    def failure_message(self) -> str:
        return f"expected to find {_expectation(self.query)} but {self._found()}"

    def negative_failure_message(self) -> str:
        return f"expected not to find {_expectation(self.query)}, but {self._found()}"


@dataclass(slots=True, frozen=True)
class TextResult:
    """Occurrence count of a text query in one resolution attempt."""

    query: TextQuery
    count: int

    def __len__(self) -> int:
        return self.count

    def __contains__(self, node: object) -> bool:
        return False

    def matches_count(self) -> bool:
        return self.query.matches_count(self.count)

    def _found(self) -> str:
        if self.count == 0:
            return "it was not found"
        return f"found it {'1 time' if self.count == 1 else f'{self.count} times'}"

    def failure_message(self) -> str:
        return f"expected to find {_expectation(self.query)} but {self._found()}"

    def negative_failure_message(self) -> str:
        return f"expected not to find {_expectation(self.query)}, but {self._found()}"


@dataclass(slots=True, frozen=True)
class Outcome:
    """Snapshot of one resolution attempt.

    ``satisfied`` is direction aware: for negated checks it is true when the
    query did *not* match.
    """

    result: Any
    satisfied: bool
    attempt: int = 1
