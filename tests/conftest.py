"""Pytest configuration and shared fakes for the matcher tests."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest

_ROOT = Path(__file__).resolve().parents[1]
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from pagecheck import Document, ElementResult, PollingRetryEvaluator, SessionOptions  # noqa: E402
from pagecheck.resolver import apply_filter_block  # noqa: E402


class FakeClock:
    """Monotonic clock that only moves when something sleeps."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += max(0.0, seconds)


class FakeResolver:
    """Serves scheduled snapshots of a changing document.

    ``show(kind, locator, elements, at=t)`` makes the query for
    ``(kind, locator)`` return ``elements`` from time ``t`` on. Every call is
    recorded so tests can assert on the number of resolution attempts.
    """

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.calls: List[Tuple[str, Any]] = []
        self._elements: Dict[Tuple[str, Any], List[Tuple[float, List[Any]]]] = {}
        self._texts: List[Tuple[float, str]] = []
        self.errors: List[BaseException] = []

    def show(self, kind: str, locator: Any, elements: List[Any], *, at: float = 0.0) -> None:
        self._elements.setdefault((kind, locator), []).append((at, list(elements)))

    def show_text(self, text: str, *, at: float = 0.0) -> None:
        self._texts.append((at, text))

    def _current(self, timeline: List[Tuple[float, Any]], default: Any) -> Any:
        value = default
        for at, item in sorted(timeline, key=lambda entry: entry[0]):
            if at <= self.clock():
                value = item
        return value

    def _raise_pending(self) -> None:
        if self.errors:
            raise self.errors.pop(0)

    def resolve_selector(self, query, scope) -> ElementResult:
        self.calls.append(("selector", query))
        self._raise_pending()
        elements = self._current(self._elements.get((query.kind, query.locator), []), [])
        return ElementResult(query=query, elements=apply_filter_block(query, elements))

    def resolve_match(self, query, scope) -> ElementResult:
        self.calls.append(("match", query))
        self._raise_pending()
        elements = self._current(self._elements.get((query.kind, query.locator), []), [])
        return ElementResult(query=query, elements=apply_filter_block(query, elements))

    def resolve_text(self, query, scope) -> int:
        self.calls.append(("text", query))
        self._raise_pending()
        return query.count_occurrences(self._current(self._texts, ""))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def resolver(clock: FakeClock) -> FakeResolver:
    return FakeResolver(clock)


@pytest.fixture
def session() -> SessionOptions:
    return SessionOptions(default_max_wait_time=1.0, retry_interval=0.25)


@pytest.fixture
def evaluator(clock: FakeClock) -> PollingRetryEvaluator:
    return PollingRetryEvaluator(interval=0.25, clock=clock, sleep=clock.sleep)


@pytest.fixture
def document(resolver: FakeResolver, session: SessionOptions, evaluator: PollingRetryEvaluator) -> Document:
    return Document("document", resolver=resolver, session=session, retry_evaluator=evaluator)


@pytest.fixture
def make_document(resolver: FakeResolver, session: SessionOptions, evaluator: PollingRetryEvaluator):
    """Build a document with session overrides and an optional event log."""

    def build(event_log: Optional[Any] = None, **overrides: Any) -> Document:
        return Document(
            "document",
            resolver=resolver,
            session=session.replace(**overrides),
            retry_evaluator=evaluator,
            event_log=event_log,
        )

    return build
