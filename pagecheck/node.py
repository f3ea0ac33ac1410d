"""Scopes the matchers run against: a whole document or a resolved node."""

from __future__ import annotations

from typing import Any, Optional

from .config import SessionOptions
from .matchers import Matchers
from .resolver import Resolver
from .retry import PollingRetryEvaluator, RetryEvaluator
from .structured_logging import VerificationLog

_MISSING = object()


class Node(Matchers):
    """A handle from the resolver together with everything a check needs.

    Children inherit the parent's resolver, session, evaluator and event log,
    so the session defaults are fixed once when the document is created.
    """

    def __init__(
        self,
        handle: Any,
        *,
        resolver: Optional[Resolver] = None,
        session: Optional[SessionOptions] = None,
        retry_evaluator: Optional[RetryEvaluator] = None,
        parent: Optional["Node"] = None,
        event_log: Optional[VerificationLog] = None,
    ) -> None:
        if resolver is None:
            if parent is None:
                raise ValueError("a root node needs a resolver")
            resolver = parent.resolver
        if session is None:
            session = parent.session if parent is not None else SessionOptions()
        if retry_evaluator is None:
            if parent is not None:
                retry_evaluator = parent.retry_evaluator
            else:
                retry_evaluator = PollingRetryEvaluator(interval=session.retry_interval)
        if event_log is None and parent is not None:
            event_log = parent.event_log

        self.handle = handle
        self.resolver = resolver
        self.session = session
        self.retry_evaluator = retry_evaluator
        self.parent = parent
        self.event_log = event_log

    @property
    def query_scope(self) -> "Node":
        return self.parent if self.parent is not None else self

    def child(self, handle: Any) -> "Node":
        return Node(handle, parent=self)

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        other_handle = getattr(other, "handle", _MISSING)
        if other_handle is _MISSING:
            return NotImplemented
        return self.handle == other_handle

    def __hash__(self) -> int:
        try:
            return hash(self.handle)
        except TypeError:
            return id(self.handle)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.handle!r})"


class Document(Node):
    """Root scope; match queries against it resolve from the document itself."""

    def __init__(
        self,
        handle: Any,
        *,
        resolver: Resolver,
        session: Optional[SessionOptions] = None,
        retry_evaluator: Optional[RetryEvaluator] = None,
        event_log: Optional[VerificationLog] = None,
    ) -> None:
        super().__init__(
            handle,
            resolver=resolver,
            session=session,
            retry_evaluator=retry_evaluator,
            event_log=event_log,
        )
