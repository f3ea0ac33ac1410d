"""Assertion and predicate matchers mixed into documents and nodes.

Every check comes in an assertion form that raises
:class:`~pagecheck.errors.ExpectationNotMet` and a predicate form that turns
that one error into ``False``. Both forms share a single retrying
evaluation; nothing else in a call blocks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional, Sequence, Tuple

from .errors import ExpectationNotMet
from .query.builder import (
    build_match_query,
    build_selector_query,
    build_text_query,
    with_options,
)
from .query.models import QueryBase
from .query.registry import selector_kinds
from .results import Outcome, ResultSet, TextResult
from .retry import Budget

if TYPE_CHECKING:  # pragma: no cover
    from .config import SessionOptions
    from .resolver import Resolver
    from .retry import RetryEvaluator
    from .structured_logging import VerificationLog

log = logging.getLogger(__name__)

FilterBlock = Optional[Callable[[Any], bool]]

MISMATCH_MESSAGE = "Item does not match the provided selector"
UNEXPECTED_MATCH_MESSAGE = "Item matched the provided selector"


@dataclass(slots=True, frozen=True)
class Verdict:
    """Result of one retried evaluation, before it is raised or returned."""

    check: str
    passed: bool
    outcome: Outcome
    message: str = ""


def _found(result: ResultSet, query: QueryBase) -> bool:
    return result.matches_count() and (len(result) > 0 or query.expects_none())


def _inverts(query: QueryBase, negate: bool) -> bool:
    # A negated check that expects none asks for exactly what the positive one does.
    return negate and not query.expects_none()


class Matchers:
    """Mixin providing ``assert_*``/``has_*``/``matches_*`` checks.

    Hosts provide ``resolver``, ``session``, ``retry_evaluator``,
    ``query_scope`` and optionally ``event_log``.
    """

    resolver: "Resolver"
    session: "SessionOptions"
    retry_evaluator: "RetryEvaluator"
    event_log: Optional["VerificationLog"] = None

    @property
    def query_scope(self) -> "Matchers":  # pragma: no cover - overridden by Node
        return self

    # ------------------------------------------------------------------
    # evaluation core
    # ------------------------------------------------------------------
    def _evaluate(
        self,
        check: str,
        query: QueryBase,
        resolve: Callable[[], ResultSet],
        accept: Callable[[ResultSet], bool],
        failure: Callable[[ResultSet], str],
    ) -> Verdict:
        def step() -> Outcome:
            result = resolve()
            return Outcome(result=result, satisfied=accept(result))

        started = self.retry_evaluator.clock()
        outcome = self.retry_evaluator.retry(query.wait, step)
        elapsed = self.retry_evaluator.clock() - started
        message = "" if outcome.satisfied else failure(outcome.result)
        verdict = Verdict(check=check, passed=outcome.satisfied, outcome=outcome, message=message)

        log.debug("%s %s after %d attempt(s)", check, "passed" if verdict.passed else "failed", outcome.attempt)
        if self.event_log is not None:
            self.event_log.record(
                check=check,
                query=query.payload(),
                passed=verdict.passed,
                attempts=outcome.attempt,
                elapsed=elapsed,
                message=message or None,
            )
        return verdict

    @staticmethod
    def _expect(verdict: Verdict) -> bool:
        if not verdict.passed:
            raise ExpectationNotMet(
                verdict.message,
                details={"check": verdict.check, "attempts": verdict.outcome.attempt},
            )
        return True

    @staticmethod
    def _predicate(assertion: Callable[..., bool], *args: Any, **kwargs: Any) -> bool:
        try:
            return assertion(*args, **kwargs)
        except ExpectationNotMet:
            return False

    def _verify_count(
        self, check: str, query: QueryBase, resolve: Callable[[], ResultSet], *, negate: bool
    ) -> Verdict:
        if _inverts(query, negate):
            return self._evaluate(
                check,
                query,
                resolve,
                lambda result: not _found(result, query),
                lambda result: result.negative_failure_message(),
            )
        return self._evaluate(
            check,
            query,
            resolve,
            lambda result: _found(result, query),
            lambda result: result.failure_message(),
        )

    def _verify_selector(
        self, check: str, args: Sequence[Any], options: dict, filter_block: FilterBlock, *, negate: bool
    ) -> Verdict:
        query = build_selector_query(args, options, session=self.session, filter_block=filter_block)
        return self._verify_count(check, query, lambda: self.resolver.resolve_selector(query, self), negate=negate)

    def _verify_match(
        self, check: str, args: Sequence[Any], options: dict, filter_block: FilterBlock, *, negate: bool
    ) -> Verdict:
        query = build_match_query(args, options, session=self.session, filter_block=filter_block)
        scope = self.query_scope
        return self._evaluate(
            check,
            query,
            lambda: self.resolver.resolve_match(query, scope),
            lambda result: (self in result) != negate,
            lambda result: UNEXPECTED_MATCH_MESSAGE if negate else MISMATCH_MESSAGE,
        )

    def _verify_text(self, check: str, args: Sequence[Any], options: dict, *, negate: bool) -> Verdict:
        query = build_text_query(args, options, session=self.session)
        return self._verify_count(
            check,
            query,
            lambda: TextResult(query=query, count=self.resolver.resolve_text(query, self)),
            negate=negate,
        )

    def _split_aggregate_args(self, args: Sequence[Any]) -> Tuple[str, Sequence[Any]]:
        if args and args[0] in selector_kinds:
            # a lone kind stands for every element of that kind
            return args[0], args[1:] or (None,)
        return self.session.default_selector, args

    def _aggregate_budget(self, wait: Any) -> Budget:
        if wait is None or wait is True:
            total = self.session.default_max_wait_time
        elif wait is False:
            total = 0.0
        else:
            total = float(wait)
        return Budget(total, self.retry_evaluator.clock)

    # ------------------------------------------------------------------
    # selector existence
    # ------------------------------------------------------------------
    def assert_selector(self, *args: Any, filter_block: FilterBlock = None, **options: Any) -> bool:
        """Assert that the selector matches below this scope.

        Without count options at least one match is required. ``count=0``
        behaves like :meth:`assert_no_selector`.

            page.assert_selector("p#foo")
            page.assert_selector("xpath", './/p[@id="foo"]')
            page.assert_selector("li", text="Horse", count=4)
        """

        return self._expect(self._verify_selector("assert_selector", args, options, filter_block, negate=False))

    def assert_no_selector(self, *args: Any, filter_block: FilterBlock = None, **options: Any) -> bool:
        """Assert that the selector does not match below this scope.

        Count options are part of the selector: ``assert_no_selector("a",
        minimum=1)`` raises when four anchors exist, ``count=5`` does not.
        """

        return self._expect(self._verify_selector("assert_no_selector", args, options, filter_block, negate=True))

    refute_selector = assert_no_selector

    def has_selector(self, *args: Any, filter_block: FilterBlock = None, **options: Any) -> bool:
        return self._predicate(self.assert_selector, *args, filter_block=filter_block, **options)

    def has_no_selector(self, *args: Any, filter_block: FilterBlock = None, **options: Any) -> bool:
        return self._predicate(self.assert_no_selector, *args, filter_block=filter_block, **options)

    def assert_all_of_selectors(
        self, *args: Any, wait: Any = None, filter_block: FilterBlock = None, **options: Any
    ) -> bool:
        """Assert every locator is present, sharing one wait budget.

        The first positional is taken as the selector kind when it names a
        registered kind. Locators are checked in order and each one only gets
        the time the previous ones left over.
        """

        kind, locators = self._split_aggregate_args(args)
        budget = self._aggregate_budget(wait)
        for locator in locators:
            self.assert_selector(kind, locator, filter_block=filter_block, wait=budget.remaining(), **options)
        return True

    def assert_none_of_selectors(
        self, *args: Any, wait: Any = None, filter_block: FilterBlock = None, **options: Any
    ) -> bool:
        """Assert no locator is present, sharing one wait budget."""

        kind, locators = self._split_aggregate_args(args)
        budget = self._aggregate_budget(wait)
        for locator in locators:
            self.assert_no_selector(kind, locator, filter_block=filter_block, wait=budget.remaining(), **options)
        return True

    # ------------------------------------------------------------------
    # membership
    # ------------------------------------------------------------------
    def assert_matches_selector(self, *args: Any, filter_block: FilterBlock = None, **options: Any) -> bool:
        """Assert that this node is one of the elements the selector finds."""

        return self._expect(self._verify_match("assert_matches_selector", args, options, filter_block, negate=False))

    def assert_not_matches_selector(self, *args: Any, filter_block: FilterBlock = None, **options: Any) -> bool:
        return self._expect(
            self._verify_match("assert_not_matches_selector", args, options, filter_block, negate=True)
        )

    refute_matches_selector = assert_not_matches_selector

    def matches_selector(self, *args: Any, filter_block: FilterBlock = None, **options: Any) -> bool:
        return self._predicate(self.assert_matches_selector, *args, filter_block=filter_block, **options)

    def not_matches_selector(self, *args: Any, filter_block: FilterBlock = None, **options: Any) -> bool:
        return self._predicate(self.assert_not_matches_selector, *args, filter_block=filter_block, **options)

    def matches_xpath(self, xpath: Any, *, filter_block: FilterBlock = None, **options: Any) -> bool:
        return self.matches_selector("xpath", xpath, filter_block=filter_block, **options)

    def matches_css(self, css: Any, *, filter_block: FilterBlock = None, **options: Any) -> bool:
        return self.matches_selector("css", css, filter_block=filter_block, **options)

    def not_matches_xpath(self, xpath: Any, *, filter_block: FilterBlock = None, **options: Any) -> bool:
        return self.not_matches_selector("xpath", xpath, filter_block=filter_block, **options)

    def not_matches_css(self, css: Any, *, filter_block: FilterBlock = None, **options: Any) -> bool:
        return self.not_matches_selector("css", css, filter_block=filter_block, **options)

    # ------------------------------------------------------------------
    # convenience selectors
    # ------------------------------------------------------------------
    def has_xpath(self, path: Any, *, filter_block: FilterBlock = None, **options: Any) -> bool:
        return self.has_selector("xpath", path, filter_block=filter_block, **options)

    def has_no_xpath(self, path: Any, *, filter_block: FilterBlock = None, **options: Any) -> bool:
        return self.has_no_selector("xpath", path, filter_block=filter_block, **options)

    def has_css(self, path: Any, *, filter_block: FilterBlock = None, **options: Any) -> bool:
        return self.has_selector("css", path, filter_block=filter_block, **options)

    def has_no_css(self, path: Any, *, filter_block: FilterBlock = None, **options: Any) -> bool:
        return self.has_no_selector("css", path, filter_block=filter_block, **options)

    def has_link(self, locator: Any = None, *, filter_block: FilterBlock = None, **options: Any) -> bool:
        """Check for a link by id, text or title; ``href`` narrows the match."""

        return self.has_selector("link", locator, filter_block=filter_block, **options)

    def has_no_link(self, locator: Any = None, *, filter_block: FilterBlock = None, **options: Any) -> bool:
        return self.has_no_selector("link", locator, filter_block=filter_block, **options)

    def has_button(self, locator: Any = None, *, filter_block: FilterBlock = None, **options: Any) -> bool:
        return self.has_selector("button", locator, filter_block=filter_block, **options)

    def has_no_button(self, locator: Any = None, *, filter_block: FilterBlock = None, **options: Any) -> bool:
        return self.has_no_selector("button", locator, filter_block=filter_block, **options)

    def has_field(self, locator: Any = None, *, filter_block: FilterBlock = None, **options: Any) -> bool:
        """Check for a form field by label, name, id or placeholder.

        ``with_`` (or ``**{"with": ...}``) checks the current value and
        ``type`` the input type.
        """

        return self.has_selector("field", locator, filter_block=filter_block, **options)

    def has_no_field(self, locator: Any = None, *, filter_block: FilterBlock = None, **options: Any) -> bool:
        return self.has_no_selector("field", locator, filter_block=filter_block, **options)

    def has_checked_field(self, locator: Any = None, *, filter_block: FilterBlock = None, **options: Any) -> bool:
        return self.has_selector("field", locator, filter_block=filter_block, **with_options(options, checked=True))

    def has_no_checked_field(self, locator: Any = None, *, filter_block: FilterBlock = None, **options: Any) -> bool:
        return self.has_no_selector(
            "field", locator, filter_block=filter_block, **with_options(options, checked=True)
        )

    def has_unchecked_field(self, locator: Any = None, *, filter_block: FilterBlock = None, **options: Any) -> bool:
        return self.has_selector("field", locator, filter_block=filter_block, **with_options(options, unchecked=True))

    def has_no_unchecked_field(
        self, locator: Any = None, *, filter_block: FilterBlock = None, **options: Any
    ) -> bool:
        return self.has_no_selector(
            "field", locator, filter_block=filter_block, **with_options(options, unchecked=True)
        )

    def has_select(self, locator: Any = None, *, filter_block: FilterBlock = None, **options: Any) -> bool:
        """Check for a select box; ``selected``, ``options`` and ``with_options`` narrow it."""

        return self.has_selector("select", locator, filter_block=filter_block, **options)

    def has_no_select(self, locator: Any = None, *, filter_block: FilterBlock = None, **options: Any) -> bool:
        return self.has_no_selector("select", locator, filter_block=filter_block, **options)

    def has_table(self, locator: Any = None, *, filter_block: FilterBlock = None, **options: Any) -> bool:
        return self.has_selector("table", locator, filter_block=filter_block, **options)

    def has_no_table(self, locator: Any = None, *, filter_block: FilterBlock = None, **options: Any) -> bool:
        return self.has_no_selector("table", locator, filter_block=filter_block, **options)

    # ------------------------------------------------------------------
    # text
    # ------------------------------------------------------------------
    def assert_text(self, *args: Any, **options: Any) -> bool:
        """Assert the scope's text contains ``text``.

        Accepts ``(text)`` or ``(text_type, text)`` where ``text_type`` is
        ``"all"`` or ``"visible"``. Whitespace is collapsed in the page text
        and in literal needles; compiled patterns are used unchanged.
        """

        return self._expect(self._verify_text("assert_text", args, options, negate=False))

    def assert_no_text(self, *args: Any, **options: Any) -> bool:
        return self._expect(self._verify_text("assert_no_text", args, options, negate=True))

    def has_text(self, *args: Any, **options: Any) -> bool:
        return self._predicate(self.assert_text, *args, **options)

    has_content = has_text

    def has_no_text(self, *args: Any, **options: Any) -> bool:
        return self._predicate(self.assert_no_text, *args, **options)

    has_no_content = has_no_text

