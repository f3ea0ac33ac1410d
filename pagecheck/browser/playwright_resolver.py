"""Resolve pagecheck queries with Playwright's synchronous API."""

from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional

from playwright.sync_api import Error as PlaywrightError, Locator, Page

from ..config import SessionOptions, load_config
from ..errors import ElementNotReady, ResolverFault
from ..node import Document, Node
from ..query.models import MatchQuery, SelectorQuery, TextQuery
from ..resolver import apply_filter_block
from ..results import ElementResult
from ..retry import RetryEvaluator
from ..structured_logging import VerificationLog

log = logging.getLogger(__name__)

MAX_SUMMARIES = 10
TEXT_SUMMARY_LENGTH = 80

_TRANSIENT_MARKERS = (
    "not attached",
    "detached",
    "execution context was destroyed",
    "navigating and changing",
    "page is navigating",
)

FIELD_CSS = "input:not([type='hidden']), textarea, select"
FILLABLE_CSS = (
    "input:not([type='hidden']):not([type='checkbox']):not([type='radio'])"
    ":not([type='submit']):not([type='image']):not([type='file']), textarea"
)

SAME_NODE_SCRIPT = "(el, other) => el === other"
SELECTED_TEXTS_SCRIPT = "el => Array.from(el.selectedOptions || []).map(o => o.text.trim())"
OPTION_TEXTS_SCRIPT = "el => Array.from(el.options || []).map(o => o.text.trim())"
MULTIPLE_SCRIPT = "el => !!el.multiple"

CHECKABLE_TYPES = frozenset({"checkbox", "radio"})
CHECKABLE_ROLES = frozenset({"checkbox", "radio", "switch", "menuitemcheckbox", "menuitemradio"})


@contextmanager
def translate_errors() -> Iterator[None]:
    """Map Playwright errors onto the pagecheck error taxonomy."""

    try:
        yield
    except PlaywrightError as exc:
        message = str(exc)
        if any(marker in message.lower() for marker in _TRANSIENT_MARKERS):
            raise ElementNotReady(message, details={"error": message}) from exc
        raise ResolverFault(message, details={"error": message}) from exc


def _is_page(handle: Any) -> bool:
    return isinstance(handle, Page) or hasattr(handle, "main_frame")


def _attr_selector(name: str, value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'[{name}="{escaped}"]'


def _matches(expected: Any, actual: Optional[str]) -> bool:
    if actual is None:
        return False
    if isinstance(expected, re.Pattern):
        return expected.search(actual) is not None
    return actual == str(expected)


def _is_checkable(handle: Any) -> bool:
    input_type = (handle.get_attribute("type") or "").lower()
    role = (handle.get_attribute("role") or "").lower()
    return input_type in CHECKABLE_TYPES or role in CHECKABLE_ROLES


def same_dom_node(candidate: Any, node: Any) -> bool:
    if candidate is node:
        return True
    left = getattr(candidate, "handle", candidate)
    right = getattr(node, "handle", node)
    if left is right:
        return True
    if not hasattr(left, "evaluate") or not hasattr(right, "element_handle"):
        return left == right
    with translate_errors():
        return bool(left.evaluate(SAME_NODE_SCRIPT, right.element_handle()))


# ----------------------------------------------------------------------
# kind -> locator builders
# ----------------------------------------------------------------------
def _by_role(role: str) -> Callable[[Any, SelectorQuery], Locator]:
    def build(root: Any, query: SelectorQuery) -> Locator:
        if query.locator is None:
            return root.get_by_role(role)
        return root.get_by_role(role, name=str(query.locator), exact=query.exact)

    return build


def _by_label(css: str) -> Callable[[Any, SelectorQuery], Locator]:
    def build(root: Any, query: SelectorQuery) -> Locator:
        base = root.locator(css)
        if query.locator is None:
            return base
        name = str(query.locator)
        by_attribute = root.locator(
            ", ".join(_attr_selector(attr, name) for attr in ("id", "name", "placeholder"))
        )
        return root.get_by_label(name, exact=query.exact).or_(by_attribute).and_(base)

    return build


def _css(root: Any, query: SelectorQuery) -> Locator:
    return root.locator(str(query.locator))


def _xpath(root: Any, query: SelectorQuery) -> Locator:
    return root.locator(f"xpath={query.locator}")


def _id(root: Any, query: SelectorQuery) -> Locator:
    return root.locator(f"id={query.locator}")


def _link_or_button(root: Any, query: SelectorQuery) -> Locator:
    return _by_role("link")(root, query).or_(_by_role("button")(root, query))


def _label(root: Any, query: SelectorQuery) -> Locator:
    labels = root.locator("label")
    if query.locator is None:
        return labels
    return labels.filter(has_text=str(query.locator))


LOCATOR_BUILDERS: Dict[str, Callable[[Any, SelectorQuery], Locator]] = {
    "css": _css,
    "xpath": _xpath,
    "id": _id,
    "link": _by_role("link"),
    "button": _by_role("button"),
    "link_or_button": _link_or_button,
    "field": _by_label(FIELD_CSS),
    "fillable_field": _by_label(FILLABLE_CSS),
    "checkbox": _by_role("checkbox"),
    "radio_button": _by_role("radio"),
    "select": _by_label("select"),
    "option": _by_role("option"),
    "table": _by_role("table"),
    "label": _label,
    "fieldset": _by_role("group"),
}


class PlaywrightResolver:
    """Resolver backed by a Playwright ``Page`` or ``Locator`` scope.

    Every call issues fresh locator queries; no element state is cached
    between attempts.
    """

    def __init__(self, builders: Optional[Dict[str, Callable[[Any, SelectorQuery], Locator]]] = None) -> None:
        self.builders = dict(LOCATOR_BUILDERS)
        if builders:
            self.builders.update(builders)

    def resolve_selector(self, query: SelectorQuery, scope: Node) -> ElementResult:
        with translate_errors():
            return self._resolve(query, scope)

    def resolve_match(self, query: MatchQuery, scope: Node) -> ElementResult:
        with translate_errors():
            return self._resolve(query, scope)

    def resolve_text(self, query: TextQuery, scope: Node) -> int:
        root = scope.handle
        target = root.locator("body") if _is_page(root) else root
        with translate_errors():
            if query.text_type == "visible":
                raw = target.inner_text()
            else:
                raw = target.text_content() or ""
        return query.count_occurrences(raw)

    # ------------------------------------------------------------------
    def _locate(self, query: SelectorQuery, root: Any) -> Locator:
        try:
            builder = self.builders[query.kind]
        except KeyError as exc:
            raise ResolverFault(
                f"No Playwright locator strategy for selector kind '{query.kind}'",
                details={"kind": query.kind},
            ) from exc
        locator = builder(root, query)
        if query.text is not None:
            locator = locator.filter(has_text=query.text)
        if isinstance(query.exact_text, str):
            locator = locator.filter(has_text=re.compile(rf"^\s*{re.escape(query.exact_text)}\s*$"))
        return locator

    def _resolve(self, query: SelectorQuery, scope: Node) -> ElementResult:
        locator = self._locate(query, scope.handle)
        total = locator.count()
        candidates = [scope.child(locator.nth(index)) for index in range(total)]
        kept = [node for node in candidates if self._keep(query, node.handle)]
        kept = apply_filter_block(query, kept)
        log.debug("%s resolved to %d of %d candidate(s)", query.description(), len(kept), total)
        return ElementResult(
            query=query,
            elements=kept,
            summaries=[self._summary(node.handle) for node in kept[:MAX_SUMMARIES]],
            same=same_dom_node,
        )

    def _keep(self, query: SelectorQuery, handle: Locator) -> bool:
        if query.visible == "visible" and not handle.is_visible():
            return False
        if query.visible == "hidden" and handle.is_visible():
            return False

        options = query.options
        if "checked" in options or "unchecked" in options:
            # is_checked raises on anything that is not a checkbox or radio
            if not _is_checkable(handle):
                return False
            checked = handle.is_checked()
            if "checked" in options and checked != bool(options["checked"]):
                return False
            if "unchecked" in options and checked == bool(options["unchecked"]):
                return False
        if "disabled" in options and handle.is_disabled() != bool(options["disabled"]):
            return False
        if "href" in options and not _matches(options["href"], handle.get_attribute("href")):
            return False
        if "type" in options and not _matches(options["type"], handle.get_attribute("type")):
            return False
        if "with" in options and not _matches(options["with"], handle.input_value()):
            return False
        if "multiple" in options and bool(handle.evaluate(MULTIPLE_SCRIPT)) != bool(options["multiple"]):
            return False
        if "selected" in options and not self._selected_matches(options["selected"], handle):
            return False
        if "options" in options and handle.evaluate(OPTION_TEXTS_SCRIPT) != list(options["options"]):
            return False
        if "with_options" in options:
            available = set(handle.evaluate(OPTION_TEXTS_SCRIPT))
            if not set(options["with_options"]) <= available:
                return False
        return True

    @staticmethod
    def _selected_matches(expected: Any, handle: Locator) -> bool:
        selected: List[str] = handle.evaluate(SELECTED_TEXTS_SCRIPT)
        if isinstance(expected, (list, tuple, set)):
            return sorted(selected) == sorted(expected)
        return str(expected) in selected

    @staticmethod
    def _summary(handle: Locator) -> str:
        text = (handle.inner_text() or "").strip()
        return text[:TEXT_SUMMARY_LENGTH]


def document_for(
    page: Page,
    *,
    session: Optional[SessionOptions] = None,
    retry_evaluator: Optional[RetryEvaluator] = None,
    event_log: Optional[VerificationLog] = None,
) -> Document:
    """Wrap a Playwright page in a :class:`~pagecheck.node.Document`."""

    return Document(
        page,
        resolver=PlaywrightResolver(),
        session=session or load_config(),
        retry_evaluator=retry_evaluator,
        event_log=event_log,
    )
