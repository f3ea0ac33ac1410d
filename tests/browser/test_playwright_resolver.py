import re

import pytest
from playwright.sync_api import Error as PlaywrightError

from pagecheck import Document, ElementNotReady, ExpectationNotMet, PollingRetryEvaluator, ResolverFault, SessionOptions
from pagecheck.browser import PlaywrightResolver, document_for, same_dom_node, translate_errors
from pagecheck.browser.playwright_resolver import (
    FIELD_CSS,
    FILLABLE_CSS,
    MULTIPLE_SCRIPT,
    OPTION_TEXTS_SCRIPT,
    SAME_NODE_SCRIPT,
    SELECTED_TEXTS_SCRIPT,
)
from pagecheck.query import build_selector_query
from pagecheck.query.registry import SelectorKindRegistry


class FakeElement:
    """Single-element stand-in for a Playwright ``Locator``."""

    def __init__(self, text="", *, visible=True, checked=False, disabled=False, attrs=None, value="",
                 options=(), selected=(), multiple=False):
        self.text = text
        self.visible = visible
        self.checked = checked
        self.disabled = disabled
        self.attrs = attrs or {}
        self.value = value
        self.options = list(options)
        self.selected = list(selected)
        self.multiple = multiple

    def is_visible(self):
        return self.visible

    def is_checked(self):
        if self.attrs.get("type") not in ("checkbox", "radio") and self.attrs.get("role") not in ("checkbox", "radio"):
            raise PlaywrightError("Error: Not a checkbox or radio button")
        return self.checked

    def is_disabled(self):
        return self.disabled

    def get_attribute(self, name):
        return self.attrs.get(name)

    def input_value(self):
        return self.value

    def inner_text(self):
        return self.text if self.visible else ""

    def text_content(self):
        return self.text

    def element_handle(self):
        return self

    def evaluate(self, script, arg=None):
        if script == SAME_NODE_SCRIPT:
            return self is arg
        if script == OPTION_TEXTS_SCRIPT:
            return self.options
        if script == SELECTED_TEXTS_SCRIPT:
            return self.selected
        if script == MULTIPLE_SCRIPT:
            return self.multiple
        raise AssertionError(f"unexpected script {script!r}")


class FakeLocator:
    def __init__(self, elements):
        self.elements = list(elements)

    def count(self):
        return len(self.elements)

    def nth(self, index):
        return self.elements[index]

    def filter(self, has_text=None):
        if isinstance(has_text, re.Pattern):
            return FakeLocator(e for e in self.elements if has_text.search(e.text_content()))
        return FakeLocator(e for e in self.elements if has_text in e.text_content())

    def or_(self, other):
        return FakeLocator(self.elements + [e for e in other.elements if not any(e is mine for mine in self.elements)])

    def and_(self, other):
        return FakeLocator(e for e in self.elements if any(e is theirs for theirs in other.elements))


_ATTRIBUTE = re.compile(r'\[(\w+)="([^"]*)"\]')


class FakePage:
    def __init__(self, *, selectors=None, roles=None, labels=None, body=""):
        self.main_frame = object()
        self.selectors = selectors or {}
        self.roles = roles or {}
        self.labels = labels or {}
        self.body = FakeElement(body)
        self.role_calls = []

    def _all_elements(self):
        seen = []
        for group in (*self.selectors.values(), *self.roles.values(), *self.labels.values()):
            seen.extend(e for e in group if not any(e is known for known in seen))
        return seen

    def locator(self, selector):
        if selector == "body":
            return self.body
        if selector in self.selectors:
            return FakeLocator(self.selectors[selector])
        attributes = _ATTRIBUTE.findall(selector)
        if attributes:
            return FakeLocator(
                e for e in self._all_elements() if any(e.attrs.get(name) == value for name, value in attributes)
            )
        return FakeLocator([])

    def get_by_label(self, text, exact=False):
        return FakeLocator(self.labels.get(text, []))

    def get_by_role(self, role, name=None, exact=False):
        self.role_calls.append((role, name, exact))
        return FakeLocator(e for e in self.roles.get(role, []) if name is None or e.text == name)


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.now += seconds


def _document(page, **session):
    clock = FakeClock()
    return document_for(
        page,
        session=SessionOptions(default_max_wait_time=0, **session),
        retry_evaluator=PollingRetryEvaluator(interval=0.1, clock=clock, sleep=clock.sleep),
    )


@pytest.mark.parametrize(
    "message, expected",
    [
        ("Element is not attached to the DOM", ElementNotReady),
        ("Execution context was destroyed, most likely because of a navigation", ElementNotReady),
        ("Unexpected token in selector", ResolverFault),
    ],
)
def test_translate_errors(message, expected):
    with pytest.raises(expected) as exc_info:
        with translate_errors():
            raise PlaywrightError(message)
    assert type(exc_info.value) is expected
    assert exc_info.value.details["error"] == message


def test_hidden_elements_are_skipped_by_default():
    page = FakePage(selectors={"li": [FakeElement("a"), FakeElement("b", visible=False), FakeElement("c")]})
    document = _document(page)
    assert document.has_css("li", count=2)
    assert document.has_css("li", count=3, visible=False)
    assert document.has_css("li", count=1, visible="hidden")
    assert _document(page, ignore_hidden_elements=False).has_css("li", count=3)


def test_failure_message_lists_element_summaries():
    page = FakePage(selectors={"li": [FakeElement("Horse"), FakeElement("Cow")]})
    with pytest.raises(ExpectationNotMet) as exc_info:
        _document(page).assert_selector("li", count=3)
    assert str(exc_info.value) == 'expected to find css "li" exactly 3 times but found 2 matches: "Horse", "Cow"'


def test_text_and_exact_text_filters():
    page = FakePage(selectors={"li": [FakeElement("Horse"), FakeElement("Horse shoe"), FakeElement("Cow")]})
    document = _document(page)
    assert document.has_css("li", text="Horse", count=2)
    assert document.has_css("li", exact_text="Horse", count=1)
    assert document.has_css("li", text=re.compile("^C"), count=1)


def test_role_kinds_and_state_options():
    roles = {
        "link": [FakeElement("Home", attrs={"href": "/"}), FakeElement("About", attrs={"href": "/about"})],
        "button": [FakeElement("Save", disabled=True)],
        "checkbox": [
            FakeElement("Agree", checked=True, attrs={"type": "checkbox"}),
            FakeElement("Spam", attrs={"type": "checkbox"}),
        ],
    }
    page = FakePage(roles=roles)
    document = _document(page)
    assert document.has_link("Home", href="/")
    assert not document.has_link("Home", href="/about")
    assert document.has_link(href=re.compile("about"))
    assert document.has_button("Save", disabled=True)
    assert document.has_selector("checkbox", None, checked=True, count=1)
    assert document.has_selector("checkbox", "Spam", unchecked=True)
    assert ("link", "Home", False) in page.role_calls


def test_select_options():
    select = FakeElement("Japan", options=["Japan", "Chile"], selected=["Japan"], multiple=False)
    page = FakePage(selectors={"select": [select]})
    document = _document(page)
    assert document.has_selector("select", None, selected="Japan")
    assert document.has_selector("select", None, options=["Japan", "Chile"])
    assert document.has_selector("select", None, with_options=["Chile"])
    assert not document.has_selector("select", None, with_options=["Peru"])
    assert not document.has_selector("select", None, multiple=True)


def test_membership_compares_dom_nodes():
    active = FakeElement("two")
    page = FakePage(selectors={"li": [FakeElement("one"), active], "li.active": [active]})
    document = _document(page)
    node = document.child(active)
    assert node.matches_css("li.active")
    assert not document.child(FakeElement("one")).matches_css("li.active")
    assert same_dom_node(active, active)


def test_text_reads_visible_or_all_body_text():
    page = FakePage(body="Hello   World")
    document = _document(page)
    assert document.has_text("Hello World")
    assert document.has_text("all", "Hello World", count=1)
    page.body.visible = False
    assert not document.has_text("Hello")
    assert document.has_text("all", "Hello")


def test_unknown_kind_without_builder_is_a_resolver_fault():
    kinds = SelectorKindRegistry()
    kinds.register("frame")
    query = build_selector_query(("frame", "main"), {}, session=SessionOptions(), kinds=kinds)
    document = _document(FakePage())
    with pytest.raises(ResolverFault):
        PlaywrightResolver().resolve_selector(query, document)


def test_custom_builders_extend_the_defaults():
    page = FakePage(selectors={"[data-test=save]": [FakeElement("Save")]})
    resolver = PlaywrightResolver(builders={"css": lambda root, query: root.locator(f"[data-test={query.locator}]")})
    document = Document(page, resolver=resolver, session=SessionOptions(default_max_wait_time=0))
    assert document.has_css("save")
    assert "xpath" in resolver.builders


def _form_page():
    email = FakeElement("", attrs={"type": "email", "id": "email"}, value="jo@example.com")
    search = FakeElement("", attrs={"type": "text", "placeholder": "Search"})
    terms = FakeElement("", checked=True, attrs={"type": "checkbox", "name": "terms"})
    country = FakeElement("Japan", options=["Japan", "Chile"], selected=["Japan"])
    return FakePage(
        selectors={
            FIELD_CSS: [email, search, terms, country],
            FILLABLE_CSS: [email, search],
            "select": [country],
        },
        labels={"Email": [email], "Terms": [terms], "Country": [country]},
    )


def test_labelled_fields_match_value_and_type():
    document = _document(_form_page())
    assert document.has_field("Email", with_="jo@example.com", type="email")
    assert not document.has_field("Email", type="text")
    assert not document.has_field("Email", **{"with": "someone@else"})
    assert document.has_field("Search")
    assert document.has_selector("fillable_field", "Email")
    assert not document.has_selector("fillable_field", "Country")


def test_labelled_select():
    document = _document(_form_page())
    assert document.has_select("Country", selected="Japan", with_options=["Chile"])
    assert not document.has_select("Country", selected="Chile")
    assert document.has_no_select("Email")


def test_checked_filters_skip_elements_that_cannot_be_checked():
    document = _document(_form_page())
    assert document.has_checked_field()
    assert document.has_checked_field("Terms")
    assert document.has_checked_field("terms", count=1)
    assert not document.has_checked_field("Email")
    assert not document.has_unchecked_field()
    assert document.has_no_unchecked_field("Email")


def test_lone_kind_selects_every_element_of_that_kind():
    roles = {"link": [FakeElement("Home", attrs={"href": "/"}), FakeElement("About", attrs={"href": "/about"})]}
    page = FakePage(roles=roles)
    document = _document(page)
    assert document.has_selector("link", count=2)
    assert ("link", None, False) in page.role_calls
