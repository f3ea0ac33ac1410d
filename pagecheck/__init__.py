"""Retrying assertions and predicates for UI tests.

Checks such as ``assert_selector``/``has_selector`` or ``assert_text`` keep
re-resolving their query against a document that may still be changing until
the expectation holds or the wait budget runs out.
"""

from .config import SessionOptions, load_config
from .errors import ConfigurationError, ElementNotReady, ExpectationNotMet, PagecheckError, ResolverFault
from .matchers import Matchers, Verdict
from .node import Document, Node
from .query import (
    CountConstraint,
    MatchQuery,
    SelectorQuery,
    TextQuery,
    build_match_query,
    build_selector_query,
    build_text_query,
    selector_kinds,
    with_options,
)
from .resolver import Resolver
from .results import ElementResult, Outcome, ResultSet, TextResult
from .retry import Budget, PollingRetryEvaluator, RetryEvaluator
from .structured_logging import VerificationLog, prepare_log_path

__version__ = "0.1.0"

__all__ = [
    "Budget",
    "ConfigurationError",
    "CountConstraint",
    "Document",
    "ElementNotReady",
    "ElementResult",
    "ExpectationNotMet",
    "MatchQuery",
    "Matchers",
    "Node",
    "Outcome",
    "PagecheckError",
    "PollingRetryEvaluator",
    "Resolver",
    "ResolverFault",
    "ResultSet",
    "RetryEvaluator",
    "SelectorQuery",
    "SessionOptions",
    "TextQuery",
    "TextResult",
    "Verdict",
    "VerificationLog",
    "build_match_query",
    "build_selector_query",
    "build_text_query",
    "load_config",
    "prepare_log_path",
    "selector_kinds",
    "with_options",
]
