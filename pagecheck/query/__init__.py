"""Query models and the builders that produce them."""

from .builder import build_match_query, build_selector_query, build_text_query, with_options
from .count import COUNT_KEYS, CountConstraint
from .models import MatchQuery, QueryBase, SelectorQuery, TextQuery, normalize_whitespace
from .registry import SelectorKind, SelectorKindRegistry, selector_kinds

__all__ = [
    "COUNT_KEYS",
    "CountConstraint",
    "MatchQuery",
    "QueryBase",
    "SelectorKind",
    "SelectorKindRegistry",
    "SelectorQuery",
    "TextQuery",
    "build_match_query",
    "build_selector_query",
    "build_text_query",
    "normalize_whitespace",
    "selector_kinds",
    "with_options",
]
