"""Typed query models built by the matchers for a single verification."""

from __future__ import annotations

import re
from typing import Any, Callable, ClassVar, Dict, Literal, Optional, Pattern, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .count import CountConstraint

Visibility = Literal["all", "visible", "hidden"]
TextType = Literal["all", "visible"]
Needle = Union[str, Pattern[str]]

_WHITESPACE = re.compile(r"\s+")


def normalize_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def _coerce_needle(value: Any) -> Any:
    if value is None or isinstance(value, (str, re.Pattern)):
        return value
    return str(value)


def _describe_needle(value: Needle) -> str:
    if isinstance(value, re.Pattern):
        return f"/{value.pattern}/"
    return f'"{value}"'


def _jsonable(value: Any) -> Any:
    if isinstance(value, re.Pattern):
        return {"pattern": value.pattern}
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


class QueryBase(BaseModel):
    """Fields shared by every query variant."""

    model_config = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)

    __query_name__: ClassVar[str]

    wait: float = Field(ge=0)
    count: CountConstraint = Field(default_factory=CountConstraint)

    def expects_none(self) -> bool:
        return self.count.expects_none()

    def matches_count(self, n: int) -> bool:
        return self.count.satisfied_by(n)

    def payload(self) -> Dict[str, Any]:
        data = self.model_dump(exclude={"filter_block"}, exclude_none=True)
        data["query"] = self.__query_name__
        return _jsonable(data)


class SelectorQuery(QueryBase):
    """Find elements of a selector kind below a scope."""

    __query_name__ = "selector"

    kind: str
    kind_label: str = ""
    locator: Any = None
    options: Dict[str, Any] = Field(default_factory=dict)
    text: Optional[Any] = None
    exact_text: Union[bool, str] = False
    visible: Visibility = "visible"
    exact: bool = False
    filter_block: Optional[Callable[[Any], bool]] = Field(default=None, exclude=True, repr=False)

    @field_validator("visible", mode="before")
    @classmethod
    def _coerce_visible(cls, value: Any) -> Any:
        if value is True:
            return "visible"
        if value is False:
            return "all"
        return value

    @field_validator("text", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _coerce_needle(value)

    def description(self) -> str:
        parts = [self.kind_label or self.kind]
        if self.locator is not None:
            parts.append(_describe_needle(str(self.locator)))
        desc = " ".join(parts)
        if self.text is not None:
            desc += f" with text {_describe_needle(self.text)}"
        if isinstance(self.exact_text, str):
            desc += f" with exact text {_describe_needle(self.exact_text)}"
        for key, value in sorted(self.options.items()):
            desc += f" with {key} {value!r}"
        if self.visible == "hidden":
            desc += " that is not visible"
        if self.filter_block is not None:
            desc += " that also matches the filter block"
        return desc


class MatchQuery(SelectorQuery):
    """Check whether a held node is among the elements a selector finds."""

    __query_name__ = "match"

    visible: Visibility = "all"

    @model_validator(mode="after")
    def _reject_counts(self) -> "MatchQuery":
        if self.count.is_specified:
            raise ValueError("count options are not supported when matching a single node")
        return self


class TextQuery(QueryBase):
    """Count occurrences of text inside a scope."""

    __query_name__ = "text"

    text_type: TextType = "visible"
    expected: Any
    exact: bool = False

    @field_validator("expected", mode="before")
    @classmethod
    def _coerce_expected(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("text to look for is required")
        return _coerce_needle(value)

    @property
    def is_pattern(self) -> bool:
        return isinstance(self.expected, re.Pattern)

    @property
    def needle(self) -> Needle:
        if self.is_pattern:
            return self.expected
        return normalize_whitespace(self.expected)

    def search_pattern(self) -> Pattern[str]:
        if self.is_pattern:
            return self.expected
        escaped = re.escape(self.needle)
        if self.exact:
            return re.compile(rf"\A{escaped}\Z")
        return re.compile(escaped)

    def count_occurrences(self, haystack: str) -> int:
        text = normalize_whitespace(haystack or "")
        return sum(1 for _ in self.search_pattern().finditer(text))

    def description(self) -> str:
        kind = "exact text" if self.exact and not self.is_pattern else "text"
        return f"{kind} {_describe_needle(self.needle)}"
