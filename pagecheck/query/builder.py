"""Turn matcher call arguments into exactly one typed query."""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple, Type, cast

from pydantic import ValidationError

from ..config import SessionOptions
from ..errors import ConfigurationError
from .count import COUNT_KEYS
from .models import MatchQuery, SelectorQuery, TextQuery
from .registry import SelectorKindRegistry, selector_kinds

SELECTOR_KEYS = frozenset(COUNT_KEYS + ("text", "exact_text", "visible", "exact", "wait"))
TEXT_KEYS = frozenset(COUNT_KEYS + ("exact", "wait"))
TEXT_TYPES = ("all", "visible")

# Keyword spellings accepted for options whose real name is a Python keyword.
OPTION_ALIASES = {"with_": "with"}


def with_options(base: Mapping[str, Any], **extra: Any) -> Dict[str, Any]:
    """Return a copy of ``base`` updated with ``extra``."""

    merged = dict(base)
    merged.update(extra)
    return merged


def _normalize_keys(options: Mapping[str, Any]) -> Dict[str, Any]:
    normalized: Dict[str, Any] = {}
    for key, value in options.items():
        name = OPTION_ALIASES.get(key, key)
        if name in normalized:
            raise ConfigurationError(
                f"option '{name}' was given more than once",
                details={"option": name},
            )
        normalized[name] = value
    return normalized


def _check_keys(options: Mapping[str, Any], valid: frozenset) -> None:
    unknown = sorted(set(options) - valid)
    if unknown:
        raise ConfigurationError(
            "invalid keys {bad}, should be one of {good}".format(
                bad=", ".join(unknown), good=", ".join(sorted(valid))
            ),
            details={"invalid": unknown, "valid": sorted(valid)},
        )


def _resolve_wait(value: Any, session: SessionOptions) -> float:
    if value is None or value is True:
        return session.default_max_wait_time
    if value is False:
        return 0.0
    return value


def split_selector_args(
    args: Sequence[Any],
    session: SessionOptions,
    kinds: SelectorKindRegistry = selector_kinds,
) -> Tuple[str, Any]:
    """Split positionals into ``(kind, locator)``.

    ``()`` uses the session's default kind. A lone positional naming a
    registered kind selects every element of that kind; any other lone
    positional is a locator of the default kind. With two positionals the
    first must name a registered kind.
    """

    if len(args) == 0:
        return session.default_selector, None
    if len(args) == 1:
        if args[0] in kinds:
            return args[0], None
        return session.default_selector, args[0]
    if len(args) == 2:
        kind, locator = args
        if kind not in kinds:
            raise ConfigurationError(
                f"unknown selector kind {kind!r}",
                details={"kind": kind, "known": sorted(k.name for k in kinds)},
            )
        return kind, locator
    raise ConfigurationError(
        f"expected at most a selector kind and a locator, got {len(args)} positional arguments",
        details={"args": list(args)},
    )


def build_selector_query(
    args: Sequence[Any],
    options: Mapping[str, Any],
    *,
    session: SessionOptions,
    filter_block: Optional[Callable[[Any], bool]] = None,
    kinds: SelectorKindRegistry = selector_kinds,
    query_cls: Type[SelectorQuery] = SelectorQuery,
) -> SelectorQuery:
    kind_name, locator = split_selector_args(args, session, kinds)
    try:
        kind = kinds.get(kind_name)
    except KeyError as exc:
        raise ConfigurationError(str(exc.args[0]), details={"kind": kind_name}) from exc

    opts = _normalize_keys(options)
    _check_keys(opts, SELECTOR_KEYS | kind.option_keys)

    fields: Dict[str, Any] = {}
    if "visible" in opts:
        fields["visible"] = opts["visible"]
    elif not issubclass(query_cls, MatchQuery):
        # match queries consider hidden elements unless told otherwise
        fields["visible"] = session.default_visibility

    try:
        return query_cls(
            kind=kind.name,
            kind_label=kind.label,
            locator=locator,
            options={key: value for key, value in opts.items() if key in kind.option_keys},
            text=opts.get("text"),
            exact_text=opts.get("exact_text", False),
            exact=opts.get("exact", session.exact),
            wait=_resolve_wait(opts.get("wait"), session),
            count={key: opts[key] for key in COUNT_KEYS if opts.get(key) is not None},
            filter_block=filter_block,
            **fields,
        )
    except ValidationError as exc:
        raise ConfigurationError(
            f"invalid {query_cls.__query_name__} query: {exc}",
            details={"errors": exc.errors(include_url=False, include_context=False)},
        ) from exc


def build_match_query(
    args: Sequence[Any],
    options: Mapping[str, Any],
    *,
    session: SessionOptions,
    filter_block: Optional[Callable[[Any], bool]] = None,
    kinds: SelectorKindRegistry = selector_kinds,
) -> MatchQuery:
    query = build_selector_query(
        args,
        options,
        session=session,
        filter_block=filter_block,
        kinds=kinds,
        query_cls=MatchQuery,
    )
    return cast(MatchQuery, query)


def build_text_query(args: Sequence[Any], options: Mapping[str, Any], *, session: SessionOptions) -> TextQuery:
    if len(args) == 1:
        text_type, expected = None, args[0]
    elif len(args) == 2:
        text_type, expected = args
        if text_type is not None and text_type not in TEXT_TYPES:
            raise ConfigurationError(
                f"text type must be one of {', '.join(TEXT_TYPES)}, got {text_type!r}",
                details={"text_type": text_type},
            )
    else:
        raise ConfigurationError(
            f"expected the text to look for and an optional text type, got {len(args)} positional arguments",
            details={"args": list(args)},
        )

    opts = dict(options)
    _check_keys(opts, TEXT_KEYS)

    try:
        return TextQuery(
            text_type=text_type or session.default_visibility,
            expected=expected,
            exact=opts.get("exact", session.exact_text),
            wait=_resolve_wait(opts.get("wait"), session),
            count={key: opts[key] for key in COUNT_KEYS if opts.get(key) is not None},
        )
    except ValidationError as exc:
        raise ConfigurationError(
            f"invalid text query: {exc}",
            details={"errors": exc.errors(include_url=False, include_context=False)},
        ) from exc
