"""Registry of named selector kinds and the options each one understands."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Iterator


@dataclass(slots=True, frozen=True)
class SelectorKind:
    name: str
    label: str
    option_keys: FrozenSet[str] = field(default_factory=frozenset)
    description: str | None = None

    def to_metadata(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "label": self.label,
            "options": sorted(self.option_keys),
            "description": self.description or "",
        }


class SelectorKindRegistry:
    """Known selector kinds, keyed by the tag callers pass as the first argument."""

    def __init__(self) -> None:
        self._kinds: Dict[str, SelectorKind] = {}

    def register(
        self,
        name: str,
        *,
        label: str | None = None,
        options: Iterable[str] = (),
        description: str | None = None,
    ) -> SelectorKind:
        kind = SelectorKind(
            name=name,
            label=label or name.replace("_", " "),
            option_keys=frozenset(options),
            description=description,
        )
        self._kinds[name] = kind
        return kind

    def get(self, name: str) -> SelectorKind:
        try:
            return self._kinds[name]
        except KeyError as exc:
            raise KeyError(f"Unknown selector kind '{name}'") from exc

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name in self._kinds

    def __iter__(self) -> Iterator[SelectorKind]:
        return iter(self._kinds.values())

    def schema(self) -> Dict[str, Any]:
        return {name: kind.to_metadata() for name, kind in self._kinds.items()}


selector_kinds = SelectorKindRegistry()

selector_kinds.register("css", description="Raw CSS selector")
selector_kinds.register("xpath", description="Raw XPath expression")
selector_kinds.register("id", description="Element id attribute")
selector_kinds.register("link", options=("href",), description="Anchor by id, text, title or image alt")
selector_kinds.register("button", options=("type", "disabled"), description="Button or submit input")
selector_kinds.register("link_or_button", label="link or button", options=("disabled",))
selector_kinds.register(
    "field",
    options=("with", "type", "checked", "unchecked", "disabled"),
    description="Form field by label, id, name or placeholder",
)
selector_kinds.register("fillable_field", label="fillable field", options=("with", "type", "disabled"))
selector_kinds.register("checkbox", options=("checked", "unchecked", "disabled"))
selector_kinds.register("radio_button", label="radio button", options=("checked", "unchecked", "disabled"))
selector_kinds.register(
    "select",
    options=("selected", "options", "with_options", "disabled", "multiple"),
    description="Select box by label, id or name",
)
selector_kinds.register("option")
selector_kinds.register("table", description="Table by id or caption")
selector_kinds.register("label")
selector_kinds.register("fieldset")
