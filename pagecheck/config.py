"""Session defaults for queries built by the matchers."""

from __future__ import annotations

import dataclasses
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict


DEFAULTS: Dict[str, Any] = {
    "default_selector": "css",
    "default_max_wait_time": 2.0,
    "exact": False,
    "exact_text": False,
    "ignore_hidden_elements": True,
    "retry_interval": 0.05,
}

ENV_PREFIX = "PAGECHECK_"


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"true", "1", "yes", "on"}


@dataclass(slots=True, frozen=True)
class SessionOptions:
    default_selector: str = DEFAULTS["default_selector"]
    default_max_wait_time: float = DEFAULTS["default_max_wait_time"]
    exact: bool = DEFAULTS["exact"]
    exact_text: bool = DEFAULTS["exact_text"]
    ignore_hidden_elements: bool = DEFAULTS["ignore_hidden_elements"]
    retry_interval: float = DEFAULTS["retry_interval"]

    @classmethod
    def from_mapping(cls, mapping: Dict[str, Any]) -> "SessionOptions":
        data = dict(DEFAULTS)
        data.update({k: v for k, v in mapping.items() if k in DEFAULTS})
        return cls(
            default_selector=str(data["default_selector"]),
            default_max_wait_time=float(data["default_max_wait_time"]),
            exact=_as_bool(data["exact"]),
            exact_text=_as_bool(data["exact_text"]),
            ignore_hidden_elements=_as_bool(data["ignore_hidden_elements"]),
            retry_interval=float(data["retry_interval"]),
        )

    def replace(self, **overrides: Any) -> "SessionOptions":
        return dataclasses.replace(self, **overrides)

    @property
    def default_visibility(self) -> str:
        return "visible" if self.ignore_hidden_elements else "all"


def _load_toml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("rb") as fh:
        return tomllib.load(fh)


def load_config(config_path: Path | None = None) -> SessionOptions:
    """Load session options from environment, optional TOML file, and defaults."""

    env_map: Dict[str, Any] = {}
    for key, value in os.environ.items():
        if key.startswith(ENV_PREFIX):
            env_map[key[len(ENV_PREFIX):].lower()] = value

    path = config_path or Path("pagecheck.toml")
    file_map = _load_toml(path).get("pagecheck", {})

    merged = {**file_map, **env_map}
    return SessionOptions.from_mapping(merged)
