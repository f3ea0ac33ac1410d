"""JSONL event log of matcher verifications."""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional

log = logging.getLogger(__name__)


class VerificationLog:
    """Writes one JSON line per assertion or predicate evaluation."""

    def __init__(self, path: Path, *, run_id: str = "") -> None:
        self.path = path
        self.run_id = run_id
        self._sequence = 0
        self._events_file = path.open("a", encoding="utf-8")

    @property
    def sequence(self) -> int:
        return self._sequence

    def record(
        self,
        *,
        check: str,
        query: Dict[str, Any],
        passed: bool,
        attempts: int,
        elapsed: float,
        message: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> int:
        self._sequence += 1
        payload = {
            "ts": time.time(),
            "run_id": self.run_id,
            "seq": self._sequence,
            "check": check,
            "query": query,
            "passed": passed,
            "attempts": attempts,
            "elapsed": round(elapsed, 4),
            "message": message,
            "metadata": metadata or {},
        }
        self._events_file.write(json.dumps(payload, ensure_ascii=False, default=repr) + "\n")
        self._events_file.flush()
        return self._sequence

    def close(self) -> None:
        try:
            self._events_file.close()
        except OSError as exc:
            log.warning("Failed to close verification log %s: %s", self.path, exc)

    def __enter__(self) -> "VerificationLog":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def prepare_log_path(base_dir: Path, file_name: str = "verifications.jsonl") -> Path:
    base_dir.mkdir(parents=True, exist_ok=True)
    return base_dir / file_name
