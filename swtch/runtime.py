from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from threading import Lock
from typing import Any


def utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class RuntimeState:
    """In-memory counters for the status API. Not persisted."""

    def __init__(self) -> None:
        self.lock = Lock()
        self.started_at = utc_now()
        self.events_seen = 0
        self.outcomes: Counter[str] = Counter()
        self.skipped = 0
        self.last_error: str | None = None
        self.fatal_error: str | None = None

    def mark_event(self) -> None:
        with self.lock:
            self.events_seen += 1

    def mark_outcome(self, outcome: str) -> None:
        with self.lock:
            self.outcomes[outcome] += 1

    def mark_skipped(self, container_id: str, err: BaseException) -> None:
        with self.lock:
            self.skipped += 1
            self.last_error = f"{container_id}: {type(err).__name__}: {err}"

    def mark_fatal(self, err: BaseException) -> None:
        with self.lock:
            self.fatal_error = f"{type(err).__name__}: {err}"
            self.last_error = self.fatal_error

    @property
    def healthy(self) -> bool:
        with self.lock:
            return self.fatal_error is None

    def snapshot(self) -> dict[str, Any]:
        with self.lock:
            return {
                "started_at": self.started_at,
                "events_seen": self.events_seen,
                "outcomes": dict(self.outcomes),
                "skipped": self.skipped,
                "last_error": self.last_error,
                "fatal_error": self.fatal_error,
            }
