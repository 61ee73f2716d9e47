"""In-memory record of clips and fragments dropped while reviewing an archive."""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Deque, Mapping


@dataclass(slots=True)
class DiagnosticEntry:
    """Represents one exclusion or degradation noticed during processing."""

    timestamp: float
    category: str
    event: str
    message: str
    metadata: dict[str, object] | None = None

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "timestamp": self.timestamp,
            "category": self.category,
            "event": self.event,
            "message": self.message,
        }
        if self.metadata:
            payload["metadata"] = self.metadata
        return payload


class DiagnosticLog:
    """Bounded log shared by the parser and the duration estimator."""

    def __init__(self, *, max_entries: int = 500) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self._entries: Deque[DiagnosticEntry] = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def record(
        self,
        category: str,
        event: str,
        message: str,
        *,
        metadata: Mapping[str, object | None] | None = None,
    ) -> DiagnosticEntry:
        details = {key: value for key, value in (metadata or {}).items() if value is not None}
        entry = DiagnosticEntry(
            timestamp=time.time(),
            category=category.strip() or "general",
            event=event,
            message=message,
            metadata=details or None,
        )
        with self._lock:
            self._entries.append(entry)
        return entry

    def tail(
        self,
        limit: int | None = None,
        *,
        category: str | None = None,
        event: str | None = None,
    ) -> list[DiagnosticEntry]:
        """Return the most recent matching entries, oldest first."""

        with self._lock:
            snapshot = list(self._entries)
        matches = [
            entry
            for entry in snapshot
            if (category is None or entry.category == category)
            and (event is None or entry.event == event)
        ]
        if limit is not None:
            matches = matches[-max(1, limit):]
        return matches

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


__all__ = ["DiagnosticEntry", "DiagnosticLog"]
