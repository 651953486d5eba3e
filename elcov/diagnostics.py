"""Bounded log of recent warnings and errors, passed explicitly to components."""

from __future__ import annotations

import logging
import time
from collections import deque
from typing import Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class Diagnostic(BaseModel):
    code: str
    message: str
    operation: str = ""
    source: Optional[str] = None
    timestamp: str = ""


class DiagnosticsLog:
    """Keeps the last ``capacity`` diagnostics of a coverage session."""

    def __init__(self, capacity: int = 100):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._entries: deque[Diagnostic] = deque(maxlen=capacity)
        self._total = 0

    def record(
        self,
        code: str,
        message: str,
        operation: str = "",
        source: str | None = None,
    ) -> Diagnostic:
        entry = Diagnostic(
            code=code,
            message=message,
            operation=operation,
            source=source,
            timestamp=time.strftime("%Y-%m-%dT%H:%M:%SZ"),
        )
        self._entries.append(entry)
        self._total += 1
        logger.warning("%s: %s", code, message)
        return entry

    def recent(self, n: int | None = None) -> list[Diagnostic]:
        entries = list(self._entries)
        if n is None:
            return entries
        return entries[-n:] if n > 0 else []

    @property
    def warnings(self) -> list[str]:
        return [e.message for e in self._entries]

    @property
    def total_recorded(self) -> int:
        """Count of every diagnostic ever recorded, including evicted ones."""
        return self._total

    def clear(self) -> None:
        self._entries.clear()
        self._total = 0

    def __len__(self) -> int:
        return len(self._entries)
