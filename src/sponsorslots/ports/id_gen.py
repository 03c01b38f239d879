"""Port: ID generation strategies."""

from __future__ import annotations

import threading
import uuid
from typing import Protocol, runtime_checkable


@runtime_checkable
class IdProvider(Protocol):
    """Generate a unique identifier for a new campaign or sponsor entry."""

    def new_id(self, kind: str) -> str: ...


# ---------------------------------------------------------------------------
# Default implementations (pure stdlib, no infra deps)
# ---------------------------------------------------------------------------


class UuidIdProvider:
    """Uses uuid4, prefixed with the record kind (e.g. 'entry-...')."""

    def new_id(self, kind: str) -> str:
        return f"{kind}-{uuid.uuid4().hex}"


class SequentialIdProvider:
    """Predictable ids ('entry-1', 'entry-2', ...) for fixtures and demos."""

    def __init__(self) -> None:
        self._counters: dict[str, int] = {}
        self._lock = threading.Lock()

    def new_id(self, kind: str) -> str:
        with self._lock:
            self._counters[kind] = self._counters.get(kind, 0) + 1
            return f"{kind}-{self._counters[kind]}"
