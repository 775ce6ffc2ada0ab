from __future__ import annotations

import threading
import time
import uuid
from typing import Any, Callable

from .config import get_session_config
from .models import SessionState

_DEFAULT_TTL = get_session_config().ttl_seconds


class SessionStore:
    """
    In-memory session states keyed by an opaque id kept in the session cookie.

    Entries idle for longer than ``ttl`` seconds are dropped and recreated
    fresh on next access. States are copied in and out so that callers never
    share a mutable object with the store.
    """

    def __init__(self, ttl: float = _DEFAULT_TTL) -> None:
        self.ttl = ttl
        self._entries: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def new_id() -> str:
        return uuid.uuid4().hex

    def _evict_expired(self, now: float) -> None:
        expired = [k for k, e in self._entries.items() if now - e["touched_at"] >= self.ttl]
        for key in expired:
            del self._entries[key]

    def get(self, session_id: str) -> SessionState:
        with self._lock:
            now = time.time()
            self._evict_expired(now)
            entry = self._entries.get(session_id)
            if entry is None:
                entry = {"state": SessionState(), "touched_at": now}
                self._entries[session_id] = entry
            entry["touched_at"] = now
            return entry["state"].model_copy(deep=True)

    def update(
        self,
        session_id: str,
        fn: Callable[[SessionState], SessionState | None],
    ) -> SessionState:
        """Apply ``fn`` to the stored state atomically and return the result."""
        with self._lock:
            now = time.time()
            self._evict_expired(now)
            entry = self._entries.get(session_id)
            if entry is None:
                entry = {"state": SessionState(), "touched_at": now}
            state = entry["state"].model_copy(deep=True)
            result = fn(state)
            if result is not None:
                state = result
            self._entries[session_id] = {"state": state, "touched_at": now}
            return state.model_copy(deep=True)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


_store = SessionStore()


def get_session_store() -> SessionStore:
    return _store
