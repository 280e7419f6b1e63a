from __future__ import annotations

import time
from threading import Lock
from typing import Any

from app.chat.contracts import ChatMessage, ConversationContext, PendingAction


def _now() -> float:
    return time.time()


class SessionStore:
    """
    In-memory chat sessions: one ConversationContext plus an append-only
    message history per session id. Idle sessions expire after ttl_seconds
    and are swept at most once per cleanup_interval.
    """

    def __init__(
        self,
        *,
        ttl_seconds: int = 1200,
        max_history: int = 200,
        cleanup_interval: int = 60,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_history = max_history
        self.cleanup_interval = cleanup_interval
        self._store: dict[str, dict[str, Any]] = {}
        self._lock = Lock()
        self._last_cleanup = 0.0

    def _get(self, session_id: str) -> dict[str, Any] | None:
        state = self._store.get(session_id)
        if not state:
            return None
        expires_at = state.get("expires_at")
        if expires_at is not None and expires_at <= _now():
            self._store.pop(session_id, None)
            return None
        return state

    def _evict_expired(self, now: float) -> None:
        for key, state in list(self._store.items()):
            expires_at = state.get("expires_at")
            if expires_at is not None and expires_at <= now:
                self._store.pop(key, None)
        self._last_cleanup = now

    def _touch(self, session_id: str) -> dict[str, Any]:
        now = _now()
        if now - self._last_cleanup >= self.cleanup_interval:
            self._evict_expired(now)
        state = self._get(session_id)
        if state is None:
            state = {"context": ConversationContext(), "history": []}
            self._store[session_id] = state
        state["updated_at"] = now
        state["expires_at"] = now + self.ttl_seconds
        return state

    def get_context(self, session_id: str) -> ConversationContext:
        """
        Copy of the session context; persist changes with save_context.
        """
        with self._lock:
            return self._touch(session_id)["context"].model_copy(deep=True)

    def save_context(
        self,
        session_id: str,
        context: ConversationContext,
        *,
        keep_pending: bool = False,
    ) -> None:
        """
        With keep_pending the stored pending action survives, whatever the
        copy being saved holds.
        """
        with self._lock:
            state = self._touch(session_id)
            if keep_pending:
                current = state["context"]
                context.pending_action = current.pending_action
                context.pending_payments = current.pending_payments
            state["context"] = context

    def take_pending(self, session_id: str) -> PendingAction | None:
        """
        Remove and return the pending action. Only one caller ever gets it.
        """
        with self._lock:
            context = self._touch(session_id)["context"]
            pending = context.pending_action
            context.pending_action = None
            context.pending_payments = []
            return pending

    def append(self, session_id: str, message: ChatMessage) -> None:
        with self._lock:
            history = self._touch(session_id)["history"]
            history.append(message)
            if len(history) > self.max_history:
                del history[: len(history) - self.max_history]

    def history(self, session_id: str) -> list[ChatMessage]:
        with self._lock:
            state = self._get(session_id)
            return list(state["history"]) if state else []

    def clear(self, session_id: str) -> None:
        with self._lock:
            self._store.pop(session_id, None)

    def session_ids(self) -> list[str]:
        with self._lock:
            return [key for key in list(self._store) if self._get(key) is not None]

    def cleanup(self) -> None:
        with self._lock:
            self._evict_expired(_now())
