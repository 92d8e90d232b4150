"""Append-only per-session conversation log.

Each turn is stored under ``conversation:<sessionId>:<ms>``.  The two turns
of one exchange (customer input, then AI response) always get distinct,
strictly increasing stamps, so replay order is deterministic even when both
writes happen inside the same millisecond.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import Any

from receptionist.services.kv_store import KVStore
from receptionist.services.timestamps import MonotonicClock, to_iso

logger = logging.getLogger(__name__)

_PREFIX = "conversation:"


class TurnKind(str, Enum):
    CUSTOMER_INPUT = "customer_input"
    AI_RESPONSE = "ai_response"


class ConversationLog:
    """Session-partitioned turn log on top of a :class:`KVStore`."""

    def __init__(self, store: KVStore, *, clock: Callable[[], int] | None = None) -> None:
        self._store = store
        self._clock = MonotonicClock(clock)

    @staticmethod
    def _session_prefix(session_id: str) -> str:
        if not session_id or ":" in session_id:
            raise ValueError(f"Invalid session id: {session_id!r}")
        return f"{_PREFIX}{session_id}:"

    def append(
        self,
        session_id: str,
        kind: TurnKind,
        message: str,
        **extra: Any,
    ) -> dict[str, Any]:
        """Write one turn and return it.

        ``extra`` carries kind-specific fields (``customerInfo`` on customer
        turns, ``action``/``formData`` on AI turns).  Raises
        :class:`~receptionist.services.kv_store.StoreError` if the write fails
        and ``ValueError`` for an empty session id or one containing ``:``.
        """
        prefix = self._session_prefix(session_id)
        ms = self._clock.next()
        turn = {
            **extra,
            "sessionId": session_id,
            "message": message,
            "timestamp": to_iso(ms),
            "type": TurnKind(kind).value,
        }
        self._store.set(f"{prefix}{ms}", turn)
        logger.debug("Logged %s turn for session %s", turn["type"], session_id)
        return turn

    def list_by_session(self, session_id: str) -> list[dict[str, Any]]:
        """Return every turn of *session_id*, oldest first (fresh snapshot)."""
        turns = self._store.get_by_prefix(self._session_prefix(session_id))
        return sorted(turns, key=lambda t: t["timestamp"])
