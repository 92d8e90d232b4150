"""Key-value substrate shared by the conversation log, record store and
notification composer.

Design decisions
────────────────
• Two operations matter to callers: a **point write** (``set``) and a
  **prefix query** (``get_by_prefix``).  ``get`` exists for point reads.
• Keys are opaque strings partitioned by prefix, e.g.
  ``conversation:<session>:<ts>`` or ``crm:<type>:<ts>``.  The prefix is the
  only sharding strategy; there are no secondary indexes.
• No deletion, TTL or transactions.  Every write in this project is a fresh
  key, so there is no read-modify-write to protect.
• Backend failures are raised as :class:`StoreError`.

Usage
─────
>>> store = InMemoryKVStore()
>>> store.set("crm:appointment:1700000000000", {"customerName": "Alice"})
>>> store.get_by_prefix("crm:appointment:")
[{'customerName': 'Alice'}]
"""

from __future__ import annotations

import copy
import logging
import threading
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the underlying storage backend fails."""


class KVStore(Protocol):
    """Storage interface: point write, point read, prefix scan."""

    def set(self, key: str, value: Any) -> None: ...

    def get(self, key: str) -> Any | None: ...

    def get_by_prefix(self, prefix: str) -> list[Any]: ...


class InMemoryKVStore:
    """Thread-safe in-process key-value store.

    Values are deep-copied on the way in and out so a caller mutating a
    returned dict can never alter what is stored.  Data is lost on process
    restart; use :class:`~receptionist.services.sql_store.SQLAlchemyKVStore`
    for durability.
    """

    def __init__(self) -> None:
        self._store: dict[str, Any] = {}
        self._lock = threading.Lock()

    def set(self, key: str, value: Any) -> None:
        """Insert or overwrite *key*."""
        with self._lock:
            self._store[key] = copy.deepcopy(value)
        logger.debug("KV: set %s", key)

    def get(self, key: str) -> Any | None:
        """Return the value for *key* or ``None``."""
        with self._lock:
            if key not in self._store:
                return None
            return copy.deepcopy(self._store[key])

    def get_by_prefix(self, prefix: str) -> list[Any]:
        """Return every value whose key starts with *prefix* (unordered)."""
        with self._lock:
            values = [v for k, v in self._store.items() if k.startswith(prefix)]
            return copy.deepcopy(values)
