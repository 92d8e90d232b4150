"""Type-partitioned CRM record store.

Records live under ``crm:<type>:<ms>`` and the key doubles as the record id.
Appointment bookings additionally write an export-shaped copy under
``sheets:appointments:<ms>`` (the spreadsheet integration reads that
namespace; it is a second write, not a derived view).

Ids stay unique per store instance because :class:`MonotonicClock` never
hands out the same millisecond twice.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from receptionist.services.kv_store import KVStore
from receptionist.services.timestamps import MonotonicClock, to_iso

logger = logging.getLogger(__name__)

RECORD_SOURCE = "ai_receptionist"
DEFAULT_RECORD_TYPE = "appointment"
DEFAULT_LIST_LIMIT = 10


class RecordStore:
    """Write-once business records partitioned by ``type``."""

    def __init__(self, store: KVStore, *, clock: Callable[[], int] | None = None) -> None:
        self._store = store
        self._clock = MonotonicClock(clock)

    def create(self, fields: dict[str, Any]) -> str:
        """Persist a new record and return its id.

        ``fields`` is the submitted payload (``type``, customer details and
        any type-specific fields).  ``status`` defaults to ``"active"``.
        """
        record_type = fields.get("type") or DEFAULT_RECORD_TYPE
        ms = self._clock.next()
        record_id = f"crm:{record_type}:{ms}"
        created_at = to_iso(ms)

        record = {
            **fields,
            "type": record_type,
            "id": record_id,
            "createdAt": created_at,
            "source": RECORD_SOURCE,
            "status": fields.get("status") or "active",
        }
        self._store.set(record_id, record)

        if record_type == DEFAULT_RECORD_TYPE:
            self._store.set(f"sheets:appointments:{ms}", _sheets_row(record))

        logger.info("Record stored: %s", record_id)
        return record_id

    def list_by_type(
        self, record_type: str, limit: int = DEFAULT_LIST_LIMIT,
    ) -> tuple[list[dict[str, Any]], int]:
        """Return ``(newest records first, total count)`` for *record_type*.

        Order among records created in the same instant is unspecified.
        """
        records = self._store.get_by_prefix(f"crm:{record_type}:")
        ordered = sorted(records, key=lambda r: r["createdAt"], reverse=True)
        return ordered[: max(limit, 0)], len(records)


def _sheets_row(record: dict[str, Any]) -> dict[str, Any]:
    """Flatten an appointment record into the spreadsheet export shape."""
    return {
        "timestamp": record["createdAt"],
        "customerName": record.get("customerName"),
        "email": record.get("customerEmail"),
        "phone": record.get("customerPhone"),
        "service": record.get("service"),
        "appointmentDate": record.get("appointmentDate"),
        "appointmentTime": record.get("appointmentTime"),
        "notes": record.get("notes") or "",
        "source": "AI Receptionist",
    }
