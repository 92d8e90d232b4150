"""Notification composer.

Renders email/SMS content for a record and books a notification record under
``notification:<type>:<ms>``.  Nothing is transmitted: status ``"sent"``
means the content was generated and recorded.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any

from receptionist.prompts import APPOINTMENT_CONFIRMATION_EMAIL, APPOINTMENT_CONFIRMATION_SMS
from receptionist.services.kv_store import KVStore
from receptionist.services.timestamps import MonotonicClock, to_iso

logger = logging.getLogger(__name__)

APPOINTMENT_CONFIRMATION = "appointment_confirmation"

# Record type → notification type announcing it.
NOTIFICATION_TYPES: dict[str, str] = {
    "appointment": APPOINTMENT_CONFIRMATION,
}

# Notification type → (email template, SMS template).
_TEMPLATES: dict[str, tuple[str, str]] = {
    APPOINTMENT_CONFIRMATION: (APPOINTMENT_CONFIRMATION_EMAIL, APPOINTMENT_CONFIRMATION_SMS),
}


def compose(notification_type: str, data: dict[str, Any]) -> tuple[str, str]:
    """Return ``(email_content, sms_content)`` for *notification_type*.

    Unsupported types yield two empty strings.  Missing fields in *data*
    render as empty text instead of raising.
    """
    templates = _TEMPLATES.get(notification_type)
    if templates is None:
        return "", ""
    fields = defaultdict(str, {k: "" if v is None else v for k, v in (data or {}).items()})
    email_tpl, sms_tpl = templates
    return email_tpl.format_map(fields), sms_tpl.format_map(fields)


class NotificationComposer:
    """Generates notification content and records it in the store."""

    def __init__(self, store: KVStore, *, clock: Callable[[], int] | None = None) -> None:
        self._store = store
        self._clock = MonotonicClock(clock)

    def send(
        self,
        notification_type: str,
        recipient_email: str | None,
        recipient_phone: str | None,
        data: dict[str, Any] | None,
    ) -> str:
        """Compose and record a notification.  Returns its id."""
        email_content, sms_content = compose(notification_type, data or {})
        if not email_content and not sms_content:
            logger.warning("No templates for notification type %r; recording empty content", notification_type)

        ms = self._clock.next()
        notification_id = f"notification:{notification_type}:{ms}"
        self._store.set(
            notification_id,
            {
                "id": notification_id,
                "type": notification_type,
                "recipientEmail": recipient_email,
                "recipientPhone": recipient_phone,
                "emailContent": email_content,
                "smsContent": sms_content,
                "sentAt": to_iso(ms),
                "status": "sent",
                "data": data,
            },
        )
        logger.info("Notification sent: %s to %s", notification_type, recipient_email)
        return notification_id
