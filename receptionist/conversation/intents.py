"""Keyword intent classifier.

Rules are checked top to bottom and the first match wins.  The order is part
of the contract: "book an appointment but first let me cancel the old one"
must stay an APPOINTMENT because that rule is checked before CANCEL.
"""

from __future__ import annotations

from enum import Enum


class Intent(str, Enum):
    APPOINTMENT = "appointment"
    HOURS = "hours"
    CANCEL = "cancel"
    BILLING = "billing"
    WAIT_TIME = "wait_time"
    GENERAL = "general"


INTENT_RULES: list[tuple[tuple[str, ...], Intent]] = [
    (("appointment", "schedule", "book"), Intent.APPOINTMENT),
    (("hours", "open", "close"), Intent.HOURS),
    (("cancel",), Intent.CANCEL),
    (("insurance", "payment", "cost"), Intent.BILLING),
    (("wait time", "how long"), Intent.WAIT_TIME),
]


def classify_intent(message: str) -> Intent:
    """Map *message* to exactly one :class:`Intent`."""
    lowered = message.lower()
    for keywords, intent in INTENT_RULES:
        if any(keyword in lowered for keyword in keywords):
            return intent
    return Intent.GENERAL
