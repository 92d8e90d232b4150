"""Reply generation from an intent and its extracted details."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from receptionist.conversation.entities import ExtractedEntities
from receptionist.conversation.intents import Intent
from receptionist.prompts import (
    APPOINTMENT_RESPONSE,
    BILLING_RESPONSE,
    CANCEL_RESPONSE,
    CANCEL_RESPONSE_NAMED,
    GENERAL_RESPONSE,
    HOURS_RESPONSE,
    WAIT_TIME_RESPONSE,
)

ACTION_BOOK_APPOINTMENT = "book_appointment"
ACTION_CANCEL_REQUEST = "cancel_request"
ACTION_TRANSFER_TO_HUMAN = "transfer_to_human"

DEFAULT_SERVICE = "General Consultation"

# Substituted for any customer detail the caller did not supply.
DEMO_CUSTOMER = {
    "name": "New Customer",
    "email": "customer@example.com",
    "phone": "(555) 123-4567",
}

_STATIC_RESPONSES: dict[Intent, tuple[str, str | None]] = {
    Intent.HOURS: (HOURS_RESPONSE, None),
    Intent.BILLING: (BILLING_RESPONSE, None),
    Intent.WAIT_TIME: (WAIT_TIME_RESPONSE, None),
    Intent.GENERAL: (GENERAL_RESPONSE, ACTION_TRANSFER_TO_HUMAN),
}


@dataclass(frozen=True)
class GeneratedResponse:
    response: str
    action: str | None = None
    form_data: dict[str, Any] | None = field(default=None)


def _customer_field(customer_info: dict[str, Any] | None, name: str) -> str:
    value = (customer_info or {}).get(name)
    return value or DEMO_CUSTOMER[name]


def build_appointment_payload(
    entities: ExtractedEntities, customer_info: dict[str, Any] | None,
) -> dict[str, Any]:
    """Record payload for a booking, ready for ``/submit-form``."""
    return {
        "type": "appointment",
        "customerName": _customer_field(customer_info, "name"),
        "customerEmail": _customer_field(customer_info, "email"),
        "customerPhone": _customer_field(customer_info, "phone"),
        "appointmentDate": entities.day,
        "appointmentTime": entities.time,
        "service": DEFAULT_SERVICE,
        "status": "confirmed",
    }


def generate_response(
    intent: Intent,
    entities: ExtractedEntities | None = None,
    customer_info: dict[str, Any] | None = None,
) -> GeneratedResponse:
    """Produce the reply (and booking payload, if any) for *intent*.

    Pure function: the same inputs always give the same output, which is what
    lets the client's offline path mirror the server word for word.
    """
    if intent is Intent.APPOINTMENT:
        entities = entities or ExtractedEntities()
        return GeneratedResponse(
            response=APPOINTMENT_RESPONSE.format(day=entities.day, time=entities.time),
            action=ACTION_BOOK_APPOINTMENT,
            form_data=build_appointment_payload(entities, customer_info),
        )

    if intent is Intent.CANCEL:
        name = (customer_info or {}).get("name")
        text = CANCEL_RESPONSE_NAMED.format(name=name) if name else CANCEL_RESPONSE
        return GeneratedResponse(response=text, action=ACTION_CANCEL_REQUEST)

    text, action = _STATIC_RESPONSES[intent]
    return GeneratedResponse(response=text, action=action)
