"""Client-side resilience coordinator.

Keeps the conversation working whether or not the remote receptionist
service is reachable.  The coordinator is an explicit state machine:

    CHECKING ──probe ok──────▶ ONLINE
    CHECKING ──probe failed──▶ OFFLINE
    ONLINE   ──request failed▶ OFFLINE   (current message answered locally)
    OFFLINE  ──manual retry──▶ CHECKING  (then probe again)

OFFLINE is sticky: there is no periodic re-probe, only :meth:`retry_connection`
or a new coordinator.  In OFFLINE (and while CHECKING) messages are answered
by the in-process engine, which renders the very same templates as the
server, so callers cannot tell the two paths apart.  The local path never
writes conversation turns, records or notifications.

Usage:
    coordinator = ResilienceCoordinator(ReceptionistClient())
    coordinator.start()
    reply = coordinator.handle_message("Can I book for Friday at 3 pm?")
"""

from __future__ import annotations

import logging
import secrets
import string
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

from receptionist.engine import create_conversation_engine, process_message
from receptionist.prompts import APOLOGY_RESPONSE
from receptionist.services.metrics import metrics
from receptionist.services.notifications import NOTIFICATION_TYPES
from receptionist.services.receptionist_client import (
    ReceptionistAPIError,
    ReceptionistClient,
    RemoteRequestError,
)

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase


class CoordinatorState(str, Enum):
    CHECKING = "checking"
    ONLINE = "online"
    OFFLINE = "offline"


class CoordinatorEvent(str, Enum):
    PROBE_SUCCEEDED = "probe_succeeded"
    PROBE_FAILED = "probe_failed"
    REQUEST_FAILED = "request_failed"
    RETRY_REQUESTED = "retry_requested"


TRANSITIONS: dict[tuple[CoordinatorState, CoordinatorEvent], CoordinatorState] = {
    (CoordinatorState.CHECKING, CoordinatorEvent.PROBE_SUCCEEDED): CoordinatorState.ONLINE,
    (CoordinatorState.CHECKING, CoordinatorEvent.PROBE_FAILED): CoordinatorState.OFFLINE,
    (CoordinatorState.ONLINE, CoordinatorEvent.REQUEST_FAILED): CoordinatorState.OFFLINE,
    (CoordinatorState.OFFLINE, CoordinatorEvent.RETRY_REQUESTED): CoordinatorState.CHECKING,
}


class InvalidTransitionError(Exception):
    """Raised when an event is not valid in the current state."""


@dataclass(frozen=True)
class ConversationReply:
    """What the caller gets back for one message, whichever path ran."""

    response: str
    action: str | None = None
    form_data: dict[str, Any] | None = None
    source: str = "local"


def new_session_id() -> str:
    """``session_<epoch ms>_<9 random base-36 chars>``."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"session_{time.time_ns() // 1_000_000}_{suffix}"


class ResilienceCoordinator:
    """Routes each message to the remote service or the local engine."""

    def __init__(
        self,
        client: ReceptionistClient,
        *,
        customer_info: dict[str, Any] | None = None,
        engine=None,
        session_id: str | None = None,
    ) -> None:
        self._client = client
        self._engine = engine or create_conversation_engine()
        self.customer_info = customer_info
        self.session_id = session_id or new_session_id()
        self._state = CoordinatorState.CHECKING
        self._lock = threading.Lock()

    @property
    def state(self) -> CoordinatorState:
        return self._state

    @property
    def is_online(self) -> bool:
        return self._state is CoordinatorState.ONLINE

    # ── State machine ────────────────────────────────────────────────

    def transition(self, event: CoordinatorEvent) -> CoordinatorState:
        """Apply *event* and return the new state.

        Raises:
            InvalidTransitionError: If *event* is not allowed from the
                current state.
        """
        with self._lock:
            target = TRANSITIONS.get((self._state, event))
            if target is None:
                raise InvalidTransitionError(
                    f"No transition from '{self._state.value}' on '{event.value}'"
                )
            logger.info("Service status: %s -> %s (%s)", self._state.value, target.value, event.value)
            self._state = target
            return target

    # ── Probing ──────────────────────────────────────────────────────

    def start(self) -> CoordinatorState:
        """Run the start-up reachability probe (only valid while CHECKING)."""
        if self._state is not CoordinatorState.CHECKING:
            raise InvalidTransitionError(f"Cannot probe from '{self._state.value}'")
        try:
            self._client.health()
        except ReceptionistAPIError as exc:
            logger.warning("Server is offline, using local processing: %s", exc)
            return self.transition(CoordinatorEvent.PROBE_FAILED)
        return self.transition(CoordinatorEvent.PROBE_SUCCEEDED)

    def retry_connection(self) -> CoordinatorState:
        """Manual re-probe from OFFLINE.  May bring the coordinator back ONLINE."""
        self.transition(CoordinatorEvent.RETRY_REQUESTED)
        return self.start()

    def new_session(self) -> str:
        self.session_id = new_session_id()
        logger.info("Started new session: %s", self.session_id)
        return self.session_id

    # ── Message handling ─────────────────────────────────────────────

    def handle_message(self, message: str) -> ConversationReply:
        """Answer *message*.  Never raises for remote or engine failures."""
        if self._state is CoordinatorState.ONLINE:
            try:
                reply = self._process_remote(message)
            except ReceptionistAPIError as exc:
                logger.warning("Remote processing failed, falling back to local engine: %s", exc)
                try:
                    self.transition(CoordinatorEvent.REQUEST_FAILED)
                except InvalidTransitionError:
                    # A concurrent message already took the coordinator offline.
                    logger.debug("Service status already %s", self._state.value)
                metrics.record_fallback("request_failed")
            else:
                if reply.form_data:
                    self._submit_booking(reply.form_data)
                return reply

        return self._process_local(message)

    def _process_remote(self, message: str) -> ConversationReply:
        data = self._client.process_conversation(message, self.session_id, self.customer_info)
        response = data.get("response")
        action = data.get("action")
        form_data = data.get("formData")
        if not isinstance(response, str):
            raise RemoteRequestError("process-conversation returned no 'response' text")
        if action is not None and not isinstance(action, str):
            raise RemoteRequestError("process-conversation returned a malformed 'action'")
        if form_data is not None and not isinstance(form_data, dict):
            raise RemoteRequestError("process-conversation returned a malformed 'formData'")
        return ConversationReply(
            response=response,
            action=action,
            form_data=form_data,
            source="remote",
        )

    def _process_local(self, message: str) -> ConversationReply:
        try:
            result = process_message(self._engine, message, self.customer_info)
        except Exception:
            logger.exception("Local engine failed")
            return ConversationReply(response=APOLOGY_RESPONSE, source="local")
        if result.form_data:
            logger.info("Booking handled locally, not submitted: %s", result.form_data)
        return ConversationReply(
            response=result.response,
            action=result.action,
            form_data=result.form_data,
            source="local",
        )

    def _submit_booking(self, form_data: dict[str, Any]) -> None:
        """Store the booking remotely, then request its notification.

        Failures here are logged only: the reply has already been produced
        and the service status is left untouched.
        """
        try:
            record_id = self._client.submit_form(form_data)
            logger.info("Form submitted to CRM: %s", record_id)
            notification_type = NOTIFICATION_TYPES.get(form_data.get("type", ""))
            if notification_type is None:
                return
            self._client.send_notification(
                notification_type,
                form_data.get("customerEmail"),
                form_data.get("customerPhone"),
                form_data,
            )
            logger.info("Notification requested for %s", record_id)
        except ReceptionistAPIError as exc:
            logger.error("Form submission failed: %s", exc)
