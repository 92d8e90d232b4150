"""HTTP client for the remote receptionist API.

Every request carries the static bearer credential and an explicit timeout:
the reachability probe uses the short ``PROBE_TIMEOUT_SECONDS``, conversation
calls ``CONVERSATION_TIMEOUT_SECONDS`` and record/notification calls
``RECORD_TIMEOUT_SECONDS``.  There are no retries; the resilience
coordinator falls back to the local engine instead.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from receptionist.config import (
    CONVERSATION_TIMEOUT_SECONDS,
    PROBE_TIMEOUT_SECONDS,
    RECEPTIONIST_API_KEY,
    RECEPTIONIST_BASE_URL,
    RECORD_TIMEOUT_SECONDS,
)
from receptionist.services.metrics import metrics

logger = logging.getLogger(__name__)

_SERVICE = "receptionist"


class ReceptionistAPIError(Exception):
    """Raised when a call to the remote receptionist service fails."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class RemoteUnreachableError(ReceptionistAPIError):
    """The service could not be reached in time (connect error or timeout)."""


class RemoteRequestError(ReceptionistAPIError):
    """The service answered, but with a non-2xx status or an unusable body."""


class ReceptionistClient:
    """Thin wrapper around the receptionist REST API."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        *,
        probe_timeout: float = PROBE_TIMEOUT_SECONDS,
        conversation_timeout: float = CONVERSATION_TIMEOUT_SECONDS,
        record_timeout: float = RECORD_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ):
        self._base_url = (base_url or RECEPTIONIST_BASE_URL).rstrip("/")
        self._token = token or RECEPTIONIST_API_KEY
        self.probe_timeout = probe_timeout
        self.conversation_timeout = conversation_timeout
        self.record_timeout = record_timeout
        self._client = httpx.Client(
            base_url=self._base_url,
            headers={
                "Authorization": f"Bearer {self._token}",
                "Content-Type": "application/json",
            },
            timeout=conversation_timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def close(self) -> None:
        self._client.close()

    # ── Internal helpers ─────────────────────────────────────────────

    def _request(
        self,
        method: str,
        path: str,
        *,
        timeout: float,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
        expect_success_flag: bool = True,
    ) -> dict[str, Any]:
        """Execute one HTTP request and return the decoded JSON body.

        Raises :class:`RemoteUnreachableError` on connect errors and
        timeouts, :class:`RemoteRequestError` on non-2xx statuses, non-JSON
        bodies and ``{"success": false}`` envelopes.
        """
        operation = f"{method} {path}"
        t0 = time.perf_counter()
        try:
            response = self._client.request(
                method, path, params=params, json=json_body, timeout=timeout,
            )
        except (httpx.TimeoutException, httpx.TransportError) as exc:
            elapsed = (time.perf_counter() - t0) * 1000
            metrics.record_failure(_SERVICE, operation, error_type=type(exc).__name__, latency_ms=elapsed)
            raise RemoteUnreachableError(f"{operation} failed: {type(exc).__name__}: {exc}") from exc

        elapsed = (time.perf_counter() - t0) * 1000
        if response.status_code >= 400:
            metrics.record_failure(_SERVICE, operation, error_type=f"{response.status_code // 100}xx", latency_ms=elapsed)
            raise RemoteRequestError(
                f"{operation} returned {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            metrics.record_failure(_SERVICE, operation, error_type="malformed", latency_ms=elapsed)
            raise RemoteRequestError(
                f"{operation} returned a non-JSON body", status_code=response.status_code,
            ) from exc

        if not isinstance(data, dict) or (expect_success_flag and data.get("success") is not True):
            metrics.record_failure(_SERVICE, operation, error_type="unsuccessful", latency_ms=elapsed)
            raise RemoteRequestError(
                f"{operation} returned an unsuccessful response", status_code=response.status_code,
            )

        metrics.record_success(_SERVICE, operation, latency_ms=elapsed)
        return data

    # ── Public API methods ───────────────────────────────────────────

    def health(self) -> dict[str, Any]:
        """Reachability probe (short timeout)."""
        return self._request("GET", "/health", timeout=self.probe_timeout, expect_success_flag=False)

    def process_conversation(
        self,
        message: str,
        session_id: str,
        customer_info: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Run *message* through the remote pipeline.

        Returns the response envelope ``{success, response, action, formData,
        confidence}``.
        """
        data = self._request(
            "POST",
            "/process-conversation",
            timeout=self.conversation_timeout,
            json_body={"message": message, "sessionId": session_id, "customerInfo": customer_info},
        )
        if not isinstance(data.get("response"), str):
            raise RemoteRequestError("process-conversation response is missing 'response'")
        return data

    def submit_form(self, form_data: dict[str, Any]) -> str:
        """Store a record in the remote CRM.  Returns the record id."""
        data = self._request("POST", "/submit-form", timeout=self.record_timeout, json_body=form_data)
        record_id = data.get("recordId")
        if not isinstance(record_id, str):
            raise RemoteRequestError("submit-form response is missing 'recordId'")
        return record_id

    def send_notification(
        self,
        notification_type: str,
        recipient_email: str | None,
        recipient_phone: str | None,
        data: dict[str, Any],
    ) -> str:
        """Ask the service to compose and record a notification.  Returns its id."""
        result = self._request(
            "POST",
            "/send-notification",
            timeout=self.record_timeout,
            json_body={
                "type": notification_type,
                "recipientEmail": recipient_email,
                "recipientPhone": recipient_phone,
                "data": data,
            },
        )
        notification_id = result.get("notificationId")
        if not isinstance(notification_id, str):
            raise RemoteRequestError("send-notification response is missing 'notificationId'")
        return notification_id

    def get_conversations(self, session_id: str) -> list[dict[str, Any]]:
        """Conversation history of *session_id*, oldest first."""
        data = self._request("GET", f"/conversations/{session_id}", timeout=self.record_timeout)
        return data.get("conversations", [])

    def get_crm_records(self, record_type: str = "appointment", limit: int = 10) -> dict[str, Any]:
        """Newest CRM records of *record_type*: ``{records, total}``."""
        data = self._request(
            "GET",
            "/crm-records",
            timeout=self.record_timeout,
            params={"type": record_type, "limit": limit},
        )
        return {"records": data.get("records", []), "total": data.get("total", 0)}

    def transcribe(self, audio_data: str) -> str:
        data = self._request(
            "POST", "/transcribe", timeout=self.conversation_timeout, json_body={"audioData": audio_data},
        )
        transcription = data.get("transcription")
        if not isinstance(transcription, str):
            raise RemoteRequestError("transcribe response is missing 'transcription'")
        return transcription
