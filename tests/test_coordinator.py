"""Tests for the client-side resilience coordinator.

Covers:
  - The explicit state machine (valid and invalid transitions)
  - Start-up probe, sticky OFFLINE and manual retry
  - One-time mid-session fallback to the local engine
  - Remote and local paths producing identical replies
"""

from __future__ import annotations

import re
import threading
from unittest.mock import MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from receptionist.config import RECEPTIONIST_API_KEY
from receptionist.coordinator import (
    ConversationReply,
    CoordinatorEvent,
    CoordinatorState,
    InvalidTransitionError,
    ResilienceCoordinator,
    new_session_id,
)
from receptionist.prompts import APOLOGY_RESPONSE, HOURS_RESPONSE
from receptionist.services.kv_store import InMemoryKVStore
from receptionist.services.receptionist_client import (
    ReceptionistClient,
    RemoteRequestError,
    RemoteUnreachableError,
)

CUSTOMER = {"name": "Demo User", "email": "demo@example.com", "phone": "(555) 123-4567"}


def _remote_reply(response: str, action=None, form_data=None) -> dict:
    return {
        "success": True,
        "response": response,
        "action": action,
        "formData": form_data,
        "confidence": 0.92,
    }


@pytest.fixture
def remote():
    client = MagicMock(spec=ReceptionistClient)
    client.health.return_value = {"status": "healthy"}
    client.process_conversation.return_value = _remote_reply("remote says hi")
    client.submit_form.return_value = "crm:appointment:1"
    client.send_notification.return_value = "notification:appointment_confirmation:1"
    return client


@pytest.fixture
def coordinator(remote):
    return ResilienceCoordinator(remote, customer_info=CUSTOMER)


# ── State machine ────────────────────────────────────────────────────


class TestStateMachine:
    def test_starts_checking(self, coordinator):
        assert coordinator.state == CoordinatorState.CHECKING

    @pytest.mark.parametrize(
        "events, expected",
        [
            ([CoordinatorEvent.PROBE_SUCCEEDED], CoordinatorState.ONLINE),
            ([CoordinatorEvent.PROBE_FAILED], CoordinatorState.OFFLINE),
            ([CoordinatorEvent.PROBE_SUCCEEDED, CoordinatorEvent.REQUEST_FAILED], CoordinatorState.OFFLINE),
            ([CoordinatorEvent.PROBE_FAILED, CoordinatorEvent.RETRY_REQUESTED], CoordinatorState.CHECKING),
        ],
    )
    def test_valid_transitions(self, coordinator, events, expected):
        for event in events:
            coordinator.transition(event)
        assert coordinator.state == expected

    @pytest.mark.parametrize(
        "events",
        [
            [CoordinatorEvent.REQUEST_FAILED],
            [CoordinatorEvent.RETRY_REQUESTED],
            [CoordinatorEvent.PROBE_SUCCEEDED, CoordinatorEvent.RETRY_REQUESTED],
            [CoordinatorEvent.PROBE_SUCCEEDED, CoordinatorEvent.PROBE_FAILED],
            [CoordinatorEvent.PROBE_FAILED, CoordinatorEvent.REQUEST_FAILED],
        ],
    )
    def test_invalid_transitions_raise(self, coordinator, events):
        with pytest.raises(InvalidTransitionError):
            for event in events:
                coordinator.transition(event)


# ── Probing ──────────────────────────────────────────────────────────


class TestProbe:
    def test_healthy_probe_goes_online(self, coordinator):
        assert coordinator.start() == CoordinatorState.ONLINE
        assert coordinator.is_online

    def test_probe_timeout_goes_offline(self, coordinator, remote):
        remote.health.side_effect = RemoteUnreachableError("timed out")
        assert coordinator.start() == CoordinatorState.OFFLINE

    def test_bad_status_probe_goes_offline(self, coordinator, remote):
        remote.health.side_effect = RemoteRequestError("503", status_code=503)
        assert coordinator.start() == CoordinatorState.OFFLINE

    def test_cannot_probe_twice(self, coordinator):
        coordinator.start()
        with pytest.raises(InvalidTransitionError):
            coordinator.start()

    def test_manual_retry_can_come_back_online(self, coordinator, remote):
        remote.health.side_effect = RemoteUnreachableError("down")
        coordinator.start()
        remote.health.side_effect = None
        assert coordinator.retry_connection() == CoordinatorState.ONLINE

    def test_manual_retry_can_stay_offline(self, coordinator, remote):
        remote.health.side_effect = RemoteUnreachableError("down")
        coordinator.start()
        assert coordinator.retry_connection() == CoordinatorState.OFFLINE
        assert remote.health.call_count == 2

    def test_retry_only_from_offline(self, coordinator):
        coordinator.start()
        with pytest.raises(InvalidTransitionError):
            coordinator.retry_connection()


# ── Message handling ─────────────────────────────────────────────────


class TestOnline:
    def test_remote_reply_is_returned(self, coordinator, remote):
        coordinator.start()
        reply = coordinator.handle_message("hello")
        assert reply == ConversationReply(response="remote says hi", source="remote")
        remote.process_conversation.assert_called_once_with("hello", coordinator.session_id, CUSTOMER)

    def test_booking_is_submitted_then_notified(self, coordinator, remote):
        form = {"type": "appointment", "customerEmail": "demo@example.com", "customerPhone": "1"}
        remote.process_conversation.return_value = _remote_reply("booked", "book_appointment", form)
        coordinator.start()
        coordinator.handle_message("book me")
        remote.submit_form.assert_called_once_with(form)
        remote.send_notification.assert_called_once_with(
            "appointment_confirmation", "demo@example.com", "1", form,
        )

    def test_failed_submission_skips_notification_and_keeps_state(self, coordinator, remote):
        remote.process_conversation.return_value = _remote_reply(
            "booked", "book_appointment", {"type": "appointment"},
        )
        remote.submit_form.side_effect = RemoteRequestError("500", status_code=500)
        coordinator.start()
        reply = coordinator.handle_message("book me")
        assert reply.response == "booked"
        remote.send_notification.assert_not_called()
        assert coordinator.state == CoordinatorState.ONLINE

    def test_submission_without_record_id_keeps_booked_reply(self):
        bodies = {
            "/api/health": {"status": "healthy"},
            "/api/process-conversation": _remote_reply(
                "booked", "book_appointment", {"type": "appointment"},
            ),
            "/api/submit-form": {"success": True},
        }
        seen = []

        def handler(request):
            seen.append(request.url.path)
            return httpx.Response(200, json=bodies[request.url.path])

        client = ReceptionistClient(
            base_url="http://remote.test/api", token="secret", transport=httpx.MockTransport(handler),
        )
        coordinator = ResilienceCoordinator(client, customer_info=CUSTOMER)
        coordinator.start()

        reply = coordinator.handle_message("book me")

        assert reply.response == "booked"
        assert reply.source == "remote"
        assert coordinator.state == CoordinatorState.ONLINE
        assert "/api/send-notification" not in seen

    @pytest.mark.parametrize("form_data", ["not a dict", ["appointment"], 7])
    def test_malformed_form_data_falls_back_locally(self, coordinator, remote, form_data):
        remote.process_conversation.return_value = _remote_reply("booked", "book_appointment", form_data)
        coordinator.start()
        reply = coordinator.handle_message("What are your hours?")
        assert reply.source == "local"
        assert reply.response == HOURS_RESPONSE
        assert coordinator.state == CoordinatorState.OFFLINE
        remote.submit_form.assert_not_called()

    def test_non_text_response_falls_back_locally(self, coordinator, remote):
        remote.process_conversation.return_value = {"success": True, "response": None}
        coordinator.start()
        assert coordinator.handle_message("hi").source == "local"

    def test_non_booking_reply_does_not_submit(self, coordinator, remote):
        coordinator.start()
        coordinator.handle_message("hello")
        remote.submit_form.assert_not_called()


class TestFallback:
    def test_failed_request_is_answered_locally(self, coordinator, remote):
        remote.process_conversation.side_effect = RemoteRequestError("500", status_code=500)
        coordinator.start()
        reply = coordinator.handle_message("What are your hours?")
        assert reply.response == HOURS_RESPONSE
        assert reply.source == "local"
        assert coordinator.state == CoordinatorState.OFFLINE

    def test_fallback_happens_once_and_sticks(self, coordinator, remote):
        remote.process_conversation.side_effect = RemoteUnreachableError("timeout")
        coordinator.start()
        coordinator.handle_message("hi")
        coordinator.handle_message("hi again")
        coordinator.handle_message("still there?")
        assert remote.process_conversation.call_count == 1
        assert remote.health.call_count == 1  # no automatic re-probe

    def test_concurrent_failures_both_answer_locally(self, coordinator, remote):
        barrier = threading.Barrier(2, timeout=5)

        def fail(*_args):
            barrier.wait()
            raise RemoteUnreachableError("timed out")

        remote.process_conversation.side_effect = fail
        coordinator.start()

        replies, errors = [], []

        def send():
            try:
                replies.append(coordinator.handle_message("What are your hours?"))
            except Exception as exc:  # noqa: BLE001
                errors.append(exc)

        threads = [threading.Thread(target=send) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert errors == []
        assert [r.source for r in replies] == ["local", "local"]
        assert coordinator.state == CoordinatorState.OFFLINE

    def test_offline_never_calls_remote(self, coordinator, remote):
        remote.health.side_effect = RemoteUnreachableError("down")
        coordinator.start()
        reply = coordinator.handle_message("Book me for friday at 3 pm")
        assert reply.source == "local"
        assert reply.form_data["appointmentDate"] == "friday"
        remote.process_conversation.assert_not_called()
        remote.submit_form.assert_not_called()
        remote.send_notification.assert_not_called()

    def test_checking_state_answers_locally(self, coordinator, remote):
        reply = coordinator.handle_message("hi")
        assert reply.source == "local"
        remote.process_conversation.assert_not_called()

    def test_apology_when_local_engine_fails(self, remote):
        engine = MagicMock()
        engine.invoke.side_effect = RuntimeError("boom")
        remote.health.side_effect = RemoteUnreachableError("down")
        coordinator = ResilienceCoordinator(remote, engine=engine)
        coordinator.start()
        assert coordinator.handle_message("hi") == ConversationReply(response=APOLOGY_RESPONSE, source="local")


class TestSessions:
    def test_session_id_format(self):
        assert re.fullmatch(r"session_\d+_[0-9a-z]{9}", new_session_id())

    def test_new_session_rotates_id(self, coordinator):
        first = coordinator.session_id
        assert coordinator.new_session() != first


# ── Transparency: same reply whichever path answers ──────────────────


@pytest.fixture
def live_client():
    """A real ReceptionistClient talking to the FastAPI app in-process."""
    from receptionist.server import app, build_services

    store = InMemoryKVStore()
    app.state.services = build_services(store)
    client = ReceptionistClient(base_url="http://testserver/api", token=RECEPTIONIST_API_KEY)
    client._client = TestClient(
        app,
        base_url="http://testserver/api",
        headers={"Authorization": f"Bearer {RECEPTIONIST_API_KEY}"},
    )
    yield client, store
    app.state.services = None


class TestTransparency:
    @pytest.mark.parametrize(
        "message",
        [
            "I'd like to schedule an appointment for next Tuesday at 2 PM",
            "What are your business hours today?",
            "I need to cancel",
            "Do you accept insurance?",
            "What's the wait time?",
            "Can I speak to someone about your services?",
        ],
    )
    def test_offline_reply_matches_remote_reply(self, live_client, message):
        client, _ = live_client
        online = ResilienceCoordinator(client, customer_info=CUSTOMER)
        online.start()
        assert online.is_online
        remote_reply = online.handle_message(message)

        down = MagicMock(spec=ReceptionistClient)
        down.health.side_effect = RemoteUnreachableError("timed out")
        offline = ResilienceCoordinator(down, customer_info=CUSTOMER)
        offline.start()
        local_reply = offline.handle_message(message)

        assert remote_reply.source == "remote"
        assert local_reply.source == "local"
        assert (local_reply.response, local_reply.action, local_reply.form_data) == (
            remote_reply.response, remote_reply.action, remote_reply.form_data,
        )

    def test_online_booking_lands_in_store(self, live_client):
        client, store = live_client
        coordinator = ResilienceCoordinator(client, customer_info=CUSTOMER)
        coordinator.start()
        coordinator.handle_message("Book me for friday at 3 pm")

        turns = store.get_by_prefix(f"conversation:{coordinator.session_id}:")
        assert len(turns) == 2
        records = store.get_by_prefix("crm:appointment:")
        assert [r["appointmentTime"] for r in records] == ["3 pm"]
        assert len(store.get_by_prefix("sheets:appointments:")) == 1
        assert len(store.get_by_prefix("notification:appointment_confirmation:")) == 1

    def test_local_path_writes_nothing(self, live_client):
        _, store = live_client
        down = MagicMock(spec=ReceptionistClient)
        down.health.side_effect = RemoteUnreachableError("timed out")
        coordinator = ResilienceCoordinator(down, customer_info=CUSTOMER)
        coordinator.start()
        coordinator.handle_message("Book me for friday at 3 pm")
        assert store.get_by_prefix("") == []
