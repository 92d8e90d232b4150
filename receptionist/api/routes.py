"""FastAPI route definitions for the AI Receptionist API."""

from __future__ import annotations

import asyncio
import logging
import secrets
from dataclasses import dataclass

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from receptionist import config
from receptionist.api.schemas import (
    KEY_SEGMENT_PATTERN,
    ConversationHistoryResponse,
    ConversationRequest,
    ConversationResponse,
    CrmRecordsResponse,
    HealthResponse,
    NotificationRequest,
    NotificationResponse,
    RecordSubmission,
    SubmitFormResponse,
    TranscribeRequest,
    TranscribeResponse,
)
from receptionist.engine import process_message
from receptionist.services.conversation_log import ConversationLog, TurnKind
from receptionist.services.notifications import NotificationComposer
from receptionist.services.record_store import DEFAULT_LIST_LIMIT, DEFAULT_RECORD_TYPE, RecordStore
from receptionist.services.timestamps import now_ms, to_iso
from receptionist.services.transcription import TRANSCRIPTION_CONFIDENCE, transcribe

logger = logging.getLogger(__name__)

CONVERSATION_CONFIDENCE = 0.92

_bearer = HTTPBearer(auto_error=False)


def require_api_key(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> None:
    """Reject requests without the static bearer credential.

    Failures answer 401, one of the two non-5xx error statuses of this API
    (the other is the 503 from :func:`_get_services`).
    """
    if credentials is None or not secrets.compare_digest(
        credentials.credentials, config.RECEPTIONIST_API_KEY,
    ):
        raise HTTPException(status_code=401, detail="Unauthorized")


router = APIRouter(dependencies=[Depends(require_api_key)])


@dataclass
class Services:
    """Shared resources built once in the server lifespan."""

    engine: object
    conversation_log: ConversationLog
    record_store: RecordStore
    notifier: NotificationComposer


def _get_services(request: Request) -> Services:
    """Shared services, or 503 while the lifespan has not built them yet."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(
            status_code=503,
            detail="The service is still starting up. Please try again in a moment.",
        )
    return services


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "?")


# ── Endpoints ────────────────────────────────────────────────────────


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(timestamp=to_iso(now_ms()))


@router.post("/transcribe", response_model=TranscribeResponse)
async def transcribe_audio(body: TranscribeRequest):
    """Turn audio into text (sample utterances only)."""
    return TranscribeResponse(
        transcription=transcribe(body.audio_data),
        confidence=TRANSCRIPTION_CONFIDENCE,
    )


@router.post("/process-conversation", response_model=ConversationResponse)
async def process_conversation(body: ConversationRequest, request: Request):
    """Classify a customer message, reply to it and log both turns.

    The customer turn is written before the engine runs and the AI turn
    after it, so the log always replays in exchange order.
    """
    services = _get_services(request)
    customer_info = body.customer_info.model_dump() if body.customer_info else None

    def _run():
        services.conversation_log.append(
            body.session_id, TurnKind.CUSTOMER_INPUT, body.message, customerInfo=customer_info,
        )
        result = process_message(services.engine, body.message, customer_info)
        services.conversation_log.append(
            body.session_id,
            TurnKind.AI_RESPONSE,
            result.response,
            action=result.action,
            formData=result.form_data,
        )
        return result

    try:
        result = await asyncio.to_thread(_run)
    except Exception as e:
        logger.exception("[%s] Conversation processing error", _request_id(request))
        raise HTTPException(status_code=500, detail="Failed to process conversation") from e

    return ConversationResponse(
        response=result.response,
        action=result.action,
        form_data=result.form_data,
        confidence=CONVERSATION_CONFIDENCE,
    )


@router.post("/submit-form", response_model=SubmitFormResponse)
async def submit_form(body: RecordSubmission, request: Request):
    """Store a CRM record (and its export row for appointments)."""
    services = _get_services(request)
    fields = body.model_dump(by_alias=True, exclude_unset=True)
    fields["type"] = body.type

    try:
        record_id = await asyncio.to_thread(services.record_store.create, fields)
    except Exception as e:
        logger.exception("[%s] Form submission error", _request_id(request))
        raise HTTPException(status_code=500, detail="Failed to submit form") from e

    return SubmitFormResponse(record_id=record_id)


@router.post("/send-notification", response_model=NotificationResponse)
async def send_notification(body: NotificationRequest, request: Request):
    """Compose and record a notification (no carrier delivery)."""
    services = _get_services(request)
    try:
        notification_id = await asyncio.to_thread(
            services.notifier.send,
            body.type,
            body.recipient_email,
            body.recipient_phone,
            body.data,
        )
    except Exception as e:
        logger.exception("[%s] Notification sending error", _request_id(request))
        raise HTTPException(status_code=500, detail="Failed to send notification") from e

    return NotificationResponse(notification_id=notification_id)


@router.get("/conversations/{session_id}", response_model=ConversationHistoryResponse)
async def get_conversations(
    request: Request,
    session_id: str = Path(..., min_length=1, max_length=100, pattern=KEY_SEGMENT_PATTERN),
):
    """Every turn of a session, oldest first."""
    services = _get_services(request)
    try:
        turns = await asyncio.to_thread(services.conversation_log.list_by_session, session_id)
    except Exception as e:
        logger.exception("[%s] Error fetching conversations", _request_id(request))
        raise HTTPException(status_code=500, detail="Failed to fetch conversations") from e

    return ConversationHistoryResponse(conversations=turns, session_id=session_id)


@router.get("/crm-records", response_model=CrmRecordsResponse)
async def get_crm_records(
    request: Request,
    type: str = Query(default=DEFAULT_RECORD_TYPE, min_length=1, max_length=50, pattern=KEY_SEGMENT_PATTERN),  # noqa: A002
    limit: int = Query(default=DEFAULT_LIST_LIMIT, ge=0, le=1000),
):
    """Most recent CRM records of one type, newest first."""
    services = _get_services(request)
    try:
        records, total = await asyncio.to_thread(services.record_store.list_by_type, type, limit)
    except Exception as e:
        logger.exception("[%s] Error fetching CRM records", _request_id(request))
        raise HTTPException(status_code=500, detail="Failed to fetch CRM records") from e

    return CrmRecordsResponse(records=records, total=total)
