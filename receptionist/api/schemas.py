"""Pydantic schemas for the FastAPI endpoints.

Wire format is camelCase; Python attribute names are snake_case.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Session ids and types sit between colons in store keys.
KEY_SEGMENT_PATTERN = r"^[^:]+$"


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CustomerInfo(_CamelModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None


class ConversationRequest(_CamelModel):
    """Incoming customer message."""

    message: str = Field(..., min_length=1, max_length=2000, description="The customer's message")
    session_id: str = Field(
        ...,
        alias="sessionId",
        min_length=1,
        max_length=100,
        pattern=KEY_SEGMENT_PATTERN,
        description="Client-generated session identifier",
    )
    customer_info: CustomerInfo | None = Field(default=None, alias="customerInfo")


class ConversationResponse(_CamelModel):
    success: bool = True
    response: str
    action: str | None = None
    form_data: dict[str, Any] | None = Field(default=None, alias="formData")
    confidence: float


class TranscribeRequest(_CamelModel):
    audio_data: str | None = Field(default=None, alias="audioData")


class TranscribeResponse(_CamelModel):
    success: bool = True
    transcription: str
    confidence: float


class RecordSubmission(_CamelModel):
    """A CRM record.  Any extra fields are stored as submitted."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    type: str = Field(default="appointment", min_length=1, max_length=50, pattern=KEY_SEGMENT_PATTERN)
    customer_name: str | None = Field(default=None, alias="customerName")
    customer_email: str | None = Field(default=None, alias="customerEmail")
    customer_phone: str | None = Field(default=None, alias="customerPhone")
    status: str | None = None


class SubmitFormResponse(_CamelModel):
    success: bool = True
    record_id: str = Field(..., alias="recordId")
    message: str = "Form submitted and stored in CRM"


class NotificationRequest(_CamelModel):
    type: str = Field(..., min_length=1, max_length=50, pattern=KEY_SEGMENT_PATTERN)
    recipient_email: str | None = Field(default=None, alias="recipientEmail")
    recipient_phone: str | None = Field(default=None, alias="recipientPhone")
    data: dict[str, Any] = Field(default_factory=dict)


class NotificationResponse(_CamelModel):
    success: bool = True
    notification_id: str = Field(..., alias="notificationId")
    message: str = "Notification sent successfully"


class ConversationHistoryResponse(_CamelModel):
    success: bool = True
    conversations: list[dict[str, Any]]
    session_id: str = Field(..., alias="sessionId")


class CrmRecordsResponse(_CamelModel):
    success: bool = True
    records: list[dict[str, Any]]
    total: int


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    timestamp: str
    service: str = "AI Receptionist Backend"
