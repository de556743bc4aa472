"""Pydantic schemas for webhook ingestion."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatbotEventPayload(BaseModel):
    """Inbound event from the automation pipeline. Field names are snake_case on the wire."""

    model_config = ConfigDict(extra="ignore")

    session_id: Optional[str] = None
    license_key: Optional[str] = None
    domain: Optional[str] = None
    user_id: Optional[str] = None
    customer_message: Optional[str] = None
    chatbot_response: Optional[str] = None
    content: Optional[str] = None
    intent_detected: Optional[str] = None
    timestamp: Optional[datetime] = None
    conversation_id: Optional[str] = None
    role: Optional[str] = Field(default=None, max_length=20)


class SessionSummary(BaseModel):
    sessionId: str
    messageCount: int
    duration: int
    domain: Optional[str] = None


class IngestResponse(BaseModel):
    success: bool = True
    logId: str
    session: SessionSummary


WEBHOOK_FIELDS = {
    "required": ["session_id"],
    "optional": [
        "license_key",
        "domain",
        "user_id",
        "customer_message",
        "chatbot_response",
        "content",
        "intent_detected",
        "timestamp",
        "conversation_id",
        "role",
    ],
}
