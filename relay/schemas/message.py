"""
Pydantic schemas for request/response validation.
"""
from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from relay.models.message import Direction


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; everything is stored as UTC."""
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class MessageCreate(BaseModel):
    """A message ready to be persisted."""

    message_id: str = Field(..., min_length=1, max_length=255)
    conversation_id: str = Field(..., min_length=1)
    sender: str
    sender_name: str = Field(default="Unknown")
    recipient: str
    body: str
    timestamp: datetime
    direction: Direction
    status: str = Field(default="delivered")

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        """Store every timestamp in UTC."""
        return _as_utc(v).astimezone(timezone.utc)


class MessageResponse(BaseModel):
    """Schema for a single message in responses."""

    message_id: str = Field(alias="messageId")
    conversation_id: str = Field(alias="conversationId")
    sender: str = Field(alias="from")
    sender_name: str = Field(alias="fromName")
    recipient: str = Field(alias="to")
    body: str
    timestamp: datetime
    direction: Direction
    status: str

    model_config = {
        "populate_by_name": True,
    }

    @field_validator("timestamp")
    @classmethod
    def utc_timestamp(cls, v: datetime) -> datetime:
        return _as_utc(v)


class ConversationSummary(BaseModel):
    """Latest message and incoming count for one conversation."""

    conversation_id: str = Field(alias="conversationId")
    last_message_body: str = Field(alias="lastMessageBody")
    last_message_time: datetime = Field(alias="lastMessageTime")
    from_name: str = Field(alias="fromName")
    incoming_count: int = Field(alias="incomingCount")

    model_config = {
        "populate_by_name": True,
    }

    @field_validator("last_message_time")
    @classmethod
    def utc_last_message_time(cls, v: datetime) -> datetime:
        return _as_utc(v)


class ConversationsResponse(BaseModel):
    """Response schema for GET /api/conversations."""
    success: bool = True
    conversations: List[ConversationSummary]


class MessagesResponse(BaseModel):
    """Response schema for GET /api/messages/{conversationId}."""
    success: bool = True
    messages: List[MessageResponse]


class SendMessageRequest(BaseModel):
    """Request body for POST /api/send-message.

    Both fields are optional here so that missing values produce the
    relay's own 400 envelope instead of FastAPI's 422.
    """
    to: Optional[str] = None
    message: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.to) and bool(self.message)


class SendMessageResponse(BaseModel):
    """Response schema for a successful send."""
    success: bool = True
    message: str = "Message sent successfully"
    message_id: str = Field(alias="messageId")
    whatsapp_response: Any = Field(alias="whatsappResponse")

    model_config = {
        "populate_by_name": True,
    }


class HealthResponse(BaseModel):
    """Response schema for GET /health."""
    status: str
    mongodb: str = Field(description="Store reachability, under the key the frontend reads")
    timestamp: datetime


class ErrorResponse(BaseModel):
    """Standard failure envelope."""
    success: bool = False
    error: str
    details: Optional[Any] = None
