"""
Message database model.
"""
import enum
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Text, Enum, Index

from relay.core.database import Base


class Direction(str, enum.Enum):
    """Which side of the conversation authored a message."""

    INCOMING = "incoming"
    OUTGOING = "outgoing"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Message(Base):
    """A single WhatsApp message, inbound or outbound."""

    __tablename__ = "messages"

    # Dedup key - platform message ids are globally unique
    message_id = Column(String(255), primary_key=True, nullable=False)

    # Counterpart phone number; groups both directions into one thread
    conversation_id = Column(String(64), nullable=False, index=True)

    sender = Column(String(64), nullable=False, index=True)  # 'from' is reserved
    sender_name = Column(String(255), nullable=False, default="Unknown")
    recipient = Column(String(64), nullable=False, index=True)  # 'to'

    body = Column(Text, nullable=False)

    timestamp = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    direction = Column(
        Enum(
            Direction,
            name="message_direction",
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
    )
    status = Column(String(32), nullable=False, default="delivered")

    __table_args__ = (
        Index("ix_messages_conversation_id_timestamp", "conversation_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return (
            f"<Message(message_id={self.message_id}, "
            f"conversation_id={self.conversation_id}, direction={self.direction})>"
        )
