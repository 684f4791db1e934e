"""
Turns WhatsApp webhook payloads into stored messages.
"""
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError

from relay.core.logging import get_logger
from relay.models.message import Direction
from relay.schemas.message import MessageCreate
from relay.schemas.webhook import WebhookPayload
from relay.services.store import InsertStatus, MessageStore

logger = get_logger(__name__)

UNKNOWN_SENDER_NAME = "Unknown"


def parse_epoch_seconds(value: Any, received_at: datetime) -> datetime:
    """Platform timestamps are epoch seconds; fall back to receipt time."""
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        logger.warning(
            "Unusable message timestamp, using receipt time",
            extra={"extra_data": {"timestamp": value}}
        )
        return received_at


def extract_text_message(
    payload: Any,
    received_at: Optional[datetime] = None,
) -> Optional[MessageCreate]:
    """
    Pull the first text message out of a webhook payload.

    Only ``entry[0].changes[0].value.messages[0]`` is considered. Returns
    None when there is nothing to ingest: an unrecognised envelope, a status
    update with no messages, a non-text message, or a text message missing
    one of the fields needed to store it.
    """
    received_at = received_at or datetime.now(timezone.utc)

    try:
        envelope = WebhookPayload.model_validate(payload)
    except ValidationError as e:
        logger.warning(f"Unrecognised webhook payload: {e.error_count()} validation errors")
        return None

    value = envelope.first_value()
    message = value.first_message() if value is not None else None
    if message is None:
        return None

    if message.type != "text":
        logger.info(f"Skipping non-text message type: {message.type}")
        return None

    body = message.text.body if message.text else None
    recipient = value.metadata.phone_number_id if value.metadata else None
    if not (message.id and message.from_ and body is not None and recipient):
        logger.warning(
            "Text message is missing required fields, skipping",
            extra={"extra_data": {"message_id": message.id}}
        )
        return None

    sender_name = UNKNOWN_SENDER_NAME
    contact = value.first_contact()
    if contact and contact.profile and contact.profile.name:
        sender_name = contact.profile.name

    return MessageCreate(
        message_id=message.id,
        # Conversations are keyed by the counterpart's phone number
        conversation_id=message.from_,
        sender=message.from_,
        sender_name=sender_name,
        recipient=recipient,
        body=body,
        timestamp=parse_epoch_seconds(message.timestamp, received_at),
        direction=Direction.INCOMING,
        status="received",
    )


def ingest_payload(store: MessageStore, payload: Any) -> Optional[InsertStatus]:
    """
    Store the text message carried by ``payload``, if any.

    Returns the insert status, or None when the payload held nothing to
    store. Never raises on storage problems; the platform must always get
    a 200 back.
    """
    message = extract_text_message(payload)
    if message is None:
        return None

    result = store.insert_unique(message)
    log_data = {"message_id": message.message_id, "conversation_id": message.conversation_id}

    if result.status is InsertStatus.INSERTED:
        logger.info("Incoming message saved", extra={"extra_data": log_data})
    elif result.status is InsertStatus.DUPLICATE:
        logger.info("Message already exists in database (duplicate)", extra={"extra_data": log_data})
    else:
        logger.error(
            "Error saving incoming message",
            extra={"extra_data": {**log_data, "error": result.detail}}
        )

    return result.status
