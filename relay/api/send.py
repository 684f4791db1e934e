"""
Outbound send endpoint for the frontend.
"""
import json
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from relay.core.context import AppContext, get_context
from relay.core.logging import get_logger
from relay.models.message import Direction
from relay.schemas.message import (
    ErrorResponse,
    MessageCreate,
    SendMessageRequest,
    SendMessageResponse,
)
from relay.services.store import InsertStatus
from relay.services.whatsapp import WhatsAppAPIError, extract_message_id

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["Send"])

MISSING_FIELDS_ERROR = "Missing required fields: 'to' and 'message'"
NOT_CONFIGURED_ERROR = "WhatsApp API credentials are not configured"


def _failure(status_code: int, error: str, **extra) -> JSONResponse:
    envelope = ErrorResponse(error=error, details=extra.pop("details", None))
    content = envelope.model_dump(exclude_none=True)
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


@router.post(
    "/send-message",
    response_model=SendMessageResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing 'to' or 'message'"},
        500: {"model": ErrorResponse, "description": "Unexpected send response or storage failure"},
    },
    summary="Send a text message",
    description="Forward an operator message to the WhatsApp Cloud API and store it once the platform accepts it."
)
async def send_message(
    request: Request,
    context: Annotated[AppContext, Depends(get_context)],
):
    """
    Send a text message to ``to``.

    - Validates that both ``to`` and ``message`` are present
    - Calls the WhatsApp send API once, without retry
    - Stores the outgoing message under the id the platform returned
    - Upstream failures keep the platform's status code and error body
    """
    try:
        request_data = SendMessageRequest.model_validate(json.loads(await request.body()))
    except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
        logger.warning(f"Invalid send request body: {e}")
        return _failure(400, MISSING_FIELDS_ERROR)

    if not request_data.is_complete:
        return _failure(400, MISSING_FIELDS_ERROR)

    if not context.settings.is_whatsapp_configured:
        logger.error("WHATSAPP_PHONE_NUMBER_ID or WHATSAPP_ACCESS_TOKEN not configured")
        return _failure(500, NOT_CONFIGURED_ERROR)

    try:
        whatsapp_response = await context.whatsapp.send_text(request_data.to, request_data.message)
    except WhatsAppAPIError as e:
        logger.error(f"Error sending message: {e.details}")
        return _failure(
            e.status_code or 500,
            "Failed to send message",
            details=e.details,
        )

    message_id = extract_message_id(whatsapp_response)
    if message_id is None:
        logger.error(
            "WhatsApp API did not return a message id",
            extra={"extra_data": {"response": whatsapp_response}}
        )
        return _failure(500, "WhatsApp API did not return expected response")

    outgoing = MessageCreate(
        message_id=message_id,
        conversation_id=request_data.to,
        sender=context.whatsapp.phone_number_id,
        recipient=request_data.to,
        body=request_data.message,
        timestamp=datetime.now(timezone.utc),
        direction=Direction.OUTGOING,
        status="sent",
    )
    result = await run_in_threadpool(context.store.insert_unique, outgoing)

    if result.status is InsertStatus.FAILED:
        logger.error(
            "Error saving outgoing message",
            extra={"extra_data": {"message_id": message_id, "error": result.detail}}
        )
        return _failure(
            500,
            "Message sent but could not be saved",
            details=result.detail,
            messageId=message_id,
        )

    logger.info(
        "Message sent to WhatsApp and saved",
        extra={"extra_data": {"message_id": message_id, "conversation_id": request_data.to}}
    )

    return SendMessageResponse(
        message_id=message_id,
        whatsapp_response=whatsapp_response,
    )
