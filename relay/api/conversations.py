"""
Read-only conversation endpoints for the frontend.
"""
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from relay.core.context import AppContext, get_context
from relay.core.logging import get_logger
from relay.schemas.message import ConversationsResponse, ErrorResponse, MessagesResponse
from relay.services.store import StoreError

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["Conversations"])


def _store_failure(error: StoreError) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error=str(error)).model_dump(exclude_none=True),
    )


@router.get(
    "/conversations",
    response_model=ConversationsResponse,
    responses={500: {"model": ErrorResponse, "description": "Store unavailable"}},
    summary="List conversations",
    description="One entry per counterpart, most recently active first."
)
def list_conversations(
    context: Annotated[AppContext, Depends(get_context)],
):
    """
    List conversation summaries.

    Each summary carries the latest message's body, time and sender name,
    plus the number of incoming messages in the thread.
    """
    try:
        conversations = context.store.aggregate_conversations()
    except StoreError as e:
        logger.error(f"Error fetching conversations: {e}")
        return _store_failure(e)

    logger.debug(
        "Listed conversations",
        extra={"extra_data": {"returned": len(conversations)}}
    )

    return ConversationsResponse(conversations=conversations)


@router.get(
    "/messages/{conversation_id}",
    response_model=MessagesResponse,
    responses={500: {"model": ErrorResponse, "description": "Store unavailable"}},
    summary="List messages of a conversation",
    description="All messages exchanged with one counterpart, oldest first."
)
def list_messages(
    conversation_id: str,
    context: Annotated[AppContext, Depends(get_context)],
):
    try:
        messages = context.store.list_by_conversation(conversation_id)
    except StoreError as e:
        logger.error(f"Error fetching messages: {e}")
        return _store_failure(e)

    logger.debug(
        "Listed messages",
        extra={
            "extra_data": {
                "conversation_id": conversation_id,
                "returned": len(messages),
            }
        }
    )

    return MessagesResponse(messages=messages)
