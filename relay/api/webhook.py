"""
Webhook endpoints called by the WhatsApp Cloud API.
"""
import json
from datetime import datetime, timezone
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse

from relay.core.context import AppContext, get_context
from relay.core.logging import get_logger
from relay.core.security import verify_subscription
from relay.services.ingest import ingest_payload

logger = get_logger(__name__)

router = APIRouter(tags=["Webhook"])


@router.get(
    "/",
    response_class=PlainTextResponse,
    responses={403: {"description": "Verification failed"}},
    summary="Verify webhook subscription",
    description="Echo hub.challenge when hub.mode is 'subscribe' and hub.verify_token matches VERIFY_TOKEN."
)
async def verify_webhook(
    context: Annotated[AppContext, Depends(get_context)],
    mode: Annotated[Optional[str], Query(alias="hub.mode")] = None,
    challenge: Annotated[Optional[str], Query(alias="hub.challenge")] = None,
    token: Annotated[Optional[str], Query(alias="hub.verify_token")] = None,
) -> Response:
    if verify_subscription(context.settings, mode, token):
        return PlainTextResponse(content=challenge or "", status_code=200)
    return Response(status_code=403)


@router.post(
    "/",
    status_code=200,
    response_class=Response,
    summary="Receive webhook event",
    description="Store the first text message of the event. Always answers 200 so the platform does not redeliver."
)
async def receive_webhook(
    request: Request,
    context: Annotated[AppContext, Depends(get_context)],
) -> Response:
    """
    Ingest an inbound WhatsApp event.

    - Non-JSON bodies, status updates and non-text messages are ignored
    - Redelivered messages are deduplicated by message id
    - Storage failures are logged, never surfaced to the platform
    """
    received = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
    raw_body = await request.body()

    try:
        payload = json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning(f"Invalid JSON in webhook request: {e}")
        return Response(status_code=200)

    logger.info(f"Webhook received {received}")
    logger.debug("Webhook payload", extra={"extra_data": {"payload": payload}})

    await run_in_threadpool(ingest_payload, context.store, payload)

    return Response(status_code=200)
