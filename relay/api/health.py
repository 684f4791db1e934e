"""
Health check endpoint.
"""
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends

from relay.core.context import AppContext, get_context
from relay.core.logging import get_logger
from relay.schemas.message import HealthResponse

logger = get_logger(__name__)

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Always returns 200; reports whether the database is reachable."
)
def health(
    context: Annotated[AppContext, Depends(get_context)],
) -> HealthResponse:
    db_ok = context.store.ping()
    if not db_ok:
        logger.warning("Health check: database not reachable")

    return HealthResponse(
        status="ok",
        mongodb="connected" if db_ok else "disconnected",
        timestamp=datetime.now(timezone.utc),
    )
