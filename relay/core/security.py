"""
Webhook subscription handshake.
"""
import hmac
from typing import Optional

from relay.core.config import Settings
from relay.core.logging import get_logger

logger = get_logger(__name__)

SUBSCRIBE_MODE = "subscribe"


def verify_subscription(
    settings: Settings,
    mode: Optional[str],
    token: Optional[str],
) -> bool:
    """
    Check a ``hub.mode`` / ``hub.verify_token`` pair from the platform.

    Args:
        settings: Settings carrying the configured verify token
        mode: Value of ``hub.mode``; must be ``"subscribe"``
        token: Value of ``hub.verify_token``

    Returns:
        True if the endpoint should echo the challenge, False otherwise
    """
    if mode != SUBSCRIBE_MODE:
        logger.warning("Webhook verification rejected: unexpected mode", extra={"extra_data": {"mode": mode}})
        return False

    if not settings.is_verify_token_configured:
        logger.error("VERIFY_TOKEN environment variable not configured")
        return False

    if token is None or not hmac.compare_digest(
        token.encode("utf-8"), settings.verify_token.encode("utf-8")
    ):
        logger.warning("Webhook verification rejected: token mismatch")
        return False

    logger.info("WEBHOOK VERIFIED")
    return True
