"""
Client for the WhatsApp Cloud API send endpoint.
"""
from typing import Any, Dict, Optional

import httpx

from relay.core.config import Settings
from relay.core.logging import get_logger

logger = get_logger(__name__)


class WhatsAppAPIError(Exception):
    """The send call failed before or at the platform.

    ``status_code`` is the platform's HTTP status, or None when no response
    was received (timeout, connection error).
    """

    def __init__(self, message: str, status_code: Optional[int] = None, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details if details is not None else message


def build_text_payload(to: str, body: str) -> Dict[str, Any]:
    """Payload for a plain text message to a single recipient."""
    return {
        "messaging_product": "whatsapp",
        "recipient_type": "individual",
        "to": to,
        "type": "text",
        "text": {
            "body": body,
        },
    }


def extract_message_id(response_data: Any) -> Optional[str]:
    """``messages[0].id`` from a send response, if present."""
    if not isinstance(response_data, dict):
        return None
    messages = response_data.get("messages")
    if not isinstance(messages, list) or not messages:
        return None
    first = messages[0]
    if not isinstance(first, dict):
        return None
    message_id = first.get("id")
    return message_id if isinstance(message_id, str) and message_id else None


def _response_details(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class WhatsAppClient:
    """Sends text messages on behalf of the configured business number."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self._transport = transport

    @property
    def phone_number_id(self) -> Optional[str]:
        return self.settings.whatsapp_phone_number_id

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.settings.whatsapp_access_token}",
        }

    async def send_text(self, to: str, body: str) -> Any:
        """
        POST a text message and return the decoded response body.

        Raises:
            WhatsAppAPIError: on a non-2xx response, a timeout or any other
                transport failure. No retry is attempted.
        """
        url = self.settings.whatsapp_messages_url
        payload = build_text_payload(to, body)

        logger.debug("Sending WhatsApp message", extra={"extra_data": {"to": to, "url": url}})

        try:
            async with httpx.AsyncClient(
                timeout=self.settings.whatsapp_timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(url, json=payload, headers=self._headers())
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            details = _response_details(exc.response)
            logger.error(
                "WhatsApp API rejected message",
                extra={"extra_data": {"to": to, "status_code": exc.response.status_code, "details": details}}
            )
            raise WhatsAppAPIError(
                f"WhatsApp API returned {exc.response.status_code}",
                status_code=exc.response.status_code,
                details=details,
            ) from exc
        except httpx.RequestError as exc:
            logger.error(
                "WhatsApp API request failed",
                extra={"extra_data": {"to": to, "error": repr(exc)}}
            )
            raise WhatsAppAPIError(str(exc) or exc.__class__.__name__) from exc

        return _response_details(response)
