"""
Schemas for the WhatsApp Cloud API webhook envelope.

Every level is optional: the platform sends status updates, reactions and
media through the same endpoint, so absence at any depth simply means there
is no text message to ingest. Only the fields the relay reads are declared,
and list elements are validated one at a time, so an odd sibling element or
an unexpected field type elsewhere never hides ``messages[0]``.
"""
from typing import Any, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, Field, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


class EnvelopeModel(BaseModel):
    """Base for envelope levels: ids may arrive as JSON numbers."""

    model_config = {
        "coerce_numbers_to_str": True,
        "populate_by_name": True,
    }


def first_of(items: Optional[List[Any]], model: Type[ModelT]) -> Optional[ModelT]:
    """Validate only ``items[0]``; None if it is absent or unusable."""
    if not items:
        return None
    try:
        return model.model_validate(items[0])
    except ValidationError:
        return None


class WebhookText(EnvelopeModel):
    body: Optional[str] = None


class WebhookInboundMessage(EnvelopeModel):
    """A message object from ``value.messages``."""

    id: Optional[str] = None
    from_: Optional[str] = Field(default=None, alias="from")
    type: Optional[str] = None
    text: Optional[WebhookText] = None
    timestamp: Optional[Union[int, str]] = Field(
        default=None,
        description="Epoch seconds, sent by the platform as a string",
    )


class WebhookContactProfile(EnvelopeModel):
    name: Optional[str] = None


class WebhookContact(EnvelopeModel):
    profile: Optional[WebhookContactProfile] = None


class WebhookMetadata(EnvelopeModel):
    phone_number_id: Optional[str] = None


class WebhookChangeValue(EnvelopeModel):
    metadata: Optional[WebhookMetadata] = None
    contacts: Optional[List[Any]] = None
    messages: Optional[List[Any]] = None

    def first_message(self) -> Optional[WebhookInboundMessage]:
        return first_of(self.messages, WebhookInboundMessage)

    def first_contact(self) -> Optional[WebhookContact]:
        return first_of(self.contacts, WebhookContact)


class WebhookChange(EnvelopeModel):
    value: Optional[WebhookChangeValue] = None


class WebhookEntry(EnvelopeModel):
    changes: Optional[List[Any]] = None


class WebhookPayload(EnvelopeModel):
    """Top-level envelope POSTed to ``/``."""

    entry: Optional[List[Any]] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "object": "whatsapp_business_account",
                "entry": [{
                    "id": "102290129340398",
                    "changes": [{
                        "field": "messages",
                        "value": {
                            "messaging_product": "whatsapp",
                            "metadata": {
                                "display_phone_number": "15550783881",
                                "phone_number_id": "106540352242922",
                            },
                            "contacts": [{"profile": {"name": "Alice"}, "wa_id": "15551234567"}],
                            "messages": [{
                                "from": "15551234567",
                                "id": "wamid.HBgLMTU1NTEyMzQ1NjcVAgASGBQzQTRBNjU5OUFFRTAzODEwMTQ0RgA=",
                                "timestamp": "1700000000",
                                "type": "text",
                                "text": {"body": "hi"},
                            }],
                        },
                    }],
                }],
            }
        }
    }

    def first_value(self) -> Optional[WebhookChangeValue]:
        """``entry[0].changes[0].value``, or None if any step is absent."""
        entry = first_of(self.entry, WebhookEntry)
        if entry is None:
            return None
        change = first_of(entry.changes, WebhookChange)
        if change is None:
            return None
        return change.value
