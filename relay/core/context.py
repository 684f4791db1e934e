"""
Process-wide application context shared by all request handlers.
"""
from dataclasses import dataclass

from fastapi import Request

from relay.core.config import Settings
from relay.core.database import create_db_engine, create_session_factory
from relay.services.store import MessageStore
from relay.services.whatsapp import WhatsAppClient


@dataclass
class AppContext:
    """Settings plus the two collaborators every handler works against."""

    settings: Settings
    store: MessageStore
    whatsapp: WhatsAppClient


def build_context(settings: Settings) -> AppContext:
    """Wire the real store and send client from settings."""
    engine = create_db_engine(settings)
    store = MessageStore(engine, create_session_factory(engine))
    return AppContext(
        settings=settings,
        store=store,
        whatsapp=WhatsAppClient(settings),
    )


def get_context(request: Request) -> AppContext:
    """FastAPI dependency returning the context attached at startup."""
    return request.app.state.context
