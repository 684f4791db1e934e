"""
Shared fixtures: a throwaway SQLite store and a fake WhatsApp send API.
"""
import threading
from typing import Any, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from relay.core.config import Settings
from relay.core.context import AppContext
from relay.core.database import create_db_engine, create_session_factory
from relay.main import create_app
from relay.services.store import InsertResult, InsertStatus, MessageStore, StoreError
from relay.services.whatsapp import WhatsAppClient


TEST_VERIFY_TOKEN = "test-verify-token-12345"
TEST_ACCESS_TOKEN = "test-access-token"
PHONE_NUMBER_ID = "106540352242922"


class FakeGraphAPI:
    """Stands in for the WhatsApp Cloud API send endpoint."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.status_code = 200
        self.body: Any = None
        self.connect_error = False
        self.reply_with_message_id("wamid.outgoing-1")

    def reply_with_message_id(self, message_id: str) -> None:
        self.status_code = 200
        self.body = {
            "messaging_product": "whatsapp",
            "contacts": [{"input": "15551234567", "wa_id": "15551234567"}],
            "messages": [{"id": message_id}],
        }

    def reply(self, status_code: int, body: Any) -> None:
        self.status_code = status_code
        self.body = body

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.connect_error:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(self.status_code, json=self.body)


class UnavailableStore:
    """A store whose database is down."""

    def init_schema(self) -> None:
        pass

    def ping(self) -> bool:
        return False

    def insert_unique(self, data) -> InsertResult:
        return InsertResult(InsertStatus.FAILED, detail="database is locked")

    def list_by_conversation(self, conversation_id: str):
        raise StoreError("database is locked")

    def aggregate_conversations(self):
        raise StoreError("database is locked")


class RendezvousStore:
    """A store whose calls only return once `parties` of them are in flight together."""

    def __init__(self, parties: int, timeout: float = 5.0):
        self.barrier = threading.Barrier(parties, timeout=timeout)

    def init_schema(self) -> None:
        pass

    def ping(self) -> bool:
        return True

    def insert_unique(self, data) -> InsertResult:
        self.barrier.wait()
        return InsertResult(InsertStatus.INSERTED)

    def list_by_conversation(self, conversation_id: str):
        self.barrier.wait()
        return []

    def aggregate_conversations(self):
        self.barrier.wait()
        return []


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        verify_token=TEST_VERIFY_TOKEN,
        database_url=f"sqlite:///{tmp_path / 'test_messages.db'}",
        whatsapp_phone_number_id=PHONE_NUMBER_ID,
        whatsapp_access_token=TEST_ACCESS_TOKEN,
        log_level="DEBUG",
        log_format="text",
    )


@pytest.fixture
def store(settings):
    """A fresh message store for each test."""
    engine = create_db_engine(settings)
    message_store = MessageStore(engine, create_session_factory(engine))
    message_store.init_schema()
    yield message_store
    engine.dispose()


@pytest.fixture
def graph_api() -> FakeGraphAPI:
    return FakeGraphAPI()


def make_context(settings: Settings, store, graph_api: FakeGraphAPI) -> AppContext:
    return AppContext(
        settings=settings,
        store=store,
        whatsapp=WhatsAppClient(settings, transport=httpx.MockTransport(graph_api)),
    )


@pytest.fixture
def client(settings, store, graph_api):
    """Test client wired to the temporary store and the fake send API."""
    return TestClient(create_app(context=make_context(settings, store, graph_api)))


@pytest.fixture
def unavailable_client(settings, graph_api):
    """Test client whose store always fails."""
    return TestClient(create_app(context=make_context(settings, UnavailableStore(), graph_api)))


def text_event(
    message_id: str = "wamid.incoming-1",
    sender: str = "15551234567",
    name: Optional[str] = "Alice",
    body: str = "hi",
    timestamp: Any = "1700000000",
    message_type: str = "text",
) -> dict:
    """Build a WhatsApp Cloud API webhook payload carrying one message."""
    message = {
        "from": sender,
        "id": message_id,
        "timestamp": timestamp,
        "type": message_type,
    }
    if message_type == "text":
        message["text"] = {"body": body}
    else:
        message[message_type] = {"id": "media-1", "mime_type": "image/jpeg"}

    contacts = [{"profile": {"name": name}, "wa_id": sender}] if name is not None else []

    return {
        "object": "whatsapp_business_account",
        "entry": [{
            "id": "102290129340398",
            "changes": [{
                "field": "messages",
                "value": {
                    "messaging_product": "whatsapp",
                    "metadata": {
                        "display_phone_number": "15550783881",
                        "phone_number_id": PHONE_NUMBER_ID,
                    },
                    "contacts": contacts,
                    "messages": [message],
                },
            }],
        }],
    }
