"""
Message store: idempotent inserts and the conversation queries.
"""
import enum
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import case, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from relay.core.database import check_db_connection, init_db
from relay.core.logging import get_logger
from relay.models.message import Direction, Message
from relay.schemas.message import ConversationSummary, MessageCreate, MessageResponse

logger = get_logger(__name__)


class StoreError(Exception):
    """The store could not complete a read."""


class InsertStatus(str, enum.Enum):
    INSERTED = "inserted"
    DUPLICATE = "duplicate"
    FAILED = "failed"


@dataclass(frozen=True)
class InsertResult:
    """Outcome of :meth:`MessageStore.insert_unique`."""

    status: InsertStatus
    detail: Optional[str] = None

    @property
    def inserted(self) -> bool:
        return self.status is InsertStatus.INSERTED


def _to_response(message: Message) -> MessageResponse:
    return MessageResponse(
        message_id=message.message_id,
        conversation_id=message.conversation_id,
        sender=message.sender,
        sender_name=message.sender_name,
        recipient=message.recipient,
        body=message.body,
        timestamp=message.timestamp,
        direction=message.direction,
        status=message.status,
    )


class MessageStore:
    """Persistence for messages, one session per operation."""

    def __init__(self, engine: Engine, session_factory: sessionmaker):
        self.engine = engine
        self._session_factory = session_factory

    def init_schema(self) -> None:
        init_db(self.engine)

    def ping(self) -> bool:
        return check_db_connection(self.engine)

    def insert_unique(self, data: MessageCreate) -> InsertResult:
        """
        Insert a message unless its message_id is already stored.

        Never raises: a unique-key collision yields ``DUPLICATE`` and any
        other database failure yields ``FAILED`` with a detail string.
        """
        message = Message(**data.model_dump())

        with self._session_factory() as db:
            try:
                db.add(message)
                db.commit()
            except IntegrityError as e:
                db.rollback()
                # Only the message_id constraint makes this a redelivery
                if self._exists(db, data.message_id):
                    return InsertResult(InsertStatus.DUPLICATE)
                return InsertResult(InsertStatus.FAILED, detail=str(e.orig))
            except SQLAlchemyError as e:
                db.rollback()
                return InsertResult(InsertStatus.FAILED, detail=str(e))

        logger.debug(
            "Message stored",
            extra={
                "extra_data": {
                    "message_id": data.message_id,
                    "conversation_id": data.conversation_id,
                    "direction": data.direction.value,
                }
            }
        )
        return InsertResult(InsertStatus.INSERTED)

    def _exists(self, db, message_id: str) -> bool:
        try:
            return db.query(Message.message_id).filter(
                Message.message_id == message_id
            ).first() is not None
        except SQLAlchemyError:
            return False

    def count(self) -> int:
        try:
            with self._session_factory() as db:
                return db.query(func.count(Message.message_id)).scalar() or 0
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e

    def list_by_conversation(self, conversation_id: str) -> List[MessageResponse]:
        """All messages of a conversation, oldest first."""
        try:
            with self._session_factory() as db:
                rows = (
                    db.query(Message)
                    .filter(Message.conversation_id == conversation_id)
                    .order_by(Message.timestamp.asc(), Message.message_id.asc())
                    .all()
                )
                return [_to_response(row) for row in rows]
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e

    def aggregate_conversations(self) -> List[ConversationSummary]:
        """
        One summary per conversation, most recently active first.

        The latest message and the incoming count are both taken over the
        same ``conversation_id`` partition, so a summary never mixes rows
        from different threads.
        """
        position = func.row_number().over(
            partition_by=Message.conversation_id,
            order_by=(Message.timestamp.desc(), Message.message_id.desc()),
        )
        incoming_count = func.sum(
            case((Message.direction == Direction.INCOMING, 1), else_=0)
        ).over(partition_by=Message.conversation_id)

        ranked = select(
            Message.conversation_id,
            Message.body,
            Message.timestamp,
            Message.sender_name,
            position.label("position"),
            incoming_count.label("incoming_count"),
        ).subquery("ranked")

        try:
            with self._session_factory() as db:
                rows = (
                    db.query(ranked)
                    .filter(ranked.c.position == 1)
                    .order_by(ranked.c.timestamp.desc(), ranked.c.conversation_id.asc())
                    .all()
                )
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e

        return [
            ConversationSummary(
                conversation_id=row.conversation_id,
                last_message_body=row.body,
                last_message_time=row.timestamp,
                from_name=row.sender_name,
                incoming_count=int(row.incoming_count or 0),
            )
            for row in rows
        ]
