"""
Message persistence used by the /ws/messages handlers.

The store wraps a sync SQLAlchemy session factory behind coroutines. Every
call opens its own session in a worker thread and is bounded by
settings.WS_OPERATION_TIMEOUT. A call that times out keeps running in its
thread; its result is simply dropped.

Not-found is reported as None/False. Backend failures raise
SQLAlchemyError, timeouts raise TimeoutError.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload, sessionmaker

from teamspace.config import settings
from teamspace.database import SessionLocal
from teamspace.models.message import Message
from teamspace.models.reaction import MessageReaction
from teamspace.schemas.message import MediaMetadata, MessageResponse
from teamspace.services import reactions

logger = logging.getLogger(__name__)

T = TypeVar("T")


def message_to_response(message: Message) -> MessageResponse:
    return MessageResponse(
        id=message.id,
        channel_id=message.channel_id,
        user_id=message.user_id,
        content=message.content,
        message_type=message.message_type,
        media_path=message.media_path,
        media_metadata=MediaMetadata.model_validate(message.media_metadata) if message.media_metadata else None,
        created_at=message.created_at,
        updated_at=message.updated_at,
        is_pinned=message.is_pinned,
        reactions=reactions.group_reactions(message.reactions),
    )


def _load(db: Session, message_id: str, channel_id: str | None = None) -> Message | None:
    stmt = (
        select(Message)
        .where(Message.id == message_id)
        .options(selectinload(Message.reactions).selectinload(MessageReaction.users))
        .execution_options(populate_existing=True)
    )
    if channel_id is not None:
        stmt = stmt.where(Message.channel_id == channel_id)
    return db.execute(stmt).scalar_one_or_none()


class MessageStore:
    def __init__(self, session_factory: sessionmaker = SessionLocal, timeout: float | None = None) -> None:
        self._session_factory = session_factory
        self._timeout = settings.WS_OPERATION_TIMEOUT if timeout is None else timeout

    async def _run(self, fn: Callable[..., T], *args: Any) -> T:
        def call() -> T:
            with self._session_factory() as db:
                return fn(db, *args)

        return await asyncio.wait_for(asyncio.to_thread(call), timeout=self._timeout)

    # ------------------------------------------------------------------
    # Public coroutine API
    # ------------------------------------------------------------------

    async def create_message(
        self,
        channel_id: str,
        user_id: str,
        content: str,
        message_type: str,
        media_path: str | None = None,
        media_metadata: dict | None = None,
    ) -> MessageResponse:
        return await self._run(
            self._create_message, channel_id, user_id, content, message_type, media_path, media_metadata
        )

    async def get_message(self, message_id: str, channel_id: str | None = None) -> MessageResponse | None:
        return await self._run(self._get_message, message_id, channel_id)

    async def list_channel_messages(self, channel_id: str, limit: int, skip: int = 0) -> list[MessageResponse]:
        return await self._run(self._list_channel_messages, channel_id, limit, skip)

    async def update_message(self, channel_id: str, message_id: str, changes: dict) -> MessageResponse | None:
        return await self._run(self._update_message, channel_id, message_id, changes)

    async def delete_message(self, channel_id: str, message_id: str) -> bool:
        return await self._run(self._delete_message, channel_id, message_id)

    async def add_reaction(self, channel_id: str, message_id: str, user_id: str, emoji: str) -> MessageResponse | None:
        return await self._run(self._add_reaction, channel_id, message_id, user_id, emoji)

    async def remove_reaction(
        self, channel_id: str, message_id: str, user_id: str, emoji: str
    ) -> MessageResponse | None:
        return await self._run(self._remove_reaction, channel_id, message_id, user_id, emoji)

    # ------------------------------------------------------------------
    # Sync implementations (run in a worker thread, one session each)
    # ------------------------------------------------------------------

    @staticmethod
    def _create_message(
        db: Session,
        channel_id: str,
        user_id: str,
        content: str,
        message_type: str,
        media_path: str | None,
        media_metadata: dict | None,
    ) -> MessageResponse:
        message = Message(
            channel_id=channel_id,
            user_id=user_id,
            content=content,
            message_type=message_type,
            media_path=media_path,
            media_metadata=media_metadata,
            is_pinned=False,
        )
        db.add(message)
        db.commit()
        logger.info("Created message %s in channel %s", message.id, channel_id)
        return message_to_response(_load(db, message.id))

    @staticmethod
    def _get_message(db: Session, message_id: str, channel_id: str | None) -> MessageResponse | None:
        message = _load(db, message_id, channel_id)
        return message_to_response(message) if message else None

    @staticmethod
    def _list_channel_messages(db: Session, channel_id: str, limit: int, skip: int) -> list[MessageResponse]:
        messages = (
            db.execute(
                select(Message)
                .where(Message.channel_id == channel_id)
                .options(selectinload(Message.reactions).selectinload(MessageReaction.users))
                .order_by(Message.created_at.desc(), Message.id.desc())
                .offset(skip)
                .limit(limit)
            )
            .scalars()
            .all()
        )
        return [message_to_response(m) for m in messages]

    @staticmethod
    def _update_message(db: Session, channel_id: str, message_id: str, changes: dict) -> MessageResponse | None:
        message = _load(db, message_id, channel_id)
        if message is None:
            logger.info("Message %s not found in channel %s for update", message_id, channel_id)
            return None
        for field, value in changes.items():
            setattr(message, field, value)
        message.updated_at = datetime.now(timezone.utc)
        db.commit()
        return message_to_response(_load(db, message_id))

    @staticmethod
    def _delete_message(db: Session, channel_id: str, message_id: str) -> bool:
        message = _load(db, message_id, channel_id)
        if message is None:
            logger.info("Message %s not found in channel %s for deletion", message_id, channel_id)
            return False
        db.delete(message)
        db.commit()
        return True

    @staticmethod
    def _add_reaction(db: Session, channel_id: str, message_id: str, user_id: str, emoji: str) -> MessageResponse | None:
        if _load(db, message_id, channel_id) is None:
            return None
        if not reactions.add_reaction(db, message_id, user_id, emoji):
            return None
        message = _load(db, message_id)
        return message_to_response(message) if message else None

    @staticmethod
    def _remove_reaction(
        db: Session, channel_id: str, message_id: str, user_id: str, emoji: str
    ) -> MessageResponse | None:
        if _load(db, message_id, channel_id) is None:
            return None
        if not reactions.remove_reaction(db, message_id, user_id, emoji):
            return None
        message = _load(db, message_id)
        return message_to_response(message) if message else None


def get_message_store() -> MessageStore:
    """FastAPI dependency; overridden in tests to bind the test engine."""
    return MessageStore()
