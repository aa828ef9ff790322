"""
Handlers for the operations accepted on /ws/messages/{channel_id}.

Each handler receives the raw ``payload`` object of an inbound frame,
validates it, calls the MessageStore and writes the result. Replies go to
the sending connection; mutations are also broadcast to the rest of the
channel under a different event type.

Anything the client should hear about is raised as OperationError and
turned into one ``error`` event by the dispatcher.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError

from teamspace.config import settings
from teamspace.core import events
from teamspace.schemas.message import (
    MessageCreatePayload,
    MessageDeletedResponse,
    MessageDeletePayload,
    MessageHistoryPayload,
    MessageUpdatePayload,
    ReactionPayload,
)
from teamspace.services.message_store import MessageStore
from teamspace.services.reactions import ReactionRaceError
from teamspace.websocket.manager import Connection, ConnectionManager

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)
T = TypeVar("T")


class OperationError(Exception):
    """A failure reported to the sender as ``"<message>"`` or ``"<message>: <detail>"``."""

    def __init__(self, message: str, detail: str | None = None) -> None:
        self.message = message
        self.detail = detail
        super().__init__(f"{message}: {detail}" if detail else message)


@dataclass
class OperationContext:
    conn: Connection
    store: MessageStore
    manager: ConnectionManager

    @property
    def channel_id(self) -> str:
        return self.conn.channel_id

    @property
    def user_id(self) -> str:
        return self.conn.user_id

    async def reply(self, event_type: str, payload: Any) -> None:
        await self.manager.send_personal(self.conn, event_type, payload)

    async def reply_and_broadcast(self, direct_type: str, broadcast_type: str, payload: Any) -> None:
        await self.manager.send_personal(self.conn, direct_type, payload)
        await self.manager.broadcast(self.channel_id, broadcast_type, payload, exclude=self.conn)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


def _parse(model: type[M], payload: Any) -> M:
    try:
        return model.model_validate(payload if payload is not None else {})
    except ValidationError as exc:
        raise OperationError("Invalid message format", describe_validation_error(exc)) from exc


def _acting_user(ctx: OperationContext, claimed_user_id: str | None) -> str:
    if claimed_user_id is not None and claimed_user_id != ctx.user_id:
        raise OperationError("userId does not match the authenticated user")
    return ctx.user_id


async def _persist(call: Awaitable[T], failure: str) -> T:
    try:
        return await call
    except asyncio.TimeoutError as exc:
        logger.error("%s: timed out after %.1fs", failure, settings.WS_OPERATION_TIMEOUT)
        raise OperationError(failure, "operation timed out") from exc
    except (SQLAlchemyError, ReactionRaceError) as exc:
        logger.error("%s: %s", failure, exc, exc_info=True)
        raise OperationError(failure, "database error") from exc


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


async def create_message(ctx: OperationContext, payload: Any) -> None:
    data = _parse(MessageCreatePayload, payload)
    user_id = _acting_user(ctx, data.user_id)
    if not data.content.strip() and not data.media_path:
        raise OperationError("Invalid message format", "content or mediaPath is required")

    message = await _persist(
        ctx.store.create_message(
            channel_id=ctx.channel_id,
            user_id=user_id,
            content=data.content,
            message_type=data.message_type,
            media_path=data.media_path,
            media_metadata=data.media_metadata.model_dump() if data.media_metadata else None,
        ),
        "Failed to create message",
    )
    await ctx.reply_and_broadcast(events.MESSAGE_CREATED, events.NEW_MESSAGE, message.to_wire())


async def get_message_history(ctx: OperationContext, payload: Any) -> None:
    data = _parse(MessageHistoryPayload, payload)
    limit = data.limit or settings.MESSAGE_HISTORY_DEFAULT_LIMIT
    limit = min(limit, settings.MESSAGE_HISTORY_MAX_LIMIT)

    messages = await _persist(
        ctx.store.list_channel_messages(ctx.channel_id, limit=limit, skip=data.skip),
        "Failed to retrieve message history",
    )
    await ctx.reply(events.MESSAGE_HISTORY, [m.to_wire() for m in messages])


async def update_message(ctx: OperationContext, payload: Any) -> None:
    data = _parse(MessageUpdatePayload, payload)
    changes = data.changes()
    if not changes:
        raise OperationError("No data to update")

    existing = await _persist(ctx.store.get_message(data.id, ctx.channel_id), "Failed to update message")
    if existing is None:
        raise OperationError("Message not found for update")
    # Pinning is open to everyone on the channel; edits are not.
    if set(changes) != {"is_pinned"} and existing.user_id != ctx.user_id:
        raise OperationError("Only the message author can edit this message")

    updated = await _persist(
        ctx.store.update_message(ctx.channel_id, data.id, changes),
        "Failed to update message",
    )
    if updated is None:
        raise OperationError("Message not found for update")
    await ctx.reply_and_broadcast(events.MESSAGE_UPDATED, events.MESSAGE_UPDATED, updated.to_wire())


async def delete_message(ctx: OperationContext, payload: Any) -> None:
    data = _parse(MessageDeletePayload, payload)

    existing = await _persist(ctx.store.get_message(data.id, ctx.channel_id), "Failed to delete message")
    if existing is None:
        raise OperationError("Message not found for deletion")
    if existing.user_id != ctx.user_id:
        raise OperationError("Only the message author can delete this message")

    deleted = await _persist(ctx.store.delete_message(ctx.channel_id, data.id), "Failed to delete message")
    if not deleted:
        raise OperationError("Message not found for deletion")

    body = MessageDeletedResponse(id=data.id).model_dump(by_alias=True)
    await ctx.reply_and_broadcast(events.MESSAGE_DELETED, events.MESSAGE_DELETED, body)


async def add_reaction(ctx: OperationContext, payload: Any) -> None:
    data = _parse(ReactionPayload, payload)
    user_id = _acting_user(ctx, data.user_id)

    updated = await _persist(
        ctx.store.add_reaction(ctx.channel_id, data.message_id, user_id, data.emoji),
        "Failed to add reaction",
    )
    if updated is None:
        raise OperationError("Message not found to add reaction")
    await ctx.reply_and_broadcast(events.REACTION_ADDED, events.REACTION_ADDED, updated.to_wire())


async def remove_reaction(ctx: OperationContext, payload: Any) -> None:
    data = _parse(ReactionPayload, payload)
    user_id = _acting_user(ctx, data.user_id)

    updated = await _persist(
        ctx.store.remove_reaction(ctx.channel_id, data.message_id, user_id, data.emoji),
        "Failed to remove reaction",
    )
    if updated is None:
        raise OperationError("Message or reaction not found for removal")
    await ctx.reply_and_broadcast(events.REACTION_REMOVED, events.REACTION_REMOVED, updated.to_wire())


OPERATIONS: dict[str, Callable[[OperationContext, Any], Awaitable[None]]] = {
    events.CLIENT_MESSAGE: create_message,
    events.CREATE_MESSAGE: create_message,
    events.GET_MESSAGE_HISTORY: get_message_history,
    events.UPDATE_MESSAGE: update_message,
    events.DELETE_MESSAGE: delete_message,
    events.ADD_REACTION: add_reaction,
    events.REMOVE_REACTION: remove_reaction,
}
