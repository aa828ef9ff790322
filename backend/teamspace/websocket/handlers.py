import json
import logging

from fastapi import WebSocket, WebSocketDisconnect
from fastapi.websockets import WebSocketState
from pydantic import ValidationError
from sqlalchemy.orm import Session

from teamspace.core import events
from teamspace.core.ids import is_valid_object_id
from teamspace.models.business_membership import BusinessMembership
from teamspace.models.channel import CHANNEL_TYPE_MESSAGES, Channel
from teamspace.schemas.envelope import InboundEnvelope
from teamspace.services import auth_service
from teamspace.services.message_store import MessageStore
from teamspace.websocket.manager import Connection, ConnectionManager, manager
from teamspace.websocket.operations import (
    OPERATIONS,
    OperationContext,
    OperationError,
    describe_validation_error,
)

logger = logging.getLogger(__name__)

POLICY_VIOLATION = 1008


async def _admit(websocket: WebSocket, channel_id: str, token: str | None, db: Session) -> Connection | None:
    """Accept the socket, then check the token and channel access.

    Closes with 1008 and returns None when any check fails.
    """
    await websocket.accept()  # must accept before close() can carry a code

    user = auth_service.get_user_from_token(token, db) if token else None
    if user is None:
        logger.info("Rejected message socket for channel %s: invalid token", channel_id)
        await websocket.close(code=POLICY_VIOLATION)
        return None

    channel = None
    if is_valid_object_id(channel_id):
        channel = db.query(Channel).filter(Channel.id == channel_id).first()
    if channel is None or channel.type != CHANNEL_TYPE_MESSAGES:
        logger.info("Rejected message socket for user %s: no message channel %s", user.id, channel_id)
        await websocket.close(code=POLICY_VIOLATION)
        return None

    if BusinessMembership.find(db, channel.business_id, user.id) is None:
        logger.info("Rejected message socket for user %s: not a member of channel %s", user.id, channel_id)
        await websocket.close(code=POLICY_VIOLATION)
        return None

    return Connection(websocket=websocket, channel_id=channel.id, user_id=user.id)


async def dispatch_frame(ctx: OperationContext, text: str) -> None:
    """Decode one text frame and run its operation.

    Never raises: every failure becomes exactly one error event to the sender.
    """
    try:
        envelope = InboundEnvelope.model_validate(json.loads(text))
    except ValidationError as exc:
        await ctx.manager.send_error(ctx.conn, "Invalid message format", describe_validation_error(exc))
        return
    except ValueError as exc:
        await ctx.manager.send_error(ctx.conn, "Invalid message format", str(exc))
        return
    except RecursionError:
        await ctx.manager.send_error(ctx.conn, "Invalid message format", "nesting too deep")
        return

    operation = OPERATIONS.get(envelope.type)
    if operation is None:
        await ctx.manager.send_error(ctx.conn, f"Unknown message type: {envelope.type}")
        return

    try:
        await operation(ctx, envelope.payload)
    except OperationError as exc:
        logger.info("%s on channel %s (user %s): %s", envelope.type, ctx.channel_id, ctx.user_id, exc)
        await ctx.manager.send_error(ctx.conn, exc.message, exc.detail)
    except Exception as exc:
        logger.error("Unhandled error in %s on channel %s: %s", envelope.type, ctx.channel_id, exc, exc_info=True)
        await ctx.manager.send_error(ctx.conn, f"Failed to process {envelope.type}")


async def message_ws_handler(
    websocket: WebSocket,
    channel_id: str,
    token: str | None,
    db: Session,
    store: MessageStore,
    connections: ConnectionManager = manager,
) -> None:
    """Full lifecycle handler for a message-channel WebSocket connection."""
    try:
        conn = await _admit(websocket, channel_id, token, db)
    finally:
        # Admission only reads. Hand the pooled connection back before the socket idles.
        db.rollback()
    if conn is None:
        return

    connections.connect(conn)
    ctx = OperationContext(conn=conn, store=store, manager=connections)
    try:
        await connections.send_personal(conn, events.CHANNEL_JOINED, {"channelId": conn.channel_id})
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                break
            text = frame.get("text")
            if text is None:
                # binary frames carry nothing we understand
                continue
            await dispatch_frame(ctx, text)
    except WebSocketDisconnect:
        pass
    except Exception as exc:
        logger.info("Read loop for connection %s on channel %s ended: %r", conn.id, conn.channel_id, exc)
    finally:
        connections.disconnect(conn)
        if websocket.application_state != WebSocketState.DISCONNECTED and (
            websocket.client_state != WebSocketState.DISCONNECTED
        ):
            try:
                await websocket.close()
            except Exception as exc:
                logger.debug("Closing connection %s failed: %r", conn.id, exc)
