import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any

from fastapi import WebSocket

from teamspace.config import settings
from teamspace.core import events
from teamspace.core.ids import new_object_id
from teamspace.websocket.registry import ConnectionRegistry

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Connection:
    """One admitted socket on a message channel.

    Compared and hashed by identity: the same user may hold several
    connections to one channel and each is tracked separately.
    """

    websocket: WebSocket
    channel_id: str
    user_id: str
    id: str = field(default_factory=new_object_id)

    async def send_text(self, text: str) -> None:
        await asyncio.wait_for(self.websocket.send_text(text), timeout=settings.WS_SEND_TIMEOUT)

    async def close(self, code: int = 1000) -> None:
        await self.websocket.close(code=code)


def encode_event(event_type: str, payload: Any) -> str:
    return json.dumps({"type": event_type, "payload": payload})


class ConnectionManager:
    """Routes events to the connections registered on each channel.

    Connections are stored as {channel_id: {Connection, ...}} in a
    ConnectionRegistry. A connection that fails a send during a broadcast
    is unregistered and closed once the broadcast pass is over.
    """

    def __init__(self, registry: ConnectionRegistry | None = None) -> None:
        self.registry = registry or ConnectionRegistry()

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def connect(self, conn: Connection) -> None:
        """Register an already-accepted connection."""
        self.registry.register(conn.channel_id, conn)
        logger.info("WebSocket %s connected to channel %s (user %s)", conn.id, conn.channel_id, conn.user_id)

    def disconnect(self, conn: Connection) -> None:
        if self.registry.unregister(conn.channel_id, conn):
            logger.info("WebSocket %s disconnected from channel %s (user %s)", conn.id, conn.channel_id, conn.user_id)

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    async def broadcast(
        self,
        channel_id: str,
        event_type: str,
        payload: Any,
        exclude: Connection | None = None,
    ) -> int:
        """Send one event to every connection on a channel except `exclude`.

        The frame is serialized once. Returns the number of successful
        deliveries; failing connections are dropped afterwards.
        """
        text = encode_event(event_type, payload)

        async def send(conn: Connection) -> None:
            await conn.send_text(text)

        delivered, failed = await self.registry.for_each(channel_id, send, exclude=exclude)

        for conn in failed:
            self.disconnect(conn)
        for conn in failed:
            try:
                await conn.close(code=1011)
            except Exception as exc:
                logger.debug("Closing dead connection %s failed: %r", conn.id, exc)

        if failed:
            logger.warning(
                "Broadcast %s on channel %s: %d delivered, %d dropped", event_type, channel_id, delivered, len(failed)
            )
        return delivered

    async def send_personal(self, conn: Connection, event_type: str, payload: Any) -> bool:
        """Send one event to a single connection. Failures are logged, not raised."""
        try:
            await conn.send_text(encode_event(event_type, payload))
            return True
        except Exception as exc:
            logger.warning("Direct send %s to connection %s failed: %r", event_type, conn.id, exc)
            return False

    async def send_error(self, conn: Connection, message: str, detail: str | None = None) -> bool:
        text = f"{message}: {detail}" if detail else message
        return await self.send_personal(conn, events.ERROR, text)

    async def close_all(self, code: int = 1001) -> int:
        """Unregister and close every live connection. Used on shutdown."""
        closed = 0
        for channel_id in self.registry.channel_ids():
            for conn in self.registry.connections(channel_id):
                self.disconnect(conn)
                try:
                    await conn.close(code=code)
                    closed += 1
                except Exception as exc:
                    logger.debug("Closing connection %s on shutdown failed: %r", conn.id, exc)
        return closed


manager = ConnectionManager()
