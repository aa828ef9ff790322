import logging
import threading
from collections.abc import Awaitable, Callable, Hashable

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """Channel id -> set of live connections.

    All mutation happens under a lock and readers work on snapshots, so
    register/unregister can run while a broadcast is iterating. A channel
    key exists only while it has at least one connection.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        # channel_id -> {connection, ...}
        self._channels: dict[str, set[Hashable]] = {}

    def register(self, channel_id: str, connection: Hashable) -> None:
        with self._lock:
            self._channels.setdefault(channel_id, set()).add(connection)
            total = len(self._channels[channel_id])
        logger.info("Connection registered on channel %s (%d active)", channel_id, total)

    def unregister(self, channel_id: str, connection: Hashable) -> bool:
        """Remove a connection. Returns False if it was not registered."""
        with self._lock:
            conns = self._channels.get(channel_id)
            if conns is None or connection not in conns:
                return False
            conns.discard(connection)
            if not conns:
                del self._channels[channel_id]
            remaining = len(conns)
        logger.info("Connection unregistered from channel %s (%d remaining)", channel_id, remaining)
        return True

    def connections(self, channel_id: str) -> list[Hashable]:
        """Snapshot of a channel's connections."""
        with self._lock:
            return list(self._channels.get(channel_id, ()))

    def channel_ids(self) -> list[str]:
        with self._lock:
            return list(self._channels)

    def count(self, channel_id: str | None = None) -> int:
        with self._lock:
            if channel_id is not None:
                return len(self._channels.get(channel_id, ()))
            return sum(len(conns) for conns in self._channels.values())

    def is_registered(self, channel_id: str, connection: Hashable) -> bool:
        with self._lock:
            return connection in self._channels.get(channel_id, ())

    def __contains__(self, channel_id: object) -> bool:
        with self._lock:
            return channel_id in self._channels

    async def for_each(
        self,
        channel_id: str,
        fn: Callable[[Hashable], Awaitable[None]],
        exclude: Hashable | None = None,
    ) -> tuple[int, list[Hashable]]:
        """Await fn(connection) for every connection on a channel.

        Works on a snapshot; a connection unregistered after the snapshot
        was taken is skipped, as is `exclude`. Exceptions from fn never stop
        the iteration: the connection is collected in the returned failure
        list instead.
        Returns (delivered, failed).
        """
        delivered = 0
        failed: list[Hashable] = []
        for conn in self.connections(channel_id):
            if conn is exclude or not self.is_registered(channel_id, conn):
                continue
            try:
                await fn(conn)
            except Exception as exc:
                logger.warning("Send to connection on channel %s failed: %r", channel_id, exc)
                failed.append(conn)
            else:
                delivered += 1
        return delivered, failed
