import asyncio
from typing import Dict, Iterable
from uuid import uuid4

from fastapi import WebSocket

from musicsync.config import get_settings
from musicsync.core.exceptions import OriginRejected
from musicsync.core.logging import get_logger

logger = get_logger("WebSocketManager")


class WebSocketManager:
    """
    Owns the live event connections, one per participant.
    Handles the connection lifecycle and delivery of outbound frames.

    Each connection has a bounded outbound queue drained by its own writer
    task, so a slow socket only delays its own frames. When a queue is full
    the oldest frame is dropped.
    """

    def __init__(self, allowed_origins: Iterable[str] | None = None, queue_size: int | None = None):
        settings = get_settings()
        # connection_id -> WebSocket
        self.active_connections: Dict[str, WebSocket] = {}
        # connection_id -> outbound queue, and the task draining it
        self._outbound: Dict[str, asyncio.Queue] = {}
        self._writers: Dict[str, asyncio.Task] = {}
        if allowed_origins is None:
            allowed_origins = settings.allowed_cors_origins
        self.allowed_origins = set(allowed_origins)
        self.queue_size = queue_size or settings.outbound_queue_size

    def check_origin(self, origin: str | None) -> None:
        """
        Gate a connection on its Origin header.

        Clients that send no Origin (native apps, curl) are let through.

        Raises:
            OriginRejected: the origin is not on the allow-list
        """
        if origin is None or origin in self.allowed_origins:
            return
        raise OriginRejected(origin)

    async def connect(self, websocket: WebSocket) -> str:
        """
        Accept and register a new connection and start its writer.

        Args:
            websocket: WebSocket connection

        Returns:
            The connection id that identifies it from now on
        """
        await websocket.accept()

        connection_id = uuid4().hex
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        self.active_connections[connection_id] = websocket
        self._outbound[connection_id] = queue
        self._writers[connection_id] = asyncio.create_task(self._write(connection_id, websocket, queue))
        return connection_id

    async def disconnect(self, connection_id: str) -> None:
        """Unregister a connection and stop its writer. Frames still queued are discarded."""
        self.active_connections.pop(connection_id, None)
        self._outbound.pop(connection_id, None)
        writer = self._writers.pop(connection_id, None)
        if writer is None:
            return

        writer.cancel()
        try:
            await writer
        except asyncio.CancelledError:
            pass

    async def send(self, connection_id: str, message: dict) -> None:
        """
        Queue a frame for one connection. Fire-and-forget: never waits on the
        socket, and failures are logged by the writer.

        Args:
            connection_id: Target connection
            message: Frame to send (will be JSON serialized)
        """
        queue = self._outbound.get(connection_id)
        if queue is None:
            logger.debug(f"Dropping {message.get('type')} for closed connection {connection_id}")
            return

        if queue.full():
            dropped = queue.get_nowait()
            logger.warning(f"Outbound queue of {connection_id} full, dropped {dropped.get('type')}")
        queue.put_nowait(message)

    async def _write(self, connection_id: str, websocket: WebSocket, queue: asyncio.Queue) -> None:
        while True:
            message = await queue.get()
            try:
                await websocket.send_json(message)
            except Exception as e:
                # The receive loop of that connection handles the cleanup
                logger.warning(f"Failed to send {message.get('type')} to {connection_id}: {e}")

    def get_connection_count(self) -> int:
        return len(self.active_connections)


# Global WebSocket manager instance
websocket_manager = WebSocketManager()
