"""
Socket.IO push transport.

Wraps python-socketio's AsyncClient with its own reconnection disabled:
the StreamClient decides when to reconnect so that every outage is seen
as a disconnect/connect pair and triggers a resync.
"""

from __future__ import annotations

from typing import List, Optional

import socketio
from socketio.exceptions import ConnectionError as SocketIOConnectionError

from ...domain.interfaces.push_transport import MessageHandler, PushTransport
from ...utils.logging_setup import get_logger

logger = get_logger(__name__)


class SocketIOTransport(PushTransport):
    """PushTransport over a Socket.IO connection."""

    def __init__(
        self,
        url: str,
        socketio_path: str = "socket.io",
        transports: Optional[List[str]] = None,
        connect_timeout_sec: float = 5.0,
        client: Optional[socketio.AsyncClient] = None,
    ) -> None:
        self.url = url
        self.socketio_path = socketio_path
        self.transports = transports or ["websocket", "polling"]
        self.connect_timeout_sec = connect_timeout_sec
        self._sio = client or socketio.AsyncClient(reconnection=False, logger=False)

    def on(self, event_name: str, handler: MessageHandler) -> None:
        self._sio.on(event_name, handler)

    async def connect(self) -> None:
        try:
            await self._sio.connect(
                self.url,
                transports=self.transports,
                socketio_path=self.socketio_path,
                wait_timeout=self.connect_timeout_sec,
            )
        except SocketIOConnectionError as e:
            raise ConnectionError(f"Socket.IO connect to {self.url} failed: {e}") from e
        logger.info(f"Socket.IO connected to {self.url} (sid={self._sio.sid})")

    async def wait_closed(self) -> None:
        await self._sio.wait()

    async def disconnect(self) -> None:
        if self._sio.connected:
            await self._sio.disconnect()

    def is_connected(self) -> bool:
        return bool(self._sio.connected)
