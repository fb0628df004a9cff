"""Push transport interface consumed by the StreamClient."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable


MessageHandler = Callable[[Any], None]


class PushTransport(ABC):
    """
    Interface for a long-lived push connection (e.g. Socket.IO).

    The transport only moves bytes; it must not reconnect on its own.
    Reconnection, backoff and signal routing belong to the StreamClient.
    """

    @abstractmethod
    def on(self, event_name: str, handler: MessageHandler) -> None:
        """
        Register the handler for a named message event.

        Handlers are called on the event loop thread with the decoded body.
        """
        pass

    @abstractmethod
    async def connect(self) -> None:
        """
        Open the connection.

        Raises:
            ConnectionError: If the connection cannot be established.
        """
        pass

    @abstractmethod
    async def wait_closed(self) -> None:
        """Return once the open connection has dropped."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the connection if open. Safe to call when already closed."""
        pass

    @abstractmethod
    def is_connected(self) -> bool:
        pass
