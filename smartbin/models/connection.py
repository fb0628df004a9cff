"""Push channel connection state."""

from __future__ import annotations
from enum import Enum


class ConnectionState(Enum):
    """Lifecycle of the push channel, owned by StreamClient."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
