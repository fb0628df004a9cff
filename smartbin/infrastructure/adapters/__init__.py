"""Backend adapters: HTTP client, push transport, payload parsing."""

from .backend_client import BackendClient
from .socketio_transport import SocketIOTransport
from .payloads import (
    normalize_image_ref,
    parse_record,
    parse_history,
    parse_stats,
    parse_device_status,
)

__all__ = [
    "BackendClient",
    "SocketIOTransport",
    "normalize_image_ref",
    "parse_record",
    "parse_history",
    "parse_stats",
    "parse_device_status",
]
