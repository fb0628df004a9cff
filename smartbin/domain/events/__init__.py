"""Push channel event names and typed stream signals."""

from .event_types import EventType, MESSAGE_EVENTS, StateChange
from .domain_events import (
    StreamSignal,
    Connected,
    Disconnected,
    DeviceStatusPush,
    StatsPush,
    RecordPush,
)

__all__ = [
    "EventType",
    "MESSAGE_EVENTS",
    "StateChange",
    "StreamSignal",
    "Connected",
    "Disconnected",
    "DeviceStatusPush",
    "StatsPush",
    "RecordPush",
]
