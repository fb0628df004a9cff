"""Push channel event names as fixed by the backend contract."""

from __future__ import annotations
from enum import Enum


class EventType(Enum):
    """Named events on the push channel."""
    # Transport lifecycle
    CONNECT = "connect"
    DISCONNECT = "disconnect"

    # Backend messages
    DEVICE_STATUS = "device_status_update"
    STATS_UPDATE = "update_stats"
    NEW_RECORD = "new_log"


# Events that carry a JSON body and must be validated before delivery
MESSAGE_EVENTS: tuple[EventType, ...] = (
    EventType.DEVICE_STATUS,
    EventType.STATS_UPDATE,
    EventType.NEW_RECORD,
)


class StateChange(Enum):
    """Notifications published to dashboard state subscribers."""
    SNAPSHOT_APPLIED = "snapshot_applied"
    SYNC_FAILED = "sync_failed"
    RECORD_RECEIVED = "record_received"
    STATS_UPDATED = "stats_updated"
    DEVICE_UPDATED = "device_updated"
    CONNECTION_CHANGED = "connection_changed"
    RECORDS_CLEARED = "records_cleared"
    CORRECTION_PENDING = "correction_pending"
    CORRECTION_APPLIED = "correction_applied"
    CORRECTION_FAILED = "correction_failed"
