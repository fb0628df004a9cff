"""
Typed stream signals.

The StreamClient turns every transport callback into exactly one of these
immutable messages and hands it to a single sink (the Reconciler's queue).
Ordering across signal types is whatever the transport provides; a
Disconnected is always enqueued after every message received before it.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone

from ...models.record import ClassificationRecord
from ...models.stats import AggregateStats, DeviceStatus


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class StreamSignal:
    """Base class for all stream signals."""
    received_at: datetime = field(default_factory=_now, kw_only=True)


@dataclass(frozen=True, slots=True)
class Connected(StreamSignal):
    """The push channel is up."""
    attempt: int = 1


@dataclass(frozen=True, slots=True)
class Disconnected(StreamSignal):
    """The push channel dropped or failed to come up."""
    reason: str = ""


@dataclass(frozen=True, slots=True)
class DeviceStatusPush(StreamSignal):
    status: DeviceStatus


@dataclass(frozen=True, slots=True)
class StatsPush(StreamSignal):
    stats: AggregateStats


@dataclass(frozen=True, slots=True)
class RecordPush(StreamSignal):
    record: ClassificationRecord
