"""Data models for the SmartBin monitor."""

from .record import (
    ClassificationRecord,
    CorrectionStatus,
    RecordStatus,
    Verdict,
    WasteLabel,
)
from .stats import AggregateStats, DayActivity, DeviceStatus, WEEKDAY_LABELS, empty_week
from .connection import ConnectionState

__all__ = [
    "ClassificationRecord",
    "CorrectionStatus",
    "RecordStatus",
    "Verdict",
    "WasteLabel",
    "AggregateStats",
    "DayActivity",
    "DeviceStatus",
    "WEEKDAY_LABELS",
    "empty_week",
    "ConnectionState",
]
