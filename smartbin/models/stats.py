"""Aggregate statistics and device liveness models."""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Tuple

# Fixed display order for weekly buckets; never reordered by data.
WEEKDAY_LABELS: Tuple[str, ...] = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


@dataclass(frozen=True, slots=True)
class DayActivity:
    """Amount collected on one weekday."""
    day: str
    amount: float = 0.0


def empty_week() -> Tuple[DayActivity, ...]:
    return tuple(DayActivity(day=label) for label in WEEKDAY_LABELS)


@dataclass(frozen=True, slots=True)
class AggregateStats:
    """
    Aggregate waste statistics.

    Percentages are always derived from the two weights by the
    StatsProjector; they are never set independently.
    """

    total: float = 0.0
    organic_weight: float = 0.0
    inorganic_weight: float = 0.0
    organic_percent: int = 0
    inorganic_percent: int = 0
    weekly_activity: Tuple[DayActivity, ...] = field(default_factory=empty_week)
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def weekly_total(self) -> float:
        return sum(day.amount for day in self.weekly_activity)

    @property
    def daily_average(self) -> int:
        """Average per day over the fixed 7-day window."""
        return round(self.weekly_total / len(WEEKDAY_LABELS))


@dataclass(frozen=True, slots=True)
class DeviceStatus:
    """Liveness of the sorting device. Last writer wins."""
    device_id: str
    online: bool = False

    def offline(self) -> "DeviceStatus":
        return DeviceStatus(device_id=self.device_id, online=False)
