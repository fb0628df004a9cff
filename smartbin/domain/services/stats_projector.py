"""
Stats projector - derives aggregate statistics.

Server-provided stats are authoritative once any have arrived; before that
(or on demand) the aggregate is recomputed from the record store.

Percentage policy:
    Each share is rounded half-up to a whole percent. If the two rounded
    shares do not sum to 100, the larger bucket absorbs the difference
    (organic on an exact tie). With no weight at all both shares are 0.
"""

from __future__ import annotations
import math
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Sequence, Tuple

from ...models.record import ClassificationRecord, WasteLabel
from ...models.stats import AggregateStats, DayActivity, WEEKDAY_LABELS
from ...utils.logging_setup import get_logger

logger = get_logger(__name__)


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def split_percentages(organic: float, inorganic: float) -> Tuple[int, int]:
    """
    Whole-percent shares of the two buckets.

    Returns:
        (organic_percent, inorganic_percent), summing to 100 unless both
        weights are zero, in which case (0, 0).

    Raises:
        ValueError: If either weight is infinite or NaN.
    """
    if not (math.isfinite(organic) and math.isfinite(inorganic)):
        raise ValueError(f"Non-finite weights: organic={organic!r}, inorganic={inorganic!r}")
    organic_d = Decimal(str(organic))
    inorganic_d = Decimal(str(inorganic))
    denominator = organic_d + inorganic_d
    if denominator <= 0:
        return 0, 0

    organic_pct = _round_half_up(organic_d * 100 / denominator)
    inorganic_pct = _round_half_up(inorganic_d * 100 / denominator)

    discrepancy = 100 - (organic_pct + inorganic_pct)
    if discrepancy:
        if organic_d >= inorganic_d:
            organic_pct += discrepancy
        else:
            inorganic_pct += discrepancy
    return organic_pct, inorganic_pct


def order_week(days: Iterable[DayActivity]) -> Tuple[DayActivity, ...]:
    """Place day buckets into the fixed Mon..Sun order; absent days are 0."""
    amounts = {label: 0.0 for label in WEEKDAY_LABELS}
    for day in days:
        if day.day not in amounts:
            raise ValueError(f"Unknown weekday label: {day.day!r}")
        amounts[day.day] = max(0.0, float(day.amount))
    return tuple(DayActivity(day=label, amount=amounts[label]) for label in WEEKDAY_LABELS)


def build_stats(
    organic: float,
    inorganic: float,
    weekly: Iterable[DayActivity] = (),
    total: Optional[float] = None,
    last_updated: Optional[datetime] = None,
) -> AggregateStats:
    """
    Assemble an AggregateStats whose percentages are derived from the weights.

    `total` defaults to organic + inorganic.
    """
    organic = max(0.0, float(organic))
    inorganic = max(0.0, float(inorganic))
    organic_pct, inorganic_pct = split_percentages(organic, inorganic)
    return AggregateStats(
        total=max(0.0, float(total)) if total is not None else organic + inorganic,
        organic_weight=organic,
        inorganic_weight=inorganic,
        organic_percent=organic_pct,
        inorganic_percent=inorganic_pct,
        weekly_activity=order_week(weekly),
        last_updated=last_updated or datetime.now(timezone.utc),
    )


class StatsProjector:
    """
    Holder of the active aggregate.

    `apply_server_stats` replaces the aggregate wholesale and marks it
    authoritative; `current` falls back to recomputation only while no
    server aggregate has ever been applied.
    """

    def __init__(self) -> None:
        self._server_stats: Optional[AggregateStats] = None
        self._applied_count = 0

    @property
    def has_server_stats(self) -> bool:
        return self._server_stats is not None

    def apply_server_stats(self, stats: AggregateStats) -> AggregateStats:
        """
        Make `stats` the active aggregate.

        Percentages and weekly order are re-derived so that a server payload
        can never carry drifting shares.
        """
        normalized = build_stats(
            organic=stats.organic_weight,
            inorganic=stats.inorganic_weight,
            weekly=stats.weekly_activity,
            total=stats.total,
            last_updated=stats.last_updated,
        )
        self._server_stats = normalized
        self._applied_count += 1
        logger.debug(
            f"Server stats applied: total={normalized.total} "
            f"organic={normalized.organic_percent}% inorganic={normalized.inorganic_percent}%"
        )
        return normalized

    def recompute_from_records(
        self,
        records: Sequence[ClassificationRecord],
        as_of: Optional[date] = None,
    ) -> AggregateStats:
        """
        Derive an aggregate by counting records.

        Each record counts as one unit in its label bucket; the weekly
        buckets cover the ISO week (Mon..Sun) containing `as_of`.
        """
        as_of = as_of or date.today()
        week_start = as_of - timedelta(days=as_of.weekday())
        week_end = week_start + timedelta(days=6)

        organic = 0
        inorganic = 0
        per_day = [0.0] * len(WEEKDAY_LABELS)
        for record in records:
            if record.label is WasteLabel.ORGANIC:
                organic += 1
            else:
                inorganic += 1
            captured = record.captured_at.date()
            if week_start <= captured <= week_end:
                per_day[captured.weekday()] += 1

        weekly = [DayActivity(day=label, amount=per_day[i]) for i, label in enumerate(WEEKDAY_LABELS)]
        return build_stats(organic=organic, inorganic=inorganic, weekly=weekly)

    def current(self, records: Sequence[ClassificationRecord] = ()) -> AggregateStats:
        """Active aggregate: the server's if any arrived, else recomputed."""
        if self._server_stats is not None:
            return self._server_stats
        return self.recompute_from_records(records)
