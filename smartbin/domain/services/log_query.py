"""Filtering and summary of the classification log."""

from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Sequence

from ...models.record import ClassificationRecord, RecordStatus, WasteLabel


@dataclass(frozen=True)
class LogFilter:
    """
    Criteria for narrowing the log view. `None` means "all".

    `search` matches the label case-insensitively and the time and date
    text as typed.
    """
    label: Optional[WasteLabel] = None
    min_confidence: float = 0.0
    status: Optional[RecordStatus] = None
    on_date: Optional[date] = None
    search: str = ""

    def matches(self, record: ClassificationRecord) -> bool:
        if self.search:
            if not (
                self.search.lower() in record.label.value.lower()
                or self.search in record.time_text
                or self.search in record.date_text
            ):
                return False
        if self.label is not None and record.label is not self.label:
            return False
        if record.confidence < self.min_confidence:
            return False
        if self.status is not None and record.status is not self.status:
            return False
        if self.on_date is not None and record.captured_at.date() != self.on_date:
            return False
        return True


@dataclass(frozen=True)
class LogSummary:
    """Headline numbers for a set of records."""
    total: int
    organic: int
    inorganic: int
    avg_confidence: float


def filter_records(
    records: Iterable[ClassificationRecord],
    log_filter: LogFilter,
) -> List[ClassificationRecord]:
    """Records matching the filter, in their original order."""
    return [record for record in records if log_filter.matches(record)]


def summarize(records: Sequence[ClassificationRecord]) -> LogSummary:
    organic = sum(1 for record in records if record.is_organic)
    total = len(records)
    avg = sum(record.confidence for record in records) / total if total else 0.0
    return LogSummary(
        total=total,
        organic=organic,
        inorganic=total - organic,
        avg_confidence=avg,
    )
