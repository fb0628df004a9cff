"""In-memory record store with deterministic most-recent-first ordering."""

from __future__ import annotations
from typing import Dict, Iterable, Optional, Tuple

from ...models.record import ClassificationRecord, CorrectionStatus
from ...utils.logging_setup import get_logger

logger = get_logger(__name__)


class RecordStore:
    """
    Canonical, de-duplicated collection of classification records keyed by id.

    Ordering: descending by captured_at, ties broken by id descending.
    Merges are full replaces (last write wins by arrival order), so applying
    the same record twice is a no-op and the final content of a batch does
    not depend on the order it was applied in.

    A held pending mark (see hold_pending) survives merges of an UNRATED
    copy of the same record until it is released.

    All access happens on the event loop thread; no locking is needed.
    """

    def __init__(self) -> None:
        self._records: Dict[int, ClassificationRecord] = {}
        self._version = 0
        self._ordered: Tuple[ClassificationRecord, ...] = ()
        self._ordered_version = 0
        self._held: Dict[int, CorrectionStatus] = {}

    def upsert(self, record: ClassificationRecord) -> bool:
        """
        Insert or fully replace a record.

        Returns:
            True if the store content changed.
        """
        held = self._held.get(record.id)
        if held is not None and record.correction_status is CorrectionStatus.UNRATED:
            record = record.with_correction(held)
        existing = self._records.get(record.id)
        if existing == record:
            return False
        self._records[record.id] = record
        self._version += 1
        return True

    def upsert_many(self, records: Iterable[ClassificationRecord]) -> int:
        """
        Apply upsert() to each record in iteration order.

        Returns:
            Number of records that changed the store.
        """
        changed = 0
        for record in records:
            if self.upsert(record):
                changed += 1
        if changed:
            logger.debug(f"RecordStore merged batch: {changed} changed, {len(self._records)} total")
        return changed

    def clear(self) -> None:
        """Drop every record. Local only; the backend is not contacted."""
        count = len(self._records)
        self._records = {}
        self._version += 1
        logger.info(f"RecordStore cleared ({count} records dropped locally)")

    def hold_pending(self, record_id: int, status: CorrectionStatus) -> None:
        """Keep `status` on record_id while a correction request is outstanding."""
        if not status.is_pending:
            raise ValueError(f"{status.value} is not a pending status")
        self._held[record_id] = status

    def release_pending(self, record_id: int) -> None:
        self._held.pop(record_id, None)

    def get(self, record_id: int) -> Optional[ClassificationRecord]:
        return self._records.get(record_id)

    def all(self) -> Tuple[ClassificationRecord, ...]:
        """
        Ordered snapshot of all records.

        The returned tuple does not reflect later mutations.
        """
        if self._ordered_version != self._version:
            self._ordered = tuple(
                sorted(self._records.values(), key=ClassificationRecord.sort_key, reverse=True)
            )
            self._ordered_version = self._version
        return self._ordered

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: int) -> bool:
        return record_id in self._records

    @property
    def version(self) -> int:
        """Monotonic change counter, useful for change detection."""
        return self._version
