"""
Correction coordinator - optimistic human feedback on classifications.

Lifecycle of one correction:
    1. Guard: the record exists, is UNRATED and has no request outstanding,
       otherwise no-op.
    2. Mark it PENDING_CORRECT / PENDING_INCORRECT locally.
    3. POST the verdict.
    4. Success: replace the record with the server's canonical version.
       Failure: revert to UNRATED and report the error.

The guard runs before the first suspension point and also rejects ids with a
request already outstanding, so a second click is ignored even when a resync
has merged an UNRATED copy of the record in the meantime. The store holds the
pending mark across such merges until the request settles.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Optional, Set, Union

from ..domain.errors import MalformedPayloadError, PreconditionViolation
from ..domain.events.event_types import StateChange
from ..domain.interfaces.backend_api import BackendApi
from ..infrastructure.adapters.payloads import parse_record
from ..infrastructure.stores.record_store import RecordStore
from ..models.record import ClassificationRecord, CorrectionStatus, Verdict
from ..utils.logging_setup import get_logger
from ..utils.perf_logger import log_correction_timing
from ..utils.result import Err, Ok, Result

logger = get_logger(__name__)

ChangeNotifier = Callable[[StateChange], None]


class CorrectionCoordinator:
    """Sole writer of ClassificationRecord.correction_status."""

    def __init__(
        self,
        store: RecordStore,
        api: BackendApi,
        base_url: str,
        correction_path: str = "/log/{id}/correction",
        notify: Optional[ChangeNotifier] = None,
    ) -> None:
        self._store = store
        self._api = api
        self._base_url = base_url
        self._correction_path = correction_path
        self._notify = notify
        self._in_flight: Set[int] = set()

    async def submit_correction(
        self, record_id: int, verdict: Union[Verdict, str]
    ) -> Optional[Result[ClassificationRecord, Exception]]:
        """
        Submit a verdict for one record.

        Returns:
            None if the record is missing, already rated or pending, or
            has a request outstanding,
            Ok(updated_record) once the server accepted the verdict,
            Err(error) if the request failed (the record is back to UNRATED).

        Raises:
            ValueError: If verdict is not a known Verdict value.
        """
        verdict = Verdict(verdict)
        try:
            record = self._check_precondition(record_id)
        except PreconditionViolation as e:
            logger.debug(f"Correction ignored: {e}")
            return None

        pending = CorrectionStatus.pending_for(verdict)
        self._in_flight.add(record_id)
        self._store.hold_pending(record_id, pending)
        self._store.upsert(record.with_correction(pending))
        self._publish(StateChange.CORRECTION_PENDING)
        logger.info(f"Submitting correction for record {record_id}: {verdict.value}")

        path = self._correction_path.format(id=record_id)
        try:
            async with log_correction_timing() as ctx:
                ctx["record_id"] = record_id
                payload = await self._api.post_json(path, {"verdict": verdict.value})
            updated = parse_record(payload, self._base_url, source="correction")
            if updated.id != record_id:
                raise MalformedPayloadError(
                    f"Correction response is for record {updated.id}, expected {record_id}",
                    source="correction",
                )
        except asyncio.CancelledError:
            self._rollback(record_id)
            raise
        except Exception as e:
            self._rollback(record_id)
            logger.error(f"Correction for record {record_id} failed: {e}")
            self._publish(StateChange.CORRECTION_FAILED)
            return Err(e)

        self._settle(record_id)
        if record_id in self._store:
            self._store.upsert(updated)
        else:
            logger.debug(f"Record {record_id} was cleared locally, not restoring it")
        logger.info(f"Correction for record {record_id} applied: {updated.correction_status.value}")
        self._publish(StateChange.CORRECTION_APPLIED)
        return Ok(updated)

    def _check_precondition(self, record_id: int) -> ClassificationRecord:
        record = self._store.get(record_id)
        if record is None:
            raise PreconditionViolation(f"record {record_id} not found")
        if record_id in self._in_flight:
            raise PreconditionViolation(f"record {record_id} already has a correction outstanding")
        if record.correction_status is not CorrectionStatus.UNRATED:
            raise PreconditionViolation(
                f"record {record_id} is {record.correction_status.value}, not unrated"
            )
        return record

    def _settle(self, record_id: int) -> None:
        self._in_flight.discard(record_id)
        self._store.release_pending(record_id)

    def _rollback(self, record_id: int) -> None:
        self._settle(record_id)
        current = self._store.get(record_id)
        if current is not None and current.correction_status.is_pending:
            self._store.upsert(current.with_correction(CorrectionStatus.UNRATED))

    def _publish(self, change: StateChange) -> None:
        if self._notify is not None:
            self._notify(change)
