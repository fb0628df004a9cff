"""
Reconciler - merges pulled snapshots with the push stream.

Protocol:
    - Every resync loads history and stats concurrently.
    - While any load is in flight, push signals are buffered in arrival
      order instead of applied.
    - When the last in-flight load settles (success or failure), whatever
      succeeded is applied first, then the buffer is drained in order.
    - Disconnected marks the device offline locally.
    - Connected after a Disconnected triggers one full resync, because the
      push channel has no sequence numbers to detect a gap with.

Everything except the two snapshot requests runs synchronously on the event
loop; correctness rests on idempotent, last-write-wins merges.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional, Set, Tuple

from ..domain.events.domain_events import (
    Connected,
    DeviceStatusPush,
    Disconnected,
    RecordPush,
    StatsPush,
    StreamSignal,
)
from ..domain.events.event_types import StateChange
from ..domain.services.stats_projector import StatsProjector
from ..infrastructure.stores.record_store import RecordStore
from ..models.connection import ConnectionState
from ..models.record import ClassificationRecord
from ..models.stats import AggregateStats, DeviceStatus
from ..services.snapshot_loader import SnapshotLoader
from ..utils.logging_setup import get_logger
from ..utils.result import Err, Ok, Result
from ..utils.trace_context import new_cycle

logger = get_logger(__name__)


class SyncPhase(Enum):
    """Data freshness as shown to the user."""
    LOADING = "loading"  # No snapshot has settled yet
    READY = "ready"
    DEGRADED = "degraded"  # Last sync failed; showing stale-but-valid data


@dataclass(frozen=True, slots=True)
class DashboardState:
    """Immutable view of everything the presentation layer renders."""
    phase: SyncPhase
    records: Tuple[ClassificationRecord, ...]
    stats: AggregateStats
    device: DeviceStatus
    connection: ConnectionState
    last_updated: Optional[datetime] = None
    last_error: Optional[str] = None


@dataclass(frozen=True, slots=True)
class SyncReport:
    """Outcome of a successful resync."""
    reason: str
    cycle_id: str
    records: int
    changed: int
    replayed: int
    completed_at: datetime


StateListener = Callable[[StateChange, DashboardState], None]


class Reconciler:
    """
    Orchestrates snapshot loads against the push stream.

    Signals arrive through submit() (the StreamClient's sink) and are
    consumed in order by a single task.
    """

    def __init__(
        self,
        store: RecordStore,
        projector: StatsProjector,
        loader: SnapshotLoader,
        device_id: str,
        queue_max_size: int = 0,
    ) -> None:
        self._store = store
        self._projector = projector
        self._loader = loader

        self._queue: asyncio.Queue = asyncio.Queue(maxsize=queue_max_size)
        self._buffer: List[StreamSignal] = []
        self._loads_in_flight = 0
        self._seen_disconnect = False

        self._phase = SyncPhase.LOADING
        self._device = DeviceStatus(device_id=device_id, online=False)
        self._connection = ConnectionState.DISCONNECTED
        self._last_updated: Optional[datetime] = None
        self._last_error: Optional[str] = None

        self._listeners: List[StateListener] = []
        self._running = False
        self._consumer_task: Optional[asyncio.Task] = None
        self._resync_tasks: Set[asyncio.Task] = set()

        self._stats = {
            "signals_received": 0,
            "signals_buffered": 0,
            "signals_replayed": 0,
            "resyncs": 0,
            "resync_failures": 0,
        }

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Start consuming signals and kick off the initial snapshot load."""
        if self._running:
            logger.warning("Reconciler already running")
            return
        self._running = True
        self._consumer_task = asyncio.create_task(self._consume_loop(), name="reconciler-consumer")
        self._schedule_resync("startup")
        logger.info("Reconciler started")

    async def stop(self) -> None:
        self._running = False
        tasks = list(self._resync_tasks)
        if self._consumer_task:
            tasks.append(self._consumer_task)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._consumer_task = None
        logger.info("Reconciler stopped")

    def is_running(self) -> bool:
        return self._running

    # -------------------------------------------------------------------------
    # Signal intake
    # -------------------------------------------------------------------------

    def submit(self, signal: StreamSignal) -> None:
        """Enqueue a stream signal. Never blocks."""
        try:
            self._queue.put_nowait(signal)
        except asyncio.QueueFull:
            logger.warning(f"Signal queue full, dropping {type(signal).__name__}")

    async def _consume_loop(self) -> None:
        while self._running:
            try:
                signal = await self._queue.get()
                self.handle_signal(signal)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error handling stream signal: {e}", exc_info=True)

    def handle_signal(self, signal: StreamSignal) -> None:
        """
        Route one signal.

        The connection indicator updates immediately. Everything else waits
        behind any in-flight snapshot so that arrival order is preserved.
        """
        self._stats["signals_received"] += 1

        if isinstance(signal, Connected):
            self._set_connection(ConnectionState.CONNECTED)
        elif isinstance(signal, Disconnected):
            self._set_connection(ConnectionState.DISCONNECTED)

        if self._loads_in_flight:
            self._buffer.append(signal)
            self._stats["signals_buffered"] += 1
            return
        self._apply(signal)

    def _apply(self, signal: StreamSignal) -> None:
        if isinstance(signal, RecordPush):
            if self._store.upsert(signal.record):
                self._touch()
                self._publish(StateChange.RECORD_RECEIVED)
        elif isinstance(signal, StatsPush):
            self._projector.apply_server_stats(signal.stats)
            self._touch()
            self._publish(StateChange.STATS_UPDATED)
        elif isinstance(signal, DeviceStatusPush):
            self._device = signal.status
            self._publish(StateChange.DEVICE_UPDATED)
        elif isinstance(signal, Disconnected):
            self._seen_disconnect = True
            if self._device.online:
                self._device = self._device.offline()
                logger.info(f"Device {self._device.device_id} marked offline (push channel down)")
                self._publish(StateChange.DEVICE_UPDATED)
        elif isinstance(signal, Connected):
            if self._seen_disconnect:
                self._seen_disconnect = False
                logger.info("Push channel restored, resyncing to recover missed events")
                self._schedule_resync("reconnect")
        else:
            logger.warning(f"Ignoring unknown signal {type(signal).__name__}")

    def _set_connection(self, state: ConnectionState) -> None:
        if state is not self._connection:
            self._connection = state
            self._publish(StateChange.CONNECTION_CHANGED)

    # -------------------------------------------------------------------------
    # Resync
    # -------------------------------------------------------------------------

    async def refresh(self) -> Result[SyncReport, Exception]:
        """User-triggered resync; reports the outcome instead of raising."""
        self._loads_in_flight += 1
        try:
            report = await self._resync("manual")
        except Exception as e:
            return Err(e)
        return Ok(report)

    async def wait_for_sync(self) -> None:
        """Wait until no background resync is running."""
        while self._resync_tasks:
            await asyncio.gather(*list(self._resync_tasks), return_exceptions=True)

    def _schedule_resync(self, reason: str) -> None:
        # Count the load before the task runs so that signals arriving in
        # between are already buffered
        self._loads_in_flight += 1
        task = asyncio.create_task(self._background_resync(reason), name=f"resync-{reason}")
        self._resync_tasks.add(task)
        task.add_done_callback(self._resync_tasks.discard)

    async def _background_resync(self, reason: str) -> None:
        try:
            await self._resync(reason)
        except Exception as e:
            logger.warning(f"Background resync ({reason}) failed, keeping last valid state: {e}")

    async def _resync(self, reason: str) -> SyncReport:
        """
        Load and apply a full snapshot. The caller has already counted this
        load in `_loads_in_flight`.

        Raises:
            The first load error, after applying whatever did succeed.
        """
        with new_cycle() as cycle_id:
            self._stats["resyncs"] += 1
            logger.info(f"[{cycle_id}] Resync started ({reason})")
            try:
                history, stats = await asyncio.gather(
                    self._loader.load_history(),
                    self._loader.load_stats(),
                    return_exceptions=True,
                )
            finally:
                self._loads_in_flight -= 1

            errors = [r for r in (history, stats) if isinstance(r, BaseException)]
            cancelled = [r for r in errors if isinstance(r, asyncio.CancelledError)]

            changed = 0
            if not isinstance(history, BaseException):
                changed = self._store.upsert_many(history)
            if not isinstance(stats, BaseException):
                self._projector.apply_server_stats(stats)

            replayed = self._drain_buffer() if self._loads_in_flight == 0 else 0
            if cancelled:
                raise cancelled[0]

            if errors:
                error = errors[0]
                self._stats["resync_failures"] += 1
                self._phase = SyncPhase.DEGRADED
                self._last_error = str(error)
                logger.error(f"[{cycle_id}] Resync ({reason}) failed: {error}")
                self._publish(StateChange.SYNC_FAILED)
                raise error

            self._phase = SyncPhase.READY
            self._last_error = None
            self._touch()
            report = SyncReport(
                reason=reason,
                cycle_id=cycle_id,
                records=len(self._store),
                changed=changed,
                replayed=replayed,
                completed_at=self._last_updated,
            )
            logger.info(
                f"[{cycle_id}] Resync ({reason}) applied: {report.records} records, "
                f"{changed} changed, {replayed} replayed"
            )
            self._publish(StateChange.SNAPSHOT_APPLIED)
            return report

    def _drain_buffer(self) -> int:
        buffered, self._buffer = self._buffer, []
        for signal in buffered:
            try:
                self._apply(signal)
            except Exception as e:
                logger.error(f"Error replaying buffered {type(signal).__name__}: {e}", exc_info=True)
        self._stats["signals_replayed"] += len(buffered)
        return len(buffered)

    # -------------------------------------------------------------------------
    # Local actions and observation
    # -------------------------------------------------------------------------

    def clear_records(self) -> None:
        """Empty the local record view. The backend is not contacted."""
        self._store.clear()
        self._publish(StateChange.RECORDS_CLEARED)

    def notify(self, change: StateChange) -> None:
        """Publish a change made by a collaborator (e.g. a correction)."""
        self._publish(change)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a listener for state changes.

        Returns:
            A callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def state(self) -> DashboardState:
        records = self._store.all()
        return DashboardState(
            phase=self._phase,
            records=records,
            stats=self._projector.current(records),
            device=self._device,
            connection=self._connection,
            last_updated=self._last_updated,
            last_error=self._last_error,
        )

    @property
    def buffered_count(self) -> int:
        return len(self._buffer)

    @property
    def loads_in_flight(self) -> int:
        return self._loads_in_flight

    def get_stats(self) -> dict:
        return {
            **self._stats,
            "phase": self._phase.value,
            "records": len(self._store),
            "buffered": len(self._buffer),
            "queue_size": self._queue.qsize(),
            "listeners": len(self._listeners),
        }

    def _touch(self) -> None:
        self._last_updated = datetime.now(timezone.utc)

    def _publish(self, change: StateChange) -> None:
        if not self._listeners:
            return
        state = self.state
        for listener in list(self._listeners):
            try:
                listener(change, state)
            except Exception as e:
                logger.error(f"State listener error on {change.value}: {e}")
