"""
Stream client - owns the push channel lifecycle.

State machine:
    DISCONNECTED -> CONNECTING -> CONNECTED -> DISCONNECTED -> ...

The client reconnects indefinitely with backoff until stop() is called.
Inbound messages are parsed into typed signals and handed to a single
sink. Transport failures only ever surface as a Disconnected signal;
malformed payloads are logged and dropped.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from config.models import BackoffConfig

from ..domain.errors import MalformedPayloadError
from ..domain.events.domain_events import (
    Connected,
    DeviceStatusPush,
    Disconnected,
    RecordPush,
    StatsPush,
    StreamSignal,
)
from ..domain.events.event_types import EventType, MESSAGE_EVENTS
from ..domain.interfaces.push_transport import PushTransport
from ..infrastructure.adapters.payloads import parse_device_status, parse_record, parse_stats
from ..models.connection import ConnectionState
from ..utils.logging_setup import get_logger

logger = get_logger(__name__)

SignalSink = Callable[[StreamSignal], None]


class StreamClient:
    """
    Push channel client with reconnect-with-backoff.

    The backoff delay starts at `backoff.initial`, is multiplied by
    `backoff.factor` after every failed attempt or dropped session, is
    capped at `backoff.max`, and resets after each successful connect.
    """

    def __init__(
        self,
        transport: PushTransport,
        sink: SignalSink,
        backoff: BackoffConfig,
        default_device_id: str,
        base_url: str,
    ) -> None:
        self._transport = transport
        self._sink = sink
        self._backoff = backoff
        self._default_device_id = default_device_id
        self._base_url = base_url

        self._state = ConnectionState.DISCONNECTED
        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._down_announced = False

        # Monitoring counters
        self.connect_attempts = 0
        self.reconnect_count = 0
        self.dropped_payloads = 0
        self.last_error: Optional[str] = None
        self.last_connected_at: Optional[datetime] = None

        handlers = {
            EventType.DEVICE_STATUS: self._on_device_status,
            EventType.STATS_UPDATE: self._on_stats,
            EventType.NEW_RECORD: self._on_record,
        }
        for event in MESSAGE_EVENTS:
            self._transport.on(event.value, handlers[event])

    @property
    def state(self) -> ConnectionState:
        return self._state

    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the connect/reconnect loop."""
        if self._running:
            logger.warning("StreamClient already running")
            return
        self._running = True
        self._task = asyncio.create_task(self._run_loop(), name="stream-client")
        logger.info("StreamClient started")

    async def stop(self) -> None:
        """Tear down: stop reconnecting and close the transport."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        try:
            await self._transport.disconnect()
        except Exception as e:
            logger.warning(f"Error closing push transport: {e}")
        self._state = ConnectionState.DISCONNECTED
        logger.info("StreamClient stopped")

    async def _run_loop(self) -> None:
        delay = self._backoff.initial
        attempt = 0

        while self._running:
            attempt += 1
            self.connect_attempts += 1
            self._state = ConnectionState.CONNECTING
            logger.info(f"Connecting push channel (attempt {attempt})")

            try:
                await self._transport.connect()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._state = ConnectionState.DISCONNECTED
                self.last_error = str(e)
                logger.warning(f"Push channel connect failed (attempt {attempt}, retry in {delay}s): {e}")
                self._emit_disconnected(f"connect failed: {e}")
                await asyncio.sleep(delay)
                delay = min(delay * self._backoff.factor, self._backoff.max)
                continue

            if self.last_connected_at is not None:
                self.reconnect_count += 1
            self._state = ConnectionState.CONNECTED
            self.last_connected_at = datetime.now(timezone.utc)
            self._down_announced = False
            logger.info(f"Push channel connected after {attempt} attempt(s)")
            self._emit(Connected(attempt=attempt))

            delay = self._backoff.initial
            attempt = 0

            try:
                await self._transport.wait_closed()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.last_error = str(e)
                logger.warning(f"Push channel errored: {e}")

            if not self._running:
                break
            self._state = ConnectionState.DISCONNECTED
            logger.warning(f"Push channel dropped, reconnecting in {delay}s")
            self._emit_disconnected("transport closed")
            await asyncio.sleep(delay)
            delay = min(delay * self._backoff.factor, self._backoff.max)

    def _emit_disconnected(self, reason: str) -> None:
        # One Disconnected per outage, however many attempts fail
        if self._down_announced:
            return
        self._down_announced = True
        self._emit(Disconnected(reason=reason))

    def _emit(self, signal: StreamSignal) -> None:
        try:
            self._sink(signal)
        except Exception as e:
            logger.error(f"Signal sink rejected {type(signal).__name__}: {e}")

    # -------------------------------------------------------------------------
    # Message handlers (called by the transport on the event loop)
    # -------------------------------------------------------------------------

    def _on_device_status(self, data: Any) -> None:
        try:
            status = parse_device_status(data, self._default_device_id)
        except MalformedPayloadError as e:
            self._drop(EventType.DEVICE_STATUS, e)
            return
        self._emit(DeviceStatusPush(status=status))

    def _on_stats(self, data: Any) -> None:
        try:
            stats = parse_stats(data, source="update_stats")
        except MalformedPayloadError as e:
            self._drop(EventType.STATS_UPDATE, e)
            return
        self._emit(StatsPush(stats=stats))

    def _on_record(self, data: Any) -> None:
        try:
            record = parse_record(data, self._base_url, source="new_log")
        except MalformedPayloadError as e:
            self._drop(EventType.NEW_RECORD, e)
            return
        self._emit(RecordPush(record=record))

    def _drop(self, event: EventType, error: MalformedPayloadError) -> None:
        self.dropped_payloads += 1
        logger.warning(f"Dropped malformed '{event.value}' payload: {error}")

    def get_connection_info(self) -> Dict[str, Any]:
        """Connection diagnostics for monitoring."""
        return {
            "state": self._state.value,
            "running": self._running,
            "connect_attempts": self.connect_attempts,
            "reconnect_count": self.reconnect_count,
            "dropped_payloads": self.dropped_payloads,
            "last_error": self.last_error,
            "last_connected_at": self.last_connected_at.isoformat() if self.last_connected_at else None,
        }
