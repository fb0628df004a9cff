"""
Application Bootstrap - Composition Root for Service Wiring.

Usage:
    container = AppContainer(config)
    await container.initialize()
    await container.start()
    state = container.reconciler.state
    ...
    await container.cleanup()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from config.models import AppConfig

from ..domain.interfaces.push_transport import PushTransport
from ..domain.services.stats_projector import StatsProjector
from ..infrastructure.adapters import BackendClient, SocketIOTransport
from ..infrastructure.stores import RecordStore
from ..services import CorrectionCoordinator, SnapshotLoader, StreamClient
from ..utils.logging_setup import get_logger
from .reconciler import Reconciler

logger = get_logger(__name__)


@dataclass
class AppContainer:
    """
    Composition root for all engine services.

    Wiring order matters: the Reconciler must exist before the StreamClient
    so that its queue can be the stream's sink.

    Attributes:
        config: Application configuration.
        transport: Optional push transport override (tests, alternative channels).
    """

    config: AppConfig
    transport: Optional[PushTransport] = None

    backend: Optional[BackendClient] = field(default=None, init=False)
    store: Optional[RecordStore] = field(default=None, init=False)
    projector: Optional[StatsProjector] = field(default=None, init=False)
    loader: Optional[SnapshotLoader] = field(default=None, init=False)
    reconciler: Optional[Reconciler] = field(default=None, init=False)
    stream: Optional[StreamClient] = field(default=None, init=False)
    corrections: Optional[CorrectionCoordinator] = field(default=None, init=False)

    _initialized: bool = field(default=False, init=False)
    _started: bool = field(default=False, init=False)

    async def initialize(self) -> None:
        """Create and wire all services. Nothing connects yet."""
        if self._initialized:
            raise RuntimeError("AppContainer already initialized")

        backend_cfg = self.config.backend
        stream_cfg = self.config.stream

        # Phase 1: data holders
        self.store = RecordStore()
        self.projector = StatsProjector()

        # Phase 2: request surface
        self.backend = BackendClient(
            base_url=backend_cfg.base_url,
            api_prefix=backend_cfg.api_prefix,
            timeout_sec=backend_cfg.request_timeout_sec,
        )
        self.loader = SnapshotLoader(
            self.backend,
            base_url=backend_cfg.base_url,
            history_path=backend_cfg.history_path,
            stats_path=backend_cfg.stats_path,
        )

        # Phase 3: orchestration
        self.reconciler = Reconciler(
            self.store,
            self.projector,
            self.loader,
            device_id=self.config.device.device_id,
        )
        self.corrections = CorrectionCoordinator(
            self.store,
            self.backend,
            base_url=backend_cfg.base_url,
            correction_path=backend_cfg.correction_path,
            notify=self.reconciler.notify,
        )

        # Phase 4: push channel
        transport = self.transport or SocketIOTransport(
            url=self.config.stream_url,
            socketio_path=stream_cfg.socketio_path,
            transports=stream_cfg.transports,
            connect_timeout_sec=stream_cfg.connect_timeout_sec,
        )
        self.stream = StreamClient(
            transport,
            sink=self.reconciler.submit,
            backoff=stream_cfg.reconnect_backoff,
            default_device_id=self.config.device.device_id,
            base_url=backend_cfg.base_url,
        )

        self._initialized = True
        logger.info(
            f"AppContainer initialized (env={self.config.env}, backend={backend_cfg.base_url}, "
            f"stream={self.config.stream_url})"
        )

    async def start(self) -> None:
        """Start the initial snapshot load and the push channel."""
        if not self._initialized:
            raise RuntimeError("AppContainer.initialize() must be called first")
        await self.reconciler.start()
        await self.stream.start()
        self._started = True

    async def cleanup(self) -> None:
        """Stop services in reverse order. Safe to call more than once."""
        if self.stream:
            try:
                await self.stream.stop()
            except Exception as e:
                logger.error(f"Error stopping stream client: {e}")
        if self.reconciler:
            try:
                await self.reconciler.stop()
            except Exception as e:
                logger.error(f"Error stopping reconciler: {e}")
        if self.backend:
            self.backend.close()
        self._started = False
        logger.info("AppContainer cleanup complete")
