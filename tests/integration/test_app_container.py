"""End-to-end wiring: container, reconciler, stream client and corrections."""

import asyncio
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from config import ConfigManager
from smartbin.application import AppContainer, SyncPhase
from smartbin.domain.interfaces import PushTransport
from smartbin.domain.services import build_stats
from smartbin.models.connection import ConnectionState
from smartbin.models.record import CorrectionStatus, Verdict


class LoopbackTransport(PushTransport):
    """Connects immediately and stays up until dropped."""

    def __init__(self):
        self.handlers = {}
        self.connected = False
        self._closed = asyncio.Event()

    def on(self, event_name, handler):
        self.handlers[event_name] = handler

    async def connect(self):
        self.connected = True
        self._closed = asyncio.Event()

    async def wait_closed(self):
        await self._closed.wait()

    async def disconnect(self):
        self.drop()

    def is_connected(self):
        return self.connected

    def drop(self):
        self.connected = False
        self._closed.set()


async def wait_until(predicate, timeout=1.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached")
        await asyncio.sleep(0.001)


@pytest.fixture
def config(tmp_path):
    (tmp_path / "base.yaml").write_text(
        "backend:\n"
        "  base_url: http://bin.local:5000\n"
        "stream:\n"
        "  reconnect_backoff_sec: {initial: 0.001, max: 0.01, factor: 2}\n"
    )
    return ConfigManager(config_dir=tmp_path, env="test").load()


@pytest_asyncio.fixture
async def container(config, make_record, record_payload):
    transport = LoopbackTransport()
    app = AppContainer(config, transport=transport)
    await app.initialize()

    app.loader.load_history = AsyncMock(return_value=[make_record(1), make_record(2, minute=5)])
    app.loader.load_stats = AsyncMock(return_value=build_stats(organic=6, inorganic=4, total=10))
    app.backend.post_json = AsyncMock(return_value=record_payload(2, koreksi_status="benar"))

    yield app, transport
    await app.cleanup()


class TestAppContainer:
    @pytest.mark.asyncio
    async def test_initialize_twice_rejected(self, config):
        app = AppContainer(config, transport=LoopbackTransport())
        await app.initialize()

        with pytest.raises(RuntimeError):
            await app.initialize()
        await app.cleanup()

    @pytest.mark.asyncio
    async def test_start_requires_initialize(self, config):
        with pytest.raises(RuntimeError):
            await AppContainer(config).start()

    @pytest.mark.asyncio
    async def test_startup_push_reconnect_and_correction(self, container, record_payload):
        app, transport = container

        await app.start()
        await app.reconciler.wait_for_sync()
        await wait_until(lambda: app.reconciler.state.connection is ConnectionState.CONNECTED)

        state = app.reconciler.state
        assert state.phase is SyncPhase.READY
        assert [r.id for r in state.records] == [2, 1]
        assert state.stats.organic_percent == 60

        transport.handlers["new_log"](record_payload(3, timestamp="09:30:00"))
        transport.handlers["device_status_update"]({"online": True})
        await wait_until(lambda: 3 in app.store and app.reconciler.state.device.online)

        transport.drop()
        await wait_until(lambda: app.loader.load_history.await_count == 2)
        await app.reconciler.wait_for_sync()
        assert app.stream.reconnect_count == 1

        result = await app.corrections.submit_correction(2, Verdict.CORRECT)
        assert result.is_ok()
        assert app.store.get(2).correction_status is CorrectionStatus.CORRECT
        app.backend.post_json.assert_awaited_once_with("/log/2/correction", {"verdict": "correct"})
