"""
Snapshot loader - pulls the full history and the current aggregate.

Each load is a single bounded request with no retry of its own; the
Reconciler decides when to try again. Failures propagate as
TransportError / MalformedPayloadError.
"""

from __future__ import annotations

from typing import List

from ..domain.interfaces.backend_api import BackendApi
from ..infrastructure.adapters.payloads import parse_history, parse_stats
from ..models.record import ClassificationRecord
from ..models.stats import AggregateStats
from ..utils.logging_setup import get_logger
from ..utils.perf_logger import log_snapshot_timing

logger = get_logger(__name__)


class SnapshotLoader:
    """Fetches authoritative snapshots from the backend."""

    def __init__(self, api: BackendApi, base_url: str, history_path: str = "/history", stats_path: str = "/stats"):
        self._api = api
        self._base_url = base_url
        self._history_path = history_path
        self._stats_path = stats_path

    async def load_history(self) -> List[ClassificationRecord]:
        """
        Fetch every record the backend knows about.

        Image locators are normalized against the backend base URL.

        Raises:
            TransportError: The request failed or timed out.
            MalformedPayloadError: The body is not a list of valid records.
        """
        async with log_snapshot_timing("history_load") as ctx:
            payload = await self._api.get_json(self._history_path)
            records = parse_history(payload, self._base_url)
            ctx["records"] = len(records)
        logger.debug(f"History snapshot loaded: {len(records)} records")
        return records

    async def load_stats(self) -> AggregateStats:
        """
        Fetch the server aggregate.

        Raises:
            TransportError: The request failed or timed out.
            MalformedPayloadError: The body does not describe valid stats.
        """
        async with log_snapshot_timing("stats_load"):
            payload = await self._api.get_json(self._stats_path)
            stats = parse_stats(payload)
        logger.debug(f"Stats snapshot loaded: total={stats.total}")
        return stats
