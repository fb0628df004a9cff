"""
Performance logging for network round trips.

All timing logs go to the perf category and carry the current cycle ID.

Usage:
    async with log_timing_async("history_load") as ctx:
        payload = await client.get_json(path)
        ctx["records"] = len(payload)

Threshold guidelines:
    - Snapshot loads: warn=1000ms, error=5000ms
    - Correction round trip: warn=500ms, error=3000ms
"""

from __future__ import annotations

import time
import logging
from contextlib import asynccontextmanager
from typing import Optional, AsyncGenerator

from .logging_setup import ROOT_LOGGER_NAME
from .trace_context import get_cycle_id

_perf_logger: Optional[logging.Logger] = None


def get_perf_logger() -> logging.Logger:
    global _perf_logger
    if _perf_logger is None:
        _perf_logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.perf")
    return _perf_logger


@asynccontextmanager
async def log_timing_async(
    operation: str,
    warn_threshold_ms: float = 1000.0,
    error_threshold_ms: float = 5000.0,
    extra: Optional[dict] = None,
) -> AsyncGenerator[dict, None]:
    """
    Async context manager to log operation timing.

    Escalates the log level with duration. The yielded dict can be filled
    with extra context during execution and is attached to the log record.

    Args:
        operation: Name of the operation being timed.
        warn_threshold_ms: Duration above which to log as WARNING.
        error_threshold_ms: Duration above which to log as ERROR.
        extra: Additional data to include in the log.
    """
    logger = get_perf_logger()
    context = extra.copy() if extra else {}
    start_time = time.perf_counter()

    try:
        yield context
    finally:
        duration_ms = (time.perf_counter() - start_time) * 1000
        cycle_id = get_cycle_id()

        log_data = {
            "cycle": cycle_id,
            "operation": operation,
            "duration_ms": round(duration_ms, 2),
            **context,
        }

        if duration_ms >= error_threshold_ms:
            logger.error(f"[{cycle_id}] SLOW {operation}: {duration_ms:.1f}ms", extra={"data": log_data})
        elif duration_ms >= warn_threshold_ms:
            logger.warning(f"[{cycle_id}] {operation}: {duration_ms:.1f}ms (slow)", extra={"data": log_data})
        else:
            logger.debug(f"[{cycle_id}] {operation}: {duration_ms:.1f}ms", extra={"data": log_data})


def log_snapshot_timing(operation: str):
    """Pre-configured timing for history/stats loads."""
    return log_timing_async(operation, warn_threshold_ms=1000, error_threshold_ms=5000)


def log_correction_timing():
    """Pre-configured timing for the correction round trip."""
    return log_timing_async("correction_submit", warn_threshold_ms=500, error_threshold_ms=3000)
