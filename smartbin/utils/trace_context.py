"""
Trace context for correlating logs across one sync cycle.

Every snapshot resync (startup, reconnect, manual refresh) runs inside
``new_cycle()`` so that the history request, the stats request and the
buffer drain that follows share one 6-char hex id in the logs.

Usage:
    with new_cycle() as cycle_id:
        await loader.load_history()

    from smartbin.utils.trace_context import get_cycle_id
    logger.info(f"[{get_cycle_id()}] Applying snapshot")
"""

from __future__ import annotations

import secrets
from contextvars import ContextVar
from contextlib import contextmanager
from typing import Optional, Generator

_cycle_id: ContextVar[Optional[str]] = ContextVar("cycle_id", default=None)


def generate_cycle_id() -> str:
    """Return a new 6-character hex id (e.g. "a7f3b2")."""
    return secrets.token_hex(3)


def get_cycle_id() -> str:
    """Current cycle id, or "------" outside any cycle."""
    cycle_id = _cycle_id.get()
    return cycle_id if cycle_id else "------"


@contextmanager
def new_cycle() -> Generator[str, None, None]:
    """
    Run the enclosed block under a fresh cycle id.

    The id is bound through a ContextVar, so concurrently running resync
    tasks each keep their own id.
    """
    token = _cycle_id.set(generate_cycle_id())
    try:
        yield _cycle_id.get()
    finally:
        _cycle_id.reset(token)
