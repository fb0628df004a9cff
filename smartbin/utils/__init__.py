"""Utility modules."""

from .logging_setup import (
    setup_category_logging,
    flush_all_loggers,
    shutdown_logging,
    get_logger,
    set_verbose_mode,
)
from .trace_context import (
    get_cycle_id,
    new_cycle,
    generate_cycle_id,
)
from .perf_logger import log_timing_async
from .result import Result, Ok, Err

__all__ = [
    # Logging setup
    "setup_category_logging",
    "flush_all_loggers",
    "shutdown_logging",
    "get_logger",
    "set_verbose_mode",
    # Trace context
    "get_cycle_id",
    "new_cycle",
    "generate_cycle_id",
    # Performance logging
    "log_timing_async",
    # Result type
    "Result",
    "Ok",
    "Err",
]
