"""
Logging setup with per-category files and sync-cycle correlation.

Provides:
- 4 log categories: system, adapter, data, perf
- Automatic module -> category routing
- Cycle ID correlation in all logs
- Non-blocking file logging through a QueueHandler/QueueListener pair
- Console output (opt-in)
- JSON formatting for files

Categories:
- system: Startup, shutdown, config, composition
- adapter: HTTP backend calls, push transport, reconnects
- data: Record store, stats projection, reconciliation, corrections
- perf: Timing of snapshot loads and correction round trips
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
import os
import re
import json
from queue import Queue
from pathlib import Path
from typing import Optional, Dict, List
from datetime import datetime

from .trace_context import get_cycle_id

# =============================================================================
# GLOBAL STATE
# =============================================================================

_session_run_number: Optional[int] = None
_verbose_mode: bool = False
_log_level_override: Optional[str] = None
_category_loggers: Dict[str, logging.Logger] = {}
_queue_listeners: List[logging.handlers.QueueListener] = []

# =============================================================================
# LOG CATEGORIES AND ROUTING
# =============================================================================

ROOT_LOGGER_NAME = "smartbin"

CATEGORIES = ["system", "adapter", "data", "perf"]

CATEGORY_SUFFIXES = {
    "system": "sys",
    "adapter": "adp",
    "data": "dat",
    "perf": "prf",
}

# More specific prefixes first
MODULE_ROUTING: List[tuple[str, str]] = [
    ("smartbin.infrastructure.adapters", "adapter"),
    ("smartbin.services.stream_client", "adapter"),
    ("smartbin.infrastructure.stores", "data"),
    ("smartbin.domain", "data"),
    ("smartbin.services", "data"),
    ("smartbin.application.reconciler", "data"),
    ("smartbin.models", "data"),
    ("smartbin.application", "system"),
    ("smartbin", "system"),
]


def get_category_for_module(module_name: str) -> str:
    """
    Determine the log category for a given module name.

    Args:
        module_name: Full module path (e.g., "smartbin.services.snapshot_loader").

    Returns:
        Category name (system, adapter, data or perf).
    """
    for prefix, category in MODULE_ROUTING:
        if module_name.startswith(prefix):
            return category
    return "system"


# =============================================================================
# GLOBAL CONFIGURATION
# =============================================================================

def set_verbose_mode(enabled: bool) -> None:
    """Enable or disable verbose mode (DEBUG level logging)."""
    global _verbose_mode
    _verbose_mode = enabled


def set_log_level_override(level: Optional[str]) -> None:
    """Set a global log level override."""
    global _log_level_override
    _log_level_override = level.upper() if level else None


def get_effective_log_level() -> str:
    """Get the effective log level (considering verbose mode and overrides)."""
    if _verbose_mode:
        return "DEBUG"
    if _log_level_override:
        return _log_level_override
    return "INFO"


# =============================================================================
# FORMATTERS
# =============================================================================

class CycleIdFilter(logging.Filter):
    """Stamp the current cycle id onto records before they cross the queue thread."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "cycle"):
            record.cycle = get_cycle_id()
        return True


class JSONFormatter(logging.Formatter):
    """
    Single-line JSON formatter with cycle ID support.

    Fields: ts, level, cat, cycle, msg, plus `data` when the record carries
    an ``extra={"data": ...}`` payload and `exception` when exc_info is set.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "ts": datetime.now().astimezone().isoformat(),
            "level": record.levelname,
            "cat": self._get_category(record.name),
            "cycle": getattr(record, "cycle", None) or get_cycle_id(),
            "msg": record.getMessage(),
        }

        if hasattr(record, "data") and record.data:
            log_entry["data"] = record.data

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)

    def _get_category(self, logger_name: str) -> str:
        parts = logger_name.split(".")
        if len(parts) >= 2 and parts[0] == ROOT_LOGGER_NAME and parts[1] in CATEGORIES:
            return parts[1]
        return "system"


class ConsoleFormatter(logging.Formatter):
    """
    Console formatter with cycle ID and color support.

    Format: [LEVEL] [cycle] message
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        cycle_id = getattr(record, "cycle", None) or get_cycle_id()
        level = record.levelname

        if self.use_colors:
            color = self.COLORS.get(level, "")
            return f"{color}[{level:7}]{self.RESET} [{cycle_id}] {record.getMessage()}"
        return f"[{level:7}] [{cycle_id}] {record.getMessage()}"


# =============================================================================
# LOGGER FACTORY
# =============================================================================

def get_logger(module_name: str) -> logging.Logger:
    """
    Get a logger for the given module, routed to its category logger.

    Args:
        module_name: Module name (typically __name__).

    Returns:
        Logger instance for the module's category.

    Example:
        from smartbin.utils.logging_setup import get_logger
        logger = get_logger(__name__)
        logger.info("Loading history...")
    """
    category = get_category_for_module(module_name)
    category_logger_name = f"{ROOT_LOGGER_NAME}.{category}"

    logger = logging.getLogger(category_logger_name)

    # Temporary setup until setup_category_logging() runs
    if not logger.handlers and category not in _category_loggers:
        logger.setLevel(logging.DEBUG)

    return logger


# =============================================================================
# RUN NUMBER MANAGEMENT
# =============================================================================

def _get_next_run_number(log_dir: str, env: str, date_str: str) -> int:
    """Find the next available run number for today's date."""
    log_path = Path(log_dir) / date_str
    if not log_path.exists():
        return 1

    suffixes = "|".join(CATEGORY_SUFFIXES.values())
    pattern = re.compile(
        rf'^smartbin_{re.escape(env)}_(?:{suffixes})_{re.escape(date_str)}_(\d+)\.log$'
    )

    max_num = 0
    for filename in os.listdir(log_path):
        match = pattern.match(filename)
        if match:
            max_num = max(max_num, int(match.group(1)))

    return max_num + 1


def _get_session_run_number(log_dir: str, env: str) -> int:
    global _session_run_number

    if _session_run_number is None:
        date_str = datetime.now().strftime('%Y-%m-%d')
        _session_run_number = _get_next_run_number(log_dir, env, date_str)

    return _session_run_number


# =============================================================================
# CATEGORY LOGGING SETUP
# =============================================================================

def setup_category_logging(
    env: str,
    log_dir: str = "./logs",
    level: str = "INFO",
    console: bool = False,
    verbose: bool = False,
    json_files: bool = True,
) -> Dict[str, logging.Logger]:
    """
    Set up separate log files for each category.

    Creates log files in a date-specific subdirectory:
    - logs/{date}/smartbin_{env}_sys_{date}_{run}.log
    - logs/{date}/smartbin_{env}_adp_{date}_{run}.log
    - logs/{date}/smartbin_{env}_dat_{date}_{run}.log
    - logs/{date}/smartbin_{env}_prf_{date}_{run}.log

    Args:
        env: Environment name (dev/prod).
        log_dir: Base directory for log files.
        level: Default logging level.
        console: Enable console output.
        verbose: Enable verbose (DEBUG) mode.
        json_files: Write JSON lines to files instead of plain text.

    Returns:
        Dict mapping category name to logger.
    """
    global _category_loggers, _queue_listeners

    # Reconfiguration must not leak file handles
    for listener in _queue_listeners:
        listener.stop()
    _queue_listeners.clear()

    for category in CATEGORIES:
        logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{category}")
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)

    set_verbose_mode(verbose)
    if not verbose:
        set_log_level_override(level)

    date_str = datetime.now().strftime('%Y-%m-%d')
    log_path = Path(log_dir) / date_str
    log_path.mkdir(parents=True, exist_ok=True)

    run_number = _get_session_run_number(log_dir, env)
    effective_level = getattr(logging, get_effective_log_level(), logging.INFO)

    if json_files:
        file_formatter: logging.Formatter = JSONFormatter()
    else:
        file_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    for category in CATEGORIES:
        suffix = CATEGORY_SUFFIXES[category]
        filename = f"smartbin_{env}_{suffix}_{date_str}_{run_number}.log"

        logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{category}")
        logger.setLevel(effective_level)
        logger.propagate = False

        file_handler = logging.FileHandler(
            filename=str(log_path / filename),
            mode='a',
            encoding='utf-8'
        )
        file_handler.setFormatter(file_formatter)
        file_handler.setLevel(effective_level)

        log_queue: Queue = Queue(-1)
        queue_handler = logging.handlers.QueueHandler(log_queue)
        queue_handler.addFilter(CycleIdFilter())
        logger.addHandler(queue_handler)

        listener = logging.handlers.QueueListener(
            log_queue, file_handler, respect_handler_level=True
        )
        listener.start()
        _queue_listeners.append(listener)

        if console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setFormatter(ConsoleFormatter(use_colors=sys.stderr.isatty()))
            console_handler.setLevel(logging.DEBUG if verbose else effective_level)
            logger.addHandler(console_handler)

        _category_loggers[category] = logger

    return _category_loggers


def flush_all_loggers() -> None:
    """Flush all handlers so pending lines reach disk."""
    for category in CATEGORIES:
        for handler in logging.getLogger(f"{ROOT_LOGGER_NAME}.{category}").handlers:
            handler.flush()


def shutdown_logging() -> None:
    """Stop all queue listeners (call during application shutdown)."""
    for listener in _queue_listeners:
        listener.stop()
    _queue_listeners.clear()
