"""Pure domain services."""

from .stats_projector import StatsProjector, build_stats, split_percentages, order_week
from .log_query import LogFilter, LogSummary, filter_records, summarize

__all__ = [
    "StatsProjector",
    "build_stats",
    "split_percentages",
    "order_week",
    "LogFilter",
    "LogSummary",
    "filter_records",
    "summarize",
]
