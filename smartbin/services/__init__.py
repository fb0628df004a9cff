"""Pull, push and correction services."""

from .snapshot_loader import SnapshotLoader
from .stream_client import StreamClient
from .correction_coordinator import CorrectionCoordinator

__all__ = [
    "SnapshotLoader",
    "StreamClient",
    "CorrectionCoordinator",
]
