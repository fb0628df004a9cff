"""Application layer: reconciliation and service wiring."""

from .reconciler import Reconciler, DashboardState, SyncPhase, SyncReport
from .bootstrap import AppContainer

__all__ = [
    "Reconciler",
    "DashboardState",
    "SyncPhase",
    "SyncReport",
    "AppContainer",
]
