"""Interfaces for external collaborators."""

from .backend_api import BackendApi
from .push_transport import PushTransport, MessageHandler

__all__ = ["BackendApi", "PushTransport", "MessageHandler"]
