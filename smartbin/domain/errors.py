"""
Error taxonomy for the telemetry engine.

- TransportError: request failed, timed out, or returned a non-success status.
- MalformedPayloadError: a response or push body failed shape validation.
  Raised to the caller on pull paths; logged and dropped on push paths.
- PreconditionViolation: a local operation was requested in a state where it
  does not apply (e.g. correcting an already-rated record). Callers treat it
  as a no-op.

None of these is fatal: the engine keeps serving the last valid state.
"""

from __future__ import annotations
from typing import Optional


class SmartBinError(Exception):
    """Base class for all engine errors."""


class TransportError(SmartBinError):
    """A backend request could not be completed."""

    def __init__(self, message: str, status_code: Optional[int] = None, url: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class MalformedPayloadError(SmartBinError):
    """A payload did not match the expected shape."""

    def __init__(self, message: str, source: str = ""):
        super().__init__(message)
        self.source = source


class PreconditionViolation(SmartBinError):
    """An operation was requested in a state where it does not apply."""
