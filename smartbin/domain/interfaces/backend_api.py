"""Request surface shared by snapshot loads and correction submission."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict


class BackendApi(ABC):
    """
    Interface for the backend's HTTP surface.

    Implementations bound every call by a timeout and raise
    TransportError / MalformedPayloadError; they never retry.
    """

    @abstractmethod
    async def get_json(self, path: str) -> Any:
        """
        GET `path` and return the decoded JSON body.

        Raises:
            TransportError: Non-success status, timeout or connection failure.
            MalformedPayloadError: Body is not valid JSON.
        """
        pass

    @abstractmethod
    async def post_json(self, path: str, body: Dict[str, Any]) -> Any:
        """POST a JSON body to `path` and return the decoded JSON response."""
        pass
