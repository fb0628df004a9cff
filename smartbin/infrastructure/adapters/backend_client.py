"""
HTTP client for the SmartBin backend.

Blocking `requests` calls run in a worker thread via asyncio.to_thread so the
event loop never stalls. Every call is bounded by the configured timeout;
failures are mapped onto the engine's error taxonomy and never retried here.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

import requests

from ...domain.errors import MalformedPayloadError, TransportError
from ...domain.interfaces.backend_api import BackendApi
from ...utils.logging_setup import get_logger

logger = get_logger(__name__)


class BackendClient(BackendApi):
    """
    JSON-over-HTTP access to `{base_url}{api_prefix}{path}`.

    Resource locators (image paths) resolve against `base_url` without the
    API prefix, matching where the backend serves static files.
    """

    def __init__(
        self,
        base_url: str,
        api_prefix: str = "/api",
        timeout_sec: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        """
        Args:
            base_url: Backend origin, e.g. "http://localhost:5000".
            api_prefix: Path prefix of the JSON API.
            timeout_sec: Connect/read timeout applied to every request.
            session: Optional pre-configured session (for testing).
        """
        self.base_url = base_url.rstrip("/")
        self.api_prefix = "/" + api_prefix.strip("/") if api_prefix.strip("/") else ""
        self.timeout_sec = timeout_sec
        self._session = session or requests.Session()
        self._session.headers.setdefault("Accept", "application/json")

    def url_for(self, path: str) -> str:
        return f"{self.base_url}{self.api_prefix}/{path.lstrip('/')}"

    async def get_json(self, path: str) -> Any:
        return await asyncio.to_thread(self._request, "GET", path, None)

    async def post_json(self, path: str, body: Dict[str, Any]) -> Any:
        return await asyncio.to_thread(self._request, "POST", path, body)

    def close(self) -> None:
        self._session.close()

    def _request(self, method: str, path: str, body: Optional[Dict[str, Any]]) -> Any:
        url = self.url_for(path)
        try:
            resp = self._session.request(method, url, json=body, timeout=self.timeout_sec)
        except requests.exceptions.Timeout as e:
            logger.warning(f"{method} {url} timed out after {self.timeout_sec}s")
            raise TransportError(f"Request timed out after {self.timeout_sec}s", url=url) from e
        except requests.exceptions.RequestException as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise TransportError(f"Request failed: {e}", url=url) from e

        if not 200 <= resp.status_code < 300:
            logger.warning(f"{method} {url} returned HTTP {resp.status_code}")
            raise TransportError(
                f"Server returned HTTP {resp.status_code}",
                status_code=resp.status_code,
                url=url,
            )

        try:
            return resp.json()
        except ValueError as e:
            raise MalformedPayloadError(f"Response from {url} is not valid JSON", source=url) from e
