"""Configuration data models."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Any, Optional


@dataclass
class BackendConfig:
    """HTTP backend configuration."""
    base_url: str
    api_prefix: str
    history_path: str
    stats_path: str
    correction_path: str  # Format string with an {id} placeholder
    request_timeout_sec: float


@dataclass
class BackoffConfig:
    """Reconnect backoff. factor == 1.0 gives a fixed delay."""
    initial: float
    max: float
    factor: float


@dataclass
class StreamConfig:
    """Push channel configuration."""
    url: Optional[str]  # Defaults to backend.base_url when None
    socketio_path: str
    transports: list
    connect_timeout_sec: float
    reconnect_backoff: BackoffConfig


@dataclass
class DeviceConfig:
    """Sorting device identity."""
    device_id: str


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str
    json: bool
    log_dir: str
    console: bool


@dataclass
class AppConfig:
    """Complete application configuration."""
    env: str
    backend: BackendConfig
    stream: StreamConfig
    device: DeviceConfig
    logging: LoggingConfig
    raw: Dict[str, Any]  # Merged raw config dict

    @property
    def stream_url(self) -> str:
        return self.stream.url or self.backend.base_url
