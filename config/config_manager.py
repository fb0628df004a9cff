"""
Configuration manager with environment-based loading.

Supports:
- Base configuration (base.yaml)
- Environment-specific overrides (dev.yaml, prod.yaml)
- Secrets loading (secrets.yaml - gitignored)
"""

from __future__ import annotations
from pathlib import Path
from typing import Dict, Any
import yaml
import logging

from .models import (
    AppConfig,
    BackendConfig,
    BackoffConfig,
    StreamConfig,
    DeviceConfig,
    LoggingConfig,
)


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path(__file__).parent


class ConfigManager:
    """
    Configuration manager with environment support.

    Loads configuration in this order:
    1. base.yaml (default config)
    2. {env}.yaml (environment-specific, e.g., dev.yaml)
    3. secrets.yaml (if exists, gitignored)

    Later configs override earlier ones.
    """

    def __init__(self, config_dir: str | Path = DEFAULT_CONFIG_DIR, env: str = "dev"):
        """
        Initialize config manager.

        Args:
            config_dir: Directory containing config files.
            env: Environment name (dev, prod, etc).
        """
        self.config_dir = Path(config_dir)
        self.env = env
        self.config: Dict[str, Any] = {}

    def load(self) -> AppConfig:
        """
        Load configuration from YAML files.

        Returns:
            AppConfig object.

        Raises:
            FileNotFoundError: If base config not found.
            ValueError: If config is invalid.
        """
        base_path = self.config_dir / "base.yaml"
        if not base_path.exists():
            raise FileNotFoundError(f"Base config not found: {base_path}")

        self.config = self._load_yaml(base_path)
        logger.info(f"Loaded base config from {base_path}")

        env_path = self.config_dir / f"{self.env}.yaml"
        if env_path.exists():
            self.config = self._merge_dicts(self.config, self._load_yaml(env_path))
            logger.info(f"Loaded {self.env} config from {env_path}")

        secrets_path = self.config_dir / "secrets.yaml"
        if secrets_path.exists():
            self.config = self._merge_dicts(self.config, self._load_yaml(secrets_path))
            logger.info("Loaded secrets")

        return self._parse_config()

    def _load_yaml(self, path: Path) -> Dict[str, Any]:
        with open(path, "r") as f:
            return yaml.safe_load(f) or {}

    def _merge_dicts(self, base: Dict, override: Dict) -> Dict:
        """Deep merge two dicts (override wins)."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_dicts(result[key], value)
            else:
                result[key] = value
        return result

    def _parse_config(self) -> AppConfig:
        """Parse raw dict into AppConfig."""
        try:
            backend_raw = self.config.get("backend", {})
            backend = BackendConfig(
                base_url=str(backend_raw.get("base_url", "http://localhost:5000")).rstrip("/"),
                api_prefix=backend_raw.get("api_prefix", "/api"),
                history_path=backend_raw.get("history_path", "/history"),
                stats_path=backend_raw.get("stats_path", "/stats"),
                correction_path=backend_raw.get("correction_path", "/log/{id}/correction"),
                request_timeout_sec=float(backend_raw.get("request_timeout_sec", 10)),
            )

            stream_raw = self.config.get("stream", {})
            backoff_raw = stream_raw.get("reconnect_backoff_sec", {})
            stream = StreamConfig(
                url=stream_raw.get("url"),
                socketio_path=stream_raw.get("socketio_path", "socket.io"),
                transports=list(stream_raw.get("transports", ["websocket", "polling"])),
                connect_timeout_sec=float(stream_raw.get("connect_timeout_sec", 5)),
                reconnect_backoff=BackoffConfig(
                    initial=float(backoff_raw.get("initial", 1)),
                    max=float(backoff_raw.get("max", 30)),
                    factor=float(backoff_raw.get("factor", 2)),
                ),
            )

            device_raw = self.config.get("device", {})
            device = DeviceConfig(device_id=str(device_raw.get("device_id", "smartbin")))

            logging_raw = self.config.get("logging", {})
            logging_config = LoggingConfig(
                level=str(logging_raw.get("level", "INFO")).upper(),
                json=bool(logging_raw.get("json", True)),
                log_dir=logging_raw.get("log_dir", "./logs"),
                console=bool(logging_raw.get("console", False)),
            )
        except Exception as e:
            raise ValueError(f"Failed to parse config: {e}")

        self._validate(backend, stream)

        return AppConfig(
            env=self.env,
            backend=backend,
            stream=stream,
            device=device,
            logging=logging_config,
            raw=self.config,
        )

    def _validate(self, backend: BackendConfig, stream: StreamConfig) -> None:
        if backend.request_timeout_sec <= 0:
            raise ValueError("backend.request_timeout_sec must be positive")
        if "{id}" not in backend.correction_path:
            raise ValueError("backend.correction_path must contain an {id} placeholder")
        backoff = stream.reconnect_backoff
        if backoff.initial <= 0 or backoff.max < backoff.initial:
            raise ValueError("stream.reconnect_backoff_sec needs 0 < initial <= max")
        if backoff.factor < 1.0:
            raise ValueError("stream.reconnect_backoff_sec.factor must be >= 1.0")
