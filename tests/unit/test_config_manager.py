"""Unit tests for layered YAML configuration."""

import pytest
import yaml

from config import ConfigManager
from config.config_manager import DEFAULT_CONFIG_DIR


def _write(path, data):
    path.write_text(yaml.safe_dump(data))


class TestLoading:
    """base.yaml, {env}.yaml and secrets.yaml layering."""

    def test_packaged_base_config_loads(self):
        config = ConfigManager(config_dir=DEFAULT_CONFIG_DIR, env="test-none").load()

        assert config.backend.base_url == "http://localhost:5000"
        assert config.backend.correction_path == "/log/{id}/correction"
        assert config.stream.reconnect_backoff.factor == 2
        assert config.device.device_id == "smartbin"
        assert config.stream_url == config.backend.base_url

    def test_missing_base_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigManager(config_dir=tmp_path).load()

    def test_env_and_secrets_deep_merge(self, tmp_path):
        _write(tmp_path / "base.yaml", {"backend": {"base_url": "http://a:5000/", "request_timeout_sec": 10}})
        _write(tmp_path / "prod.yaml", {"backend": {"request_timeout_sec": 3}})
        _write(tmp_path / "secrets.yaml", {"stream": {"url": "http://push:6000"}})

        config = ConfigManager(config_dir=tmp_path, env="prod").load()

        assert config.env == "prod"
        assert config.backend.base_url == "http://a:5000"
        assert config.backend.request_timeout_sec == 3
        assert config.stream_url == "http://push:6000"
        assert config.raw["stream"]["url"] == "http://push:6000"

    def test_defaults_fill_empty_base(self, tmp_path):
        (tmp_path / "base.yaml").write_text("")

        config = ConfigManager(config_dir=tmp_path).load()

        assert config.backend.api_prefix == "/api"
        assert config.stream.transports == ["websocket", "polling"]
        assert config.logging.level == "INFO"


class TestValidation:
    @pytest.mark.parametrize(
        "data",
        [
            {"backend": {"request_timeout_sec": 0}},
            {"backend": {"correction_path": "/log/correction"}},
            {"stream": {"reconnect_backoff_sec": {"initial": 5, "max": 1}}},
            {"stream": {"reconnect_backoff_sec": {"factor": 0.5}}},
            {"backend": {"request_timeout_sec": "soon"}},
        ],
    )
    def test_invalid_values_rejected(self, tmp_path, data):
        _write(tmp_path / "base.yaml", data)

        with pytest.raises(ValueError):
            ConfigManager(config_dir=tmp_path).load()
