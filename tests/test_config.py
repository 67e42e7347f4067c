"""
Tests for configuration loading.
"""

import pytest

from etf_tracker.config import (
    POLYGON_ENV_VAR,
    ConfigurationError,
    get_polygon_api_key,
    load_api_keys,
    load_tracker_config,
    write_config,
)
from etf_tracker.models import TrackerConfig


@pytest.fixture
def no_env_key(monkeypatch):
    monkeypatch.delenv(POLYGON_ENV_VAR, raising=False)


class TestLoadApiKeys:
    """Tests for API key resolution order."""

    def test_no_sources(self, tmp_path, no_env_key):
        keys = load_api_keys(tmp_path / ".env", tmp_path / "api_keys.yaml")
        assert keys == {}

    def test_yaml_file(self, tmp_path, no_env_key):
        yaml_file = tmp_path / "api_keys.yaml"
        yaml_file.write_text("polygon_api_key: from-yaml\n")

        keys = load_api_keys(tmp_path / ".env", yaml_file)
        assert keys["polygon_api_key"] == "from-yaml"

    def test_env_file_overrides_yaml(self, tmp_path, no_env_key):
        yaml_file = tmp_path / "api_keys.yaml"
        yaml_file.write_text("polygon_api_key: from-yaml\n")
        env_file = tmp_path / ".env"
        env_file.write_text(f"{POLYGON_ENV_VAR}=from-dotenv\n")

        keys = load_api_keys(env_file, yaml_file)
        assert keys["polygon_api_key"] == "from-dotenv"

    def test_environment_has_priority(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text(f"{POLYGON_ENV_VAR}=from-dotenv\n")
        monkeypatch.setenv(POLYGON_ENV_VAR, "from-environ")

        keys = load_api_keys(env_file, tmp_path / "api_keys.yaml")
        assert keys["polygon_api_key"] == "from-environ"

    def test_unreadable_yaml_ignored(self, tmp_path, no_env_key):
        yaml_file = tmp_path / "api_keys.yaml"
        yaml_file.write_text("polygon_api_key: [unclosed\n")

        assert load_api_keys(tmp_path / ".env", yaml_file) == {}

    def test_get_polygon_api_key_missing(self, tmp_path, no_env_key):
        with pytest.raises(ConfigurationError, match="not configured"):
            get_polygon_api_key(tmp_path / ".env", tmp_path / "api_keys.yaml")


class TestLoadTrackerConfig:
    """Tests for load_tracker_config."""

    def test_partial_file_uses_defaults(self, tmp_path):
        path = tmp_path / "tracker.yaml"
        path.write_text("horizon_days: 30\nrefresh_cooldown_hours: 12\n")

        config = load_tracker_config(path)

        assert config.horizon_days == 30
        assert config.refresh_cooldown_hours == 12.0
        assert config.payment_offset_days == 2
        assert config.requests_per_window == 5
        assert config.catalog_path is None

    def test_empty_file(self, tmp_path):
        path = tmp_path / "tracker.yaml"
        path.write_text("")

        assert load_tracker_config(path) == TrackerConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_tracker_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "tracker.yaml"
        path.write_text("horizon_days: [1, 2\n")

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_tracker_config(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "tracker.yaml"
        path.write_text("- 1\n- 2\n")

        with pytest.raises(ConfigurationError, match="mapping"):
            load_tracker_config(path)

    def test_unknown_field(self, tmp_path):
        path = tmp_path / "tracker.yaml"
        path.write_text("horizon_dayz: 30\n")

        with pytest.raises(ConfigurationError, match="horizon_dayz"):
            load_tracker_config(path)

    @pytest.mark.parametrize(
        "content",
        [
            "horizon_days: -1\n",
            "requests_per_window: 0\n",
            "rate_window_seconds: abc\n",
            "payment_offset_days: true\n",
        ],
    )
    def test_invalid_values(self, tmp_path, content):
        path = tmp_path / "tracker.yaml"
        path.write_text(content)

        with pytest.raises(ConfigurationError):
            load_tracker_config(path)

    def test_write_and_reload(self, tmp_path):
        config = TrackerConfig(horizon_days=60, catalog_path="data/funds.csv")
        path = tmp_path / "out" / "tracker.yaml"

        write_config(config, path)
        assert load_tracker_config(path) == config
