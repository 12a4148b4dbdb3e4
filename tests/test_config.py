import json
import os

import pytest

from visionterm.core.config import AppConfig, Settings, ensure_api_key
from visionterm.core.exceptions import ConfigError


def _settings(tmp_path, api_key=None):
    return Settings(CONFIG_DIR=tmp_path / "visionterm", REKA_API_KEY=api_key)


class TestSettings:

    def test_config_paths_live_in_config_dir(self, tmp_path):
        config = _settings(tmp_path)
        assert config.config_file == tmp_path / "visionterm" / "config.json"
        assert config.database_file.name == "history.db"
        assert config.log_file.parent == config.CONFIG_DIR

    def test_home_is_expanded(self):
        config = Settings(CONFIG_DIR="~/.config/visionterm")
        assert "~" not in str(config.CONFIG_DIR)

    def test_base_url_trailing_slash_removed(self):
        config = Settings(API_BASE_URL="https://gateway.test/")
        assert config.API_BASE_URL == "https://gateway.test"

    def test_default_timeout_is_thirty_seconds(self):
        assert Settings().REQUEST_TIMEOUT == 30.0


class TestEnsureApiKey:
    """Config file first, then the environment, then failure."""

    def test_key_from_config_file_wins(self, tmp_path):
        config = _settings(tmp_path, api_key="from-env")
        AppConfig(api_key="from-file").save(config.config_file)
        assert ensure_api_key(config) == "from-file"

    def test_environment_key_is_captured_to_file(self, tmp_path):
        config = _settings(tmp_path, api_key="from-env")
        assert ensure_api_key(config) == "from-env"
        saved = json.loads(config.config_file.read_text())
        assert saved == {"api_key": "from-env"}
        assert oct(os.stat(config.config_file).st_mode & 0o777) == "0o600"

    def test_missing_key_raises(self, tmp_path):
        with pytest.raises(ConfigError):
            ensure_api_key(_settings(tmp_path))

    def test_empty_key_in_file_falls_back_to_environment(self, tmp_path):
        config = _settings(tmp_path, api_key="from-env")
        AppConfig(api_key="").save(config.config_file)
        assert ensure_api_key(config) == "from-env"

    def test_unreadable_config_file_raises(self, tmp_path):
        config = _settings(tmp_path)
        config.config_file.parent.mkdir(parents=True)
        config.config_file.write_text("{not json")
        with pytest.raises(ConfigError):
            ensure_api_key(config)
