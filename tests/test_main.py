from unittest.mock import MagicMock, patch

import pytest

from visionterm.core.exceptions import ConfigError, StorageError
from visionterm.main import main
from visionterm.version import __version__


class TestCommandLine:

    def test_version_word(self, capsys):
        assert main(["version"]) == 0
        assert capsys.readouterr().out.strip() == f"visionterm {__version__}"

    @pytest.mark.parametrize("flag", ["-v", "--version", "-h", "--help"])
    def test_flags_exit_cleanly(self, flag):
        with pytest.raises(SystemExit) as exc_info:
            main([flag])
        assert exc_info.value.code == 0

    def test_unknown_argument_is_rejected(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["serve"])
        assert exc_info.value.code == 2


class TestStartupFailures:
    """Missing key or unusable database end the process with status 1."""

    def test_missing_api_key(self, capsys):
        with patch("visionterm.main.setup_logging"), \
             patch("visionterm.main.ensure_api_key", side_effect=ConfigError("no API key found")):
            assert main([]) == 1
        err = capsys.readouterr().err
        assert "no API key found" in err
        assert "REKA_API_KEY" in err

    def test_database_cannot_be_opened(self, capsys):
        with patch("visionterm.main.setup_logging"), \
             patch("visionterm.main.ensure_api_key", return_value="key"), \
             patch("visionterm.main.open_store", side_effect=StorageError("open", "corrupt")):
            assert main([]) == 1
        assert "Error opening database" in capsys.readouterr().err

    def test_store_closed_after_session(self):
        store = MagicMock()
        with patch("visionterm.main.setup_logging"), \
             patch("visionterm.main.ensure_api_key", return_value="key"), \
             patch("visionterm.main.open_store", return_value=store), \
             patch("visionterm.main.Gateway") as gateway_cls, \
             patch("visionterm.main.VisiontermApp") as app_cls:
            assert main([]) == 0

        gateway_cls.assert_called_once_with("key")
        app_cls.assert_called_once_with(gateway_cls.return_value, store)
        app_cls.return_value.run.assert_called_once()
        store.close.assert_called_once()
