"""Tests for cw2slack/main.py — argument parsing, logging setup and exit codes."""

import logging
from unittest.mock import MagicMock, patch

import pytest

from cw2slack.__version__ import __version__
from cw2slack.config import Config
from cw2slack.errors import ApiError, ConfigError, DecodeError, RequestError
from cw2slack.main import main, parse_args, run, setup_logging
from cw2slack.relay import RelayResult


def _config():
    return Config.from_dict({
        "access_token": "tok",
        "webhook_endpoint": "https://hooks.example.com/x",
        "default_channel": "#general",
        "log_level": "WARNING",
    })


class TestParseArgs:
    """Test the command line surface."""

    def test_no_arguments(self):
        parse_args([])

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            parse_args(["--version"])

        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out

    def test_unknown_flag_rejected(self):
        with pytest.raises(SystemExit) as exc_info:
            parse_args(["--channel", "#x"])
        assert exc_info.value.code == 2


class TestSetupLogging:
    """Test logging configuration."""

    def test_level_applied(self):
        setup_logging(level="DEBUG")
        assert logging.getLogger().level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self):
        setup_logging(level="LOUD")
        assert logging.getLogger().level == logging.INFO

    def test_httpx_quieted(self):
        setup_logging(level="DEBUG")
        assert logging.getLogger("httpx").level == logging.WARNING


class TestMain:
    """Test the top-level error handler."""

    def test_success(self):
        with patch("cw2slack.main.Config.load", return_value=_config()), \
                patch("cw2slack.main.run", return_value=RelayResult()) as run_fn:
            assert main([]) == 0
        run_fn.assert_called_once()

    def test_missing_config(self):
        """No config file under $HOME yields the configuration exit code."""
        assert main([]) == 2

    def test_invalid_log_level_is_config_error(self, tmp_path, monkeypatch):
        """A bad log level exits with the configuration code, not a traceback."""
        config_dir = tmp_path / ".config" / "cw2slack"
        config_dir.mkdir(parents=True)
        (config_dir / "config.toml").write_text(
            'access_token = "tok"\n'
            'webhook_endpoint = "https://hooks.example.com/x"\n'
            'default_channel = "#general"\n',
            encoding="utf-8",
        )
        monkeypatch.setenv("CW2SLACK_LOG_LEVEL", "BASIC_FORMAT")

        with patch("cw2slack.main.run") as run_fn:
            assert main([]) == 2
        run_fn.assert_not_called()

    def test_config_error(self):
        with patch("cw2slack.main.Config.load", side_effect=ConfigError("bad")):
            assert main([]) == 2

    @pytest.mark.parametrize("error,code", [
        (RequestError("down"), 3),
        (ApiError(500), 4),
        (DecodeError("garbage"), 5),
        (RuntimeError("unexpected"), 1),
    ])
    def test_error_exit_codes(self, error, code):
        with patch("cw2slack.main.Config.load", return_value=_config()), \
                patch("cw2slack.main.run", side_effect=error):
            assert main([]) == code

    def test_keyboard_interrupt(self):
        with patch("cw2slack.main.Config.load", return_value=_config()), \
                patch("cw2slack.main.run", side_effect=KeyboardInterrupt):
            assert main([]) == 130


class TestRun:
    """Test wiring of clients from configuration."""

    def test_builds_clients_from_config(self):
        config = Config.from_dict({
            "access_token": "tok",
            "webhook_endpoint": "https://hooks.example.com/x",
            "default_channel": "#general",
            "mappings": {"a": {"room": "1", "channel": "#a"}},
            "timeout_seconds": 5,
        })
        relay = MagicMock()
        relay.run.return_value = RelayResult(rooms_seen=1)

        with patch("cw2slack.main.ChatworkClient") as cw_cls, \
                patch("cw2slack.main.SlackWebhookClient") as slack_cls, \
                patch("cw2slack.main.Relay", return_value=relay) as relay_cls:
            result = run(config)

        cw_cls.assert_called_once_with("tok", timeout=5.0)
        slack_cls.assert_called_once_with("https://hooks.example.com/x", timeout=5.0)
        resolver = relay_cls.call_args.args[1]
        assert resolver.resolve(1) == "#a"
        assert resolver.resolve(2) == "#general"
        assert result.rooms_seen == 1
