"""Tests for GridOscConfig, config files and error helpers."""

import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from gridosc.exceptions import (
    ConfigValidationError,
    ConnectionTimeoutError,
    ErrorContext,
    format_error_for_display,
)
from gridosc.models import GridOscConfig, OverflowPolicy


class TestGridOscConfig:
    """Test defaults and validation."""

    def test_defaults(self):
        config = GridOscConfig()
        assert config.daemon_host == "localhost"
        assert config.daemon_port == 12002
        assert config.connect_timeout == 5.0
        assert config.handshake_timeout == 1.0
        assert config.overflow_policy is OverflowPolicy.BLOCK
        assert config.ignore_malformed is True
        assert config.default_prefix.startswith("/")

    def test_prefix_must_start_with_slash(self):
        with pytest.raises(ValidationError):
            GridOscConfig(default_prefix="hello")

    def test_prefix_trailing_slash_removed(self):
        assert GridOscConfig(default_prefix="/hello/").default_prefix == "/hello"

    @pytest.mark.parametrize(
        "field,value",
        [("connect_timeout", 0), ("handshake_timeout", -1), ("event_queue_size", 0), ("daemon_port", 70000)],
    )
    def test_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            GridOscConfig(**{field: value})


class TestConfigFile:
    """Test loading and saving config files."""

    def test_save_and_load(self, tmp_path: Path):
        path = GridOscConfig(daemon_port=13000, overflow_policy=OverflowPolicy.DROP_OLDEST).save(
            tmp_path / "gridosc" / "config.json"
        )

        loaded = GridOscConfig.load(path)
        assert loaded.daemon_port == 13000
        assert loaded.overflow_policy is OverflowPolicy.DROP_OLDEST

    def test_missing_file_gives_defaults(self, tmp_path: Path):
        assert GridOscConfig.load(tmp_path / "missing.json") == GridOscConfig()

    def test_partial_file_keeps_other_defaults(self, tmp_path: Path):
        path = tmp_path / "config.json"
        path.write_text('{"default_prefix": "/mine/"}')

        config = GridOscConfig.load(path)
        assert config.default_prefix == "/mine"
        assert config.daemon_port == 12002

    @pytest.mark.parametrize("content", ['{"daemon_port": 12002,}', ""])
    def test_not_json(self, tmp_path: Path, content):
        path = tmp_path / "config.json"
        path.write_text(content)

        with pytest.raises(ConfigValidationError) as excinfo:
            GridOscConfig.load(path)

        assert excinfo.value.fields == ("",)
        assert str(path) in excinfo.value.recovery_hint

    def test_invalid_value(self, tmp_path: Path):
        path = tmp_path / "config.json"
        path.write_text('{"connect_timeout": "soon"}')

        with pytest.raises(ConfigValidationError) as excinfo:
            GridOscConfig.load(path)

        assert excinfo.value.fields == ("connect_timeout",)
        assert "seconds" in excinfo.value.recovery_hint
        assert excinfo.value.recoverable
        assert isinstance(excinfo.value.__cause__, ValidationError)


class TestErrorContext:
    """Test operation logging."""

    def test_failure_propagates(self, caplog):
        caplog.set_level(logging.DEBUG, logger="gridosc")
        with pytest.raises(ConnectionTimeoutError):
            with ErrorContext("dial grid") as context:
                raise ConnectionTimeoutError("a device", 1.0)

        assert isinstance(context.error, ConnectionTimeoutError)
        assert "Failed to dial grid" in caplog.text

    def test_success(self):
        with ErrorContext("dial grid") as context:
            pass
        assert context.error is None


class TestErrorDisplay:
    """Test formatting errors for users."""

    def test_library_error(self):
        message, hint = format_error_for_display(ConnectionTimeoutError("a device", 5.0))
        assert message == "Connection timed out."
        assert "serialosc" in hint

    def test_full_message_includes_hint(self):
        message = ConnectionTimeoutError("a device", 5.0).get_full_message()
        assert message.startswith("Connection timed out.\n\nSuggestion: ")

    def test_other_error(self):
        message, hint = format_error_for_display(OSError("boom"))
        assert message == "OSError: boom"
        assert hint is None
