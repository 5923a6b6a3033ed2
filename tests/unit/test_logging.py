"""Tests for structured logging configuration."""

import io
import json

import pytest

from docsig.core.config import get_settings
from docsig.core.logging import configure_logging, get_logger


class TestConfigureLogging:
    def test_json_lines(self) -> None:
        stream = io.StringIO()
        configure_logging(stream=stream, json_logs=True)
        get_logger("docsig.test").info("document_signed", signature_count=2)
        event = json.loads(stream.getvalue().strip())
        assert event["event"] == "document_signed"
        assert event["signature_count"] == 2
        assert event["logger"] == "docsig.test"
        assert event["level"] == "info"

    def test_console_in_development(self) -> None:
        stream = io.StringIO()
        configure_logging(stream=stream)
        get_logger("docsig.test").warning("jku_resolution_failed", kid="k1")
        line = stream.getvalue()
        assert "jku_resolution_failed" in line
        assert "kid=k1" in line

    def test_level_filter(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DOCSIG_LOG_LEVEL", "WARNING")
        get_settings.cache_clear()
        stream = io.StringIO()
        configure_logging(stream=stream, json_logs=True)
        logger = get_logger("docsig.test")
        logger.info("trusted_keys_refreshed")
        logger.error("trusted_keys_fetch_failed")
        lines = stream.getvalue().strip().splitlines()
        assert [json.loads(line)["event"] for line in lines] == ["trusted_keys_fetch_failed"]

    def test_module_loggers_follow_later_configuration(self) -> None:
        from docsig.core.crypto import canonicalization

        stream = io.StringIO()
        configure_logging(stream=stream, json_logs=True)
        canonicalization.serialize(0.5)
        event = json.loads(stream.getvalue().strip())
        assert event["event"] == "fractional_number_serialized"
        assert event["logger"] == "docsig.core.crypto.canonicalization"
