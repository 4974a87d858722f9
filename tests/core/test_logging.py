"""Tests for structured logging."""

import json
import logging
from pathlib import Path

import pytest
import structlog

from anchorscan.config.models import LoggingConfig, LogOutputConfig
from anchorscan.core.logging import (
    ConsoleSuppressingFilter,
    clear_run_id,
    configure_logging,
    get_log_file_path,
    get_logger,
    get_run_id,
    set_run_id,
)
from anchorscan.core.progress import suppress_console_logs


class TestRunIdCorrelation:
    """Run ID context variable tests."""

    def setup_method(self) -> None:
        """Clear run ID before each test."""
        clear_run_id()

    def test_given_run_id_when_set_then_can_retrieve(self) -> None:
        """Run ID can be set and retrieved."""
        # Given
        run_id = "scan-123"

        # When
        result = set_run_id(run_id)

        # Then
        assert result == run_id
        assert get_run_id() == run_id

    def test_given_no_id_when_set_then_generates_short_hex(self) -> None:
        """Set generates a 12-character id when none provided."""
        # When
        rid = set_run_id()

        # Then
        assert len(rid) == 12
        int(rid, 16)

    def test_given_set_id_when_clear_then_removes_id(self) -> None:
        """Clear removes the current run ID."""
        # Given
        set_run_id("to-clear")

        # When
        clear_run_id()

        # Then
        assert get_run_id() is None


class TestLoggingConfiguration:
    """Logging configuration tests."""

    def setup_method(self) -> None:
        """Reset structlog and stdlib logging before each test."""
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()
        clear_run_id()

    def test_given_config_object_when_configure_then_takes_precedence(self, tmp_path: Path) -> None:
        """LoggingConfig object takes precedence over simple params."""
        # Given
        log_file = tmp_path / "test.log"
        config = LoggingConfig(
            level="DEBUG",
            outputs=[LogOutputConfig(format="json", destination=str(log_file))],
        )

        # When
        configure_logging(config=config, json_format=False, level="ERROR")
        get_logger().debug("debug msg")

        # Then
        assert "debug msg" in log_file.read_text()
        assert get_log_file_path() == log_file

    def test_given_json_file_output_when_log_then_valid_json_with_run_id(
        self, tmp_path: Path
    ) -> None:
        """JSON output carries event, level, timestamp and the run id."""
        # Given
        log_file = tmp_path / "scan.log"
        configure_logging(
            config=LoggingConfig(
                level="INFO",
                outputs=[LogOutputConfig(format="json", destination=str(log_file))],
            )
        )
        set_run_id("abc123")

        # When
        get_logger("anchorscan.test").info("scan_complete", files=3)

        # Then
        data = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert data["event"] == "scan_complete"
        assert data["files"] == 3
        assert data["level"] == "info"
        assert data["run_id"] == "abc123"
        assert "timestamp" in data

    def test_given_multi_output_config_when_configure_then_levels_per_output(
        self, tmp_path: Path
    ) -> None:
        """Each output filters by its own level, inheriting the root level."""
        # Given
        debug_file = tmp_path / "debug.log"
        info_file = tmp_path / "info.log"
        config = LoggingConfig(
            level="DEBUG",
            outputs=[
                LogOutputConfig(format="json", destination=str(info_file), level="INFO"),
                LogOutputConfig(format="json", destination=str(debug_file)),
            ],
        )

        # When
        configure_logging(config=config)
        logger = get_logger()
        logger.debug("debug only")
        logger.info("info msg")

        # Then
        info_content = info_file.read_text()
        assert "info msg" in info_content
        assert "debug only" not in info_content
        debug_content = debug_file.read_text()
        assert "debug only" in debug_content
        assert "info msg" in debug_content

    def test_given_relative_destination_when_config_then_rejected(self) -> None:
        """File destinations must be absolute."""
        # When / Then
        with pytest.raises(ValueError):
            LogOutputConfig(destination="logs/scan.log")


class TestConsoleSuppressingFilter:
    """Console records are dropped during live displays."""

    def test_given_no_live_display_when_filter_then_passes(self) -> None:
        # Given
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)

        # When / Then
        assert ConsoleSuppressingFilter().filter(record) is True

    def test_given_suppressed_console_when_filter_then_drops(self) -> None:
        # Given
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)

        # When
        with suppress_console_logs():
            result = ConsoleSuppressingFilter().filter(record)

        # Then
        assert result is False
