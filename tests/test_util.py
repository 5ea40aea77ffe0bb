"""Tests for utility helpers."""

import io
import logging
import subprocess
from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from rich.console import Console

from hwview.errors import CommandError, HwviewError
from hwview.util import (
    get_logger,
    now_iso,
    parse_iso,
    read_text_file,
    run_command,
    setup_logging,
    with_export_extension,
)


class TestPaths:
    """Test path helpers."""

    def test_with_export_extension(self):
        assert with_export_extension(Path("out/box")) == Path("out/box.dmexport")
        assert with_export_extension(Path("box.dmexport")) == Path("box.dmexport")
        assert with_export_extension(Path("box.DMEXPORT")) == Path("box.DMEXPORT")
        assert with_export_extension(Path("box.json")) == Path("box.json.dmexport")

    def test_read_missing_file(self):
        assert read_text_file(Path("/nonexistent/irq")) is None


class TestTime:
    """Test timestamp helpers."""

    def test_now_iso_has_offset(self):
        stamp = parse_iso(now_iso())

        assert isinstance(stamp, datetime)
        assert stamp.tzinfo is not None


class TestRunCommand:
    """Test external command execution."""

    @patch("hwview.util.process.subprocess.run")
    def test_success(self, mock_run):
        mock_run.return_value = MagicMock(stdout=b"ok\n")

        assert run_command(["modinfo", "ahci"]) == b"ok\n"

    @patch("hwview.util.process.subprocess.run")
    def test_missing_command(self, mock_run):
        mock_run.side_effect = FileNotFoundError("modinfo")

        with pytest.raises(CommandError, match="not found"):
            run_command(["modinfo", "ahci"])

    @patch("hwview.util.process.subprocess.run")
    def test_failed_command(self, mock_run):
        mock_run.side_effect = subprocess.CalledProcessError(1, ["modinfo", "nope"], stderr=b"Module nope not found.\n")

        with pytest.raises(CommandError, match="Module nope not found"):
            run_command(["modinfo", "nope"])

    @patch("hwview.util.process.subprocess.run")
    def test_timeouts_are_retried(self, mock_run):
        mock_run.side_effect = [
            subprocess.TimeoutExpired(["ioreg"], 3),
            MagicMock(stdout=b"<plist/>"),
        ]

        assert run_command(["ioreg"]) == b"<plist/>"
        assert mock_run.call_count == 2


class TestErrors:
    """Test error formatting."""

    def test_hint_is_appended(self):
        error = HwviewError("Unsupported snapshot format version 2", hint="this build reads version 1")

        assert str(error) == "Unsupported snapshot format version 2 (this build reads version 1)"


@pytest.fixture
def hwview_logger():
    logger = logging.getLogger("hwview")
    handlers, level = logger.handlers[:], logger.level
    pyudev_level = logging.getLogger("pyudev").level
    yield logger
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)
    logging.getLogger("pyudev").setLevel(pyudev_level)


class TestLogging:
    """Test logging setup."""

    def test_log_file_records_debug(self, hwview_logger, tmp_path):
        log_file = tmp_path / "logs" / "hwview.log"
        console = Console(file=io.StringIO(), width=200)

        setup_logging("WARNING", log_file=log_file, console=console)
        get_logger("hwview.backends.udev").debug("Enumerated 42 udev devices")
        for handler in hwview_logger.handlers:
            handler.flush()

        assert "Enumerated 42 udev devices" in log_file.read_text()
        assert "Enumerated 42 udev devices" not in console.file.getvalue()

    def test_console_follows_level(self, hwview_logger):
        console = Console(file=io.StringIO(), width=200)

        setup_logging("INFO", console=console)
        get_logger("hwview.cache").info("Loaded 3 devices")

        assert "Loaded 3 devices" in console.file.getvalue()
        assert hwview_logger.level == logging.INFO

    def test_repeated_setup_replaces_handlers(self, hwview_logger):
        console = Console(file=io.StringIO())

        setup_logging("INFO", console=console)
        setup_logging("INFO", console=console)

        assert len(hwview_logger.handlers) == 1

    def test_pyudev_is_capped(self, hwview_logger):
        setup_logging("DEBUG", console=Console(file=io.StringIO()))

        assert logging.getLogger("pyudev").level == logging.WARNING

    def test_unknown_level(self, hwview_logger):
        with pytest.raises(ValueError, match="Unknown log level"):
            setup_logging("chatty")
