"""Tests for the command line interface."""

import json
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner
from rich.console import Console

from hwview.backends import EnumerationResult
from hwview.backends.base import PlatformBackend
from hwview.cli import cli
from hwview.errors import BackendInitError
from hwview.snapshot import create_export_document, encode


class StaticBackend(PlatformBackend):
    """Backend returning a fixed list of records."""

    name = "static"

    def __init__(self, records, error=None):
        self.records = records
        self.error = error
        super().__init__()

    def enumerate_all(self):
        return []

    def enumerate_by_class(self, class_key):
        return []

    def read_properties(self, descriptor):
        return descriptor

    def enumerate(self):
        return EnumerationResult(records=list(self.records), error=self.error)


@pytest.fixture
def runner():
    with patch("hwview.cli.console", Console(width=250)):
        yield CliRunner()


@pytest.fixture
def live(disk_record, keyboard_record, unknown_record):
    backend = StaticBackend([disk_record, keyboard_record, unknown_record])
    with patch("hwview.cli.select_backend", return_value=backend), \
            patch("hwview.cache.DeviceCache.hostname", return_value="testhost"), \
            patch("hwview.cache.DeviceCache.computer_name", return_value="ACPI x64-based PC"):
        yield backend


@pytest.fixture
def snapshot_file(disk_record):
    document = create_export_document(
        [disk_record],
        "old-box",
        system_info={"computerName": "Standard PC"},
        system_resources={},
    )
    with tempfile.TemporaryDirectory() as temp_dir:
        path = Path(temp_dir) / "old-box.dmexport"
        path.write_text(encode(document))
        yield path


class TestListCommand:
    """Test the list command."""

    def test_lists_displayable_devices(self, runner, live):
        result = runner.invoke(cli, ["list"])

        assert result.exit_code == 0
        assert "Samsung SSD 860" in result.output
        assert "HID Keyboard Device" in result.output
        assert "serial8250" not in result.output
        assert "2 devices" in result.output

    def test_category_filter(self, runner, live):
        result = runner.invoke(cli, ["list", "--category", "Keyboards"])

        assert result.exit_code == 0
        assert "HID Keyboard Device" in result.output
        assert "Samsung SSD 860" not in result.output

    def test_unknown_category(self, runner, live):
        result = runner.invoke(cli, ["list", "--category", "Toasters"])

        assert result.exit_code == 1
        assert "Unknown category" in result.output

    def test_backend_failure(self, runner):
        backend = StaticBackend([], error=BackendInitError("pyudev is not installed"))
        with patch("hwview.cli.select_backend", return_value=backend):
            result = runner.invoke(cli, ["list"])

        assert result.exit_code == 1
        assert "pyudev is not installed" in result.output


class TestTreeCommand:
    """Test the tree command."""

    def test_tree(self, runner, live):
        result = runner.invoke(cli, ["tree"])

        assert result.exit_code == 0
        assert "testhost" in result.output
        assert "Disk drives" in result.output
        assert "ACPI x64-based PC" in result.output

    def test_tree_from_file(self, runner, snapshot_file):
        result = runner.invoke(cli, ["tree", "--file", str(snapshot_file)])

        assert result.exit_code == 0
        assert "old-box" in result.output
        assert "Samsung SSD 860" in result.output

    def test_broken_file(self, runner):
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "broken.dmexport"
            path.write_text("{")

            result = runner.invoke(cli, ["tree", "--file", str(path)])

        assert result.exit_code == 1
        assert "Malformed snapshot JSON" in result.output


class TestExportCommand:
    """Test the export command."""

    def test_export(self, runner, live):
        with tempfile.TemporaryDirectory() as temp_dir:
            with patch("hwview.sysinfo.system_info", return_value={}), \
                    patch("hwview.sysinfo.system_resources", return_value={}):
                result = runner.invoke(cli, ["export", "-o", str(Path(temp_dir) / "box")])

            path = Path(temp_dir) / "box.dmexport"
            assert result.exit_code == 0
            assert path.exists()
            data = json.loads(path.read_text())

        assert "Found 3 devices." in result.output
        assert "Export successful." in result.output
        assert len(data["devices"]) == 3
        assert data["system"]["hostname"] == "testhost"

    def test_export_failure(self, runner, live):
        with patch("hwview.cache.DeviceCache.export_to_file", return_value=False):
            result = runner.invoke(cli, ["export", "-q", "-o", "/nonexistent/dir/box"])

        assert result.exit_code == 1
        assert "Failed to export" in result.output
        assert "Enumerating devices" not in result.output


class TestShowCommand:
    """Test the show command."""

    def test_show(self, runner, snapshot_file, disk_record):
        result = runner.invoke(cli, ["show", disk_record.syspath, "--file", str(snapshot_file)])

        assert result.exit_code == 0
        assert "ID_MODEL" in result.output

    def test_show_missing(self, runner, snapshot_file):
        result = runner.invoke(cli, ["show", "/sys/devices/none", "--file", str(snapshot_file)])

        assert result.exit_code == 1
        assert "not found" in result.output


class TestConfigCommands:
    """Test config commands."""

    def test_show(self, runner):
        result = runner.invoke(cli, ["config", "show"])

        assert result.exit_code == 0
        assert "view.show_hidden_devices" in result.output

    def test_init(self, runner):
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "config.yaml"

            result = runner.invoke(cli, ["config", "init", "--path", str(path)])

            assert result.exit_code == 0
            assert path.exists()


class TestGlobalOptions:
    """Test options shared by every command."""

    def test_log_file(self, runner, live, tmp_path):
        log_file = tmp_path / "hwview.log"

        result = runner.invoke(cli, ["--log-file", str(log_file), "list"])

        assert result.exit_code == 0
        assert "Cache refreshed with 3 devices" in log_file.read_text()

    def test_invalid_config_file(self, runner, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("log_level: chatty\n")

        result = runner.invoke(cli, ["--config", str(path), "config", "show"])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
