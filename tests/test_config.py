"""Tests for configuration management."""

import tempfile
from pathlib import Path

import pytest
from pydantic import ValidationError

from hwview.config import HwviewConfig, get_config, load_config, save_config, set_config


class TestConfig:
    """Test configuration loading and saving."""

    def test_defaults(self):
        config = HwviewConfig()

        assert config.view.show_hidden_devices is False
        assert config.export.include_driver_details is True
        assert config.backend.force is None
        assert config.backend.command_timeout == 3
        assert config.name_mapping_dirs == []

    def test_load_creates_default_file(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "hwview" / "config.yaml"

            config = load_config(path)

            assert path.exists()
            assert config.log_level == "INFO"

    def test_round_trip(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "config.yaml"
            config = HwviewConfig()
            config.view.show_hidden_devices = True
            config.backend.force = "linux"
            config.name_mapping_dirs = [Path("/opt/hwview/mappings")]

            save_config(config, path)
            loaded = load_config(path)

        assert loaded.view.show_hidden_devices is True
        assert loaded.backend.force == "linux"
        assert loaded.name_mapping_dirs == [Path("/opt/hwview/mappings")]

    def test_partial_file(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "config.yaml"
            path.write_text("view:\n  show_hidden_devices: true\n")

            config = load_config(path)

        assert config.view.show_hidden_devices is True
        assert config.export.include_resources is True

    def test_validate_assignment(self):
        config = HwviewConfig()

        with pytest.raises(ValidationError):
            config.name_mapping_dirs = "not a list"

    def test_log_level_names(self):
        assert HwviewConfig(log_level="debug").log_level == "DEBUG"
        assert HwviewConfig().log_file is None

        with pytest.raises(ValidationError):
            HwviewConfig(log_level="chatty")

    def test_log_file_from_yaml(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "config.yaml"
            path.write_text("log_file: /tmp/hwview-debug.log\n")

            config = load_config(path)

        assert config.log_file == Path("/tmp/hwview-debug.log")

    def test_set_config(self):
        config = HwviewConfig(log_level="DEBUG")
        set_config(config)

        assert get_config() is config
