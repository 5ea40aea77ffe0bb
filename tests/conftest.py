"""Shared fixtures for hwview tests."""

import pytest

from hwview.cache import reset_cache
from hwview.categories import DeviceCategory
from hwview.config import HwviewConfig, set_config
from hwview.namemappings import NameMappings, get_name_mappings
from hwview.record import DeviceRecord


@pytest.fixture(autouse=True)
def isolated_globals():
    """Keep tests away from ~/.config and the process-wide singletons."""
    set_config(HwviewConfig())
    get_name_mappings._mappings = NameMappings(include_system_dirs=False, locale_name="en-US")
    reset_cache()
    yield
    reset_cache()
    del get_name_mappings._mappings


@pytest.fixture
def disk_record():
    return DeviceRecord(
        syspath="/sys/devices/pci0000:00/0000:00:17.0/ata1/host0/target0:0:0/0:0:0:0/block/sda",
        dev_path="/devices/pci0000:00/0000:00:17.0/ata1/host0/target0:0:0/0:0:0:0/block/sda",
        devnode="/dev/sda",
        name="Samsung SSD 860",
        driver="sd",
        subsystem="block",
        category=DeviceCategory.DISK_DRIVES,
        properties={"DEVTYPE": "disk", "ID_MODEL": "Samsung_SSD_860"},
        platform="linux",
    )


@pytest.fixture
def keyboard_record():
    return DeviceRecord(
        syspath="HID\\VID_046D&PID_C31C&MI_00\\7&1A2B3C4D&0&0000",
        name="HID Keyboard Device",
        driver="kbdhid",
        subsystem="Keyboard",
        category=DeviceCategory.KEYBOARDS,
        properties={"CLASS_GUID": "{4d36e96b-e325-11ce-bfc1-08002be10318}"},
        platform="win32",
    )


@pytest.fixture
def unknown_record():
    return DeviceRecord(
        syspath="/sys/devices/platform/serial8250",
        dev_path="/devices/platform/serial8250",
        name="serial8250",
        driver="serial8250",
        subsystem="platform",
        platform="linux",
    )
