"""Tests for device classification."""

import pytest

from hwview.categories import DeviceCategory
from hwview.classifier import (
    GUID_KEYBOARD,
    classified,
    classify,
    classify_category,
    iokit_class_category,
    is_hidden,
    windows_guid_category,
)
from hwview.record import DeviceRecord


def linux_record(**fields) -> DeviceRecord:
    fields.setdefault("syspath", "/sys/devices/test")
    fields.setdefault("name", "Test device")
    fields.setdefault("driver", "testdrv")
    fields.setdefault("platform", "linux")
    return DeviceRecord(**fields)


class TestLinuxRules:
    """Test the udev-driven part of the decision table."""

    def test_disk_drive(self):
        """A whole block device outside /devices/virtual is a disk drive."""
        record = linux_record(
            subsystem="block",
            dev_path="/devices/pci0000:00/0000:00:17.0/ata1/block/sda",
            name="Samsung SSD 860",
            driver="sd",
            properties={"DEVTYPE": "", "ID_CDROM": ""},
        )

        category, hidden = classify(record)

        assert category == DeviceCategory.DISK_DRIVES
        assert hidden is False

    def test_partition(self):
        """Partitions become storage volumes."""
        record = linux_record(
            subsystem="block",
            dev_path="/devices/pci0000:00/0000:00:17.0/ata1/block/sda/sda2",
            properties={"DEVTYPE": "partition", "ID_PART_ENTRY_NAME": "ROOT"},
        )

        assert classify_category(record) == DeviceCategory.STORAGE_VOLUMES

    def test_virtual_block_device_is_hidden(self):
        """Loop devices are neither disks nor visible."""
        record = linux_record(
            subsystem="block",
            dev_path="/devices/virtual/block/loop0",
            name="/dev/loop0",
            driver="loop",
        )

        category, hidden = classify(record)

        assert category == DeviceCategory.UNKNOWN
        assert hidden is True

    def test_cdrom_wins_over_disk(self):
        record = linux_record(
            subsystem="block",
            dev_path="/devices/pci0000:00/ata2/block/sr0",
            properties={"ID_CDROM": "1"},
        )

        assert classify_category(record) == DeviceCategory.DVD_CDROM_DRIVES

    @pytest.mark.parametrize("pci_class, pci_subclass, expected", [
        ("Display controller", "VGA compatible controller", DeviceCategory.DISPLAY_ADAPTERS),
        ("Serial bus controller", "USB controller", DeviceCategory.UNIVERSAL_SERIAL_BUS_CONTROLLERS),
        ("Mass storage controller", "SATA controller", DeviceCategory.STORAGE_CONTROLLERS),
        ("Network controller", "Ethernet controller", DeviceCategory.NETWORK_ADAPTERS),
        ("Bridge", "Host bridge", DeviceCategory.SYSTEM_DEVICES),
    ])
    def test_pci_class_rules(self, pci_class, pci_subclass, expected):
        """PCI database classes map before the generic PCI fallback."""
        record = linux_record(
            subsystem="pci",
            properties={
                "ID_PCI_CLASS_FROM_DATABASE": pci_class,
                "ID_PCI_SUBCLASS_FROM_DATABASE": pci_subclass,
            },
        )

        assert classify_category(record) == expected

    def test_pci_audio_is_not_a_system_device(self):
        """Excluded subclasses skip the System devices fallback."""
        record = linux_record(
            subsystem="pci",
            pci_class="Multimedia controller",
            pci_subclass="Audio device",
        )

        assert classify_category(record) == DeviceCategory.AUDIO_INPUTS_AND_OUTPUTS

    def test_record_fields_are_used_without_properties(self):
        record = linux_record(subsystem="pci", pci_class="Display controller")

        assert classify_category(record) == DeviceCategory.DISPLAY_ADAPTERS

    def test_input_devices(self):
        """Keyboard and mouse flags come after the hid subsystem."""
        keyboard = linux_record(subsystem="input", properties={"ID_INPUT_KEYBOARD": "1"})
        mouse = linux_record(subsystem="input", properties={"ID_INPUT_MOUSE": "1"})
        hid = linux_record(subsystem="hid", properties={"ID_INPUT_KEYBOARD": "1"})

        assert classify_category(keyboard) == DeviceCategory.KEYBOARDS
        assert classify_category(mouse) == DeviceCategory.MICE_AND_OTHER_POINTING_DEVICES
        assert classify_category(hid) == DeviceCategory.HUMAN_INTERFACE_DEVICES

    def test_misc_is_software_device(self):
        record = linux_record(subsystem="misc", name="/dev/kvm")

        assert classify_category(record) == DeviceCategory.SOFTWARE_DEVICES

    def test_batteries(self):
        """ACPI batteries and power supplies land in Batteries."""
        acpi = linux_record(subsystem="acpi", driver="battery")
        supply = linux_record(subsystem="power_supply", properties={"POWER_SUPPLY_TYPE": "Battery"})
        mains = linux_record(subsystem="power_supply", properties={"POWER_SUPPLY_TYPE": "Mains"})

        assert classify_category(acpi) == DeviceCategory.BATTERIES
        assert classify_category(supply) == DeviceCategory.BATTERIES
        assert classify_category(mains) == DeviceCategory.UNKNOWN

    def test_unmatched_record_is_unknown(self, unknown_record):
        assert classify_category(unknown_record) == DeviceCategory.UNKNOWN


class TestWindowsRules:
    """Test setup-class GUID classification."""

    def test_keyboard_guid(self):
        record = DeviceRecord(
            syspath="HID\\VID_046D&PID_C31C\\1",
            name="HID Keyboard Device",
            driver="kbdhid",
            properties={"CLASS_GUID": "{4d36e96b-e325-11ce-bfc1-08002be10318}"},
            platform="win32",
        )

        assert classify(record) == (DeviceCategory.KEYBOARDS, False)

    def test_guid_lookup_is_case_insensitive(self):
        assert windows_guid_category(GUID_KEYBOARD.upper()) == DeviceCategory.KEYBOARDS
        assert windows_guid_category("4d36e96b-e325-11ce-bfc1-08002be10318") == DeviceCategory.KEYBOARDS

    def test_unknown_guid(self):
        assert windows_guid_category("{00000000-0000-0000-0000-000000000000}") == DeviceCategory.UNKNOWN

    def test_class_name_fallback_only_on_windows(self):
        """The class name is consulted only for Windows records."""
        windows = DeviceRecord(syspath="ROOT\\1", properties={"CLASS_NAME": "Net"}, platform="win32")
        linux = linux_record(properties={"CLASS_NAME": "Net"})

        assert classify_category(windows) == DeviceCategory.NETWORK_ADAPTERS
        assert classify_category(linux) == DeviceCategory.UNKNOWN


class TestIOKitRules:
    """Test IOKit class classification."""

    def test_exact_class(self):
        assert iokit_class_category("IOMedia") == DeviceCategory.STORAGE_VOLUMES

    def test_substring_class(self):
        assert iokit_class_category("AppleUSBXHCI") == DeviceCategory.UNIVERSAL_SERIAL_BUS_CONTROLLERS

    def test_hid_refined_by_name(self):
        assert iokit_class_category("IOHIDDevice", "Apple Internal Keyboard") == DeviceCategory.KEYBOARDS
        assert iokit_class_category("IOHIDDevice", "Magic Trackpad") == DeviceCategory.MICE_AND_OTHER_POINTING_DEVICES
        assert iokit_class_category("IOHIDDevice", "Touch Bar") == DeviceCategory.HUMAN_INTERFACE_DEVICES

    def test_macos_record_uses_subsystem_as_class(self):
        record = DeviceRecord(syspath="IOService:/AppleACPIPlatformExpert/GFX0", subsystem="IOAccelerator", platform="darwin")

        assert classify_category(record) == DeviceCategory.DISPLAY_ADAPTERS

    def test_hidden_plumbing_class(self):
        record = DeviceRecord(
            syspath="IOService:/IOResources",
            name="IOResources",
            driver="IOResources",
            properties={"IOKIT_CLASS": "IOResources"},
            platform="darwin",
        )

        assert is_hidden(record) is True


class TestHiddenRule:
    """Test the hidden flag."""

    def test_missing_name_or_driver(self):
        assert is_hidden(linux_record(name="")) is True
        assert is_hidden(linux_record(driver="")) is True
        assert is_hidden(linux_record()) is False

    def test_backend_hidden(self):
        assert is_hidden(linux_record(), backend_hidden=True) is True

    def test_virtual_devpath_only_on_linux(self):
        """Virtual devPaths only hide Linux records."""
        record = DeviceRecord(
            syspath="x", name="n", driver="d", dev_path="/devices/virtual/net/lo", platform="win32"
        )

        assert is_hidden(record) is False

    def test_hidden_flag_is_sticky(self):
        """Re-classifying a hidden record never un-hides it."""
        record = linux_record(is_hidden=True)

        assert classified(record).is_hidden is True

    def test_classification_is_deterministic(self, disk_record):
        first = classify(disk_record)
        second = classify(DeviceRecord(**{
            f: getattr(disk_record, f)
            for f in ("syspath", "dev_path", "devnode", "name", "driver", "subsystem", "properties", "platform")
        }))

        assert first == second
