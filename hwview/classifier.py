"""Assigns a category and hidden flag to device records.

The classifier is a pure function of the record: it never consults the
cache, the configuration or the running platform. Rules are evaluated
top to bottom and the first match wins.
"""

from typing import Dict, Tuple

from . import constants as c
from .categories import DeviceCategory
from .record import DeviceRecord

Category = DeviceCategory


def _devclass(prefix: str) -> str:
    return "{" + prefix + "-e325-11ce-bfc1-08002be10318}"


# Windows setup-class GUIDs (lower case, with braces)
GUID_USB = "{36fc9e60-c465-11cf-8056-444553540000}"
GUID_DISK_DRIVE = _devclass("4d36e967")
GUID_DISPLAY = _devclass("4d36e968")
GUID_NET = _devclass("4d36e972")
GUID_KEYBOARD = _devclass("4d36e96b")
GUID_MOUSE = _devclass("4d36e96f")
GUID_MEDIA = _devclass("4d36e96c")
GUID_HID_CLASS = "{745a17a0-74d3-11d0-b6fe-00a0c90f57da}"
GUID_VOLUME = "{71a27cdd-812a-11d0-bec7-08002be2092f}"
GUID_SCSI_ADAPTER = _devclass("4d36e97b")
GUID_HDC = _devclass("4d36e96a")
GUID_BATTERY = "{72631e54-78a4-11d0-bcf7-00aa00b7b32a}"
GUID_SYSTEM = _devclass("4d36e97d")
GUID_CDROM = _devclass("4d36e965")
GUID_AUDIO_ENDPOINT = "{c166523c-fe0c-4a94-a586-f1a80cfbbf3e}"
GUID_PROCESSOR = "{50127dc3-0f36-415e-a6cc-4cb3be910b65}"
GUID_MONITOR = _devclass("4d36e96e")
GUID_FDC = _devclass("4d36e969")
GUID_FLOPPY_DISK = _devclass("4d36e980")
GUID_PRINTER = _devclass("4d36e979")
GUID_PORTS = _devclass("4d36e978")
GUID_MODEM = _devclass("4d36e96d")
GUID_BLUETOOTH = "{e0cbf06c-cd8b-4647-bb8a-263b43f0f974}"
GUID_IMAGE = "{6bdd1fc6-810f-11d0-bec7-08002be2092f}"
GUID_SOFTWARE_DEVICE = "{62f9c741-b25a-46ce-b54c-9bccce08b6f2}"

WINDOWS_GUID_CATEGORIES: Dict[str, DeviceCategory] = {
    GUID_USB: Category.UNIVERSAL_SERIAL_BUS_CONTROLLERS,
    GUID_DISK_DRIVE: Category.DISK_DRIVES,
    GUID_FLOPPY_DISK: Category.DISK_DRIVES,
    GUID_DISPLAY: Category.DISPLAY_ADAPTERS,
    GUID_MONITOR: Category.DISPLAY_ADAPTERS,
    GUID_NET: Category.NETWORK_ADAPTERS,
    GUID_MODEM: Category.NETWORK_ADAPTERS,
    GUID_BLUETOOTH: Category.NETWORK_ADAPTERS,
    GUID_KEYBOARD: Category.KEYBOARDS,
    GUID_MOUSE: Category.MICE_AND_OTHER_POINTING_DEVICES,
    GUID_MEDIA: Category.SOUND_VIDEO_AND_GAME_CONTROLLERS,
    GUID_IMAGE: Category.SOUND_VIDEO_AND_GAME_CONTROLLERS,
    GUID_HID_CLASS: Category.HUMAN_INTERFACE_DEVICES,
    GUID_VOLUME: Category.STORAGE_VOLUMES,
    GUID_SCSI_ADAPTER: Category.STORAGE_CONTROLLERS,
    GUID_HDC: Category.STORAGE_CONTROLLERS,
    GUID_FDC: Category.STORAGE_CONTROLLERS,
    GUID_BATTERY: Category.BATTERIES,
    GUID_SYSTEM: Category.SYSTEM_DEVICES,
    GUID_PROCESSOR: Category.SYSTEM_DEVICES,
    GUID_PORTS: Category.SYSTEM_DEVICES,
    GUID_CDROM: Category.DVD_CDROM_DRIVES,
    GUID_AUDIO_ENDPOINT: Category.AUDIO_INPUTS_AND_OUTPUTS,
    GUID_PRINTER: Category.SOFTWARE_DEVICES,
    GUID_SOFTWARE_DEVICE: Category.SOFTWARE_DEVICES,
}

# SetupAPI class names, used when a class GUID is missing or unrecognised
WINDOWS_CLASS_NAME_CATEGORIES: Dict[str, DeviceCategory] = {
    "usb": Category.UNIVERSAL_SERIAL_BUS_CONTROLLERS,
    "diskdrive": Category.DISK_DRIVES,
    "display": Category.DISPLAY_ADAPTERS,
    "net": Category.NETWORK_ADAPTERS,
    "keyboard": Category.KEYBOARDS,
    "mouse": Category.MICE_AND_OTHER_POINTING_DEVICES,
    "hidclass": Category.HUMAN_INTERFACE_DEVICES,
    "volume": Category.STORAGE_VOLUMES,
    "system": Category.SYSTEM_DEVICES,
}

IOKIT_CLASS_CATEGORIES: Dict[str, DeviceCategory] = {
    "IOUSBHostDevice": Category.UNIVERSAL_SERIAL_BUS_CONTROLLERS,
    "IOUSBDevice": Category.UNIVERSAL_SERIAL_BUS_CONTROLLERS,
    "IOUSBHostInterface": Category.UNIVERSAL_SERIAL_BUS_CONTROLLERS,
    "IOHIDDevice": Category.HUMAN_INTERFACE_DEVICES,
    "IOHIDInterface": Category.HUMAN_INTERFACE_DEVICES,
    "IOBlockStorageDevice": Category.DISK_DRIVES,
    "IONVMeController": Category.DISK_DRIVES,
    "IOAHCIBlockStorageDevice": Category.DISK_DRIVES,
    "IOMedia": Category.STORAGE_VOLUMES,
    "IOPartitionScheme": Category.STORAGE_VOLUMES,
    "IOCDBlockStorageDevice": Category.DVD_CDROM_DRIVES,
    "IODVDBlockStorageDevice": Category.DVD_CDROM_DRIVES,
    "IONetworkInterface": Category.NETWORK_ADAPTERS,
    "IOEthernetInterface": Category.NETWORK_ADAPTERS,
    "IOAccelerator": Category.DISPLAY_ADAPTERS,
    "AGXAccelerator": Category.DISPLAY_ADAPTERS,
    "IOAudioDevice": Category.AUDIO_INPUTS_AND_OUTPUTS,
    "IOAudioEngine": Category.AUDIO_INPUTS_AND_OUTPUTS,
    "IOPCIDevice": Category.SYSTEM_DEVICES,
}

# Substring rules for IOKit classes, checked in order after the exact map
IOKIT_CLASS_SUBSTRINGS: Tuple[Tuple[Tuple[str, ...], DeviceCategory], ...] = (
    (("USB",), Category.UNIVERSAL_SERIAL_BUS_CONTROLLERS),
    (("HID",), Category.HUMAN_INTERFACE_DEVICES),
    (("StorageDevice",), Category.DISK_DRIVES),
    (("Partition",), Category.STORAGE_VOLUMES),
    (("CD", "DVD"), Category.DVD_CDROM_DRIVES),
    (("Network", "Ethernet", "WiFi", "AirPort"), Category.NETWORK_ADAPTERS),
    (("GPU", "Graphics", "Framebuffer"), Category.DISPLAY_ADAPTERS),
    (("Audio", "Sound"), Category.AUDIO_INPUTS_AND_OUTPUTS),
    (("Battery", "Power"), Category.BATTERIES),
    (("PCI",), Category.SYSTEM_DEVICES),
    (("AHCI", "SATA", "NVMe", "StorageController"), Category.STORAGE_CONTROLLERS),
    (("Thunderbolt",), Category.SYSTEM_DEVICES),
)

# IOKit classes that only describe registry plumbing
IOKIT_HIDDEN_CLASSES = frozenset({
    "IOService",
    "IOResources",
    "IOPMrootDomain",
    "IORegistryEntry",
    "IOPlatformDevice",
    "AppleARMIODevice",
    "IOInterruptController",
    "IODTNVRAM",
    "IOUserServer",
})

# PCI subclasses that never fall back to "System devices"
SYSTEM_DEVICES_EXCLUDED_SUBCLASSES = frozenset({
    "Audio device",
    "NVM Express",
    "USB controller",
    "SATA controller",
})

PCI_DISPLAY_CONTROLLER = "Display controller"
PCI_MASS_STORAGE_CONTROLLER = "Mass storage controller"
PCI_NETWORK_CONTROLLER = "Network controller"
PCI_USB_CONTROLLER = "USB controller"
PCI_AUDIO_DEVICE = "Audio device"


def _value(record: DeviceRecord, key: str, fallback: str = "") -> str:
    return record.properties.get(key) or fallback


def windows_guid_category(guid: str) -> DeviceCategory:
    """Category for a setup-class GUID, case-insensitive; Unknown if not listed."""
    guid = guid.strip().lower()
    if guid and not guid.startswith("{"):
        guid = "{" + guid + "}"
    return WINDOWS_GUID_CATEGORIES.get(guid, Category.UNKNOWN)


def iokit_class_category(class_name: str, name: str = "") -> DeviceCategory:
    """Category for an IOKit class name; HID devices are refined by product name."""
    if not class_name:
        return Category.UNKNOWN

    category = IOKIT_CLASS_CATEGORIES.get(class_name)
    if category is None:
        category = Category.UNKNOWN
        for needles, candidate in IOKIT_CLASS_SUBSTRINGS:
            if any(needle in class_name for needle in needles):
                category = candidate
                break

    if category == Category.HUMAN_INTERFACE_DEVICES:
        lowered = name.lower()
        if "keyboard" in lowered:
            return Category.KEYBOARDS
        if any(word in lowered for word in ("mouse", "trackpad", "touchpad")):
            return Category.MICE_AND_OTHER_POINTING_DEVICES

    return category


def classify_category(record: DeviceRecord) -> DeviceCategory:
    """Evaluate the category decision table for a record."""
    # 1. Windows setup class
    guid = _value(record, c.PROP_CLASS_GUID)
    if guid:
        category = windows_guid_category(guid)
        if category != Category.UNKNOWN:
            return category
    if record.platform == c.PLATFORM_WINDOWS:
        class_name = _value(record, c.PROP_CLASS_NAME).lower()
        if class_name in WINDOWS_CLASS_NAME_CATEGORIES:
            return WINDOWS_CLASS_NAME_CATEGORIES[class_name]

    pci_class = _value(record, c.PROP_ID_PCI_CLASS_FROM_DATABASE, record.pci_class)
    pci_subclass = _value(record, c.PROP_ID_PCI_SUBCLASS_FROM_DATABASE, record.pci_subclass)
    id_cdrom = _value(record, c.PROP_ID_CDROM, record.id_cdrom)
    dev_type = _value(record, c.PROP_DEVTYPE, record.dev_type)
    subsystem = record.subsystem

    # 2-5. PCI class database
    if pci_class == PCI_DISPLAY_CONTROLLER:
        return Category.DISPLAY_ADAPTERS
    if pci_subclass == PCI_USB_CONTROLLER:
        return Category.UNIVERSAL_SERIAL_BUS_CONTROLLERS
    if pci_class == PCI_MASS_STORAGE_CONTROLLER:
        return Category.STORAGE_CONTROLLERS
    if pci_class == PCI_NETWORK_CONTROLLER:
        return Category.NETWORK_ADAPTERS

    # 6-8. Optical, partitions, disks
    if id_cdrom == "1":
        return Category.DVD_CDROM_DRIVES
    if subsystem == "block" and dev_type == "partition":
        return Category.STORAGE_VOLUMES
    if subsystem == "block" and not record.dev_path.startswith(c.VIRTUAL_DEVPATH_PREFIX):
        return Category.DISK_DRIVES

    # 9-12. Input and misc
    if subsystem == "hid":
        return Category.HUMAN_INTERFACE_DEVICES
    if _value(record, c.PROP_ID_INPUT_KEYBOARD, record.id_input_keyboard) == "1":
        return Category.KEYBOARDS
    if _value(record, c.PROP_ID_INPUT_MOUSE, record.id_input_mouse) == "1":
        return Category.MICE_AND_OTHER_POINTING_DEVICES
    if subsystem == "misc":
        return Category.SOFTWARE_DEVICES

    # 13. Remaining PCI functions
    if subsystem == "pci" and pci_subclass not in SYSTEM_DEVICES_EXCLUDED_SUBCLASSES:
        return Category.SYSTEM_DEVICES

    # Linux signals the table above leaves unclaimed
    if pci_subclass == PCI_AUDIO_DEVICE:
        return Category.AUDIO_INPUTS_AND_OUTPUTS
    model = _value(record, c.PROP_ID_MODEL_FROM_DATABASE, record.id_model_from_database)
    if model == "UPS" or record.driver == "battery":
        return Category.BATTERIES
    if subsystem == "power_supply" and (
        dev_type == "Battery" or _value(record, c.PROP_POWER_SUPPLY_TYPE) == "Battery"
    ):
        return Category.BATTERIES
    if _value(record, c.PROP_ID_TYPE, record.id_type) == "audio":
        return Category.SOUND_VIDEO_AND_GAME_CONTROLLERS

    # 14. IOKit class
    iokit_class = _value(record, c.PROP_IOKIT_CLASS)
    if not iokit_class and record.platform == c.PLATFORM_MACOS:
        iokit_class = subsystem
    return iokit_class_category(iokit_class, record.name)


def is_hidden(record: DeviceRecord, backend_hidden: bool = False) -> bool:
    """Hidden when the backend says so, or the record lacks a name or driver.

    On Linux, devices under ``/devices/virtual/`` are hidden as well.
    """
    if backend_hidden or record.is_hidden:
        return True
    if not record.name or not record.driver:
        return True
    if record.platform in ("", c.PLATFORM_LINUX) and record.dev_path.startswith(c.VIRTUAL_DEVPATH_PREFIX):
        return True
    if _value(record, c.PROP_IOKIT_CLASS) in IOKIT_HIDDEN_CLASSES:
        return True
    return False


def classify(record: DeviceRecord, backend_hidden: bool = False) -> Tuple[DeviceCategory, bool]:
    """Return ``(category, is_hidden)`` for a record under construction."""
    return classify_category(record), is_hidden(record, backend_hidden)


def classified(record: DeviceRecord, backend_hidden: bool = False) -> DeviceRecord:
    """Return a clone of ``record`` with its category and hidden flag filled in."""
    category, hidden = classify(record, backend_hidden)
    return record.clone(category=category, is_hidden=hidden)
