"""Device categories shown by the device tree."""

from enum import IntEnum
from typing import Dict


class DeviceCategory(IntEnum):
    """Closed set of user-visible device groupings.

    Ordinals are written into snapshots and must never be renumbered.
    """

    UNKNOWN = 0
    AUDIO_INPUTS_AND_OUTPUTS = 1
    BATTERIES = 2
    COMPUTER = 3
    DISK_DRIVES = 4
    DISPLAY_ADAPTERS = 5
    DVD_CDROM_DRIVES = 6
    HUMAN_INTERFACE_DEVICES = 7
    KEYBOARDS = 8
    MICE_AND_OTHER_POINTING_DEVICES = 9
    NETWORK_ADAPTERS = 10
    SOFTWARE_DEVICES = 11
    SOUND_VIDEO_AND_GAME_CONTROLLERS = 12
    STORAGE_CONTROLLERS = 13
    STORAGE_VOLUMES = 14
    SYSTEM_DEVICES = 15
    UNIVERSAL_SERIAL_BUS_CONTROLLERS = 16

    @property
    def label(self) -> str:
        """English display label (stable translation key)."""
        return CATEGORY_LABELS[self]

    @property
    def icon_name(self) -> str:
        """Freedesktop icon-theme name for the category."""
        return CATEGORY_ICONS[self]

    @classmethod
    def from_ordinal(cls, value: int) -> "DeviceCategory":
        """Map a stored ordinal back to a category, Unknown when out of range."""
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return cls.UNKNOWN


CATEGORY_LABELS: Dict[DeviceCategory, str] = {
    DeviceCategory.UNKNOWN: "Unknown",
    DeviceCategory.AUDIO_INPUTS_AND_OUTPUTS: "Audio inputs and outputs",
    DeviceCategory.BATTERIES: "Batteries",
    DeviceCategory.COMPUTER: "Computer",
    DeviceCategory.DISK_DRIVES: "Disk drives",
    DeviceCategory.DISPLAY_ADAPTERS: "Display adapters",
    DeviceCategory.DVD_CDROM_DRIVES: "DVD/CD-ROM drives",
    DeviceCategory.HUMAN_INTERFACE_DEVICES: "Human Interface Devices",
    DeviceCategory.KEYBOARDS: "Keyboards",
    DeviceCategory.MICE_AND_OTHER_POINTING_DEVICES: "Mice and other pointing devices",
    DeviceCategory.NETWORK_ADAPTERS: "Network adapters",
    DeviceCategory.SOFTWARE_DEVICES: "Software devices",
    DeviceCategory.SOUND_VIDEO_AND_GAME_CONTROLLERS: "Sound, video and game controllers",
    DeviceCategory.STORAGE_CONTROLLERS: "Storage controllers",
    DeviceCategory.STORAGE_VOLUMES: "Storage volumes",
    DeviceCategory.SYSTEM_DEVICES: "System devices",
    DeviceCategory.UNIVERSAL_SERIAL_BUS_CONTROLLERS: "Universal Serial Bus controllers",
}

CATEGORY_ICONS: Dict[DeviceCategory, str] = {
    DeviceCategory.UNKNOWN: "dialog-question",
    DeviceCategory.AUDIO_INPUTS_AND_OUTPUTS: "audio-card",
    DeviceCategory.BATTERIES: "battery-ups",
    DeviceCategory.COMPUTER: "computer",
    DeviceCategory.DISK_DRIVES: "drive-harddisk",
    DeviceCategory.DISPLAY_ADAPTERS: "video-display",
    DeviceCategory.DVD_CDROM_DRIVES: "drive-optical",
    DeviceCategory.HUMAN_INTERFACE_DEVICES: "input-tablet",
    DeviceCategory.KEYBOARDS: "input-keyboard",
    DeviceCategory.MICE_AND_OTHER_POINTING_DEVICES: "input-mouse",
    DeviceCategory.NETWORK_ADAPTERS: "network-wired",
    DeviceCategory.SOFTWARE_DEVICES: "preferences-other",
    DeviceCategory.SOUND_VIDEO_AND_GAME_CONTROLLERS: "preferences-desktop-sound",
    DeviceCategory.STORAGE_CONTROLLERS: "drive-harddisk",
    DeviceCategory.STORAGE_VOLUMES: "drive-partition",
    DeviceCategory.SYSTEM_DEVICES: "computer",
    DeviceCategory.UNIVERSAL_SERIAL_BUS_CONTROLLERS: "drive-removable-media-usb",
}

HOST_ICON = "computer"

# Every category except Unknown gets a node in the tree
DISPLAYABLE_CATEGORIES = tuple(c for c in DeviceCategory if c != DeviceCategory.UNKNOWN)
