"""Stable keys and constants shared across hwview."""

# Snapshot document
EXPORT_FORMAT_VERSION = 1
EXPORT_MIME_TYPE = "application/x-hwview-export"
EXPORT_FILE_EXTENSION = ".dmexport"

# udev property keys with classification or naming meaning
PROP_DEVTYPE = "DEVTYPE"
PROP_DEVPATH = "DEVPATH"
PROP_DEVNAME = "DEVNAME"
PROP_DRIVER = "DRIVER"
PROP_NAME = "NAME"
PROP_HID_NAME = "HID_NAME"
PROP_ID_CDROM = "ID_CDROM"
PROP_ID_TYPE = "ID_TYPE"
PROP_ID_INPUT_KEYBOARD = "ID_INPUT_KEYBOARD"
PROP_ID_INPUT_MOUSE = "ID_INPUT_MOUSE"
PROP_ID_MODEL_FROM_DATABASE = "ID_MODEL_FROM_DATABASE"
PROP_ID_VENDOR_FROM_DATABASE = "ID_VENDOR_FROM_DATABASE"
PROP_ID_PCI_CLASS_FROM_DATABASE = "ID_PCI_CLASS_FROM_DATABASE"
PROP_ID_PCI_SUBCLASS_FROM_DATABASE = "ID_PCI_SUBCLASS_FROM_DATABASE"
PROP_ID_PCI_INTERFACE_FROM_DATABASE = "ID_PCI_INTERFACE_FROM_DATABASE"
PROP_ID_PART_ENTRY_NAME = "ID_PART_ENTRY_NAME"
PROP_ID_FS_LABEL = "ID_FS_LABEL"
PROP_POWER_SUPPLY_TYPE = "POWER_SUPPLY_TYPE"

# Keys the Windows and macOS backends store in the properties bag
PROP_CLASS_GUID = "CLASS_GUID"
PROP_CLASS_NAME = "CLASS_NAME"
PROP_MANUFACTURER = "MANUFACTURER"
PROP_DEVICE_DESCRIPTION = "DEVICE_DESCRIPTION"
PROP_PHYSICAL_OBJECT_NAME = "PHYSICAL_DEVICE_OBJECT_NAME"
PROP_HARDWARE_IDS = "HARDWARE_IDS"
PROP_CONFIG_FLAGS = "CONFIG_FLAGS"
PROP_IOKIT_CLASS = "IOKIT_CLASS"
PROP_IOKIT_VENDOR = "IOKIT_VENDOR"
PROP_BSD_NAME = "BSD_NAME"

# Platform tags carried by records
PLATFORM_LINUX = "linux"
PLATFORM_WINDOWS = "win32"
PLATFORM_MACOS = "darwin"

DEV_PREFIX = "/dev/"
VIRTUAL_DEVPATH_PREFIX = "/devices/virtual/"

DEFAULT_GUID_CATEGORY_NAME = "Other devices"
