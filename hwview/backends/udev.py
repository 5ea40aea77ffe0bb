"""Linux device enumeration through udev (pyudev)."""

from typing import Callable, Dict, List, Optional

from .. import constants as c
from ..classifier import classified
from ..config import BackendConfig
from ..errors import BackendInitError, RecordExtractionError
from ..record import DeviceRecord, DriverInfo
from ..sysinfo import kernel_driver_info, pci_resources
from ..util.logging import get_logger
from .base import PlatformBackend, RawDescriptor
from .registry import register_backend

logger = get_logger(__name__)

# Errors pyudev raises for devices that vanish or carry undecodable attributes
_EXTRACTION_ERRORS = (OSError, LookupError, ValueError, UnicodeDecodeError, AttributeError)


def clean_udev_value(value: str) -> str:
    """Strip surrounding quotes and turn udev's underscores back into spaces."""
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value.replace("_", " ").strip()


def device_name(device, properties: Dict[str, str]) -> str:
    """Pick a display name for a udev device.

    PCI functions use the hardware database model name, whole block
    devices their device node, HID devices ``HID_NAME``, then ``NAME``,
    falling back to the kernel name.
    """
    subsystem = device.subsystem or ""
    model = properties.get(c.PROP_ID_MODEL_FROM_DATABASE, "")
    if subsystem == "pci" and model:
        return clean_udev_value(model)

    if subsystem == "block" and properties.get(c.PROP_DEVTYPE, "") != "partition":
        return c.DEV_PREFIX + device.sys_name

    if subsystem == "hid" and properties.get(c.PROP_HID_NAME):
        return clean_udev_value(properties[c.PROP_HID_NAME])

    if properties.get(c.PROP_NAME):
        return clean_udev_value(properties[c.PROP_NAME])

    return device.sys_name or ""


def device_driver(device) -> str:
    """The bound driver, walking up the parent chain until one is found."""
    current = device
    while current is not None:
        driver = current.properties.get(c.PROP_DRIVER) or current.driver
        if driver:
            return driver
        current = current.parent
    return ""


@register_backend
class UdevBackend(PlatformBackend):
    """Enumerates sysfs devices through a udev context."""

    name = "udev"
    platform = c.PLATFORM_LINUX

    def __init__(self, config: Optional[BackendConfig] = None, context_factory: Optional[Callable] = None):
        self._context_factory = context_factory
        self._driver_info_cache: Dict[str, DriverInfo] = {}
        super().__init__(config)

    def _initialize(self) -> None:
        if self._context_factory is not None:
            return
        try:
            import pyudev
        except ImportError as e:
            raise BackendInitError("pyudev is not installed", hint="pip install pyudev") from e
        self._context_factory = pyudev.Context

    def _context(self):
        try:
            return self._context_factory()
        except (OSError, ImportError) as e:
            raise BackendInitError(f"Cannot open udev context: {e}") from e

    def enumerate_all(self) -> List[RawDescriptor]:
        context = self._context()
        return list(context.list_devices())

    def enumerate_by_class(self, class_key: str) -> List[RawDescriptor]:
        context = self._context()
        return list(context.list_devices(subsystem=class_key))

    def read_properties(self, descriptor: RawDescriptor) -> DeviceRecord:
        try:
            return self._read(descriptor)
        except _EXTRACTION_ERRORS as e:
            syspath = getattr(descriptor, "sys_path", "<unknown>")
            raise RecordExtractionError(f"Cannot read udev device {syspath}: {e}") from e

    def _read(self, device) -> DeviceRecord:
        properties = {str(k): str(v) for k, v in device.properties.items()}
        parent = device.parent

        record = DeviceRecord(
            syspath=device.sys_path,
            parent_syspath=parent.sys_path if parent is not None else "",
            dev_path=properties.get(c.PROP_DEVPATH) or device.device_path or "",
            devnode=device.device_node or properties.get(c.PROP_DEVNAME, ""),
            name=device_name(device, properties),
            driver=device_driver(device),
            subsystem=device.subsystem or "",
            pci_class=properties.get(c.PROP_ID_PCI_CLASS_FROM_DATABASE, ""),
            pci_subclass=properties.get(c.PROP_ID_PCI_SUBCLASS_FROM_DATABASE, ""),
            pci_interface=properties.get(c.PROP_ID_PCI_INTERFACE_FROM_DATABASE, ""),
            id_cdrom=properties.get(c.PROP_ID_CDROM, ""),
            dev_type=properties.get(c.PROP_DEVTYPE, ""),
            id_input_keyboard=properties.get(c.PROP_ID_INPUT_KEYBOARD, ""),
            id_input_mouse=properties.get(c.PROP_ID_INPUT_MOUSE, ""),
            id_type=properties.get(c.PROP_ID_TYPE, ""),
            id_model_from_database=properties.get(c.PROP_ID_MODEL_FROM_DATABASE, ""),
            id_vendor_from_database=properties.get(c.PROP_ID_VENDOR_FROM_DATABASE, ""),
            properties=properties,
            platform=c.PLATFORM_LINUX,
        )
        return classified(record)

    def driver_info(self, driver: str) -> DriverInfo:
        if driver not in self._driver_info_cache:
            self._driver_info_cache[driver] = kernel_driver_info(driver, timeout=self.config.command_timeout)
        return self._driver_info_cache[driver]

    def enrich_for_export(self, record: DeviceRecord) -> DeviceRecord:
        changes = {}
        if self.include_driver_details and record.driver_info is None:
            changes["driver_info"] = self.driver_info(record.driver)
        if self.include_resources and not record.resources:
            resources = pci_resources(record.syspath)
            if resources:
                changes["resources"] = resources
        return record.clone(**changes) if changes else record
