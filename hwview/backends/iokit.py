"""macOS device enumeration from the IORegistry (``ioreg`` plist output)."""

import plistlib
import sys
from typing import Any, Dict, List
from xml.parsers.expat import ExpatError

from .. import constants as c
from ..classifier import IOKIT_HIDDEN_CLASSES, classified
from ..errors import BackendInitError, CommandError, RecordExtractionError
from ..record import DeviceRecord, DriverInfo
from ..util.logging import get_logger
from ..util.process import run_command
from .base import PlatformBackend, RawDescriptor
from .registry import register_backend

logger = get_logger(__name__)

IOREG_COMMAND = ["ioreg", "-a", "-l", "-w0", "-p", "IOService"]
REGISTRY_ROOT = "IOService:"

NAME_KEYS = ("Product Name", "USB Product Name", "Product", "Model", "device_type", "IOName")
VENDOR_KEYS = ("USB Vendor Name", "Manufacturer", "vendor-id")

KEY_CLASS = "IOObjectClass"
KEY_NAME = "IORegistryEntryName"
KEY_LOCATION = "IORegistryEntryLocation"
KEY_CHILDREN = "IORegistryEntryChildren"
KEY_BSD_NAME = "BSD Name"
KEY_PERSONALITY = "IOMatchedPersonality"
KEY_BUNDLE = "CFBundleIdentifier"


def _text(value: Any) -> str:
    """Render an IORegistry property value as a string."""
    if value is None:
        return ""
    if isinstance(value, bytes):
        stripped = value.rstrip(b"\x00")
        try:
            decoded = stripped.decode("utf-8")
        except UnicodeDecodeError:
            return value.hex()
        if decoded.isprintable():
            return decoded
        return value.hex()
    if isinstance(value, bool):
        return "Yes" if value else "No"
    return str(value)


def flatten_registry(entry: Dict[str, Any], parent_path: str = "") -> List[Dict[str, Any]]:
    """Walk an ``ioreg -a`` tree depth-first into descriptors with registry paths."""
    descriptors = []
    for child in entry.get(KEY_CHILDREN, []):
        name = _text(child.get(KEY_NAME)) or _text(child.get(KEY_CLASS))
        location = _text(child.get(KEY_LOCATION))
        segment = f"{name}@{location}" if location else name
        path = f"{parent_path or REGISTRY_ROOT}/{segment}"
        descriptors.append({"path": path, "parent_path": parent_path, "entry": child})
        descriptors.extend(flatten_registry(child, path))
    return descriptors


def entry_to_record(descriptor: Dict[str, Any]) -> DeviceRecord:
    """Build a classified record from a flattened IORegistry descriptor."""
    entry = descriptor.get("entry")
    if not isinstance(entry, dict) or not descriptor.get("path"):
        raise RecordExtractionError(f"Malformed IORegistry entry at {descriptor.get('path', '<unknown>')}")

    class_name = _text(entry.get(KEY_CLASS))
    vendor = next((_text(entry[k]) for k in VENDOR_KEYS if entry.get(k)), "")

    name = next((_text(entry[k]) for k in NAME_KEYS if entry.get(k)), "")
    if not name:
        name = _text(entry.get(KEY_NAME))
    if not name:
        name = f"{vendor} {class_name}" if vendor else class_name
    name = name.replace("_", " ").strip()

    personality = entry.get(KEY_PERSONALITY)
    bundle = ""
    if isinstance(personality, dict):
        bundle = _text(personality.get(KEY_BUNDLE))
    if not bundle:
        bundle = _text(entry.get(KEY_BUNDLE))
    driver = bundle or class_name

    bsd_name = _text(entry.get(KEY_BSD_NAME))

    properties = {
        key: _text(value)
        for key, value in entry.items()
        if key != KEY_CHILDREN and not isinstance(value, (dict, list))
    }
    properties[c.PROP_IOKIT_CLASS] = class_name
    if vendor:
        properties[c.PROP_IOKIT_VENDOR] = vendor
    if bsd_name:
        properties[c.PROP_BSD_NAME] = bsd_name

    record = DeviceRecord(
        syspath=descriptor["path"],
        parent_syspath=descriptor.get("parent_path", ""),
        dev_path=descriptor["path"],
        devnode=c.DEV_PREFIX + bsd_name if bsd_name else "",
        name=name,
        driver=driver,
        subsystem=class_name,
        id_vendor_from_database=vendor,
        properties=properties,
        driver_info=DriverInfo(has_driver=True, name=driver, bundle_identifier=bundle) if bundle else None,
        platform=c.PLATFORM_MACOS,
    )
    return classified(record, backend_hidden=class_name in IOKIT_HIDDEN_CLASSES)


@register_backend
class IOKitBackend(PlatformBackend):
    """Reads the IOService plane in one ``ioreg`` invocation per enumeration."""

    name = "iokit"
    platform = c.PLATFORM_MACOS

    def _initialize(self) -> None:
        if sys.platform != c.PLATFORM_MACOS:
            raise BackendInitError("IOKit is only available on macOS")

    def _registry(self) -> Dict[str, Any]:
        try:
            output = run_command(IOREG_COMMAND, timeout=max(self.config.command_timeout, 10))
        except CommandError as e:
            raise BackendInitError(f"Cannot read the IORegistry: {e}") from e
        try:
            data = plistlib.loads(output)
        except (ValueError, ExpatError) as e:
            raise BackendInitError(f"Cannot parse ioreg output: {e}") from e
        if isinstance(data, list):
            data = {KEY_CHILDREN: data}
        elif not isinstance(data, dict):
            raise BackendInitError("Unexpected ioreg output")
        logger.debug(f"Read IORegistry with {len(data.get(KEY_CHILDREN, []))} top-level entries")
        return data

    def enumerate_all(self) -> List[RawDescriptor]:
        return flatten_registry(self._registry())

    def enumerate_by_class(self, class_key: str) -> List[RawDescriptor]:
        return [d for d in self.enumerate_all() if _text(d["entry"].get(KEY_CLASS)) == class_key]

    def read_properties(self, descriptor: RawDescriptor) -> DeviceRecord:
        return entry_to_record(descriptor)
