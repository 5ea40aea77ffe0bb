"""Human-readable names for GUIDs, HID vendors, software and ACPI devices."""

import json
import locale
import re
import sys
from importlib import resources
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .constants import DEFAULT_GUID_CATEGORY_NAME, DEV_PREFIX
from .util.logging import get_logger

logger = get_logger(__name__)

BASE_MAPPINGS_FILE = "name-mappings.en-US.json"
FALLBACK_MAPPINGS_FILE = "name-mappings.json"
VENDORS_FILE = "vendors.json"

USER_DATA_DIR = Path.home() / ".local/share/hwview"

_HID_NAME_RE = re.compile(
    r"^(?:PNP[0-9A-Fa-f]{4}|ACPI[0-9A-Fa-f]{4}):[0-9A-Fa-f]+\s+"
    r"([0-9A-Fa-f]{4}):([0-9A-Fa-f]{4})(?:\s+(.+))?$"
)
_ACPI_DEVPATH_RE = re.compile(r"^([A-Z0-9]{4,8}):[0-9A-Fa-f]+$")


def normalize_guid(guid: str) -> str:
    """Normalize a GUID to lower case with surrounding braces."""
    guid = guid.strip().lower()
    if guid and not guid.startswith("{"):
        guid = "{" + guid + "}"
    return guid


def normalize_hid_vendor(vendor_id: str) -> str:
    """Normalize a HID vendor ID to four lower-case hex digits."""
    try:
        return f"{int(vendor_id, 16):04x}"
    except (TypeError, ValueError):
        return vendor_id.strip().lower()


def current_locale_name() -> str:
    """Return the UI locale as a BCP 47 style tag (``de-DE``)."""
    name = locale.getlocale()[0] or "en_US"
    return name.split(".")[0].replace("_", "-")


def _parse_bus_type(key) -> int:
    if isinstance(key, str) and key.lower().startswith("0x"):
        return int(key, 16)
    return int(key)


class NameMappings:
    """Lookup tables for display names, overlaid from JSON data files.

    The built-in English tables are loaded first; each directory in the
    search path may override entries, with the user data directory
    applied last.
    """

    def __init__(
        self,
        extra_dirs: Optional[Iterable[Path]] = None,
        locale_name: Optional[str] = None,
        include_system_dirs: bool = True,
    ):
        self.extra_dirs: List[Path] = [Path(d) for d in (extra_dirs or [])]
        self.locale_name = locale_name or current_locale_name()
        self.include_system_dirs = include_system_dirs

        self._guid_to_category: Dict[str, str] = {}
        self._hid_vendors: Dict[str, str] = {}
        self._hid_bus_types: Dict[int, str] = {}
        self._software_devices: Dict[str, str] = {}
        self._acpi_devices: Dict[str, str] = {}
        self._vendor_urls: Dict[str, str] = {}

        self.reload()

    def search_dirs(self) -> List[Path]:
        """Directories scanned after the built-in tables, lowest priority first."""
        dirs = list(self.extra_dirs)
        if self.include_system_dirs:
            dirs.append(Path(sys.prefix) / "share/hwview")
            dirs.append(USER_DATA_DIR)
        return dirs

    def reload(self) -> None:
        """Clear all tables and read every mapping file again."""
        self._guid_to_category.clear()
        self._hid_vendors.clear()
        self._hid_bus_types.clear()
        self._software_devices.clear()
        self._acpi_devices.clear()
        self._vendor_urls.clear()

        data_dir = resources.files("hwview.data")
        self._apply_mappings(json.loads(data_dir.joinpath(BASE_MAPPINGS_FILE).read_text(encoding="utf-8")))
        self._apply_vendors(json.loads(data_dir.joinpath(VENDORS_FILE).read_text(encoding="utf-8")))

        for directory in self.search_dirs():
            self._load_directory(directory)

    def _load_directory(self, directory: Path) -> None:
        if not directory.is_dir():
            return

        base = directory / BASE_MAPPINGS_FILE
        if not base.exists():
            base = directory / FALLBACK_MAPPINGS_FILE
        for path in (base, directory / f"name-mappings.{self.locale_name}.json"):
            data = self._read_json(path)
            if data is not None:
                self._apply_mappings(data)

        vendors = self._read_json(directory / VENDORS_FILE)
        if vendors is not None:
            self._apply_vendors(vendors)

    @staticmethod
    def _read_json(path: Path) -> Optional[dict]:
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable name-mapping file {path}: {e}")
            return None
        if not isinstance(data, dict):
            logger.warning(f"Ignoring name-mapping file {path}: top level is not an object")
            return None
        logger.debug(f"Loaded name mappings from {path}")
        return data

    def _apply_mappings(self, data: dict) -> None:
        for key, value in data.get("guid-to-category", {}).items():
            self._guid_to_category[normalize_guid(key)] = value
        for key, value in data.get("hid-vendor", {}).items():
            self._hid_vendors[normalize_hid_vendor(key)] = value
        for key, value in data.get("hid-bus-type", {}).items():
            try:
                self._hid_bus_types[_parse_bus_type(key)] = value
            except ValueError:
                logger.warning(f"Ignoring non-numeric HID bus type key: {key}")
        self._software_devices.update(data.get("software-device", {}))
        for key, value in data.get("acpi-device", {}).items():
            self._acpi_devices[key.upper()] = value

    def _apply_vendors(self, data: dict) -> None:
        self._vendor_urls.update(data.get("vendors", {}))

    # Lookups

    def category_name_from_guid(self, guid: str) -> str:
        """Category name for a Windows setup-class GUID, case-insensitive."""
        return self._guid_to_category.get(normalize_guid(guid), DEFAULT_GUID_CATEGORY_NAME)

    def hid_vendor_name(self, vendor_id: str) -> str:
        return self._hid_vendors.get(normalize_hid_vendor(vendor_id), "")

    def hid_bus_type_name(self, bus_type: int) -> str:
        return self._hid_bus_types.get(bus_type, "")

    def software_device_display_name(self, name: str) -> str:
        return self._software_devices.get(name, "")

    def acpi_device_display_name(self, pnp_id: str) -> str:
        return self._acpi_devices.get(pnp_id.upper(), "")

    def vendor_support_url(self, vendor: str) -> str:
        return self._vendor_urls.get(vendor, "")

    # Display-name helpers

    def software_device_nice_name(self, name: str) -> str:
        """Friendly name for a device node such as ``/dev/kvm`` or a raw HID name."""
        short_name = name[len(DEV_PREFIX):] if name.startswith(DEV_PREFIX) else name

        if short_name.startswith("input/event"):
            return f"Input event {short_name[len('input/event'):]}"
        if short_name.startswith("input/mouse"):
            return f"Input mouse {short_name[len('input/mouse'):]}"

        match = _HID_NAME_RE.match(short_name)
        if match:
            vendor = self.hid_vendor_name(match.group(1))
            device_type = (match.group(3) or "").strip()
            if vendor:
                return f"{vendor} {device_type}" if device_type else f"{vendor} HID device"
            if device_type:
                return device_type

        return self.software_device_display_name(short_name) or short_name

    def acpi_device_nice_name(self, dev_path: str, fallback: str) -> str:
        """Friendly name for an ACPI device, derived from the PNP ID in its devPath."""
        match = _ACPI_DEVPATH_RE.match(dev_path.rstrip("/").rsplit("/", 1)[-1])
        if match:
            nice = self.acpi_device_display_name(match.group(1))
            if nice:
                return nice
        return fallback[:1].upper() + fallback[1:]


def is_acpi_dev_path(dev_path: str) -> bool:
    """Whether the last devPath component looks like ``PNP0C0A:00``."""
    return bool(_ACPI_DEVPATH_RE.match(dev_path.rstrip("/").rsplit("/", 1)[-1]))


def get_name_mappings() -> NameMappings:
    """Get the shared name-mapping tables."""

    if not hasattr(get_name_mappings, "_mappings"):
        from .config import get_config

        get_name_mappings._mappings = NameMappings(extra_dirs=get_config().name_mapping_dirs)

    return get_name_mappings._mappings
