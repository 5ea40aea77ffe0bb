"""Canonical device record shared by every backend and the snapshot codec."""

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .categories import DeviceCategory


@dataclass(frozen=True)
class ResourceDescriptor:
    """A hardware resource (IRQ, I/O range, memory range) claimed by a device."""

    type: str
    display_value: str
    start: Optional[str] = None
    end: Optional[str] = None
    flags: Optional[str] = None
    value: Optional[int] = None


@dataclass(frozen=True)
class DriverInfo:
    """Details about the driver bound to a device."""

    has_driver: bool = False
    name: str = ""
    filename: str = ""
    author: str = ""
    version: str = ""
    license: str = ""
    description: str = ""
    signer: str = ""
    srcversion: str = ""
    vermagic: str = ""
    date: str = ""
    bundle_identifier: str = ""
    provider: str = ""
    is_builtin: bool = False
    is_out_of_tree: bool = False


@dataclass(frozen=True)
class DeviceRecord:
    """Immutable description of one device, independent of the source OS.

    ``syspath`` is the primary key: the sysfs path on Linux, the device
    instance ID on Windows and the IORegistry path on macOS.

    Records are never mutated after construction. Use :meth:`clone` to
    derive a changed copy; the hidden flag survives every clone.
    """

    syspath: str
    parent_syspath: str = ""
    dev_path: str = ""
    devnode: str = ""

    name: str = ""
    driver: str = ""
    subsystem: str = ""
    category: DeviceCategory = DeviceCategory.UNKNOWN
    is_hidden: bool = False

    pci_class: str = ""
    pci_subclass: str = ""
    pci_interface: str = ""

    id_cdrom: str = ""
    dev_type: str = ""
    id_input_keyboard: str = ""
    id_input_mouse: str = ""
    id_type: str = ""
    id_model_from_database: str = ""
    id_vendor_from_database: str = ""

    properties: Dict[str, str] = field(default_factory=dict)
    driver_info: Optional[DriverInfo] = None
    resources: Tuple[ResourceDescriptor, ...] = ()

    # Bookkeeping, not part of record identity
    platform: str = field(default="", compare=False)
    is_imported: bool = field(default=False, compare=False)
    extra_fields: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def is_valid_for_display(self) -> bool:
        """Whether the record belongs to a displayable category."""
        return self.category != DeviceCategory.UNKNOWN

    @property
    def category_name(self) -> str:
        return self.category.label

    def property_value(self, key: str) -> str:
        """Look up a property, returning an empty string when absent."""
        return self.properties.get(key, "")

    def clone(self, **changes) -> "DeviceRecord":
        """Return a copy with ``changes`` applied, keeping the hidden flag sticky."""
        if self.is_hidden:
            changes["is_hidden"] = True
        if "properties" in changes:
            changes["properties"] = dict(changes["properties"])
        return dataclasses.replace(self, **changes)
