"""Snapshot document models and the export/import codec."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from . import APPLICATION_NAME, __version__
from .categories import DeviceCategory
from .constants import EXPORT_FORMAT_VERSION, EXPORT_MIME_TYPE
from .errors import SnapshotDecodeError, SnapshotWriteError
from .record import DeviceRecord, DriverInfo, ResourceDescriptor
from .util.logging import get_logger
from .util.timeutil import now_iso, parse_iso

logger = get_logger(__name__)

# Flat device keys written by older exports, mapped to their nested location
LEGACY_PCI_KEYS = {"pciClass": "class", "pciSubclass": "subclass", "pciInterface": "interface"}
LEGACY_ID_KEYS = {
    "idCdrom": "cdrom",
    "idDevType": "devType",
    "idInputKeyboard": "inputKeyboard",
    "idInputMouse": "inputMouse",
    "idType": "type",
    "idModelFromDatabase": "modelFromDatabase",
}


class SnapshotModel(BaseModel):
    """Base for document objects: camelCase keys, unknown keys preserved."""

    class Config:
        """Pydantic configuration."""

        alias_generator = to_camel
        populate_by_name = True
        extra = "allow"
        protected_namespaces = ()


class ResourceEntry(SnapshotModel):
    """Hardware resource claimed by a device."""

    type: str = Field(description="Resource kind (IRQ, I/O Range, Memory Range)")
    display_value: str = Field(default="", description="Human readable value")
    start: Optional[str] = Field(default=None, description="Range start, hex")
    end: Optional[str] = Field(default=None, description="Range end, hex")
    flags: Optional[str] = Field(default=None, description="Resource flags, hex")
    value: Optional[int] = Field(default=None, description="Scalar value (IRQ number)")


class DriverInfoEntry(SnapshotModel):
    """Driver details; empty strings are omitted."""

    has_driver: bool = Field(default=False, description="Whether a driver is bound")
    name: str = Field(default="", description="Driver name")
    filename: Optional[str] = None
    author: Optional[str] = None
    version: Optional[str] = None
    license: Optional[str] = None
    description: Optional[str] = None
    signer: Optional[str] = None
    srcversion: Optional[str] = None
    vermagic: Optional[str] = None
    date: Optional[str] = None
    bundle_identifier: Optional[str] = None
    provider: Optional[str] = None
    is_out_of_tree: Optional[bool] = None
    is_builtin: Optional[bool] = None


class PciEntry(SnapshotModel):
    pci_class: str = Field(default="", alias="class")
    subclass: str = ""
    interface: str = ""


class IdsEntry(SnapshotModel):
    cdrom: str = ""
    dev_type: str = ""
    input_keyboard: str = ""
    input_mouse: str = ""
    type: str = ""
    model_from_database: str = ""
    vendor_from_database: Optional[str] = None


class DeviceEntry(SnapshotModel):
    """One device object in the ``devices`` array."""

    syspath: str = Field(description="Stable device identifier")
    name: str = ""
    driver: str = ""
    subsystem: str = ""
    devnode: str = ""
    parent_syspath: str = ""
    dev_path: str = ""
    is_hidden: bool = False
    is_valid_for_display: bool = False
    category: int = Field(default=int(DeviceCategory.UNKNOWN), description="Category ordinal")
    category_name: str = ""
    pci: Optional[PciEntry] = None
    ids: Optional[IdsEntry] = None
    properties: Optional[Dict[str, str]] = None
    driver_info: Optional[DriverInfoEntry] = None
    resources: Optional[List[ResourceEntry]] = None

    @model_validator(mode="before")
    @classmethod
    def _nest_legacy_keys(cls, data: Any) -> Any:
        """Accept the flat ``pciClass``/``idCdrom`` style keys of older exports."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for nested, mapping in (("pci", LEGACY_PCI_KEYS), ("ids", LEGACY_ID_KEYS)):
            found = {target: data.pop(key) for key, target in mapping.items() if key in data}
            if found and data.get(nested) is None:
                data[nested] = found
        return data


class SystemEntry(SnapshotModel):
    """Host metadata captured at export time."""

    hostname: str = ""
    product_type: str = ""
    product_version: str = ""
    pretty_product_name: str = ""
    kernel_type: str = ""
    kernel_version: str = ""
    cpu_architecture: str = ""
    build_cpu_architecture: str = ""
    locale: str = ""
    computer_name: Optional[str] = None
    uname_sysname: Optional[str] = None
    uname_release: Optional[str] = None
    uname_version: Optional[str] = None
    uname_machine: Optional[str] = None
    distribution: Optional[Dict[str, str]] = None


class SnapshotDocument(SnapshotModel):
    """Root of a ``.dmexport`` document."""

    format_version: int = Field(default=EXPORT_FORMAT_VERSION, description="Document format version")
    mime_type: str = Field(default=EXPORT_MIME_TYPE, description="Document MIME type")
    export_date: str = Field(default_factory=now_iso, description="Export timestamp")
    application_name: str = Field(default=APPLICATION_NAME)
    application_version: str = Field(default=__version__)
    system: SystemEntry = Field(default_factory=SystemEntry)
    includes_hidden_devices: bool = Field(default=True)
    devices: List[DeviceEntry] = Field(default_factory=list)
    system_resources: Dict[str, str] = Field(default_factory=dict)


@dataclass
class ImportedSnapshot:
    """A decoded snapshot: records plus the metadata of the exporting machine."""

    records: List[DeviceRecord]
    export_date: str = ""
    application_name: str = ""
    application_version: str = ""
    system_info: Dict[str, Any] = field(default_factory=dict)
    system_resources: Dict[str, str] = field(default_factory=dict)
    extra_fields: Dict[str, Any] = field(default_factory=dict)
    file_path: Optional[Path] = None

    @property
    def hostname(self) -> str:
        return self.system_info.get("hostname", "")


# Encoding

def _driver_info_entry(record: DeviceRecord) -> DriverInfoEntry:
    """Records without details get a bare ``{hasDriver, name}`` object.

    Recorded details always carry the builtin/out-of-tree flags, so the
    decoder can tell the two apart.
    """
    info = record.driver_info
    if info is None:
        return DriverInfoEntry(has_driver=bool(record.driver), name=record.driver)
    return DriverInfoEntry(
        has_driver=info.has_driver,
        name=info.name,
        filename=info.filename or None,
        author=info.author or None,
        version=info.version or None,
        license=info.license or None,
        description=info.description or None,
        signer=info.signer or None,
        srcversion=info.srcversion or None,
        vermagic=info.vermagic or None,
        date=info.date or None,
        bundle_identifier=info.bundle_identifier or None,
        provider=info.provider or None,
        is_out_of_tree=info.is_out_of_tree,
        is_builtin=info.is_builtin,
    )


def record_to_entry(record: DeviceRecord) -> DeviceEntry:
    """Serialise one record into its document object."""
    pci = None
    if record.pci_class or record.pci_subclass or record.pci_interface:
        pci = PciEntry(pci_class=record.pci_class, subclass=record.pci_subclass, interface=record.pci_interface)

    ids = IdsEntry(
        cdrom=record.id_cdrom,
        dev_type=record.dev_type,
        input_keyboard=record.id_input_keyboard,
        input_mouse=record.id_input_mouse,
        type=record.id_type,
        model_from_database=record.id_model_from_database,
        vendor_from_database=record.id_vendor_from_database or None,
    )

    resources = None
    if record.resources:
        resources = [
            ResourceEntry(
                type=r.type,
                display_value=r.display_value,
                start=r.start,
                end=r.end,
                flags=r.flags,
                value=r.value,
            )
            for r in record.resources
        ]

    fields = dict(
        syspath=record.syspath,
        name=record.name,
        driver=record.driver,
        subsystem=record.subsystem,
        devnode=record.devnode,
        parent_syspath=record.parent_syspath,
        dev_path=record.dev_path,
        is_hidden=record.is_hidden,
        is_valid_for_display=record.is_valid_for_display,
        category=int(record.category),
        category_name=record.category.label,
        pci=pci,
        ids=ids,
        properties=dict(record.properties) if record.properties else None,
        driver_info=_driver_info_entry(record),
        resources=resources,
    )
    return DeviceEntry(**record.extra_fields, **fields)


def create_export_document(
    records: Iterable[DeviceRecord],
    hostname: str,
    system_info: Optional[Dict[str, Any]] = None,
    system_resources: Optional[Dict[str, str]] = None,
    export_date: Optional[str] = None,
    extra_fields: Optional[Dict[str, Any]] = None,
) -> SnapshotDocument:
    """Build the document for ``records``.

    ``system_info`` and ``system_resources`` default to the live host's.
    """
    if system_info is None:
        from .sysinfo import system_info as collect_system_info

        system_info = collect_system_info(hostname)
    if system_resources is None:
        from .sysinfo import system_resources as collect_system_resources

        system_resources = collect_system_resources()

    system = SystemEntry.model_validate({**system_info, "hostname": hostname})

    return SnapshotDocument(
        **(extra_fields or {}),
        export_date=export_date or now_iso(),
        system=system,
        includes_hidden_devices=True,
        devices=[record_to_entry(r) for r in records],
        system_resources=dict(system_resources),
    )


def encode(document: SnapshotDocument) -> str:
    """Render a document as indented UTF-8 JSON text."""
    data = document.model_dump(by_alias=True, exclude_none=True)
    return json.dumps(data, indent=4, ensure_ascii=False)


def export_to_file(document: SnapshotDocument, path: Path) -> bool:
    """Write a document to ``path``; returns False (and logs) on failure."""
    try:
        write_document(document, path)
    except SnapshotWriteError as e:
        logger.error(str(e))
        return False
    return True


def write_document(document: SnapshotDocument, path: Path) -> None:
    text = encode(document)
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
    except OSError as e:
        raise SnapshotWriteError(f"Cannot write snapshot to {path}: {e}") from e
    logger.debug(f"Wrote {len(document.devices)} devices to {path}")


# Decoding

def entry_to_record(entry: DeviceEntry) -> DeviceRecord:
    """Rehydrate a document object into an imported record."""
    category = DeviceCategory.from_ordinal(entry.category)
    if category == DeviceCategory.UNKNOWN and entry.category != int(DeviceCategory.UNKNOWN):
        logger.warning(f"Unknown category ordinal {entry.category} for {entry.syspath}")

    pci = entry.pci or PciEntry()
    ids = entry.ids or IdsEntry()

    driver_info = None
    if entry.driver_info is not None:
        info = entry.driver_info
        details = info.model_dump(exclude={"has_driver", "name"}, exclude_none=True)
        if details:
            driver_info = DriverInfo(
                has_driver=info.has_driver,
                name=info.name,
                filename=info.filename or "",
                author=info.author or "",
                version=info.version or "",
                license=info.license or "",
                description=info.description or "",
                signer=info.signer or "",
                srcversion=info.srcversion or "",
                vermagic=info.vermagic or "",
                date=info.date or "",
                bundle_identifier=info.bundle_identifier or "",
                provider=info.provider or "",
                is_out_of_tree=bool(info.is_out_of_tree),
                is_builtin=bool(info.is_builtin),
            )

    resources = tuple(
        ResourceDescriptor(
            type=r.type,
            display_value=r.display_value,
            start=r.start,
            end=r.end,
            flags=r.flags,
            value=r.value,
        )
        for r in (entry.resources or [])
    )

    return DeviceRecord(
        syspath=entry.syspath,
        parent_syspath=entry.parent_syspath,
        dev_path=entry.dev_path,
        devnode=entry.devnode,
        name=entry.name,
        driver=entry.driver,
        subsystem=entry.subsystem,
        category=category,
        is_hidden=entry.is_hidden,
        pci_class=pci.pci_class,
        pci_subclass=pci.subclass,
        pci_interface=pci.interface,
        id_cdrom=ids.cdrom,
        dev_type=ids.dev_type,
        id_input_keyboard=ids.input_keyboard,
        id_input_mouse=ids.input_mouse,
        id_type=ids.type,
        id_model_from_database=ids.model_from_database,
        id_vendor_from_database=ids.vendor_from_database or "",
        properties=dict(entry.properties or {}),
        driver_info=driver_info,
        resources=resources,
        is_imported=True,
        extra_fields=dict(entry.model_extra or {}),
    )


def decode(text: str) -> ImportedSnapshot:
    """Parse snapshot text; raises SnapshotDecodeError for anything unusable."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SnapshotDecodeError(f"Malformed snapshot JSON: {e.msg}", offset=e.pos) from e

    if not isinstance(data, dict):
        raise SnapshotDecodeError("Snapshot root is not a JSON object", offset=0)

    mime_type = data.get("mimeType")
    if mime_type is not None and mime_type != EXPORT_MIME_TYPE:
        raise SnapshotDecodeError(f"Unexpected snapshot MIME type: {mime_type}")

    version = data.get("formatVersion")
    if not isinstance(version, int) or isinstance(version, bool):
        raise SnapshotDecodeError("Snapshot has no formatVersion")
    if version > EXPORT_FORMAT_VERSION or version < 1:
        raise SnapshotDecodeError(
            f"Unsupported snapshot format version {version}",
            hint=f"this build reads version {EXPORT_FORMAT_VERSION}",
        )
    if not isinstance(data.get("devices"), list):
        raise SnapshotDecodeError("Snapshot has no devices array")

    try:
        document = SnapshotDocument.model_validate(data)
    except ValidationError as e:
        raise SnapshotDecodeError(f"Invalid snapshot document: {e.error_count()} errors: {e.errors()[0]['msg']}") from e

    if document.export_date and parse_iso(document.export_date) is None:
        logger.warning(f"Snapshot exportDate is not an ISO 8601 timestamp: {document.export_date}")

    records: List[DeviceRecord] = []
    seen = set()
    for entry in document.devices:
        if entry.syspath in seen:
            logger.warning(f"Dropping duplicate device {entry.syspath} from snapshot")
            continue
        seen.add(entry.syspath)
        records.append(entry_to_record(entry))

    return ImportedSnapshot(
        records=records,
        export_date=document.export_date,
        application_name=document.application_name,
        application_version=document.application_version,
        system_info=document.system.model_dump(by_alias=True, exclude_none=True),
        system_resources=dict(document.system_resources),
        extra_fields=dict(document.model_extra or {}),
    )


def load_from_file(path: Path) -> ImportedSnapshot:
    """Read and decode a snapshot file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise SnapshotDecodeError(f"Cannot read snapshot {path}: {e}") from e

    snapshot = decode(text)
    snapshot.file_path = Path(path)
    logger.debug(f"Loaded {len(snapshot.records)} devices from {path}")
    return snapshot
