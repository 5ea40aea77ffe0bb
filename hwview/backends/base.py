"""Base interface for platform enumeration backends."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, List, Optional

from ..config import BackendConfig, ExportConfig
from ..errors import BackendInitError, RecordExtractionError
from ..record import DeviceRecord
from ..util.logging import get_logger

logger = get_logger(__name__)

# Opaque per-platform handle for one device (pyudev Device, SetupAPI dict, IORegistry entry)
RawDescriptor = Any


@dataclass
class EnumerationResult:
    """Outcome of one enumeration pass."""

    records: List[DeviceRecord] = field(default_factory=list)
    error: Optional[BackendInitError] = None
    dropped: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


class PlatformBackend(ABC):
    """
    Abstract base class for OS device enumeration.

    Subclasses acquire their OS handles inside ``enumerate_all`` and
    release them before returning. A backend whose facility cannot be
    started records the failure in ``init_error`` and enumerates nothing.
    """

    name: str = ""
    platform: str = ""
    priority: int = 50

    def __init__(self, config: Optional[BackendConfig] = None):
        self.config = config or BackendConfig()
        self.include_driver_details = True
        self.include_resources = True
        self.init_error: Optional[BackendInitError] = None
        try:
            self._initialize()
        except BackendInitError as e:
            logger.error(f"{self.name} backend failed to initialise: {e}")
            self.init_error = e

    def _initialize(self) -> None:
        """Check that the OS facility is usable; raise BackendInitError if not."""

    @classmethod
    def matches_platform(cls, platform: str) -> bool:
        return bool(cls.platform) and platform.startswith(cls.platform)

    @abstractmethod
    def enumerate_all(self) -> List[RawDescriptor]:
        """Return raw descriptors for every device, without a class filter."""

    @abstractmethod
    def enumerate_by_class(self, class_key: str) -> List[RawDescriptor]:
        """Return raw descriptors for one subsystem or device class."""

    @abstractmethod
    def read_properties(self, descriptor: RawDescriptor) -> DeviceRecord:
        """Build a classified record; raise RecordExtractionError on failure."""

    def configure_export(self, export_config: ExportConfig) -> None:
        self.include_driver_details = export_config.include_driver_details
        self.include_resources = export_config.include_resources

    def enrich_for_export(self, record: DeviceRecord) -> DeviceRecord:
        """Attach details only needed in snapshots (driver info, resources)."""
        return record

    def enumerate(self) -> EnumerationResult:
        """Enumerate and classify all devices, dropping unreadable descriptors."""
        if self.init_error is not None:
            return EnumerationResult(error=self.init_error)

        try:
            descriptors = self.enumerate_all()
        except BackendInitError as e:
            logger.error(f"{self.name} enumeration could not start: {e}")
            return EnumerationResult(error=e)

        result = EnumerationResult()
        for descriptor in descriptors:
            try:
                result.records.append(self.read_properties(descriptor))
            except RecordExtractionError as e:
                logger.warning(f"Dropping device that could not be read: {e}")
                result.dropped += 1

        logger.debug(
            f"{self.name} backend enumerated {len(result.records)} devices "
            f"({result.dropped} dropped)"
        )
        return result
