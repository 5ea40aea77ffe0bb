"""Backend used on platforms without device enumeration support."""

from typing import List

from ..errors import RecordExtractionError
from ..record import DeviceRecord
from .base import PlatformBackend, RawDescriptor


class NullBackend(PlatformBackend):
    """Enumerates nothing."""

    name = "null"

    def enumerate_all(self) -> List[RawDescriptor]:
        return []

    def enumerate_by_class(self, class_key: str) -> List[RawDescriptor]:
        return []

    def read_properties(self, descriptor: RawDescriptor) -> DeviceRecord:
        raise RecordExtractionError("The null backend has no devices")
