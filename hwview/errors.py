"""Error types raised by hwview components."""

from typing import Optional


class HwviewError(Exception):
    """Base error carrying a stable code and an optional user hint."""

    code = "HWVIEW"

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.hint = hint

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} ({self.hint})"
        return self.message


class BackendInitError(HwviewError):
    """The OS enumeration facility could not be started."""

    code = "BACKEND_INIT"


class RecordExtractionError(HwviewError):
    """A single device descriptor could not be read."""

    code = "RECORD_EXTRACTION"


class SnapshotWriteError(HwviewError):
    """A snapshot file could not be opened or written."""

    code = "SNAPSHOT_WRITE"


class SnapshotDecodeError(HwviewError):
    """A snapshot document is malformed or unsupported."""

    code = "SNAPSHOT_DECODE"

    def __init__(self, message: str, offset: int = -1, hint: Optional[str] = None):
        super().__init__(message, hint)
        self.offset = offset


class CommandError(HwviewError):
    """An external helper command failed or timed out."""

    code = "COMMAND"
