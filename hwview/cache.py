"""Process-wide store of the current device enumeration."""

import atexit
import socket
import threading
from pathlib import Path
from typing import Dict, Iterable, Iterator, Optional, Tuple

from .categories import DeviceCategory
from .errors import SnapshotDecodeError
from .record import DeviceRecord
from .util.logging import get_logger

logger = get_logger(__name__)


class DeviceCache:
    """Holds one enumeration snapshot and answers queries against it.

    Readers see an immutable tuple; ``replace`` builds the new tuple and
    index off to the side and swaps both under a writer lock, so a reader
    never observes a half-built snapshot.

    When a snapshot file has been loaded the cache is in viewer mode: it
    serves the imported records and reports the exporting machine's
    hostname until the next :meth:`refresh`.
    """

    def __init__(self, records: Optional[Iterable[DeviceRecord]] = None, show_hidden: bool = False):
        self._write_lock = threading.Lock()
        self._records: Tuple[DeviceRecord, ...] = ()
        self._index: Dict[str, int] = {}
        self._show_hidden = show_hidden
        self._hostname: Optional[str] = None
        self._backend = None
        self.imported = None
        if records is not None:
            self.replace(records)

    def replace(self, records: Iterable[DeviceRecord]) -> None:
        """Atomically swap in a new set of records, dropping duplicate syspaths."""
        new_records = []
        new_index: Dict[str, int] = {}
        for record in records:
            if record.syspath in new_index:
                logger.warning(f"Dropping duplicate device {record.syspath}")
                continue
            new_index[record.syspath] = len(new_records)
            new_records.append(record)

        with self._write_lock:
            self._records, self._index = tuple(new_records), new_index

    def all(self) -> Tuple[DeviceRecord, ...]:
        """Read-only view of every record, hidden and unknown ones included."""
        return self._records

    def by_category(self, category: DeviceCategory) -> Iterator[DeviceRecord]:
        records = self._records
        return (r for r in records if r.category == category)

    def by_syspath(self, syspath: str) -> Optional[DeviceRecord]:
        records, index = self._records, self._index
        position = index.get(syspath)
        return records[position] if position is not None else None

    def __len__(self) -> int:
        return len(self._records)

    @property
    def show_hidden(self) -> bool:
        return self._show_hidden

    def set_show_hidden(self, show: bool) -> None:
        """Toggle the view flag consumed by the tree builder."""
        self._show_hidden = show

    def hostname(self) -> str:
        """The host the records describe: the imported host in viewer mode."""
        if self.imported is not None:
            return self.imported.hostname
        if self._hostname is None:
            self._hostname = socket.gethostname()
        return self._hostname

    def computer_name(self) -> str:
        """Display name for the synthetic Computer node."""
        if self.imported is not None:
            return self.imported.system_info.get("computerName") or "Standard PC"
        from .sysinfo import computer_display_name

        return computer_display_name()

    def computer_syspath(self) -> str:
        if self.imported is not None:
            return ""
        from .sysinfo import computer_syspath

        return computer_syspath()

    # Live enumeration

    def refresh(self, backend=None):
        """Re-enumerate with ``backend`` and publish the result.

        Leaves viewer mode. Returns the EnumerationResult; on a backend
        failure the cache is left empty.
        """
        self.imported = None
        if backend is not None:
            self._backend = backend
        if self._backend is None:
            from .backends import select_backend
            from .config import get_config

            self._backend = select_backend(get_config().backend)
        result = self._backend.enumerate()
        self.replace(result.records)
        logger.debug(f"Cache refreshed with {len(result.records)} devices")
        return result

    def reload_live_data(self, backend=None):
        """Leave viewer mode and enumerate the local machine again."""
        return self.refresh(backend)

    # Viewer mode

    @property
    def is_viewer_mode(self) -> bool:
        return self.imported is not None

    def load_snapshot(self, snapshot) -> None:
        """Publish a decoded snapshot and enter viewer mode."""
        self.replace(snapshot.records)
        self.imported = snapshot

    def load_from_file(self, path: Path) -> None:
        """Load a ``.dmexport`` file; raises SnapshotDecodeError and publishes nothing on failure."""
        from .snapshot import load_from_file

        try:
            snapshot = load_from_file(path)
        except SnapshotDecodeError as e:
            logger.error(f"Cannot open snapshot {path}: {e}")
            raise
        self.load_snapshot(snapshot)
        logger.info(f"Loaded {len(snapshot.records)} devices exported from {snapshot.hostname}")

    # Export

    def export_document(self, backend=None):
        """Build a snapshot document of the current records.

        Live records are enriched by ``backend`` first; in viewer mode the
        imported metadata is written back unchanged.
        """
        from .snapshot import create_export_document

        records = self.all()
        if self.imported is not None:
            return create_export_document(
                records,
                self.hostname(),
                system_info=self.imported.system_info,
                system_resources=self.imported.system_resources,
                extra_fields=self.imported.extra_fields,
            )

        backend = backend or self._backend
        if backend is not None:
            records = [backend.enrich_for_export(r) for r in records]
        return create_export_document(records, self.hostname())

    def export_to_file(self, path: Path, backend=None) -> bool:
        """Export the current records to ``path``; False when writing fails."""
        from .snapshot import export_to_file

        return export_to_file(self.export_document(backend), path)


def get_cache() -> DeviceCache:
    """Get the process-wide device cache, creating it on first use."""

    if getattr(get_cache, "_cache", None) is None:
        from .config import get_config

        get_cache._cache = DeviceCache(show_hidden=get_config().view.show_hidden_devices)
        if not getattr(get_cache, "_registered", False):
            atexit.register(reset_cache)
            get_cache._registered = True

    return get_cache._cache


def reset_cache() -> None:
    """Tear down the process-wide cache."""
    cache = getattr(get_cache, "_cache", None)
    if cache is not None:
        cache.replace(())
        cache.imported = None
    get_cache._cache = None
