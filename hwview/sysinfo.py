"""Host metadata, firmware details and per-device resources for export."""

import locale
import os
import platform
import re
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from . import constants as c
from .errors import CommandError
from .record import DriverInfo, ResourceDescriptor
from .util.logging import get_logger
from .util.paths import read_text_file
from .util.process import run_text_command

logger = get_logger(__name__)

COMPUTER_SYSPATH = "/sys/devices/virtual/dmi/id"
OS_RELEASE_PATHS = ("/etc/os-release", "/usr/lib/os-release")
PROC_RESOURCE_FILES = {
    "dma": "/proc/dma",
    "ioports": "/proc/ioports",
    "interrupts": "/proc/interrupts",
    "iomem": "/proc/iomem",
}

IORESOURCE_IO = 0x100
IORESOURCE_MEM = 0x200

RESOURCE_IRQ = "IRQ"
RESOURCE_IO_RANGE = "I/O Range"
RESOURCE_MEMORY_RANGE = "Memory Range"

_PCI_SYSPATH_RE = re.compile(r"/pci[^/]*/(?:.*/)?[0-9a-fA-F]{4}:[0-9a-fA-F]{2}:[0-9a-fA-F]{2}\.[0-9a-fA-F]$")

_MACHINE_ALIASES = {
    "amd64": "x86_64",
    "x64": "x86_64",
    "i386": "i386",
    "i686": "i386",
    "x86": "i386",
    "aarch64": "arm64",
    "armv7l": "arm",
    "armv6l": "arm",
}


def cpu_architecture(machine: Optional[str] = None) -> str:
    """Normalized CPU architecture name (``x86_64``, ``i386``, ``arm64``, ``arm``)."""
    machine = (machine if machine is not None else platform.machine()).lower()
    return _MACHINE_ALIASES.get(machine, machine)


def parse_os_release(text: str) -> Dict[str, str]:
    """Parse os-release(5) ``KEY=value`` lines, stripping surrounding quotes."""
    values: Dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            value = value[1:-1]
        values[key.strip()] = value
    return values


def distribution_info(paths: Tuple[str, ...] = OS_RELEASE_PATHS) -> Dict[str, str]:
    """Distribution details from the first readable os-release file."""
    for path in paths:
        text = read_text_file(Path(path))
        if text is not None:
            return parse_os_release(text)
    return {}


def uname_info() -> Dict[str, str]:
    if not hasattr(os, "uname"):
        return {}
    uname = os.uname()
    return {
        "unameSysname": uname.sysname,
        "unameRelease": uname.release,
        "unameVersion": uname.version,
        "unameMachine": uname.machine,
    }


def locale_name() -> str:
    return (locale.getlocale()[0] or "C").split(".")[0]


def _product_details(distribution: Dict[str, str]) -> Tuple[str, str, str, str, str]:
    """Return (product type, product version, pretty name, kernel type, kernel version)."""
    if sys.platform.startswith("linux"):
        product_type = distribution.get("ID", "linux")
        product_version = distribution.get("VERSION_ID", "unknown")
        pretty = distribution.get("PRETTY_NAME") or f"Linux {platform.release()}"
        return product_type, product_version, pretty, "linux", platform.release()
    if sys.platform == c.PLATFORM_WINDOWS:
        release = platform.release()
        return "windows", release, f"Windows {release} ({platform.version()})", "winnt", platform.version()
    if sys.platform == c.PLATFORM_MACOS:
        version = platform.mac_ver()[0]
        return "macos", version, f"macOS {version}", "darwin", platform.release()
    return platform.system().lower(), platform.release(), platform.platform(), platform.system().lower(), platform.release()


def system_info(hostname: str) -> Dict[str, object]:
    """Collect the ``system`` section of a snapshot."""
    distribution = distribution_info() if sys.platform.startswith("linux") else {}
    product_type, product_version, pretty, kernel_type, kernel_version = _product_details(distribution)

    info: Dict[str, object] = {
        "hostname": hostname,
        "productType": product_type,
        "productVersion": product_version,
        "prettyProductName": pretty,
        "kernelType": kernel_type,
        "kernelVersion": kernel_version,
        "cpuArchitecture": cpu_architecture(),
        "buildCpuArchitecture": cpu_architecture(platform.machine()),
        "locale": locale_name(),
        "computerName": computer_display_name(),
    }
    info.update(uname_info())
    if distribution:
        info["distribution"] = distribution
    return info


def system_resources(files: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """Raw ``/proc`` resource tables keyed by kind; missing tables are skipped."""
    if files is None:
        files = PROC_RESOURCE_FILES if sys.platform.startswith("linux") else {}
    resources: Dict[str, str] = {}
    for kind, path in files.items():
        text = read_text_file(Path(path))
        if text is not None:
            resources[kind] = text
    return resources


def computer_display_name(firmware_root: Path = Path("/sys/firmware"), machine: Optional[str] = None) -> str:
    """Display name for the synthetic Computer node, based on the firmware type."""
    if not sys.platform.startswith("linux") and machine is None:
        return "Standard PC"

    if (firmware_root / "acpi").is_dir():
        arch = cpu_architecture(machine)
        if arch == "x86_64":
            return "ACPI x64-based PC"
        if arch == "i386":
            return "ACPI x86-based PC"
        if arch == "arm64":
            return "ACPI ARM64-based PC"
        if arch == "arm":
            return "ACPI ARM-based PC"
        return "ACPI-based PC"

    if (firmware_root / "devicetree").is_dir():
        return "Device Tree-based System"

    return "Standard PC"


def computer_syspath() -> str:
    return COMPUTER_SYSPATH if sys.platform.startswith("linux") else ""


def is_pci_syspath(syspath: str) -> bool:
    return bool(_PCI_SYSPATH_RE.search(syspath))


def pci_resources(syspath: str) -> Tuple[ResourceDescriptor, ...]:
    """IRQ, I/O and memory ranges of a PCI function, read from sysfs."""
    if not is_pci_syspath(syspath):
        return ()

    resources: List[ResourceDescriptor] = []
    base = Path(syspath)

    irq_text = read_text_file(base / "irq")
    if irq_text is not None:
        try:
            irq = int(irq_text.strip())
        except ValueError:
            irq = 0
        if irq > 0:
            resources.append(ResourceDescriptor(
                type=RESOURCE_IRQ,
                display_value=f"0x{irq:08X} ({irq})",
                value=irq,
            ))

    resource_text = read_text_file(base / "resource")
    if resource_text is not None:
        resources.extend(parse_pci_resource_table(resource_text))

    return tuple(resources)


def parse_pci_resource_table(text: str) -> List[ResourceDescriptor]:
    """Parse the sysfs ``resource`` file (``start end flags`` in hex per line)."""
    ranges: List[ResourceDescriptor] = []
    for line in text.splitlines():
        parts = line.split()
        if len(parts) < 3:
            continue
        try:
            start, end, flags = (int(p, 16) for p in parts[:3])
        except ValueError:
            continue
        if start == 0 and end == 0:
            continue

        if flags & IORESOURCE_IO:
            kind = RESOURCE_IO_RANGE
        elif flags & IORESOURCE_MEM:
            kind = RESOURCE_MEMORY_RANGE
        else:
            continue

        ranges.append(ResourceDescriptor(
            type=kind,
            display_value=f"{start:016X} - {end:016X}",
            start=f"{start:X}",
            end=f"{end:X}",
            flags=f"{flags:X}",
        ))
    return ranges


def parse_modinfo(output: str) -> Dict[str, str]:
    """Parse ``modinfo`` output; repeated keys (author) are joined with commas."""
    fields: Dict[str, str] = {}
    for line in output.splitlines():
        if ":" not in line:
            continue
        key, value = line.split(":", 1)
        key = key.strip()
        value = value.strip()
        if key in fields and key == "author":
            fields[key] = f"{fields[key]}, {value}"
        elif key not in fields:
            fields[key] = value
    return fields


def kernel_driver_info(driver: str, timeout: float = 3) -> DriverInfo:
    """Driver details for a Linux kernel module, via ``modinfo``."""
    if not driver:
        return DriverInfo(has_driver=False)

    try:
        fields = parse_modinfo(run_text_command(["modinfo", driver], timeout=timeout))
    except CommandError as e:
        logger.debug(f"No module information for driver {driver}: {e}")
        return DriverInfo(has_driver=True, name=driver)

    filename = fields.get("filename", "")
    is_builtin = filename == "(builtin)"
    return DriverInfo(
        has_driver=True,
        name=fields.get("name", driver),
        filename=filename,
        author=fields.get("author", ""),
        version=fields.get("version", ""),
        license=fields.get("license", ""),
        description=fields.get("description", ""),
        signer=fields.get("signer", ""),
        srcversion=fields.get("srcversion", ""),
        vermagic=fields.get("vermagic", ""),
        is_builtin=is_builtin,
        is_out_of_tree=bool(filename) and not is_builtin and "/kernel/" not in filename,
    )
